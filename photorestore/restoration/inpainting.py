"""Damage repair primitives.

A damage mask is a boolean array sized to its bounds rectangle; ``True`` marks
a damaged pixel.  All readers sample the unmodified input, so the result does
not depend on the order in which damaged pixels are visited.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict

import cv2
import numpy as np
from scipy import ndimage as ndi

from photorestore.utils.geometry import Rectangle
from photorestore.utils.pixel import clamp_u8, round_half_up

LOGGER = logging.getLogger(__name__)

NEIGHBOUR_RADIUS = 3
PATCH_SIZE = 7
SEARCH_STEP = 2


def damage_mask(shape, mask: np.ndarray, bounds: Rectangle) -> np.ndarray:
    """Place a bounds-sized ``mask`` into a full ``(H, W)`` boolean mask."""

    h, w = shape[:2]
    full = np.zeros((h, w), dtype=bool)
    local = np.asarray(mask, dtype=bool)
    y0, x0 = max(bounds.y, 0), max(bounds.x, 0)
    y1, x1 = min(bounds.y + local.shape[0], h), min(bounds.x + local.shape[1], w)
    if y1 <= y0 or x1 <= x0:
        return full
    full[y0:y1, x0:x1] = local[y0 - bounds.y : y1 - bounds.y, x0 - bounds.x : x1 - bounds.x]
    return full


def inpaint_region(pixels: np.ndarray, mask: np.ndarray, bounds: Rectangle, radius: int = NEIGHBOUR_RADIUS) -> np.ndarray:
    """Replace damaged pixels by the mean of undamaged pixels in a square window.

    Pixels with no undamaged neighbour inside the window are left unchanged.
    """

    src = np.asarray(pixels)
    damaged = damage_mask(src.shape, mask, bounds)
    out = src.copy()
    if not damaged.any():
        return out

    valid = (~damaged).astype(np.float64)
    window = np.ones((2 * radius + 1, 2 * radius + 1), dtype=np.float64)
    counts = ndi.correlate(valid, window, mode="constant", cval=0.0)
    fill = damaged & (counts > 0)
    for channel in range(3):
        sums = ndi.correlate(src[..., channel].astype(np.float64) * valid, window, mode="constant", cval=0.0)
        out[..., channel][fill] = clamp_u8(round_half_up(sums[fill] / counts[fill]))
    return out


def inpaint_patch_based(
    pixels: np.ndarray,
    mask: np.ndarray,
    bounds: Rectangle,
    patch_size: int = PATCH_SIZE,
    step: int = SEARCH_STEP,
) -> np.ndarray:
    """Copy each damaged pixel from the centre of the best matching patch.

    Candidate centres lie on a ``step`` grid, excluding damaged centres.  The
    match cost is the mean absolute RGB difference over the undamaged pixels of
    the target patch; ties keep the first candidate in raster order.  Damaged
    pixels closer than half a patch to the border are skipped.
    """

    src = np.asarray(pixels)
    h, w = src.shape[:2]
    half = patch_size // 2
    damaged = damage_mask(src.shape, mask, bounds)
    out = src.copy()

    cy, cx = np.mgrid[half : h - half : step, half : w - half : step]
    cy, cx = cy.ravel(), cx.ravel()
    keep = ~damaged[cy, cx]
    cy, cx = cy[keep], cx[keep]
    if cy.size == 0:
        LOGGER.debug("No undamaged patch centres available")
        return out

    rgb = src[..., :3].astype(np.int32)
    offsets = [(py, px) for py in range(-half, half + 1) for px in range(-half, half + 1)]

    for y, x in zip(*np.nonzero(damaged)):
        if x < half or x >= w - half or y < half or y >= h - half:
            continue
        diff = np.zeros(cy.size, dtype=np.int64)
        valid = 0
        for py, px in offsets:
            ty, tx = y + py, x + px
            if damaged[ty, tx]:
                continue
            diff += np.abs(rgb[cy + py, cx + px] - rgb[ty, tx]).sum(axis=1)
            valid += 1
        if valid == 0:
            continue
        best = int(np.argmin(diff))
        out[y, x, :3] = src[cy[best], cx[best], :3]
    return out


def _opencv(flag: int) -> Callable[[np.ndarray, np.ndarray, Rectangle], np.ndarray]:
    def run(pixels: np.ndarray, mask: np.ndarray, bounds: Rectangle) -> np.ndarray:
        src = np.asarray(pixels)
        damaged = damage_mask(src.shape, mask, bounds).astype(np.uint8) * 255
        out = src.copy()
        rgb = np.ascontiguousarray(src[..., :3])
        out[..., :3] = cv2.inpaint(rgb, damaged, NEIGHBOUR_RADIUS, flag)
        return out

    return run


INPAINTERS: Dict[str, Callable[[np.ndarray, np.ndarray, Rectangle], np.ndarray]] = {
    "patchmatch": inpaint_patch_based,
    "fast": inpaint_region,
    "telea": _opencv(cv2.INPAINT_TELEA),
    "navier-stokes": _opencv(cv2.INPAINT_NS),
}


def inpaint(pixels: np.ndarray, mask: np.ndarray, bounds: Rectangle, method: str = "patchmatch") -> np.ndarray:
    """Repair the damaged pixels of ``pixels`` with the named method."""

    try:
        inpainter = INPAINTERS[method]
    except KeyError as exc:
        raise ValueError(f"Unknown inpainting method: {method}") from exc
    return inpainter(pixels, mask, bounds)


__all__ = [
    "damage_mask",
    "inpaint_region",
    "inpaint_patch_based",
    "INPAINTERS",
    "inpaint",
]
