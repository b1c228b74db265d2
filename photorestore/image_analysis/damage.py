"""Damage heuristics: stains, scratches, fading and noise.

Each detector builds a boolean candidate mask over the whole raster, clusters
it with 4-connected components and turns every surviving component into a
:class:`~photorestore.image_analysis.findings.DamageRegion`.  Areas are bounding
box areas; severities come from fixed area thresholds.
"""

from __future__ import annotations

import math
from typing import List

import numpy as np

from photorestore.utils.pixel import generate_id, to_grayscale

from .findings import DamageRegion
from .regions import extract_region_mask, find_connected_components

STAIN_DEVIATION = 50.0
STAIN_MIN_AREA = 50
SCRATCH_MIN_AREA = 20
SCRATCH_MIN_ASPECT = 3.0
SCRATCH_DIRECTION_TOLERANCE = 0.3
SCRATCH_MIN_NEIGHBOURS = 4
FADE_BLOCK = 32
FADE_MAX_CONTRAST = 30
FADE_MIN_BRIGHTNESS = 200
NOISE_BLOCK = 8
NOISE_VARIANCE_BAND = (500.0, 2000.0)


def _regions_from_mask(mask: np.ndarray, min_area: int, kind: str, confidence: float, severity_of) -> List[DamageRegion]:
    damages: List[DamageRegion] = []
    for component in find_connected_components(mask, min_area=min_area):
        bounds = component.bounds
        severity = severity_of(bounds)
        if severity is None:
            continue
        damages.append(
            DamageRegion(
                id=generate_id(kind),
                type=kind,
                bounds=bounds,
                severity=severity,
                mask=extract_region_mask(mask, bounds),
                area=bounds.area,
                confidence=confidence,
            )
        )
    return damages


def _block_reduce(gray: np.ndarray, block: int, func, fill: float) -> np.ndarray:
    """Reduce ``block x block`` tiles (partial edge tiles padded with ``fill``)."""

    h, w = gray.shape
    rows = -(-h // block)
    cols = -(-w // block)
    padded = np.full((rows * block, cols * block), fill, dtype=np.float64)
    padded[:h, :w] = gray
    tiles = padded.reshape(rows, block, cols, block)
    return func(tiles, axis=(1, 3))


def _expand_blocks(flags: np.ndarray, block: int, shape) -> np.ndarray:
    mask = np.repeat(np.repeat(flags, block, axis=0), block, axis=1)
    out = np.zeros(shape, dtype=bool)
    h = min(shape[0], mask.shape[0])
    w = min(shape[1], mask.shape[1])
    out[:h, :w] = mask[:h, :w]
    return out


def detect_stains(pixels: np.ndarray) -> List[DamageRegion]:
    """Brownish or yellowish pixels that stand out from the mean colour."""

    rgb = pixels[..., :3].astype(np.float64)
    if rgb.size == 0:
        return []
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    average = rgb.reshape(-1, 3).mean(axis=0)
    deviation = np.sqrt(((rgb - average) ** 2).sum(axis=-1))

    brownish = (r > g) & (g > b) & (r - b > 30)
    yellowish = (r > 150) & (g > 150) & (b < 100)
    mask = (brownish | yellowish) & (deviation > STAIN_DEVIATION)

    def severity(bounds):
        if bounds.area > 10000:
            return "high"
        if bounds.area > 2000:
            return "medium"
        return "low"

    return _regions_from_mask(mask, STAIN_MIN_AREA, "stain", 0.7, severity)


def detect_scratches(magnitude: np.ndarray, direction: np.ndarray, threshold: float) -> List[DamageRegion]:
    """Strong edges whose neighbours share the gradient direction (modulo pi)."""

    mag = np.asarray(magnitude, dtype=np.float64)
    angle = np.asarray(direction, dtype=np.float64)
    h, w = mag.shape
    mask = np.zeros((h, w), dtype=bool)
    if h < 3 or w < 3:
        return []

    centre = angle[1:-1, 1:-1]
    consistent = np.zeros(centre.shape, dtype=np.int32)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dy == 0 and dx == 0:
                continue
            diff = np.abs(angle[1 + dy:h - 1 + dy, 1 + dx:w - 1 + dx] - centre)
            similar = (diff < SCRATCH_DIRECTION_TOLERANCE) | (np.abs(diff - math.pi) < SCRATCH_DIRECTION_TOLERANCE)
            consistent += similar
    strong = mag[1:-1, 1:-1] > threshold * 1.5
    mask[1:-1, 1:-1] = strong & (consistent >= SCRATCH_MIN_NEIGHBOURS)

    def severity(bounds):
        aspect = max(bounds.width, bounds.height) / min(bounds.width, bounds.height)
        if aspect <= SCRATCH_MIN_ASPECT:
            return None
        if bounds.area > 500:
            return "high"
        if bounds.area > 100:
            return "medium"
        return "low"

    return _regions_from_mask(mask, SCRATCH_MIN_AREA, "scratch", 0.6, severity)


def detect_fading(pixels: np.ndarray) -> List[DamageRegion]:
    """Bright, flat 32x32 blocks.

    A raster that is one flat colour everywhere has nothing to compare
    against and yields no fade regions.
    """

    gray = to_grayscale(pixels)
    h, w = gray.shape
    if gray.size == 0 or gray.min() == gray.max():
        return []

    block_min = _block_reduce(gray, FADE_BLOCK, np.min, np.inf)
    block_max = _block_reduce(gray, FADE_BLOCK, np.max, -np.inf)
    faded = ((block_max - block_min) < FADE_MAX_CONTRAST) & (block_max > FADE_MIN_BRIGHTNESS)
    mask = _expand_blocks(faded, FADE_BLOCK, gray.shape)
    total = float(h * w)

    def severity(bounds):
        ratio = bounds.area / total
        if ratio > 0.3:
            return "high"
        if ratio > 0.1:
            return "medium"
        return "low"

    return _regions_from_mask(mask, FADE_BLOCK * FADE_BLOCK, "fade", 0.5, severity)


def detect_noise(pixels: np.ndarray) -> List[DamageRegion]:
    """8x8 blocks whose gray variance is noisy but not edge-like.

    Only full blocks starting before ``size - 8`` are examined.
    """

    gray = to_grayscale(pixels)
    h, w = gray.shape
    rows = len(range(0, h - NOISE_BLOCK, NOISE_BLOCK))
    cols = len(range(0, w - NOISE_BLOCK, NOISE_BLOCK))
    if rows == 0 or cols == 0:
        return []

    tiles = gray[: rows * NOISE_BLOCK, : cols * NOISE_BLOCK].reshape(rows, NOISE_BLOCK, cols, NOISE_BLOCK)
    variance = tiles.var(axis=(1, 3))
    low, high = NOISE_VARIANCE_BAND
    noisy = (variance > low) & (variance < high)
    mask = _expand_blocks(noisy, NOISE_BLOCK, gray.shape)

    return _regions_from_mask(mask, NOISE_BLOCK * NOISE_BLOCK, "noise", 0.6, lambda bounds: "low")


__all__ = [
    "detect_stains",
    "detect_scratches",
    "detect_fading",
    "detect_noise",
]
