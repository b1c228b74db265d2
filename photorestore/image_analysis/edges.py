"""Gradient based edge detection: Sobel, Canny and Laplacian.

All functions accept a 2-D grayscale array (see
:func:`photorestore.utils.pixel.to_grayscale`) and return arrays of the same
shape.  Border pixels carry no gradient.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .convolution import KERNELS, apply_kernel


def sobel(gray: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return gradient ``(magnitude, direction)``; direction is ``atan2(gy, gx)``."""

    gx = apply_kernel(gray, KERNELS["sobel_x"])
    gy = apply_kernel(gray, KERNELS["sobel_y"])
    return np.hypot(gx, gy), np.arctan2(gy, gx)


def edge_mask(magnitude: np.ndarray, threshold: float) -> np.ndarray:
    return np.asarray(magnitude) > threshold


def laplacian(gray: np.ndarray) -> np.ndarray:
    return apply_kernel(gray, KERNELS["laplacian"])


def non_max_suppression(magnitude: np.ndarray, direction: np.ndarray) -> np.ndarray:
    """Thin edges by keeping only local maxima along the gradient direction."""

    mag = np.asarray(magnitude, dtype=np.float64)
    out = np.zeros_like(mag)
    h, w = mag.shape
    if h < 3 or w < 3:
        return out

    angle = np.degrees(np.asarray(direction, dtype=np.float64))
    angle = np.where(angle < 0, angle + 180.0, angle)[1:-1, 1:-1]
    center = mag[1:-1, 1:-1]

    def shifted(dy: int, dx: int) -> np.ndarray:
        return mag[1 + dy:h - 1 + dy, 1 + dx:w - 1 + dx]

    horizontal = (angle < 22.5) | (angle >= 157.5)
    diagonal_up = (angle >= 22.5) & (angle < 67.5)
    vertical = (angle >= 67.5) & (angle < 112.5)

    n1 = np.where(horizontal, shifted(0, -1), np.where(diagonal_up, shifted(-1, 1), np.where(vertical, shifted(-1, 0), shifted(-1, -1))))
    n2 = np.where(horizontal, shifted(0, 1), np.where(diagonal_up, shifted(1, -1), np.where(vertical, shifted(1, 0), shifted(1, 1))))

    keep = (center >= n1) & (center >= n2)
    out[1:-1, 1:-1] = np.where(keep, center, 0.0)
    return out


def double_threshold(magnitude: np.ndarray, low: float, high: float) -> Tuple[np.ndarray, np.ndarray]:
    """Split pixels into ``(strong, weak)`` boolean masks."""

    mag = np.asarray(magnitude)
    strong = mag >= high
    weak = (mag >= low) & ~strong
    return strong, weak


def hysteresis(strong: np.ndarray, weak: np.ndarray) -> np.ndarray:
    """Promote weak pixels that have a strong 8-neighbour (single pass)."""

    strong = np.asarray(strong, dtype=bool)
    weak = np.asarray(weak, dtype=bool)
    out = strong.copy()
    h, w = strong.shape
    if h < 3 or w < 3:
        return out

    neighbour = np.zeros((h - 2, w - 2), dtype=bool)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dy == 0 and dx == 0:
                continue
            neighbour |= strong[1 + dy:h - 1 + dy, 1 + dx:w - 1 + dx]
    out[1:-1, 1:-1] |= weak[1:-1, 1:-1] & neighbour
    return out


def canny(gray: np.ndarray, low: float, high: float) -> np.ndarray:
    magnitude, direction = sobel(gray)
    suppressed = non_max_suppression(magnitude, direction)
    strong, weak = double_threshold(suppressed, low, high)
    return hysteresis(strong, weak)


__all__ = [
    "sobel",
    "edge_mask",
    "laplacian",
    "non_max_suppression",
    "double_threshold",
    "hysteresis",
    "canny",
]
