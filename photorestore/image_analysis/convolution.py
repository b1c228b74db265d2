"""Kernel convolution over grayscale and RGBA rasters.

Only interior pixels (those whose full kernel window lies inside the image)
are computed.  Grayscale results keep a zero border; RGBA results keep the
original border pixels.  The kernel is applied as a correlation, i.e. weight
``kernel[ky, kx]`` multiplies the pixel at offset ``(ky - half, kx - half)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np
from scipy import ndimage as ndi

from photorestore.utils.pixel import clamp_u8, round_half_up


@dataclass(frozen=True)
class Kernel:
    """Square convolution kernel with normalisation divisor and output offset."""

    values: tuple
    size: int
    divisor: float = 1.0
    offset: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.asarray(self.values, dtype=np.float64).reshape(self.size, self.size)


KERNELS: Dict[str, Kernel] = {
    "sobel_x": Kernel((-1, 0, 1, -2, 0, 2, -1, 0, 1), 3, 1, 128),
    "sobel_y": Kernel((-1, -2, -1, 0, 0, 0, 1, 2, 1), 3, 1, 128),
    "gaussian_3": Kernel((1, 2, 1, 2, 4, 2, 1, 2, 1), 3, 16, 0),
    "gaussian_5": Kernel(
        (
            1, 4, 6, 4, 1,
            4, 16, 24, 16, 4,
            6, 24, 36, 24, 6,
            4, 16, 24, 16, 4,
            1, 4, 6, 4, 1,
        ),
        5,
        256,
        0,
    ),
    "sharpen": Kernel((0, -1, 0, -1, 5, -1, 0, -1, 0), 3, 1, 0),
    "unsharp": Kernel((-1, -1, -1, -1, 9, -1, -1, -1, -1), 3, 1, 0),
    "emboss": Kernel((-2, -1, 0, -1, 1, 1, 0, 1, 2), 3, 1, 128),
    "laplacian": Kernel((0, 1, 0, 1, -4, 1, 0, 1, 0), 3, 1, 128),
}


def _interior(shape, half: int):
    h, w = shape[:2]
    return slice(half, h - half), slice(half, w - half)


def apply_kernel(gray: np.ndarray, kernel) -> np.ndarray:
    """Correlate a 2-D array with ``kernel`` (a :class:`Kernel` or square array).

    Returns raw sums (no divisor, no offset) for interior pixels and ``0`` on
    the border.
    """

    weights = kernel.as_array() if isinstance(kernel, Kernel) else np.asarray(kernel, dtype=np.float64)
    half = weights.shape[0] // 2
    src = np.asarray(gray, dtype=np.float64)
    out = np.zeros_like(src)
    if src.shape[0] <= 2 * half or src.shape[1] <= 2 * half:
        return out
    full = ndi.correlate(src, weights, mode="constant", cval=0.0)
    rows, cols = _interior(src.shape, half)
    out[rows, cols] = full[rows, cols]
    return out


def interior_response(pixels: np.ndarray, kernel: Kernel):
    """Unrounded ``sum / divisor + offset`` of the RGB channels.

    Returns ``(response, (rows, cols))`` where ``response`` has the shape of
    the interior region selected by the slices, or ``None`` when the raster is
    too small for the kernel.
    """

    src = np.asarray(pixels)
    half = kernel.size // 2
    if src.shape[0] <= 2 * half or src.shape[1] <= 2 * half:
        return None, None
    weights = kernel.as_array()
    rows, cols = _interior(src.shape, half)
    response = np.empty(src[rows, cols, :3].shape, dtype=np.float64)
    for channel in range(3):
        sums = ndi.correlate(src[..., channel].astype(np.float64), weights, mode="constant", cval=0.0)
        response[..., channel] = sums[rows, cols] / kernel.divisor + kernel.offset
    return response, (rows, cols)


def convolve_rgba(pixels: np.ndarray, kernel: Kernel) -> np.ndarray:
    """Apply ``kernel`` to the RGB channels of an RGBA raster.

    Interior pixels become ``clamp(round(sum / divisor + offset))``; border
    pixels and the alpha channel are copied unchanged.
    """

    out = np.asarray(pixels).copy()
    response, window = interior_response(pixels, kernel)
    if response is None:
        return out
    rows, cols = window
    out[rows, cols, :3] = clamp_u8(round_half_up(response))
    return out


def convolve_separable(
    pixels: np.ndarray,
    horizontal: Sequence[float],
    vertical: Sequence[float],
    divisor: float,
) -> np.ndarray:
    """Two pass separable convolution of the RGB channels of an RGBA raster."""

    src = np.asarray(pixels)
    out = src.copy()
    size = len(horizontal)
    half = size // 2
    if src.shape[0] <= 2 * half or src.shape[1] <= 2 * half:
        return out
    h_weights = np.asarray(horizontal, dtype=np.float64)
    v_weights = np.asarray(vertical, dtype=np.float64)
    rows, cols = _interior(src.shape, half)
    for channel in range(3):
        plane = src[..., channel].astype(np.float64)
        temp = ndi.correlate1d(plane, h_weights, axis=1, mode="constant", cval=0.0)
        sums = ndi.correlate1d(temp, v_weights, axis=0, mode="constant", cval=0.0)
        out[rows, cols, channel] = clamp_u8(round_half_up(sums[rows, cols] / divisor))
    return out


def gaussian_kernel_for_strength(strength: float) -> Kernel:
    """3x3 Gaussian for light denoising, 5x5 once ``strength`` exceeds 2."""

    return KERNELS["gaussian_5"] if strength > 2 else KERNELS["gaussian_3"]


__all__ = [
    "Kernel",
    "KERNELS",
    "apply_kernel",
    "interior_response",
    "convolve_rgba",
    "convolve_separable",
    "gaussian_kernel_for_strength",
]
