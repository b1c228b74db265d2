"""Per shard enhancement filters.

Every function takes an ``(H, W, 4)`` ``uint8`` RGBA array and returns a new
array of the same shape; alpha is never modified.
"""

from __future__ import annotations

from typing import Dict

import numpy as np

from photorestore.image_analysis.convolution import gaussian_kernel_for_strength, interior_response
from photorestore.utils.pixel import clamp_u8, gray_float, round_half_up, to_grayscale


def denoise(pixels: np.ndarray, strength: float) -> np.ndarray:
    """Gaussian blur blended with the original by ``min(1, strength / 3)``.

    The 5x5 kernel is used once ``strength`` exceeds 2.  Only pixels whose
    whole kernel window fits inside the raster are touched.
    """

    src = np.asarray(pixels)
    out = src.copy()
    response, window = interior_response(src, gaussian_kernel_for_strength(strength))
    if response is None:
        return out
    rows, cols = window
    blend = min(1.0, strength / 3.0)
    original = src[rows, cols, :3].astype(np.float64)
    out[rows, cols, :3] = clamp_u8(round_half_up(original * (1.0 - blend) + response * blend))
    return out


def sharpen(pixels: np.ndarray, amount: float) -> np.ndarray:
    """Unsharp mask against ``denoise(pixels, 1.0)``."""

    src = np.asarray(pixels)
    blurred = denoise(src, 1.0)
    original = src[..., :3].astype(np.float64)
    out = src.copy()
    out[..., :3] = clamp_u8(round_half_up(original + amount * (original - blurred[..., :3])))
    return out


def equalization_lut(pixels: np.ndarray) -> np.ndarray:
    """Histogram equalisation lookup table built from the rounded gray levels.

    A single-level histogram has no spread to redistribute and yields the
    identity table.
    """

    gray = to_grayscale(pixels).astype(np.int64).ravel()
    cdf = np.cumsum(np.bincount(gray, minlength=256)).astype(np.float64)
    nonzero = cdf[cdf > 0]
    cdf_min = float(nonzero[0]) if nonzero.size else 0.0
    cdf_max = float(cdf[-1])
    if cdf_max == cdf_min:
        return np.arange(256, dtype=np.float64)
    return round_half_up((cdf - cdf_min) / (cdf_max - cdf_min) * 255.0)


def adjust_contrast(pixels: np.ndarray, boost: float) -> np.ndarray:
    """Blend every channel toward its equalised value by ``boost - 1``."""

    src = np.asarray(pixels)
    lut = equalization_lut(src)
    channels = src[..., :3]
    original = channels.astype(np.float64)
    equalized = lut[channels]
    out = src.copy()
    out[..., :3] = clamp_u8(round_half_up(original + (boost - 1.0) * (equalized - original)))
    return out


def correct_colors(pixels: np.ndarray) -> np.ndarray:
    """Gray-world white balance.

    Each channel is scaled by ``mean(all channels) / mean(channel)``; a channel
    whose mean is zero keeps a factor of 1.
    """

    src = np.asarray(pixels)
    rgb = src[..., :3].astype(np.float64)
    averages = rgb.reshape(-1, 3).mean(axis=0)
    gray = averages.mean()
    factors = np.ones(3, dtype=np.float64)
    np.divide(gray, averages, out=factors, where=averages > 0)
    out = src.copy()
    out[..., :3] = clamp_u8(round_half_up(rgb * factors))
    return out


def adjust_brightness(pixels: np.ndarray, amount: float) -> np.ndarray:
    src = np.asarray(pixels)
    out = src.copy()
    out[..., :3] = clamp_u8(round_half_up(src[..., :3].astype(np.float64) + amount))
    return out


def adjust_saturation(pixels: np.ndarray, factor: float) -> np.ndarray:
    """Scale each channel's distance from the Rec. 601 gray by ``factor``."""

    src = np.asarray(pixels)
    gray = gray_float(src)[..., None]
    out = src.copy()
    out[..., :3] = clamp_u8(round_half_up(gray + (src[..., :3].astype(np.float64) - gray) * factor))
    return out


def gamma_correction(pixels: np.ndarray, gamma: float) -> np.ndarray:
    if gamma <= 0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    lut = clamp_u8(round_half_up(np.power(np.arange(256) / 255.0, 1.0 / gamma) * 255.0))
    src = np.asarray(pixels)
    out = src.copy()
    out[..., :3] = lut[src[..., :3]]
    return out


def calculate_histogram(pixels: np.ndarray) -> Dict[str, np.ndarray]:
    """256-bin histograms for ``r``, ``g``, ``b`` and rounded gray ``lum``."""

    src = np.asarray(pixels)
    histogram = {
        name: np.bincount(src[..., index].ravel(), minlength=256)
        for index, name in enumerate(("r", "g", "b"))
    }
    histogram["lum"] = np.bincount(to_grayscale(src).astype(np.int64).ravel(), minlength=256)
    return histogram


__all__ = [
    "denoise",
    "sharpen",
    "equalization_lut",
    "adjust_contrast",
    "correct_colors",
    "adjust_brightness",
    "adjust_saturation",
    "gamma_correction",
    "calculate_histogram",
]
