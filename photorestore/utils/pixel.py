"""Pixel level helpers shared by every stage.

Rasters are ``(H, W, 4)`` ``uint8`` RGBA arrays.  Grayscale conversions use the
Rec. 601 weights, luminance uses Rec. 709 and is normalised to ``[0, 1]``.
"""

from __future__ import annotations

import uuid
from typing import Tuple

import numpy as np

GRAY_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)
LUMINANCE_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)


def round_half_up(values):
    """Round halves towards positive infinity (``np.round`` rounds to even)."""

    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


def clamp_u8(values) -> np.ndarray:
    return np.clip(values, 0, 255).astype(np.uint8)


def ensure_rgba(pixels: np.ndarray) -> np.ndarray:
    """Coerce gray, RGB or RGBA input into an ``(H, W, 4)`` ``uint8`` array."""

    arr = np.asarray(pixels)
    if arr.ndim == 2:
        arr = np.stack([arr] * 3, axis=-1)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError("expect image as (H,W,3) or (H,W,4) array")
    if arr.dtype != np.uint8:
        arr = clamp_u8(arr)
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=-1)
    return arr


def gray_float(pixels: np.ndarray) -> np.ndarray:
    """Unrounded Rec. 601 gray values as ``float64``."""

    rgb = np.asarray(pixels)[..., :3].astype(np.float64)
    return rgb @ GRAY_WEIGHTS


def to_grayscale(pixels: np.ndarray) -> np.ndarray:
    """Rounded Rec. 601 gray values in ``0..255`` as ``float64``."""

    return round_half_up(gray_float(pixels))


def luminance(pixels: np.ndarray) -> np.ndarray:
    """Rec. 709 relative luminance in ``[0, 1]``."""

    rgb = np.asarray(pixels)[..., :3].astype(np.float64)
    return (rgb @ LUMINANCE_WEIGHTS) / 255.0


def saturation(pixels: np.ndarray) -> np.ndarray:
    """HSV style saturation ``(max - min) / max`` per pixel, 0 for black."""

    rgb = np.asarray(pixels)[..., :3].astype(np.float64)
    cmax = rgb.max(axis=-1)
    cmin = rgb.min(axis=-1)
    out = np.zeros_like(cmax)
    np.divide(cmax - cmin, cmax, out=out, where=cmax > 0)
    return out


def hex_to_rgb(value: str) -> Tuple[int, int, int]:
    value = value.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def blank_raster(width: int, height: int, color=(255, 255, 255, 255)) -> np.ndarray:
    out = np.empty((height, width, 4), dtype=np.uint8)
    out[...] = np.asarray(color, dtype=np.uint8)
    return out


__all__ = [
    "GRAY_WEIGHTS",
    "LUMINANCE_WEIGHTS",
    "round_half_up",
    "clamp_u8",
    "ensure_rgba",
    "gray_float",
    "to_grayscale",
    "luminance",
    "saturation",
    "hex_to_rgb",
    "generate_id",
    "blank_raster",
]
