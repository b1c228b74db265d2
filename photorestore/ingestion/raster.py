"""Raster model shared by all stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np

from photorestore.utils.geometry import Rectangle


@dataclass
class ImageMetadata:
    original_format: str
    file_size: int
    color_space: str = "sRGB"
    bit_depth: int = 8
    has_alpha: bool = False
    exif: Optional[Dict[str, Any]] = None
    original_name: Optional[str] = None


@dataclass
class Raster:
    """An RGBA ``uint8`` pixel buffer of shape ``(height, width, 4)``.

    Stages treat a raster as read-only and build new arrays for their output.
    """

    pixels: np.ndarray = field(repr=False)
    metadata: Optional[ImageMetadata] = None

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4 or self.pixels.dtype != np.uint8:
            raise ValueError("Raster pixels must be a (H, W, 4) uint8 array")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def bounds(self) -> Rectangle:
        return Rectangle(0, 0, self.width, self.height)

    def crop(self, bounds: Rectangle) -> "Raster":
        """Copy of the pixels under ``bounds`` (clamped to this raster)."""

        rect = bounds.clamp(self.width, self.height)
        rows, cols = rect.slices()
        return Raster(self.pixels[rows, cols].copy())

    def copy(self) -> "Raster":
        return Raster(self.pixels.copy(), self.metadata)


__all__ = ["ImageMetadata", "Raster"]
