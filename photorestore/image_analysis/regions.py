"""Connected component analysis and binary morphology on boolean masks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np
from scipy import ndimage as ndi

from photorestore.utils.geometry import Rectangle

_STRUCTURES = {
    4: ndi.generate_binary_structure(2, 1),
    8: ndi.generate_binary_structure(2, 2),
}


@dataclass(frozen=True)
class Component:
    bounds: Rectangle
    pixel_count: int
    label: int


def _structure(connectivity: int) -> np.ndarray:
    try:
        return _STRUCTURES[connectivity]
    except KeyError as exc:
        raise ValueError(f"connectivity must be 4 or 8, got {connectivity}") from exc


def label_components(mask: np.ndarray, connectivity: int = 4) -> np.ndarray:
    """Label map with ``0`` for background and ``1..n`` in raster scan order."""

    labels, _ = ndi.label(np.asarray(mask, dtype=bool), structure=_structure(connectivity))
    return labels


def find_connected_components(mask: np.ndarray, min_area: int = 1, connectivity: int = 4) -> List[Component]:
    """Return components of ``mask`` with at least ``min_area`` pixels.

    Components are ordered by the first pixel encountered in a top-to-bottom,
    left-to-right scan.
    """

    labels, count = ndi.label(np.asarray(mask, dtype=bool), structure=_structure(connectivity))
    if count == 0:
        return []
    sizes = np.bincount(labels.ravel(), minlength=count + 1)
    components: List[Component] = []
    for index, slc in enumerate(ndi.find_objects(labels), start=1):
        if slc is None or sizes[index] < min_area:
            continue
        rows, cols = slc
        bounds = Rectangle(cols.start, rows.start, cols.stop - cols.start, rows.stop - rows.start)
        components.append(Component(bounds=bounds, pixel_count=int(sizes[index]), label=index))
    return components


def dilate(mask: np.ndarray, radius: int = 1) -> np.ndarray:
    """Max over a ``(2r+1)`` square window, clipped at the borders."""

    if radius <= 0:
        return np.asarray(mask, dtype=bool).copy()
    size = 2 * radius + 1
    return ndi.maximum_filter(np.asarray(mask, dtype=np.uint8), size=size, mode="constant", cval=0).astype(bool)


def erode(mask: np.ndarray, radius: int = 1) -> np.ndarray:
    """Min over a ``(2r+1)`` square window, clipped at the borders."""

    if radius <= 0:
        return np.asarray(mask, dtype=bool).copy()
    size = 2 * radius + 1
    # pad with 1 so out-of-image neighbours do not erode the border
    return ndi.minimum_filter(np.asarray(mask, dtype=np.uint8), size=size, mode="constant", cval=1).astype(bool)


def extract_region_mask(mask: np.ndarray, bounds: Rectangle) -> np.ndarray:
    rows, cols = bounds.slices()
    return np.asarray(mask, dtype=bool)[rows, cols].copy()


__all__ = [
    "Component",
    "label_components",
    "find_connected_components",
    "dilate",
    "erode",
    "extract_region_mask",
]
