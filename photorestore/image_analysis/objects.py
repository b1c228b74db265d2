"""Heuristic object classification for edge-mask components."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from photorestore.utils.geometry import Rectangle
from photorestore.utils.pixel import generate_id, luminance

from .findings import OBJECT_PRIORITY, DetectedObject
from .regions import find_connected_components

DARK_LUMINANCE = 0.3
MIN_OBJECT_CONFIDENCE = 0.3


def classify_object(pixels: np.ndarray, bounds: Rectangle) -> Tuple[str, float, dict]:
    """Classify the region under ``bounds`` as text, image, signature or unknown.

    Returns ``(type, confidence, features)``; ``features`` holds the measured
    luminance statistics.
    """

    rows, cols = bounds.slices()
    lum = luminance(pixels[rows, cols])
    if lum.size == 0:
        return "unknown", MIN_OBJECT_CONFIDENCE, {}

    avg_luminance = float(lum.mean())
    dark_ratio = float((lum < DARK_LUMINANCE).mean())
    aspect = bounds.width / bounds.height
    features = {"avg_luminance": avg_luminance, "dark_ratio": dark_ratio, "aspect_ratio": aspect}

    if dark_ratio > 0.6 and 2 < aspect < 20:
        return "text", 0.7 + dark_ratio * 0.2, features
    if 0.5 < aspect < 2 and bounds.width > 50 and bounds.height > 50 and avg_luminance > 0.4:
        return "image", 0.6, features
    if bounds.width < 200 and bounds.height < 100 and dark_ratio > 0.3:
        return "signature", 0.5, features
    return "unknown", 0.3, features


def object_priority(object_type: str) -> int:
    return OBJECT_PRIORITY[object_type]


def detect_objects(pixels: np.ndarray, edges: np.ndarray, min_area: int) -> List[DetectedObject]:
    objects: List[DetectedObject] = []
    for component in find_connected_components(edges, min_area=min_area):
        kind, confidence, features = classify_object(pixels, component.bounds)
        if confidence < MIN_OBJECT_CONFIDENCE:
            continue
        objects.append(
            DetectedObject(
                id=generate_id("obj"),
                type=kind,
                bounds=component.bounds,
                confidence=confidence,
                priority=object_priority(kind),
                features=features,
            )
        )
    return objects


__all__ = [
    "classify_object",
    "object_priority",
    "detect_objects",
]
