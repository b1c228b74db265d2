"""Region generation strategies for smart cropping.

Every strategy maps ``(width, height, detection, config)`` to a list of
rectangles in source coordinates.  Shard extraction, filtering and ordering
happen afterwards in :mod:`photorestore.slicer.smartcrop`.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, List

from photorestore.config.settings import SmartCropConfig
from photorestore.image_analysis.findings import DetectionResult
from photorestore.utils.geometry import Rectangle, expand_rect, intersection, merge_rectangles, rectangles_overlap

CONTENT_MIN_PRIORITY = 5
FACE_PADDING_FACTOR = 3
SALIENT_MIN_PRIORITY = 6
ADAPTIVE_DAMAGE_PERCENTAGE = 20
ADAPTIVE_MAX_GRID_OVERLAP = 0.5


def content_aware(width: int, height: int, detection: DetectionResult, config: SmartCropConfig) -> List[Rectangle]:
    regions = [
        expand_rect(obj.bounds, config.padding, width, height)
        for obj in detection.objects
        if obj.priority >= CONTENT_MIN_PRIORITY
    ]
    return merge_rectangles(regions)


def damage_aware(width: int, height: int, detection: DetectionResult, config: SmartCropConfig) -> List[Rectangle]:
    """High severity damages stay separate, medium ones are merged together."""

    high = [
        expand_rect(d.bounds, config.padding * 2, width, height)
        for d in detection.damages
        if d.severity == "high"
    ]
    medium = [
        expand_rect(d.bounds, config.padding, width, height)
        for d in detection.damages
        if d.severity == "medium"
    ]
    return high + merge_rectangles(medium)


def grid(width: int, height: int, config: SmartCropConfig) -> List[Rectangle]:
    """Uniform tiling; only the last row and column may be narrower."""

    aspect = width / height
    cols = math.ceil(math.sqrt(config.max_shards * aspect))
    rows = math.ceil(config.max_shards / cols)

    tile_w = max(config.min_shard_size, width // cols)
    tile_h = max(config.min_shard_size, height // rows)
    cols = math.ceil(width / tile_w)
    rows = math.ceil(height / tile_h)

    regions: List[Rectangle] = []
    for row in range(rows):
        for col in range(cols):
            x = col * tile_w
            y = row * tile_h
            w = min(tile_w, width - x)
            h = min(tile_h, height - y)
            if w > 0 and h > 0:
                regions.append(Rectangle(x, y, w, h))
    return regions


def _significant_overlap(existing: List[Rectangle], tile: Rectangle) -> bool:
    for rect in existing:
        if not rectangles_overlap(rect, tile):
            continue
        inter = intersection(rect, tile)
        if inter is not None and inter.area > tile.area * ADAPTIVE_MAX_GRID_OVERLAP:
            return True
    return False


def adaptive(width: int, height: int, detection: DetectionResult, config: SmartCropConfig) -> List[Rectangle]:
    regions: List[Rectangle] = []
    if detection.stats.damage_percentage > ADAPTIVE_DAMAGE_PERCENTAGE:
        regions.extend(damage_aware(width, height, detection, config))
    regions.extend(content_aware(width, height, detection, config))

    if len(regions) < config.max_shards / 2:
        top_up = SmartCropConfig(
            strategy="grid",
            padding=config.padding,
            min_shard_size=config.min_shard_size,
            max_shards=max(4, config.max_shards - len(regions)),
        )
        for tile in grid(width, height, top_up):
            if not _significant_overlap(regions, tile):
                regions.append(tile)

    return merge_rectangles(regions)[: config.max_shards]


def face_priority(width: int, height: int, detection: DetectionResult, config: SmartCropConfig) -> List[Rectangle]:
    regions = [
        expand_rect(obj.bounds, config.padding * FACE_PADDING_FACTOR, width, height)
        for obj in detection.objects
        if obj.type == "face"
    ]
    regions.extend(
        expand_rect(obj.bounds, config.padding, width, height)
        for obj in detection.objects
        if obj.type != "face" and obj.priority >= SALIENT_MIN_PRIORITY
    )
    return merge_rectangles(regions)


StrategyFn = Callable[[int, int, DetectionResult, SmartCropConfig], List[Rectangle]]

STRATEGIES: Dict[str, StrategyFn] = {
    "content-aware": content_aware,
    "damage-aware": damage_aware,
    "grid": lambda width, height, detection, config: grid(width, height, config),
    "adaptive": adaptive,
    "face-priority": face_priority,
}


def generate_regions(width: int, height: int, detection: DetectionResult, config: SmartCropConfig) -> List[Rectangle]:
    try:
        strategy = STRATEGIES[config.strategy]
    except KeyError as exc:
        raise ValueError(f"Unknown smart-crop strategy: {config.strategy}") from exc
    return strategy(width, height, detection, config)


__all__ = [
    "content_aware",
    "damage_aware",
    "grid",
    "adaptive",
    "face_priority",
    "STRATEGIES",
    "generate_regions",
]
