"""Stage 3: split the raster into prioritised shards."""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Optional, Sequence

from photorestore.config.settings import SmartCropConfig
from photorestore.image_analysis.findings import DetectionResult
from photorestore.utils.geometry import Rectangle, rectangles_overlap
from photorestore.utils.pixel import generate_id

from .shards import CroppedShard, ShardContext, SmartCropResult
from .strategies import generate_regions

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]


def _edges_adjacent(a: Rectangle, b: Rectangle, tolerance: int) -> bool:
    horizontal = (abs(a.right - b.x) <= tolerance or abs(b.right - a.x) <= tolerance) and not (
        a.bottom < b.y or b.bottom < a.y
    )
    vertical = (abs(a.bottom - b.y) <= tolerance or abs(b.bottom - a.y) <= tolerance) and not (
        a.right < b.x or b.right < a.x
    )
    return horizontal or vertical


def find_neighbors(bounds_by_id: Dict[str, Rectangle], tolerance: int = 10) -> Dict[str, List[str]]:
    """Adjacency between rectangles whose facing edges are within ``tolerance``
    pixels and whose orthogonal extents overlap."""

    graph: Dict[str, List[str]] = {}
    for shard_id, rect in bounds_by_id.items():
        graph[shard_id] = [
            other_id
            for other_id, other in bounds_by_id.items()
            if other_id != shard_id and _edges_adjacent(rect, other, tolerance)
        ]
    return graph


def build_context(bounds: Rectangle, detection: DetectionResult, neighbors: Sequence[str]) -> ShardContext:
    objects = [o for o in detection.objects if rectangles_overlap(bounds, o.bounds)]
    damages = [d for d in detection.damages if rectangles_overlap(bounds, d.bounds)]

    damage_ids: Dict[str, tuple] = {}
    for damage in damages:
        damage_ids[damage.type] = damage_ids.get(damage.type, ()) + (damage.id,)

    return ShardContext(
        contains_text=any(o.type == "text" for o in objects),
        contains_damage=bool(damages),
        damage_types=tuple(dict.fromkeys(d.type for d in damages)),
        object_types=tuple(dict.fromkeys(o.type for o in objects)),
        neighbors=tuple(neighbors),
        original_bounds=bounds,
        damage_ids=damage_ids,
    )


def shard_priority(context: ShardContext) -> int:
    priority = 5
    if context.contains_text:
        priority = max(priority, 8)
    if context.contains_damage:
        priority = max(priority, 7)
    if "tear" in context.damage_types or "stain" in context.damage_types:
        priority = max(priority, 9)
    if "face" in context.object_types:
        priority = max(priority, 9)
    return priority


def create_shards(
    regions: Sequence[Rectangle],
    detection: DetectionResult,
    config: SmartCropConfig,
) -> List[CroppedShard]:
    """Cut one shard per region large enough, sorted by priority (stable)."""

    raster = detection.raster
    kept = [r for r in regions if r.width >= config.min_shard_size and r.height >= config.min_shard_size]
    ids = [generate_id("shard") for _ in kept]
    neighbors = find_neighbors(dict(zip(ids, kept)), config.neighbor_tolerance)

    shards: List[CroppedShard] = []
    for shard_id, bounds in zip(ids, kept):
        context = build_context(bounds, detection, neighbors[shard_id])
        shards.append(
            CroppedShard(
                id=shard_id,
                raster=raster.crop(bounds),
                bounds=bounds,
                priority=shard_priority(context),
                context=context,
            )
        )
    shards.sort(key=lambda shard: shard.priority, reverse=True)
    return shards


def grid_size_for(count: int, width: int, height: int):
    if count == 0:
        return (0, 0)
    cols = math.ceil(math.sqrt(count * (width / height)))
    return (cols, math.ceil(count / cols))


def smart_crop(
    detection: DetectionResult,
    config: Optional[SmartCropConfig] = None,
    progress: Optional[ProgressCallback] = None,
) -> SmartCropResult:
    """Run stage 3 over a detection result."""

    cfg = config or SmartCropConfig()
    report = progress or (lambda value, message: None)
    width, height = detection.raster.width, detection.raster.height
    full = Rectangle(0, 0, width, height)

    LOGGER.info("Starting SmartCrop stage", extra={"stage": 3})
    report(0, "Starting smart cropping...")
    LOGGER.debug("Using %s strategy", cfg.strategy, extra={"stage": 3})
    report(10, f"Applying {cfg.strategy} strategy...")

    regions = [r.clamp(width, height) for r in generate_regions(width, height, detection, cfg)]
    report(30, f"Generated {len(regions)} regions")

    if not regions:
        LOGGER.warning("No regions detected, using full image", extra={"stage": 3})
        regions = [full]

    report(50, "Creating shards...")
    shards = create_shards(regions, detection, cfg)
    if not shards:
        # every region was below the minimum shard size
        LOGGER.warning("All regions below minimum shard size, using full image", extra={"stage": 3})
        shards = create_shards([full], detection, SmartCropConfig(min_shard_size=1, neighbor_tolerance=cfg.neighbor_tolerance))

    report(70, f"Cropped {len(shards)} shards")
    LOGGER.info("Created %d shards", len(shards), extra={"stage": 3})
    report(90, "Shard context assembled")

    result = SmartCropResult(
        shards=shards,
        strategy=cfg.strategy,
        grid_size=grid_size_for(len(shards), width, height),
        source_width=width,
        source_height=height,
        neighbors={shard.id: list(shard.context.neighbors) for shard in shards},
    )
    report(100, "SmartCrop complete")
    return result


__all__ = [
    "find_neighbors",
    "build_context",
    "shard_priority",
    "create_shards",
    "grid_size_for",
    "smart_crop",
]
