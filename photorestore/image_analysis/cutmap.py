"""Cut-map generation: a coarse priority grid plus explicit cut regions.

The grid stores, per 32x32 pixel cell, the highest priority of any detected
object or damage region touching the cell.  Objects with priority 6 or more
(text, signatures, stamps, images, faces) become :class:`CutRegion` entries
that list the damages overlapping them.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np
from PIL import Image, ImageDraw

from photorestore.utils.geometry import Rectangle, rectangles_overlap, union
from photorestore.utils.pixel import generate_id, hex_to_rgb

from .findings import CutMap, CutRegion, DamageRegion, DetectedObject

CELL_SIZE = 32
CUT_REGION_MIN_PRIORITY = 6

DETECTION_COLORS: Dict[str, Dict[str, str]] = {
    "object": {
        "text": "#4CAF50",
        "image": "#2196F3",
        "signature": "#9C27B0",
        "stamp": "#FF9800",
        "barcode": "#00BCD4",
        "face": "#E91E63",
        "unknown": "#9E9E9E",
    },
    "damage": {
        "stain": "#795548",
        "tear": "#F44336",
        "fold": "#FF5722",
        "fade": "#FFEB3B",
        "noise": "#607D8B",
        "artifact": "#673AB7",
        "scratch": "#FF5722",
    },
}


def _cell_span(bounds: Rectangle, cell: int):
    start_x = bounds.x // cell
    start_y = bounds.y // cell
    end_x = -(-(bounds.x + bounds.width) // cell)
    end_y = -(-(bounds.y + bounds.height) // cell)
    return slice(start_y, end_y), slice(start_x, end_x)


def build_priority_grid(
    objects: Sequence[DetectedObject],
    damages: Sequence[DamageRegion],
    width: int,
    height: int,
    cell: int = CELL_SIZE,
) -> np.ndarray:
    grid = np.zeros((-(-height // cell), -(-width // cell)), dtype=np.int32)
    for obj in objects:
        rows, cols = _cell_span(obj.bounds, cell)
        np.maximum(grid[rows, cols], obj.priority, out=grid[rows, cols])
    for damage in damages:
        rows, cols = _cell_span(damage.bounds, cell)
        np.maximum(grid[rows, cols], damage.priority, out=grid[rows, cols])
    return grid


def build_cut_regions(objects: Sequence[DetectedObject], damages: Sequence[DamageRegion]) -> List[CutRegion]:
    regions: List[CutRegion] = []
    for obj in objects:
        if obj.priority < CUT_REGION_MIN_PRIORITY:
            continue
        regions.append(
            CutRegion(
                id=generate_id("cut"),
                bounds=obj.bounds,
                priority=obj.priority,
                object_ids=[obj.id],
                damage_ids=[d.id for d in damages if rectangles_overlap(obj.bounds, d.bounds)],
            )
        )
    return regions


def merge_cut_regions(regions: Sequence[CutRegion]) -> List[CutRegion]:
    """Coalesce overlapping cut regions, keeping the first id and highest priority."""

    if len(regions) <= 1:
        return list(regions)

    merged: List[CutRegion] = []
    used = set()
    for i, region in enumerate(regions):
        if i in used:
            continue
        used.add(i)
        current = CutRegion(region.id, region.bounds, region.priority, list(region.object_ids), list(region.damage_ids))
        found = True
        while found:
            found = False
            for j, other in enumerate(regions):
                if j in used or not rectangles_overlap(current.bounds, other.bounds):
                    continue
                current = CutRegion(
                    id=current.id,
                    bounds=union(current.bounds, other.bounds),
                    priority=max(current.priority, other.priority),
                    object_ids=current.object_ids + list(other.object_ids),
                    damage_ids=current.damage_ids + list(other.damage_ids),
                )
                used.add(j)
                found = True
        merged.append(current)
    return merged


def _dashed_rectangle(draw: ImageDraw.ImageDraw, bounds: Rectangle, color, dash: int = 5, width: int = 2) -> None:
    x0, y0 = bounds.x, bounds.y
    x1, y1 = bounds.right - 1, bounds.bottom - 1
    for start in range(x0, x1 + 1, dash * 2):
        end = min(start + dash, x1)
        draw.line([(start, y0), (end, y0)], fill=color, width=width)
        draw.line([(start, y1), (end, y1)], fill=color, width=width)
    for start in range(y0, y1 + 1, dash * 2):
        end = min(start + dash, y1)
        draw.line([(x0, start), (x0, end)], fill=color, width=width)
        draw.line([(x1, start), (x1, end)], fill=color, width=width)


def render_overlay(
    objects: Sequence[DetectedObject],
    damages: Sequence[DamageRegion],
    width: int,
    height: int,
) -> np.ndarray:
    """Transparent RGBA overlay with labelled damage boxes and dashed object outlines."""

    canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))

    for damage in damages:
        rgb = hex_to_rgb(DETECTION_COLORS["damage"].get(damage.type, DETECTION_COLORS["damage"]["artifact"]))
        box = [damage.bounds.x, damage.bounds.y, damage.bounds.right - 1, damage.bounds.bottom - 1]
        layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        ImageDraw.Draw(layer).rectangle(box, fill=rgb + (64,), outline=rgb + (255,), width=2)
        canvas = Image.alpha_composite(canvas, layer)
        ImageDraw.Draw(canvas).text(
            (damage.bounds.x + 4, damage.bounds.y + 2), f"{damage.type} ({damage.severity})", fill=rgb + (255,)
        )

    draw = ImageDraw.Draw(canvas)
    for obj in objects:
        rgb = hex_to_rgb(DETECTION_COLORS["object"].get(obj.type, DETECTION_COLORS["object"]["unknown"]))
        _dashed_rectangle(draw, obj.bounds, rgb + (255,))
        draw.text(
            (obj.bounds.x + 4, max(0, obj.bounds.y - 14)),
            f"{obj.type} ({obj.confidence * 100:.0f}%)",
            fill=rgb + (255,),
        )

    return np.asarray(canvas, dtype=np.uint8).copy()


def generate_cut_map(
    objects: Sequence[DetectedObject],
    damages: Sequence[DamageRegion],
    width: int,
    height: int,
    *,
    visualize: bool = True,
    merge: bool = False,
) -> CutMap:
    grid = build_priority_grid(objects, damages, width, height)
    regions = build_cut_regions(objects, damages)
    if merge:
        regions = merge_cut_regions(regions)
    overlay: Optional[np.ndarray] = render_overlay(objects, damages, width, height) if visualize else None
    return CutMap(grid=grid, regions=regions, cell_size=CELL_SIZE, overlay=overlay)


__all__ = [
    "CELL_SIZE",
    "DETECTION_COLORS",
    "build_priority_grid",
    "build_cut_regions",
    "merge_cut_regions",
    "render_overlay",
    "generate_cut_map",
]
