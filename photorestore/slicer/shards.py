"""Shard models shared by segmentation, restoration and reassembly."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from photorestore.ingestion.raster import Raster
from photorestore.utils.geometry import Rectangle, Size


@dataclass(frozen=True)
class ShardContext:
    """What a shard contains, aggregated from overlapping detections.

    The context is fixed once segmentation is done; restoration reads it to
    decide which repair records to emit.
    """

    contains_text: bool
    contains_damage: bool
    damage_types: Tuple[str, ...]
    object_types: Tuple[str, ...]
    neighbors: Tuple[str, ...]
    original_bounds: Rectangle

    damage_ids: Dict[str, Tuple[str, ...]] = field(default_factory=dict, compare=False)
    """Overlapping damage ids grouped by damage type."""


@dataclass
class CroppedShard:
    """A rectangular piece of the source raster scheduled for restoration.

    Only :attr:`raster` changes after segmentation: restoration swaps in the
    processed pixels.
    """

    id: str
    raster: Raster
    bounds: Rectangle
    priority: int
    context: ShardContext

    def sort_key(self) -> Tuple[int, int]:
        """Top-left to bottom-right order in 100 px bands, used by blended stitching."""

        return (self.bounds.y // 100, self.bounds.x)


@dataclass
class SmartCropResult:
    shards: List[CroppedShard]
    strategy: str
    grid_size: Tuple[int, int]
    source_width: int
    source_height: int
    neighbors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def total_shards(self) -> int:
        return len(self.shards)

    @property
    def source_size(self) -> Size:
        return Size(self.source_width, self.source_height)


__all__ = ["ShardContext", "CroppedShard", "SmartCropResult"]
