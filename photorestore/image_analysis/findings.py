"""Result models produced by the detection stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from photorestore.utils.geometry import Rectangle

OBJECT_TYPES: Tuple[str, ...] = ("text", "image", "signature", "stamp", "barcode", "face", "unknown")
DAMAGE_TYPES: Tuple[str, ...] = ("stain", "tear", "fold", "fade", "noise", "artifact", "scratch")
SEVERITIES: Tuple[str, ...] = ("low", "medium", "high")

OBJECT_PRIORITY: Dict[str, int] = {
    "face": 9,
    "text": 8,
    "signature": 7,
    "stamp": 6,
    "image": 6,
    "barcode": 5,
    "unknown": 4,
}

SEVERITY_PRIORITY: Dict[str, int] = {"high": 3, "medium": 2, "low": 1}


@dataclass(frozen=True)
class DetectedObject:
    id: str
    type: str
    bounds: Rectangle
    confidence: float
    priority: int
    features: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class DamageRegion:
    """A damaged area; ``mask`` is a boolean array shaped like ``bounds``."""

    id: str
    type: str
    bounds: Rectangle
    severity: str
    mask: np.ndarray = field(compare=False, repr=False)
    area: int
    confidence: float

    @property
    def priority(self) -> int:
        return SEVERITY_PRIORITY[self.severity]


@dataclass
class CutRegion:
    id: str
    bounds: Rectangle
    priority: int
    object_ids: List[str] = field(default_factory=list)
    damage_ids: List[str] = field(default_factory=list)


@dataclass
class CutMap:
    """Coarse priority grid (``rows x cols`` cells of ``cell_size`` pixels)."""

    grid: np.ndarray
    regions: List[CutRegion]
    cell_size: int = 32
    overlay: Optional[np.ndarray] = field(default=None, repr=False)


@dataclass
class DetectionStats:
    total_objects: int
    total_damage_regions: int
    damage_percentage: float
    dominant_damage_type: Optional[str]
    confident_damage_regions: int = 0


@dataclass
class DetectionResult:
    """Everything stage 2 hands to segmentation.

    ``raster`` is the ingested raster passed through untouched so the next
    stage can cut shards out of it.
    """

    raster: Any
    objects: List[DetectedObject]
    damages: List[DamageRegion]
    cut_map: CutMap
    stats: DetectionStats

    @property
    def visualization(self) -> Optional[np.ndarray]:
        return self.cut_map.overlay


__all__ = [
    "OBJECT_TYPES",
    "DAMAGE_TYPES",
    "SEVERITIES",
    "OBJECT_PRIORITY",
    "SEVERITY_PRIORITY",
    "DetectedObject",
    "DamageRegion",
    "CutRegion",
    "CutMap",
    "DetectionStats",
    "DetectionResult",
]
