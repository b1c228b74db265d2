"""Result models of the restoration stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from photorestore.ingestion.raster import Raster
from photorestore.utils.metrics import QualityScore

REPAIR_EFFECTIVENESS = 0.75


@dataclass
class DamageRepairRecord:
    damage_id: str
    type: str
    method: str
    effectiveness: float = REPAIR_EFFECTIVENESS
    repaired: bool = True


@dataclass
class RestorationReport:
    """What restoration did to the image and how the quality scores moved.

    ``processing_time`` holds ``total`` (ms) and ``by_stage`` (stage number to
    ms).  The controller fills in the timings of stages 1 to 3 once the run
    completes.
    """

    enhancements: List[str]
    repairs: List[DamageRepairRecord]
    before: QualityScore
    after: QualityScore
    improvement: int
    processing_time: Dict[str, Any] = field(default_factory=lambda: {"total": 0.0, "by_stage": {1: 0.0, 2: 0.0, 3: 0.0, 4: 0.0}})
    diagnostics: Dict[str, float] = field(default_factory=dict)

    def summary(self) -> Dict[str, Any]:
        return {
            "enhancements": list(self.enhancements),
            "repairs": len(self.repairs),
            "damage_types": sorted({record.type for record in self.repairs}),
            "quality_before": round(self.before.overall, 2),
            "quality_after": round(self.after.overall, 2),
            "improvement": self.improvement,
            "processing_time_ms": round(float(self.processing_time.get("total", 0.0)), 1),
            "diagnostics": {key: round(value, 4) for key, value in self.diagnostics.items()},
        }


@dataclass
class RestoredImage:
    raster: Raster
    blob: bytes = field(repr=False)
    data_url: str = field(repr=False)
    width: int
    height: int
    format: str
    metadata: Dict[str, Optional[str]]
    report: RestorationReport


__all__ = ["REPAIR_EFFECTIVENESS", "DamageRepairRecord", "RestorationReport", "RestoredImage"]
