"""Stage 2: object and damage detection.

The stage runs entirely on the ingested raster:

* Sobel gradient over the rounded grayscale image, thresholded to an edge mask
* connected components of the edge mask classified into document objects
* four independent damage heuristics (stains, scratches, fading, noise)
* a cut-map summarising where segmentation should be careful
* summary statistics about the amount and kind of damage
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Callable, List, Optional

from photorestore.config.settings import DetectionConfig
from photorestore.ingestion.raster import Raster
from photorestore.utils.pixel import to_grayscale

from .cutmap import generate_cut_map
from .damage import detect_fading, detect_noise, detect_scratches, detect_stains
from .edges import edge_mask, sobel
from .findings import DamageRegion, DetectionResult, DetectionStats
from .objects import detect_objects

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]


def compute_stats(damages: List[DamageRegion], width: int, height: int, confidence_threshold: float = 0.0, total_objects: int = 0) -> DetectionStats:
    total_area = sum(d.area for d in damages)
    pixels = width * height
    percentage = round(total_area / pixels * 100, 2) if pixels else 0.0
    counts = Counter(d.type for d in damages)
    dominant = counts.most_common(1)[0][0] if counts else None
    return DetectionStats(
        total_objects=total_objects,
        total_damage_regions=len(damages),
        damage_percentage=percentage,
        dominant_damage_type=dominant,
        confident_damage_regions=sum(1 for d in damages if d.confidence >= confidence_threshold),
    )


def detect(raster: Raster, config: Optional[DetectionConfig] = None, progress: Optional[ProgressCallback] = None) -> DetectionResult:
    """Run stage 2 over ``raster`` and return a :class:`DetectionResult`."""

    cfg = config or DetectionConfig()
    report = progress or (lambda value, message: None)
    pixels = raster.pixels
    width, height = raster.width, raster.height

    report(0, "Starting detection...")
    report(10, "Detecting edges...")
    gray = to_grayscale(pixels)
    magnitude, direction = sobel(gray)
    edges = edge_mask(magnitude, cfg.edge_threshold)
    report(25, "Edge detection complete")

    report(30, "Detecting objects...")
    objects = detect_objects(pixels, edges, cfg.min_object_area)
    report(45, f"Detected {len(objects)} objects")

    report(50, "Detecting damage...")
    stains = detect_stains(pixels)
    report(60, f"Found {len(stains)} stains")
    scratches = detect_scratches(magnitude, direction, cfg.edge_threshold)
    report(70, f"Found {len(scratches)} scratches")
    fading = detect_fading(pixels)
    report(80, f"Found {len(fading)} fading regions")
    noise = detect_noise(pixels)
    damages = stains + scratches + fading + noise
    report(85, f"Detected {len(damages)} damage regions")

    report(90, "Generating cut map...")
    cut_map = generate_cut_map(
        objects,
        damages,
        width,
        height,
        visualize=cfg.enable_visualization,
        merge=cfg.merge_cut_regions,
    )
    stats = compute_stats(damages, width, height, cfg.damage_confidence_threshold, total_objects=len(objects))
    LOGGER.info(
        "Detection found %d objects and %d damage regions (%.2f%% damaged)",
        stats.total_objects,
        stats.total_damage_regions,
        stats.damage_percentage,
        extra={"stage": 2},
    )
    report(100, "Detection complete")

    return DetectionResult(raster=raster, objects=objects, damages=damages, cut_map=cut_map, stats=stats)


__all__ = ["ProgressCallback", "compute_stats", "detect"]
