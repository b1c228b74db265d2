"""Stage 4: enhance every shard, record repairs, stitch and encode.

Each shard goes through the same fixed chain (denoise, sharpen, contrast,
gray-world) with the steps switched on by :class:`RestorationConfig`.  Damage
found in a shard's context is recorded as a repair with the configured
inpainting method; the pixel repair primitives in
:mod:`photorestore.restoration.inpainting` are not applied on this path.
"""

from __future__ import annotations

import base64
import io
import logging
import time
from datetime import datetime
from typing import Callable, List, Optional, Tuple

import numpy as np
from PIL import Image

from photorestore.config.settings import RestorationConfig
from photorestore.ingestion.formats import MIME_TYPES, PIL_FORMATS, canonical_format
from photorestore.ingestion.raster import Raster
from photorestore.slicer.shards import CroppedShard, SmartCropResult
from photorestore.utils.metrics import (
    QualityScore,
    calculate_quality_score,
    calculate_snr,
    delta_e_mean_p95,
    structural_similarity,
)
from photorestore.utils.pixel import round_half_up

from .enhancement import adjust_contrast, correct_colors, denoise, sharpen
from .reassembly import reassemble_blended, reassemble_direct
from .report import DamageRepairRecord, RestorationReport, RestoredImage

LOGGER = logging.getLogger(__name__)

PIPELINE_VERSION = "2.0.0"

ProgressCallback = Callable[[float, str], None]


def _fmt(value: float) -> str:
    """Render config numbers the way they were given (``1.0`` -> ``1``)."""

    return f"{value:g}"


def process_shard(shard: CroppedShard, config: RestorationConfig) -> Tuple[np.ndarray, List[str], List[DamageRepairRecord]]:
    """Run the enhancement chain on one shard.

    Returns the processed pixels, the names of the applied steps and one
    repair record per damage type present in the shard.
    """

    pixels = shard.raster.pixels
    enhancements: List[str] = []

    if config.denoise_strength > 0:
        pixels = denoise(pixels, config.denoise_strength)
        enhancements.append(f"Denoising (strength: {_fmt(config.denoise_strength)})")
    if config.sharpen_amount > 0:
        pixels = sharpen(pixels, config.sharpen_amount)
        enhancements.append(f"Sharpening (amount: {_fmt(config.sharpen_amount)})")
    if config.contrast_boost != 1.0:
        pixels = adjust_contrast(pixels, config.contrast_boost)
        enhancements.append(f"Contrast adjustment (boost: {_fmt(config.contrast_boost)})")
    if config.color_correction:
        pixels = correct_colors(pixels)
        enhancements.append("Color correction")

    repairs: List[DamageRepairRecord] = []
    if shard.context.contains_damage:
        for damage_type in shard.context.damage_types:
            ids = shard.context.damage_ids.get(damage_type) or (f"damage-{shard.id}",)
            repairs.append(
                DamageRepairRecord(
                    damage_id=ids[0],
                    type=damage_type,
                    method=config.inpainting_method,
                )
            )
    return pixels, enhancements, repairs


def improvement_percentage(before: QualityScore, after: QualityScore) -> int:
    if before.overall == 0:
        return 0
    return int(round_half_up((after.overall - before.overall) / before.overall * 100.0))


def encode_image(pixels: np.ndarray, fmt: str, quality: int) -> Tuple[bytes, str]:
    """Encode RGBA pixels with Pillow and build a base64 data URL."""

    fmt = canonical_format(fmt) or "png"
    image = Image.fromarray(np.ascontiguousarray(pixels))
    params = {}
    if fmt == "jpg":
        image = image.convert("RGB")
        params["quality"] = int(quality)
    elif fmt == "webp":
        params["quality"] = int(quality)
    buffer = io.BytesIO()
    image.save(buffer, format=PIL_FORMATS[fmt], **params)
    blob = buffer.getvalue()
    data_url = f"data:{MIME_TYPES[fmt]};base64,{base64.b64encode(blob).decode('ascii')}"
    return blob, data_url


def restore(
    crop_result: SmartCropResult,
    config: Optional[RestorationConfig] = None,
    progress: Optional[ProgressCallback] = None,
    *,
    original_name: Optional[str] = None,
    clock: Callable[[], float] = time.monotonic,
    wall_clock: Callable[[], datetime] = datetime.now,
) -> RestoredImage:
    """Run stage 4 over a smart crop result."""

    cfg = config or RestorationConfig()
    report = progress or (lambda value, message: None)
    size = crop_result.source_size
    width, height = size.width, size.height
    shards = crop_result.shards
    started = clock()

    LOGGER.info("Starting Alchemy stage", extra={"stage": 4})
    report(0, "Starting restoration...")

    LOGGER.debug("Analyzing initial quality", extra={"stage": 4})
    baseline = reassemble_direct([(shard, shard.raster.pixels) for shard in shards], width, height)
    before = calculate_quality_score(baseline)
    report(10, "Quality analysis complete")

    enhancements: List[str] = []
    repairs: List[DamageRepairRecord] = []
    processed = []
    count = len(shards)
    for index, shard in enumerate(shards):
        LOGGER.debug("Processing shard %d/%d", index + 1, count, extra={"stage": 4})
        report(20 + index * 60 / count, f"Processing shard {index + 1}/{count}...")
        pixels, names, records = process_shard(shard, cfg)
        shard.raster = Raster(pixels)
        processed.append((shard, pixels))
        enhancements.extend(name for name in names if name not in enhancements)
        repairs.extend(records)

    LOGGER.debug("Reassembling image", extra={"stage": 4})
    report(85, "Reassembling image...")
    if cfg.blend_seams:
        final = reassemble_blended(processed, width, height, cfg.blend_width)
    else:
        final = reassemble_direct(processed, width, height)

    after = calculate_quality_score(final)
    improvement = improvement_percentage(before, after)
    de_mean, de_p95 = delta_e_mean_p95(baseline, final)
    diagnostics = {
        "snr_before": calculate_snr(baseline),
        "snr_after": calculate_snr(final),
        "structural_similarity": structural_similarity(baseline, final),
        "delta_e_mean": de_mean,
        "delta_e_p95": de_p95,
    }

    LOGGER.debug("Creating output", extra={"stage": 4})
    report(95, "Creating output...")
    blob, data_url = encode_image(final, cfg.output_format, cfg.output_quality)

    elapsed = (clock() - started) * 1000.0
    restoration_report = RestorationReport(
        enhancements=enhancements,
        repairs=repairs,
        before=before,
        after=after,
        improvement=improvement,
        processing_time={"total": elapsed, "by_stage": {1: 0.0, 2: 0.0, 3: 0.0, 4: elapsed}},
        diagnostics=diagnostics,
    )
    result = RestoredImage(
        raster=Raster(final),
        blob=blob,
        data_url=data_url,
        width=width,
        height=height,
        format=canonical_format(cfg.output_format) or "png",
        metadata={
            "processed_at": wall_clock().isoformat(),
            "pipeline_version": PIPELINE_VERSION,
            "original_name": original_name,
        },
        report=restoration_report,
    )

    LOGGER.info(
        "Alchemy complete: improvement %d%%, %d enhancements, %d repairs",
        improvement,
        len(enhancements),
        len(repairs),
        extra={"stage": 4},
    )
    report(100, "Restoration complete")
    return result


__all__ = [
    "PIPELINE_VERSION",
    "process_shard",
    "improvement_percentage",
    "encode_image",
    "restore",
]
