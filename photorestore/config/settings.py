"""Engine configuration.

This module defines the :class:`EngineConfig` object that centralises every
tunable of the four pipeline stages together with the global input limits.
Each stage reads only its own section, which keeps the stage functions usable
on their own (tests and the command line call them directly) while the
controller can still be driven from a single object.

The defaults reproduce the behaviour the restoration engine has always
shipped with.  Callers usually start from them and override a handful of
values, either through :func:`merge_config` with a plain nested ``dict`` (the
form JSON presets and the command line produce) or by editing a copy
(``cfg = EngineConfig(); cfg.smart_crop.strategy = "grid"``).
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field, fields, is_dataclass, replace
from typing import Any, Dict, List, Mapping, Tuple

from photorestore.errors import ConfigError

SUPPORTED_FORMATS: Tuple[str, ...] = ("png", "jpg", "jpeg", "tiff", "bmp", "webp")
STRATEGIES: Tuple[str, ...] = ("content-aware", "damage-aware", "grid", "adaptive", "face-priority")
INPAINTING_METHODS: Tuple[str, ...] = ("patchmatch", "telea", "navier-stokes", "fast")
OUTPUT_FORMATS: Tuple[str, ...] = ("png", "jpg", "webp")
LOG_LEVEL_NAMES: Tuple[str, ...] = ("debug", "info", "warn", "error")

STAGE_INFO: Dict[int, Dict[str, str]] = {
    1: {"name": "ingestion", "description": "Loading and validating image"},
    2: {"name": "detection", "description": "Detecting objects and damage"},
    3: {"name": "smartcrop", "description": "Smart cropping and segmentation"},
    4: {"name": "alchemy", "description": "Restoration and enhancement"},
}


@dataclass
class IngestionConfig:
    normalize_color_space: bool = True
    preserve_exif: bool = True
    target_color_space: str = "sRGB"


@dataclass
class DetectionConfig:
    edge_threshold: float = 50.0
    min_object_area: int = 100
    damage_confidence_threshold: float = 0.7
    enable_visualization: bool = True
    merge_cut_regions: bool = False


@dataclass
class SmartCropConfig:
    strategy: str = "adaptive"
    padding: int = 10
    min_shard_size: int = 50
    max_shards: int = 100
    preserve_aspect_ratio: bool = True  # accepted for compatibility, no strategy reads it
    neighbor_tolerance: int = 10


@dataclass
class RestorationConfig:
    denoise_strength: float = 1.5
    sharpen_amount: float = 1.0
    contrast_boost: float = 1.2
    color_correction: bool = True
    inpainting_method: str = "patchmatch"
    output_format: str = "png"
    output_quality: int = 100
    blend_seams: bool = False
    blend_width: int = 5


@dataclass
class PipelineConfig:
    parallel_processing: bool = False  # reserved, stages always run sequentially
    enable_logging: bool = True
    log_level: str = "info"
    progress_interval: float = 100.0  # milliseconds between stage-progress events
    pause_poll_interval: float = 0.1  # seconds
    stage_weights: Tuple[float, ...] = (0.1, 0.3, 0.2, 0.4)


@dataclass
class EngineConfig:
    """Container for the global limits and every stage section."""

    # ------------------------------------------------------------------
    # Input limits.
    # ------------------------------------------------------------------
    max_file_size: int = 50 * 1024 * 1024
    max_width: int = 10000
    max_height: int = 10000
    min_dimension: int = 10
    supported_formats: Tuple[str, ...] = SUPPORTED_FORMATS

    # ------------------------------------------------------------------
    # Stage sections.
    # ------------------------------------------------------------------
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    smart_crop: SmartCropConfig = field(default_factory=SmartCropConfig)
    restoration: RestorationConfig = field(default_factory=RestorationConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)

    def copy(self) -> "EngineConfig":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if is_dataclass(value):
                out[f.name] = {sf.name: getattr(value, sf.name) for sf in fields(value)}
            else:
                out[f.name] = value
        return out


_SECTIONS = ("ingestion", "detection", "smart_crop", "restoration", "pipeline")


def _replace(obj, values: Mapping[str, Any], where: str):
    known = {f.name for f in fields(obj)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError([f"Unknown option {where}.{name}" if where else f"Unknown option {name}" for name in unknown])
    cleaned = {k: tuple(v) if isinstance(v, list) else v for k, v in values.items()}
    return replace(obj, **cleaned)


def merge_config(base: EngineConfig, partial: Mapping[str, Any]) -> EngineConfig:
    """Return a new config with ``partial`` applied section by section.

    ``partial`` is a nested mapping; section values may be mappings or whole
    section dataclasses.  ``base`` is never modified.
    """

    merged = base.copy()
    top_level: Dict[str, Any] = {}
    for key, value in partial.items():
        if key in _SECTIONS:
            section = getattr(merged, key)
            if is_dataclass(value):
                setattr(merged, key, copy.deepcopy(value))
            else:
                setattr(merged, key, _replace(section, value, key))
        else:
            top_level[key] = value
    if top_level:
        merged = _replace(merged, top_level, "")
    return merged


def validate_config(cfg: EngineConfig) -> List[str]:
    """Return a list of human readable problems; empty when ``cfg`` is usable."""

    errors: List[str] = []
    if cfg.max_file_size <= 0:
        errors.append("max_file_size must be positive")
    if cfg.max_width <= 0 or cfg.max_height <= 0:
        errors.append("max_width and max_height must be positive")
    if cfg.min_dimension < 1 or cfg.min_dimension > min(cfg.max_width, cfg.max_height):
        errors.append("min_dimension must be between 1 and the maximum dimensions")
    unknown_formats = [fmt for fmt in cfg.supported_formats if fmt not in SUPPORTED_FORMATS]
    if unknown_formats:
        errors.append(f"Unsupported formats configured: {', '.join(unknown_formats)}")

    det = cfg.detection
    if not 0 <= det.edge_threshold <= 255:
        errors.append("edge_threshold must be between 0 and 255")
    if not 0 <= det.damage_confidence_threshold <= 1:
        errors.append("damage_confidence_threshold must be between 0 and 1")
    if det.min_object_area < 1:
        errors.append("min_object_area must be at least 1")

    crop = cfg.smart_crop
    if crop.strategy not in STRATEGIES:
        errors.append(f"strategy must be one of {', '.join(STRATEGIES)}")
    if crop.padding < 0:
        errors.append("padding must not be negative")
    if crop.min_shard_size < 1:
        errors.append("min_shard_size must be at least 1")
    if crop.max_shards < 1:
        errors.append("max_shards must be at least 1")

    rest = cfg.restoration
    if not 0 <= rest.denoise_strength <= 10:
        errors.append("denoise_strength must be between 0 and 10")
    if not 0 <= rest.sharpen_amount <= 5:
        errors.append("sharpen_amount must be between 0 and 5")
    if rest.contrast_boost < 0:
        errors.append("contrast_boost must not be negative")
    if not 1 <= rest.output_quality <= 100:
        errors.append("output_quality must be between 1 and 100")
    if rest.inpainting_method not in INPAINTING_METHODS:
        errors.append(f"inpainting_method must be one of {', '.join(INPAINTING_METHODS)}")
    if rest.output_format not in OUTPUT_FORMATS:
        errors.append(f"output_format must be one of {', '.join(OUTPUT_FORMATS)}")
    if rest.blend_width < 1:
        errors.append("blend_width must be at least 1")

    pipe = cfg.pipeline
    if pipe.log_level not in LOG_LEVEL_NAMES:
        errors.append(f"log_level must be one of {', '.join(LOG_LEVEL_NAMES)}")
    if pipe.progress_interval < 0:
        errors.append("progress_interval must not be negative")
    if pipe.pause_poll_interval <= 0:
        errors.append("pause_poll_interval must be positive")
    weights = tuple(pipe.stage_weights)
    if len(weights) != len(STAGE_INFO) or any(w < 0 for w in weights) or not math.isclose(sum(weights), 1.0, abs_tol=1e-9):
        errors.append("stage_weights must hold four non-negative values summing to 1")

    return errors


__all__ = [
    "SUPPORTED_FORMATS",
    "STRATEGIES",
    "INPAINTING_METHODS",
    "OUTPUT_FORMATS",
    "LOG_LEVEL_NAMES",
    "STAGE_INFO",
    "IngestionConfig",
    "DetectionConfig",
    "SmartCropConfig",
    "RestorationConfig",
    "PipelineConfig",
    "EngineConfig",
    "merge_config",
    "validate_config",
]
