"""Configuration objects, presets and validation."""

from .config_loader import get_preset, load_config_file, load_presets
from .settings import (
    INPAINTING_METHODS,
    OUTPUT_FORMATS,
    STAGE_INFO,
    STRATEGIES,
    SUPPORTED_FORMATS,
    DetectionConfig,
    EngineConfig,
    IngestionConfig,
    PipelineConfig,
    RestorationConfig,
    SmartCropConfig,
    merge_config,
    validate_config,
)

__all__ = [
    "INPAINTING_METHODS",
    "OUTPUT_FORMATS",
    "STAGE_INFO",
    "STRATEGIES",
    "SUPPORTED_FORMATS",
    "DetectionConfig",
    "EngineConfig",
    "IngestionConfig",
    "PipelineConfig",
    "RestorationConfig",
    "SmartCropConfig",
    "merge_config",
    "validate_config",
    "get_preset",
    "load_config_file",
    "load_presets",
]
