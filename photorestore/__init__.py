"""Deterministic restoration engine for scanned and damaged photographs.

The engine runs four stages over a raster: ingestion, detection of objects and
damage, smart cropping into shards, and per shard restoration followed by
reassembly.  :class:`RestorationPipeline` sequences the stages; each stage is
also usable on its own.
"""

from photorestore.config import EngineConfig, get_preset, merge_config, validate_config
from photorestore.errors import (
    ConfigError,
    DecodeError,
    PipelineBusyError,
    PipelineCancelled,
    RestorationError,
    StageExecutionError,
    ValidationError,
)
from photorestore.image_analysis import detect
from photorestore.ingestion import Raster, ingest
from photorestore.pipeline import (
    PipelineStatus,
    ProgressSnapshot,
    RestorationPipeline,
    process_image,
    process_image_with_progress,
)
from photorestore.restoration import RestoredImage, restore
from photorestore.slicer import smart_crop

__version__ = "2.0.0"

__all__ = [
    "__version__",
    "EngineConfig",
    "get_preset",
    "merge_config",
    "validate_config",
    "ConfigError",
    "DecodeError",
    "PipelineBusyError",
    "PipelineCancelled",
    "RestorationError",
    "StageExecutionError",
    "ValidationError",
    "detect",
    "Raster",
    "ingest",
    "PipelineStatus",
    "ProgressSnapshot",
    "RestorationPipeline",
    "process_image",
    "process_image_with_progress",
    "RestoredImage",
    "restore",
    "smart_crop",
]
