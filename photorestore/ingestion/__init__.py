"""Stage 1: file validation and decoding."""

from .formats import detect_format_from_bytes, format_file_size, fits_in_memory_budget, is_lossy_format
from .loader import ingest, read_source
from .raster import ImageMetadata, Raster
from .validation import ValidationResult, validate_dimensions, validate_file

__all__ = [
    "detect_format_from_bytes",
    "format_file_size",
    "fits_in_memory_budget",
    "is_lossy_format",
    "ingest",
    "read_source",
    "ImageMetadata",
    "Raster",
    "ValidationResult",
    "validate_dimensions",
    "validate_file",
]
