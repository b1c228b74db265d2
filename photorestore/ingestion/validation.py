"""File and dimension validation run before and after decoding."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from photorestore.config.settings import EngineConfig
from photorestore.errors import ValidationError

from .formats import MIME_TYPES, canonical_format, detect_format_from_bytes, extension_of, format_file_size

LARGE_IMAGE_PIXELS = 100_000_000


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    detected_format: Optional[str] = None

    @property
    def valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationError(self.errors, self.warnings)


def validate_file(
    data: bytes,
    filename: Optional[str] = None,
    config: Optional[EngineConfig] = None,
    mime_type: Optional[str] = None,
) -> ValidationResult:
    """Check size, emptiness and format membership of an encoded file.

    The format comes from the filename extension and is cross-checked against
    the magic bytes.  Without a filename the sniffed format is used; when both
    are known and disagree the sniffed one wins and a warning is recorded.
    """

    cfg = config or EngineConfig()
    result = ValidationResult()
    size = len(data)

    if size > cfg.max_file_size:
        result.errors.append(
            f"File size ({format_file_size(size)}) exceeds maximum ({format_file_size(cfg.max_file_size)})"
        )
    if size == 0:
        result.errors.append("File is empty")

    extension = extension_of(filename)
    sniffed = detect_format_from_bytes(data)
    result.detected_format = sniffed
    claimed = extension if extension is not None else sniffed
    supported = ", ".join(cfg.supported_formats)

    if claimed is None or claimed not in cfg.supported_formats:
        result.errors.append(f"Unsupported format: {claimed or 'unknown'}. Supported formats: {supported}")
    elif sniffed is not None and extension is not None and canonical_format(sniffed) != canonical_format(extension):
        result.warnings.append(f"File content looks like {sniffed} but the extension says {extension}")
    elif sniffed is None and size > 0:
        result.warnings.append("Could not detect format from magic bytes, using filename")

    if mime_type and mime_type not in MIME_TYPES.values():
        result.warnings.append(f"Unexpected MIME type: {mime_type}")

    return result


def validate_dimensions(width: int, height: int, config: Optional[EngineConfig] = None) -> ValidationResult:
    cfg = config or EngineConfig()
    result = ValidationResult()

    if width > cfg.max_width or height > cfg.max_height:
        result.errors.append(
            f"Image dimensions ({width}x{height}) exceed maximum ({cfg.max_width}x{cfg.max_height})"
        )
    if width < cfg.min_dimension or height < cfg.min_dimension:
        result.errors.append(
            f"Image dimensions ({width}x{height}) below minimum ({cfg.min_dimension}x{cfg.min_dimension})"
        )
    if width * height > LARGE_IMAGE_PIXELS:
        result.warnings.append("Very large image - processing may be slow")

    return result


__all__ = ["LARGE_IMAGE_PIXELS", "ValidationResult", "validate_file", "validate_dimensions"]
