"""Format identification and size helpers for incoming files."""

from __future__ import annotations

from pathlib import PurePath
from typing import Dict, Optional, Tuple

MIME_TYPES: Dict[str, str] = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "tiff": "image/tiff",
    "bmp": "image/bmp",
    "webp": "image/webp",
}

# Pillow format names used when encoding/decoding
PIL_FORMATS: Dict[str, str] = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "tiff": "TIFF",
    "bmp": "BMP",
    "webp": "WEBP",
}

ALPHA_FORMATS: Tuple[str, ...] = ("png", "webp")
LOSSY_FORMATS: Tuple[str, ...] = ("jpg", "jpeg", "webp")
DEFAULT_MEMORY_BUDGET = 512 * 1024 * 1024

_SIGNATURES: Tuple[Tuple[str, bytes], ...] = (
    ("png", b"\x89PNG"),
    ("jpg", b"\xff\xd8\xff"),
    ("tiff", b"II*\x00"),
    ("tiff", b"MM\x00*"),
    ("bmp", b"BM"),
)


def detect_format_from_bytes(data: bytes) -> Optional[str]:
    """Identify the container from its magic bytes; ``None`` when inconclusive."""

    head = bytes(data[:12])
    for name, signature in _SIGNATURES:
        if head.startswith(signature):
            return name
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "webp"
    return None


def extension_of(filename: Optional[str]) -> Optional[str]:
    if not filename:
        return None
    suffix = PurePath(filename).suffix.lower().lstrip(".")
    return suffix or None


def canonical_format(fmt: Optional[str]) -> Optional[str]:
    """``jpeg`` and ``jpg`` name the same container."""

    if fmt == "jpeg":
        return "jpg"
    return fmt


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def is_lossy_format(fmt: str) -> bool:
    return fmt.lower() in LOSSY_FORMATS


def has_alpha_support(fmt: str) -> bool:
    return fmt.lower() in ALPHA_FORMATS


def estimate_memory_usage(width: int, height: int) -> int:
    """Bytes needed for one RGBA buffer."""

    return width * height * 4


def fits_in_memory_budget(width: int, height: int, budget: int = DEFAULT_MEMORY_BUDGET) -> bool:
    return estimate_memory_usage(width, height) <= budget


__all__ = [
    "MIME_TYPES",
    "PIL_FORMATS",
    "ALPHA_FORMATS",
    "LOSSY_FORMATS",
    "DEFAULT_MEMORY_BUDGET",
    "detect_format_from_bytes",
    "extension_of",
    "canonical_format",
    "format_file_size",
    "is_lossy_format",
    "has_alpha_support",
    "estimate_memory_usage",
    "fits_in_memory_budget",
]
