"""Stage 1: load, validate and decode an image into a :class:`Raster`."""

from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

import numpy as np
from PIL import ExifTags, Image, ImageCms, UnidentifiedImageError

from photorestore.config.settings import EngineConfig
from photorestore.errors import DecodeError

from .formats import canonical_format, extension_of, has_alpha_support
from .raster import ImageMetadata, Raster
from .validation import validate_dimensions, validate_file

LOGGER = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, memoryview, str, os.PathLike, io.IOBase]
ProgressCallback = Callable[[float, str], None]


def read_source(source: ImageSource, filename: Optional[str] = None) -> Tuple[bytes, Optional[str]]:
    """Return the raw bytes of ``source`` and the best known filename."""

    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source), filename
    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        return path.read_bytes(), filename or path.name
    if hasattr(source, "read"):
        data = source.read()
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("file objects must be opened in binary mode")
        name = filename or os.path.basename(getattr(source, "name", "") or "") or None
        return bytes(data), name
    raise TypeError(f"Unsupported image source: {type(source).__name__}")


def _extract_exif(image: Image.Image) -> Optional[Dict[str, Any]]:
    exif = image.getexif()
    if not exif:
        return None
    out: Dict[str, Any] = {}
    for tag, value in exif.items():
        name = ExifTags.TAGS.get(tag, str(tag))
        if isinstance(value, bytes):
            value = value.hex()
        out[name] = value
    return out


def _to_srgb(image: Image.Image, icc: Optional[bytes]) -> Image.Image:
    """Convert through the embedded ICC profile when one is present."""

    if not icc:
        return image
    try:
        source_profile = ImageCms.ImageCmsProfile(io.BytesIO(icc))
        target_profile = ImageCms.createProfile("sRGB")
        return ImageCms.profileToProfile(image, source_profile, target_profile, outputMode=image.mode)
    except (ImageCms.PyCMSError, OSError) as exc:
        LOGGER.warning("Colour profile conversion failed, keeping pixels as decoded: %s", exc, extra={"stage": 1})
        return image


def decode_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"Could not decode image: {exc}") from exc
    return image


def ingest(
    source: ImageSource,
    filename: Optional[str] = None,
    config: Optional[EngineConfig] = None,
    progress: Optional[ProgressCallback] = None,
) -> Raster:
    """Run stage 1 and return the decoded RGBA raster with its metadata.

    Raises :class:`~photorestore.errors.ValidationError` for rejected files or
    dimensions and :class:`~photorestore.errors.DecodeError` for bytes Pillow
    cannot read.
    """

    cfg = config or EngineConfig()
    report = progress or (lambda value, message: None)

    LOGGER.info("Starting ingestion stage", extra={"stage": 1})
    report(0, "Starting image ingestion...")

    data, name = read_source(source, filename)
    report(10, "File loaded")

    file_check = validate_file(data, name, cfg)
    for warning in file_check.warnings:
        LOGGER.warning(warning, extra={"stage": 1})
    if not file_check.valid:
        LOGGER.error("File validation failed: %s", ", ".join(file_check.errors), extra={"stage": 1})
    file_check.raise_for_errors()
    report(20, "File validated")

    detected = file_check.detected_format
    report(30, "Format detected")

    image = decode_image(data)
    report(50, "Image loaded")

    width, height = image.size
    dim_check = validate_dimensions(width, height, cfg)
    for warning in dim_check.warnings:
        LOGGER.warning(warning, extra={"stage": 1})
    if not dim_check.valid:
        LOGGER.error("Dimension validation failed: %s", ", ".join(dim_check.errors), extra={"stage": 1})
    dim_check.raise_for_errors()
    report(60, "Dimensions validated")

    original_format = canonical_format(detected) or canonical_format(extension_of(name)) or "unknown"
    exif = _extract_exif(image) if cfg.ingestion.preserve_exif else None
    metadata = ImageMetadata(
        original_format=original_format,
        file_size=len(data),
        color_space="sRGB",
        bit_depth=8,
        has_alpha=has_alpha_support(original_format),
        exif=exif,
        original_name=name,
    )
    if cfg.ingestion.target_color_space != "sRGB":
        LOGGER.warning(
            "Target colour space %s is not supported, using sRGB", cfg.ingestion.target_color_space, extra={"stage": 1}
        )
    report(70, "Metadata extracted")

    rgba = image.convert("RGBA")
    if cfg.ingestion.normalize_color_space:
        rgba = _to_srgb(rgba, image.info.get("icc_profile"))
    pixels = np.array(rgba, dtype=np.uint8)
    report(90, "Pixel buffer created")

    LOGGER.info("Ingestion complete: %dx%d %s", width, height, original_format, extra={"stage": 1})
    report(100, "Ingestion complete")
    return Raster(pixels=pixels, metadata=metadata)


__all__ = ["ImageSource", "read_source", "decode_image", "ingest"]
