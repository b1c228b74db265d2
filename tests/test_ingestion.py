import io

import numpy as np
import pytest

from photorestore.config.settings import EngineConfig
from photorestore.errors import DecodeError, ValidationError
from photorestore.ingestion import (
    detect_format_from_bytes,
    fits_in_memory_budget,
    format_file_size,
    ingest,
    is_lossy_format,
    read_source,
    validate_dimensions,
    validate_file,
)

from conftest import encode_png, solid_pixels


def test_ingest_png_bytes(gray_png):
    calls = []

    raster = ingest(gray_png, "scan.png", progress=lambda value, message: calls.append(value))

    assert raster.width == 100 and raster.height == 100
    assert raster.pixels.dtype == np.uint8
    np.testing.assert_array_equal(raster.pixels[50, 50], [128, 128, 128, 255])
    assert raster.metadata.original_format == "png"
    assert raster.metadata.has_alpha
    assert raster.metadata.file_size == len(gray_png)
    assert raster.metadata.original_name == "scan.png"
    assert calls == [0, 10, 20, 30, 50, 60, 70, 90, 100]


def test_ingest_from_path_and_file_object(tmp_path, gray_png):
    path = tmp_path / "photo.png"
    path.write_bytes(gray_png)

    assert ingest(path).metadata.original_name == "photo.png"
    assert ingest(str(path)).width == 100
    assert ingest(io.BytesIO(gray_png)).metadata.original_format == "png"


def test_read_source_rejects_unknown_types():
    with pytest.raises(TypeError):
        read_source(12345)


def test_empty_file_is_rejected():
    result = validate_file(b"", "empty.png")

    assert not result.valid
    assert "File is empty" in result.errors


def test_unsupported_extension_is_rejected(gray_png):
    result = validate_file(gray_png, "anim.gif")

    assert result.errors[0].startswith("Unsupported format: gif")
    with pytest.raises(ValidationError) as excinfo:
        result.raise_for_errors()
    assert excinfo.value.errors == result.errors


def test_extension_mismatch_is_only_a_warning(gray_png):
    result = validate_file(gray_png, "photo.jpg")

    assert result.valid
    assert result.detected_format == "png"
    assert result.warnings == ["File content looks like png but the extension says jpg"]


def test_file_size_limit():
    result = validate_file(b"\x89PNG" + b"\x00" * 60, "big.png", EngineConfig(max_file_size=32))

    assert "exceeds maximum" in result.errors[0]


def test_too_small_image_fails_validation():
    with pytest.raises(ValidationError, match="below minimum"):
        ingest(encode_png(solid_pixels(5, 5)), "tiny.png")


def test_corrupt_png_raises_decode_error():
    with pytest.raises(DecodeError):
        ingest(b"\x89PNG\r\n\x1a\n" + b"garbage" * 10, "broken.png")


def test_dimension_limits():
    assert validate_dimensions(100, 100).valid
    assert not validate_dimensions(10001, 100).valid
    assert not validate_dimensions(9, 100).valid


def test_format_sniffing():
    assert detect_format_from_bytes(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "webp"
    assert detect_format_from_bytes(b"\xff\xd8\xff\xe0") == "jpg"
    assert detect_format_from_bytes(b"II*\x00") == "tiff"
    assert detect_format_from_bytes(b"hello") is None


def test_size_helpers():
    assert format_file_size(512) == "512 B"
    assert format_file_size(2048) == "2.0 KB"
    assert format_file_size(3 * 1024 * 1024) == "3.0 MB"
    assert is_lossy_format("JPEG")
    assert not is_lossy_format("png")
    assert fits_in_memory_budget(100, 100)
    assert not fits_in_memory_budget(100, 100, budget=1000)
