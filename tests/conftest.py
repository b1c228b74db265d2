import io
import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from photorestore.image_analysis.findings import CutMap, DetectionResult, DetectionStats
from photorestore.ingestion.raster import ImageMetadata, Raster


def solid_pixels(width, height, color=(128, 128, 128, 255)):
    out = np.empty((height, width, 4), dtype=np.uint8)
    out[...] = color
    return out


def encode_png(pixels):
    buffer = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(pixels)).save(buffer, format="PNG")
    return buffer.getvalue()


def make_detection(pixels, objects=(), damages=(), percentage=0.0):
    raster = Raster(pixels, ImageMetadata(original_format="png", file_size=0))
    stats = DetectionStats(
        total_objects=len(objects),
        total_damage_regions=len(damages),
        damage_percentage=percentage,
        dominant_damage_type=damages[0].type if damages else None,
    )
    grid = np.zeros((1, 1), dtype=np.int32)
    return DetectionResult(
        raster=raster,
        objects=list(objects),
        damages=list(damages),
        cut_map=CutMap(grid=grid, regions=[]),
        stats=stats,
    )


@pytest.fixture
def gray_png():
    return encode_png(solid_pixels(100, 100))


@pytest.fixture
def random_pixels():
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(40, 48, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return pixels
