import numpy as np

from photorestore.config.settings import SmartCropConfig
from photorestore.image_analysis.findings import DamageRegion
from photorestore.slicer.smartcrop import find_neighbors, grid_size_for, smart_crop
from photorestore.utils.geometry import Rectangle, Size

from conftest import make_detection, solid_pixels


def test_grid_crop_builds_neighbour_graph():
    calls = []
    detection = make_detection(solid_pixels(100, 100))

    result = smart_crop(
        detection,
        SmartCropConfig(strategy="grid", max_shards=4, min_shard_size=50),
        progress=lambda value, message: calls.append(value),
    )

    assert result.total_shards == 4
    assert result.grid_size == (2, 2)
    assert result.strategy == "grid"
    assert result.source_size == Size(100, 100)
    for shard in result.shards:
        assert shard.raster.width == 50 and shard.raster.height == 50
        assert len(shard.context.neighbors) == 3
        assert result.neighbors[shard.id] == list(shard.context.neighbors)
    assert calls == [0, 10, 30, 50, 70, 90, 100]


def test_small_raster_falls_back_to_single_full_shard():
    detection = make_detection(solid_pixels(30, 30))

    result = smart_crop(detection, SmartCropConfig(strategy="grid", max_shards=4, min_shard_size=50))

    assert result.total_shards == 1
    assert result.shards[0].bounds == Rectangle(0, 0, 30, 30)
    assert result.shards[0].context.neighbors == ()


def test_stained_shard_is_scheduled_first():
    stain = DamageRegion(
        id="stain-abc",
        type="stain",
        bounds=Rectangle(60, 60, 10, 10),
        severity="low",
        mask=np.ones((10, 10), dtype=bool),
        area=100,
        confidence=0.7,
    )
    detection = make_detection(solid_pixels(100, 100), damages=[stain], percentage=1.0)

    result = smart_crop(detection, SmartCropConfig(strategy="grid", max_shards=4, min_shard_size=50))

    first = result.shards[0]
    assert first.bounds == Rectangle(50, 50, 50, 50)
    assert first.priority == 9
    assert first.context.contains_damage
    assert first.context.damage_types == ("stain",)
    assert first.context.damage_ids == {"stain": ("stain-abc",)}
    assert [s.priority for s in result.shards[1:]] == [5, 5, 5]


def test_find_neighbors_uses_tolerance():
    bounds = {"a": Rectangle(0, 0, 10, 10), "b": Rectangle(15, 0, 10, 10), "c": Rectangle(40, 0, 10, 10)}

    graph = find_neighbors(bounds, tolerance=5)

    assert graph == {"a": ["b"], "b": ["a"], "c": []}


def test_grid_size_for_empty_result():
    assert grid_size_for(0, 10, 10) == (0, 0)
    assert grid_size_for(6, 200, 100) == (4, 2)
