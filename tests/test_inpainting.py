import numpy as np
import pytest

from photorestore.restoration.inpainting import (
    INPAINTERS,
    damage_mask,
    inpaint,
    inpaint_patch_based,
    inpaint_region,
)
from photorestore.utils.geometry import Rectangle

from conftest import solid_pixels


def _damaged_uniform(size=20, value=100, at=(10, 10)):
    pixels = solid_pixels(size, size, (value, value, value, 255))
    pixels[at[0], at[1], :3] = 0
    return pixels


def _single_pixel(at=(10, 10)):
    return np.ones((1, 1), dtype=bool), Rectangle(at[1], at[0], 1, 1)


def test_damage_mask_is_clipped_to_the_raster():
    full = damage_mask((10, 10, 4), np.ones((4, 4), dtype=bool), Rectangle(-2, -2, 4, 4))

    assert full.shape == (10, 10)
    assert full.sum() == 4
    assert full[:2, :2].all()


def test_region_fill_uses_undamaged_neighbours():
    mask, bounds = _single_pixel()

    out = inpaint_region(_damaged_uniform(), mask, bounds)

    np.testing.assert_array_equal(out[10, 10], [100, 100, 100, 255])


def test_region_fill_without_valid_neighbours_keeps_pixels():
    pixels = _damaged_uniform(size=5, at=(2, 2))

    out = inpaint_region(pixels, np.ones((5, 5), dtype=bool), Rectangle(0, 0, 5, 5))

    np.testing.assert_array_equal(out, pixels)


def test_patch_fill_copies_best_matching_centre():
    mask, bounds = _single_pixel()

    out = inpaint_patch_based(_damaged_uniform(), mask, bounds)

    np.testing.assert_array_equal(out[10, 10], [100, 100, 100, 255])


def test_patch_fill_skips_border_pixels():
    pixels = _damaged_uniform(at=(0, 0))
    mask, bounds = _single_pixel(at=(0, 0))

    out = inpaint_patch_based(pixels, mask, bounds)

    np.testing.assert_array_equal(out, pixels)


def test_opencv_telea_repairs_uniform_area():
    mask, bounds = _single_pixel()

    out = inpaint(_damaged_uniform(), mask, bounds, method="telea")

    assert abs(int(out[10, 10, 0]) - 100) <= 1
    assert out[10, 10, 3] == 255


def test_every_registered_method_returns_same_shape():
    mask, bounds = _single_pixel()
    pixels = _damaged_uniform()

    for method in INPAINTERS:
        assert inpaint(pixels, mask, bounds, method=method).shape == pixels.shape


def test_unknown_method_is_rejected():
    mask, bounds = _single_pixel()

    with pytest.raises(ValueError, match="Unknown inpainting method"):
        inpaint(_damaged_uniform(), mask, bounds, method="magic")
