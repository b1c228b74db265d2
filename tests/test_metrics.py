import numpy as np
import pytest

from photorestore.utils.metrics import (
    calculate_color_accuracy,
    calculate_contrast,
    calculate_noise,
    calculate_quality_score,
    calculate_sharpness,
    calculate_snr,
    delta_e_mean_p95,
    structural_similarity,
)

from conftest import solid_pixels


def _checkerboard(size=32, low=0, high=255):
    pixels = solid_pixels(size, size, (low, low, low, 255))
    yy, xx = np.mgrid[:size, :size]
    pixels[(yy + xx) % 2 == 1, :3] = high
    return pixels


def test_uniform_gray_quality_score():
    score = calculate_quality_score(solid_pixels(100, 100))

    assert score.sharpness == pytest.approx(0.0, abs=1e-6)
    assert score.noise == pytest.approx(100.0)
    assert score.contrast == 0.0
    assert score.color_accuracy == 0.0
    assert score.overall == pytest.approx(25.0)
    assert set(score.to_dict()) == {"sharpness", "noise", "contrast", "color_accuracy", "overall"}


def test_checkerboard_has_full_contrast_and_low_noise_score():
    pixels = _checkerboard()

    assert calculate_contrast(pixels) == pytest.approx(127.5 / 1.28)
    assert calculate_noise(pixels) == 0.0
    assert calculate_sharpness(pixels) == 100.0


def test_pure_red_is_fully_saturated():
    assert calculate_color_accuracy(solid_pixels(10, 10, (255, 0, 0, 255))) == 100.0


def test_tiny_raster_scores():
    pixels = solid_pixels(2, 2, (10, 20, 30, 255))

    assert calculate_sharpness(pixels) == 0.0
    assert calculate_noise(pixels) == 100.0


def test_snr_of_flat_image_is_capped():
    assert calculate_snr(solid_pixels(64, 64, (0, 0, 0, 255))) == 100.0


def test_snr_is_finite_for_textured_image():
    snr = calculate_snr(_checkerboard(low=88, high=168))

    # every block has mean 128 and std 40
    assert snr == pytest.approx(20 * np.log10(128 / 40), rel=1e-6)


def test_structural_similarity(random_pixels):
    assert structural_similarity(random_pixels, random_pixels) == pytest.approx(1.0)
    assert structural_similarity(random_pixels, 255 - random_pixels) < 0.5
    with pytest.raises(ValueError):
        structural_similarity(random_pixels, random_pixels[:10])


def test_delta_e_of_identical_rasters_is_zero(random_pixels):
    mean, p95 = delta_e_mean_p95(random_pixels, random_pixels)

    assert mean == 0.0
    assert p95 == 0.0


def test_metrics_are_deterministic(random_pixels):
    assert calculate_quality_score(random_pixels) == calculate_quality_score(random_pixels.copy())
