"""Image quality metrics used to score restoration before and after.

All scores live on a 0..100 scale where higher is better.  ``overall`` is the
weighted blend ``0.3 sharpness + 0.25 noise + 0.25 contrast + 0.2 colour``.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Dict, Tuple

import numpy as np
from skimage.color import rgb2lab
from skimage.metrics import structural_similarity as _ssim

from photorestore.image_analysis.convolution import KERNELS, apply_kernel
from photorestore.utils.pixel import gray_float, saturation, to_grayscale

BLOCK_SIZE = 8
QUALITY_WEIGHTS = {"sharpness": 0.3, "noise": 0.25, "contrast": 0.25, "color_accuracy": 0.2}


@dataclass
class QualityScore:
    sharpness: float
    noise: float
    contrast: float
    color_accuracy: float
    overall: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def _clip_score(value: float) -> float:
    return float(min(100.0, max(0.0, value)))


def _full_blocks(gray: np.ndarray, block: int = BLOCK_SIZE) -> np.ndarray:
    """Stack of ``block x block`` tiles starting at ``0, block, ...`` while
    ``start < size - block``.  Returns shape ``(n, block, block)``."""

    h, w = gray.shape
    rows = len(range(0, h - block, block))
    cols = len(range(0, w - block, block))
    if rows <= 0 or cols <= 0:
        return np.empty((0, block, block), dtype=np.float64)
    tiles = gray[: rows * block, : cols * block].reshape(rows, block, cols, block)
    return tiles.transpose(0, 2, 1, 3).reshape(-1, block, block)


def calculate_sharpness(pixels: np.ndarray) -> float:
    """Standard deviation of the interior Laplacian, divided by 10."""

    gray = gray_float(pixels)
    if gray.shape[0] < 3 or gray.shape[1] < 3:
        return 0.0
    response = apply_kernel(gray, KERNELS["laplacian"])[1:-1, 1:-1]
    return _clip_score(math.sqrt(max(float(np.var(response)), 0.0)) / 10.0)


def calculate_noise(pixels: np.ndarray, block: int = BLOCK_SIZE) -> float:
    """``100 - 2 * mean block std``; 100 when no full block fits."""

    blocks = _full_blocks(gray_float(pixels), block)
    if blocks.shape[0] == 0:
        return 100.0
    stds = blocks.reshape(blocks.shape[0], -1).std(axis=1)
    return _clip_score(100.0 - float(stds.mean()) * 2.0)


def calculate_contrast(pixels: np.ndarray) -> float:
    """RMS contrast of the rounded gray histogram, ``sqrt(var) / 1.28``."""

    gray = to_grayscale(pixels).astype(np.int64).ravel()
    if gray.size == 0:
        return 0.0
    histogram = np.bincount(gray, minlength=256).astype(np.float64)
    levels = np.arange(histogram.size, dtype=np.float64)
    mean = float((levels * histogram).sum() / gray.size)
    variance = float((((levels - mean) ** 2) * histogram).sum() / gray.size)
    return float(min(100.0, math.sqrt(variance) / 1.28))


def calculate_color_accuracy(pixels: np.ndarray) -> float:
    sat = saturation(pixels)
    if sat.size == 0:
        return 0.0
    return float(min(100.0, float(sat.mean()) * 200.0))


def calculate_quality_score(pixels: np.ndarray) -> QualityScore:
    sharpness = calculate_sharpness(pixels)
    noise = calculate_noise(pixels)
    contrast = calculate_contrast(pixels)
    color_accuracy = calculate_color_accuracy(pixels)
    overall = (
        sharpness * QUALITY_WEIGHTS["sharpness"]
        + noise * QUALITY_WEIGHTS["noise"]
        + contrast * QUALITY_WEIGHTS["contrast"]
        + color_accuracy * QUALITY_WEIGHTS["color_accuracy"]
    )
    return QualityScore(sharpness, noise, contrast, color_accuracy, overall)


def calculate_snr(pixels: np.ndarray, block: int = BLOCK_SIZE) -> float:
    """Block based signal to noise ratio in dB.

    Signal is the mean of the block means, noise the mean of the block standard
    deviations, both averaged over ``floor(h / block) * floor(w / block)``
    blocks.  Returns 100 when the image has no measurable noise.
    """

    gray = gray_float(pixels)
    h, w = gray.shape
    blocks = _full_blocks(gray, block)
    denominator = (h // block) * (w // block) or 1
    flat = blocks.reshape(blocks.shape[0], -1)
    signal = float(flat.mean(axis=1).sum()) / denominator if flat.size else 0.0
    noise = float(flat.std(axis=1).sum()) / denominator if flat.size else 0.0
    if noise <= 0:
        return 100.0
    if signal <= 0:
        return float("-inf")
    return 20.0 * math.log10(signal / noise)


def structural_similarity(reference: np.ndarray, candidate: np.ndarray) -> float:
    """Grayscale SSIM between two equally sized rasters (1.0 when identical)."""

    a = gray_float(reference)
    b = gray_float(candidate)
    if a.shape != b.shape:
        raise ValueError(f"shape mismatch: {a.shape} vs {b.shape}")
    side = min(a.shape)
    if side < 3:
        return 1.0 if np.array_equal(a, b) else 0.0
    win_size = min(7, side if side % 2 == 1 else side - 1)
    return float(_ssim(a, b, data_range=255.0, win_size=win_size))


def delta_e_mean_p95(reference: np.ndarray, candidate: np.ndarray) -> Tuple[float, float]:
    """Colour shift as Euclidean distance in CIELAB: (mean, 95th percentile)."""

    lab1 = rgb2lab(np.asarray(reference)[..., :3].astype(np.float64) / 255.0)
    lab2 = rgb2lab(np.asarray(candidate)[..., :3].astype(np.float64) / 255.0)
    de = np.linalg.norm(lab1 - lab2, axis=-1)
    return float(de.mean()), float(np.percentile(de, 95))


__all__ = [
    "BLOCK_SIZE",
    "QualityScore",
    "calculate_sharpness",
    "calculate_noise",
    "calculate_contrast",
    "calculate_color_accuracy",
    "calculate_quality_score",
    "calculate_snr",
    "structural_similarity",
    "delta_e_mean_p95",
]
