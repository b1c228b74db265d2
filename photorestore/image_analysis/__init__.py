"""Image analysis helpers used by the detection stage."""

from .convolution import KERNELS, Kernel, apply_kernel, convolve_rgba, convolve_separable
from .cutmap import generate_cut_map, merge_cut_regions
from .detection import detect
from .edges import canny, edge_mask, laplacian, sobel
from .findings import (
    CutMap,
    CutRegion,
    DamageRegion,
    DetectedObject,
    DetectionResult,
    DetectionStats,
)
from .regions import dilate, erode, extract_region_mask, find_connected_components, label_components

__all__ = [
    "KERNELS",
    "Kernel",
    "apply_kernel",
    "convolve_rgba",
    "convolve_separable",
    "generate_cut_map",
    "merge_cut_regions",
    "detect",
    "canny",
    "edge_mask",
    "laplacian",
    "sobel",
    "CutMap",
    "CutRegion",
    "DamageRegion",
    "DetectedObject",
    "DetectionResult",
    "DetectionStats",
    "dilate",
    "erode",
    "extract_region_mask",
    "find_connected_components",
    "label_components",
]
