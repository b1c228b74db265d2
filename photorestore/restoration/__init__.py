"""Stage 4: enhancement, damage repair primitives and reassembly."""

from .alchemy import encode_image, process_shard, restore
from .enhancement import (
    adjust_brightness,
    adjust_contrast,
    adjust_saturation,
    calculate_histogram,
    correct_colors,
    denoise,
    gamma_correction,
    sharpen,
)
from .inpainting import inpaint, inpaint_patch_based, inpaint_region
from .reassembly import create_shard_preview, reassemble_blended, reassemble_direct
from .report import DamageRepairRecord, RestorationReport, RestoredImage

__all__ = [
    "encode_image",
    "process_shard",
    "restore",
    "adjust_brightness",
    "adjust_contrast",
    "adjust_saturation",
    "calculate_histogram",
    "correct_colors",
    "denoise",
    "gamma_correction",
    "sharpen",
    "inpaint",
    "inpaint_patch_based",
    "inpaint_region",
    "create_shard_preview",
    "reassemble_blended",
    "reassemble_direct",
    "DamageRepairRecord",
    "RestorationReport",
    "RestoredImage",
]
