"""Stitch processed shards back into a full raster."""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw

from photorestore.slicer.shards import CroppedShard
from photorestore.utils.pixel import blank_raster, clamp_u8, round_half_up

ProcessedShard = Tuple[CroppedShard, np.ndarray]

PREVIEW_BACKGROUND = (128, 128, 128, 255)
PREVIEW_BORDER = (51, 51, 51, 255)


def _placement(shard: CroppedShard, pixels: np.ndarray, width: int, height: int):
    """Destination slices on the canvas and the matching source extent."""

    x, y = shard.bounds.x, shard.bounds.y
    h = min(pixels.shape[0], height - y)
    w = min(pixels.shape[1], width - x)
    return (slice(y, y + h), slice(x, x + w)), h, w


def reassemble_direct(shards: Sequence[ProcessedShard], width: int, height: int) -> np.ndarray:
    """Paste shards in order onto a white canvas; later shards overwrite."""

    canvas = blank_raster(width, height)
    for shard, pixels in shards:
        window, h, w = _placement(shard, pixels, width, height)
        if h > 0 and w > 0:
            canvas[window] = pixels[:h, :w]
    return canvas


def _edge_distance(h: int, w: int) -> np.ndarray:
    ys = np.arange(h)
    xs = np.arange(w)
    dist_y = np.minimum(ys, h - 1 - ys)[:, None]
    dist_x = np.minimum(xs, w - 1 - xs)[None, :]
    return np.minimum(dist_x, dist_y)


def reassemble_blended(
    shards: Sequence[ProcessedShard],
    width: int,
    height: int,
    blend_width: int = 5,
) -> np.ndarray:
    """Paste shards top-left first, feathering pixels already covered.

    Where a shard lands on written pixels within ``blend_width`` of its own
    edge, the colour becomes ``round(new * d / blend_width + old * (1 - d /
    blend_width))`` with ``d`` the distance to the nearest shard edge.
    """

    canvas = blank_raster(width, height)
    written = np.zeros((height, width), dtype=bool)
    ordered = sorted(shards, key=lambda item: item[0].sort_key())

    for shard, pixels in ordered:
        window, h, w = _placement(shard, pixels, width, height)
        if h <= 0 or w <= 0:
            continue
        processed = np.asarray(pixels).copy()
        dist = _edge_distance(processed.shape[0], processed.shape[1])[:h, :w]
        if blend_width > 0:
            feather = written[window] & (dist < blend_width)
            if feather.any():
                blend = (dist / float(blend_width))[..., None]
                new = processed[:h, :w, :3].astype(np.float64)
                old = canvas[window][..., :3].astype(np.float64)
                mixed = clamp_u8(round_half_up(new * blend + old * (1.0 - blend)))
                processed[:h, :w, :3][feather] = mixed[feather]
        canvas[window] = processed[:h, :w]
        written[window] = True
    return canvas


def create_shard_preview(shards: Sequence[CroppedShard], max_width: int = 800, max_height: int = 600) -> np.ndarray:
    """Contact sheet of shard thumbnails on a gray background."""

    sheet = Image.new("RGBA", (max_width, max_height), PREVIEW_BACKGROUND)
    count = len(shards)
    if count == 0:
        return np.asarray(sheet).copy()

    cols = math.ceil(math.sqrt(count * (max_width / max_height)))
    rows = math.ceil(count / cols)
    cell_w = max_width // cols
    cell_h = max_height // rows
    draw = ImageDraw.Draw(sheet)

    for index, shard in enumerate(shards):
        col, row = index % cols, index // cols
        src_h, src_w = shard.raster.height, shard.raster.width
        scale = min(cell_w / src_w, cell_h / src_h)
        scaled_w = max(1, int(round_half_up(src_w * scale)))
        scaled_h = max(1, int(round_half_up(src_h * scale)))
        left = col * cell_w + int(round_half_up((cell_w - scaled_w) / 2))
        top = row * cell_h + int(round_half_up((cell_h - scaled_h) / 2))

        thumb = Image.fromarray(np.ascontiguousarray(shard.raster.pixels)).resize((scaled_w, scaled_h), Image.Resampling.BILINEAR)
        sheet.paste(thumb, (left, top))
        draw.rectangle([left, top, left + scaled_w - 1, top + scaled_h - 1], outline=PREVIEW_BORDER, width=1)

    return np.asarray(sheet).copy()


__all__ = [
    "ProcessedShard",
    "reassemble_direct",
    "reassemble_blended",
    "create_shard_preview",
]
