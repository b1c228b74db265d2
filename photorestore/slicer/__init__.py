"""Stage 3: smart cropping into shards."""

from .shards import CroppedShard, ShardContext, SmartCropResult
from .smartcrop import create_shards, find_neighbors, shard_priority, smart_crop
from .strategies import STRATEGIES, generate_regions

__all__ = [
    "CroppedShard",
    "ShardContext",
    "SmartCropResult",
    "create_shards",
    "find_neighbors",
    "shard_priority",
    "smart_crop",
    "STRATEGIES",
    "generate_regions",
]
