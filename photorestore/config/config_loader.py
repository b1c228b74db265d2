import json
import os
from typing import Any, Dict, Optional

from .settings import EngineConfig, merge_config

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def load_presets() -> Dict[str, Any]:
    path = os.path.join(BASE_DIR, "presets.json")
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_config_file(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def get_preset(name: str, base: Optional[EngineConfig] = None) -> EngineConfig:
    """Default config (or ``base``) with the named preset applied."""

    presets = load_presets()
    if name not in presets:
        raise KeyError(f"Unknown preset '{name}'. Available presets: {', '.join(sorted(presets))}")
    return merge_config(base or EngineConfig(), presets[name])
