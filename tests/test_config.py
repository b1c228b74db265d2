import json

import pytest

from photorestore.config import (
    EngineConfig,
    RestorationConfig,
    get_preset,
    load_config_file,
    load_presets,
    merge_config,
    validate_config,
)
from photorestore.errors import ConfigError


def test_defaults_are_valid():
    cfg = EngineConfig()

    assert validate_config(cfg) == []
    assert cfg.smart_crop.strategy == "adaptive"
    assert cfg.restoration.inpainting_method == "patchmatch"
    assert cfg.pipeline.stage_weights == (0.1, 0.3, 0.2, 0.4)


def test_merge_returns_new_object():
    base = EngineConfig()

    merged = merge_config(base, {"smart_crop": {"strategy": "grid"}, "max_width": 4000})

    assert merged.smart_crop.strategy == "grid"
    assert merged.max_width == 4000
    assert base.smart_crop.strategy == "adaptive"
    assert base.max_width == 10000


def test_merge_accepts_section_dataclass():
    merged = merge_config(EngineConfig(), {"restoration": RestorationConfig(blend_seams=True)})

    assert merged.restoration.blend_seams


def test_merge_converts_lists_to_tuples():
    merged = merge_config(EngineConfig(), {"pipeline": {"stage_weights": [0.25, 0.25, 0.25, 0.25]}})

    assert merged.pipeline.stage_weights == (0.25, 0.25, 0.25, 0.25)


def test_unknown_option_is_rejected():
    with pytest.raises(ConfigError, match="detection.bogus"):
        merge_config(EngineConfig(), {"detection": {"bogus": 1}})


def test_invalid_values_are_reported():
    cfg = merge_config(
        EngineConfig(),
        {
            "smart_crop": {"strategy": "spiral", "max_shards": 0},
            "restoration": {"output_quality": 0},
            "pipeline": {"log_level": "verbose", "stage_weights": [0.5, 0.5, 0.5, 0.5]},
        },
    )

    errors = validate_config(cfg)

    assert any(e.startswith("strategy must be one of") for e in errors)
    assert "max_shards must be at least 1" in errors
    assert "output_quality must be between 1 and 100" in errors
    assert any(e.startswith("log_level must be one of") for e in errors)
    assert "stage_weights must hold four non-negative values summing to 1" in errors


def test_presets_load_and_apply():
    presets = load_presets()

    assert {"archival", "preview", "aggressive", "gentle"} <= set(presets)
    preview = get_preset("preview")
    assert preview.smart_crop.max_shards == 10
    assert preview.restoration.output_quality == 80
    assert validate_config(preview) == []


def test_unknown_preset_raises_key_error():
    with pytest.raises(KeyError):
        get_preset("does-not-exist")


def test_load_config_file(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"detection": {"edge_threshold": 40}}), encoding="utf-8")

    cfg = merge_config(EngineConfig(), load_config_file(str(path)))

    assert cfg.detection.edge_threshold == 40


def test_to_dict_lists_every_section():
    data = EngineConfig().to_dict()

    assert {"ingestion", "detection", "smart_crop", "restoration", "pipeline"} <= set(data)
    assert data["restoration"]["output_format"] == "png"
