import json
import logging

import pytest

from photorestore.logger import PACKAGE_LOGGER, LogHistoryHandler
from photorestore.main import build_parser, config_from_args, main

from conftest import encode_png, solid_pixels


@pytest.fixture(autouse=True)
def _detach_stream_handlers():
    logger = logging.getLogger(PACKAGE_LOGGER)
    before = list(logger.handlers)
    yield
    logger.handlers[:] = [h for h in logger.handlers if h in before or isinstance(h, LogHistoryHandler)]


def test_main_writes_restored_image(tmp_path, capsys, gray_png):
    source = tmp_path / "scan.png"
    source.write_bytes(gray_png)

    code = main([str(source), "--strategy", "grid", "--log-level", "error"])

    assert code == 0
    output = tmp_path / "scan_restored.png"
    assert output.read_bytes()[:4] == b"\x89PNG"
    summary = json.loads(capsys.readouterr().out)
    assert summary["output"] == str(output)
    assert summary["width"] == 100 and summary["height"] == 100
    assert "enhancements" in summary


def test_main_honours_output_and_format(tmp_path, capsys):
    source = tmp_path / "scan.png"
    source.write_bytes(encode_png(solid_pixels(40, 40, (200, 100, 50, 255))))
    target = tmp_path / "out" / "result.jpg"

    code = main([str(source), "-o", str(target), "--format", "jpg", "--quality", "70", "--log-level", "error"])

    assert code == 0
    assert target.read_bytes()[:3] == b"\xff\xd8\xff"


def test_main_reports_missing_file(tmp_path, capsys):
    code = main([str(tmp_path / "missing.png"), "--log-level", "error"])

    assert code == 1
    assert "photorestore:" in capsys.readouterr().err


def test_main_reports_unknown_preset(tmp_path, capsys, gray_png):
    source = tmp_path / "scan.png"
    source.write_bytes(gray_png)

    assert main([str(source), "--preset", "nope", "--log-level", "error"]) == 1


def test_config_from_args_layers_overrides(tmp_path):
    config_file = tmp_path / "cfg.json"
    config_file.write_text(json.dumps({"smart_crop": {"max_shards": 7}}), encoding="utf-8")
    args = build_parser().parse_args(
        ["in.png", "--preset", "gentle", "--config", str(config_file), "--blend-seams", "--inpainting", "telea"]
    )

    cfg = config_from_args(args)

    assert cfg.detection.damage_confidence_threshold == 0.8
    assert cfg.smart_crop.max_shards == 7
    assert cfg.restoration.blend_seams
    assert cfg.restoration.inpainting_method == "telea"
    assert cfg.pipeline.log_level == "info"
