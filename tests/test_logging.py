import json
import logging

import pytest

from photorestore.logger import (
    PACKAGE_LOGGER,
    LogHistoryHandler,
    StageFormatter,
    configure_logging,
    get_history_handler,
)


@pytest.fixture(autouse=True)
def _restore_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    level, handlers = logger.level, list(logger.handlers)
    yield
    logger.setLevel(level)
    # the shared history handler stays attached once created
    history = [h for h in logger.handlers if isinstance(h, LogHistoryHandler) and h not in handlers]
    logger.handlers[:] = handlers + history


def _record(message, stage=None, level=logging.INFO):
    record = logging.LogRecord("photorestore.test", level, __file__, 1, message, None, None)
    if stage is not None:
        record.stage = stage
    return record


def test_stage_formatter_prefixes_stage():
    line = StageFormatter().format(_record("Starting detection", stage=2))

    assert "[photorestore] [Stage 2] Starting detection" in line
    assert "INFO" in line


def test_formatter_without_stage():
    line = StageFormatter().format(_record("hello"))

    assert "[photorestore] hello" in line
    assert "[Stage" not in line


def test_history_handler_filters_and_exports():
    handler = LogHistoryHandler(max_entries=2)
    handler.handle(_record("one", stage=1))
    handler.handle(_record("two", stage=2, level=logging.WARNING))
    handler.handle(_record("three", stage=2))

    assert [e["message"] for e in handler.get_entries()] == ["two", "three"]
    assert [e["message"] for e in handler.get_entries(level="warning")] == ["two"]
    assert [e["message"] for e in handler.get_entries(stage=2)] == ["two", "three"]
    assert len(json.loads(handler.export_json())) == 2
    handler.clear()
    assert handler.get_entries() == []


def test_configure_logging_sets_level_and_history():
    logger = configure_logging("warn")

    assert logger.level == logging.WARNING
    history = get_history_handler()
    history.clear()
    logging.getLogger("photorestore.some.module").warning("careful", extra={"stage": 3})
    assert history.get_entries(stage=3)[-1]["message"] == "careful"


def test_disabled_logging_silences_package():
    logger = configure_logging("debug", enabled=False)

    assert logger.level > logging.CRITICAL


def test_stream_handler_is_attached_once():
    configure_logging("info", stream_handler=True)
    configure_logging("info", stream_handler=True)

    logger = logging.getLogger(PACKAGE_LOGGER)
    streams = [h for h in logger.handlers if isinstance(h, logging.StreamHandler)]
    assert len(streams) == 1


def test_unknown_level_is_rejected():
    with pytest.raises(ValueError):
        configure_logging("loud")
