"""Logging helpers for the restoration engine.

All modules log through ``logging.getLogger(__name__)``; this module only
configures the ``photorestore`` parent logger.  Stage-scoped records carry an
``extra={"stage": n}`` attribute which :class:`StageFormatter` renders as a
``[Stage n]`` prefix and :class:`LogHistoryHandler` keeps for later export.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

PACKAGE_LOGGER = "photorestore"

LOG_LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class StageFormatter(logging.Formatter):
    """Render ``[photorestore] [Stage n] message`` lines."""

    def format(self, record: logging.LogRecord) -> str:
        stage = getattr(record, "stage", None)
        prefix = f"[{PACKAGE_LOGGER}]"
        if stage is not None:
            prefix += f" [Stage {stage}]"
        message = record.getMessage()
        line = f"{self.formatTime(record)} {record.levelname:<7} {prefix} {message}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class LogHistoryHandler(logging.Handler):
    """Keep the most recent log records in memory."""

    def __init__(self, max_entries: int = 1000, level: int = logging.DEBUG):
        super().__init__(level)
        self._entries: Deque[Dict[str, Any]] = deque(maxlen=max_entries)

    def emit(self, record: logging.LogRecord) -> None:
        self._entries.append(
            {
                "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                "level": record.levelname.lower(),
                "logger": record.name,
                "stage": getattr(record, "stage", None),
                "message": record.getMessage(),
            }
        )

    def get_entries(self, level: Optional[str] = None, stage: Optional[int] = None) -> List[Dict[str, Any]]:
        entries = list(self._entries)
        if level is not None:
            entries = [e for e in entries if e["level"] == level.lower()]
        if stage is not None:
            entries = [e for e in entries if e["stage"] == stage]
        return entries

    def clear(self) -> None:
        self._entries.clear()

    def export_json(self) -> str:
        return json.dumps(list(self._entries), indent=2)


_history_handler: Optional[LogHistoryHandler] = None


def get_history_handler() -> LogHistoryHandler:
    """Return the shared history handler, attaching it on first use."""

    global _history_handler
    if _history_handler is None:
        _history_handler = LogHistoryHandler()
        logging.getLogger(PACKAGE_LOGGER).addHandler(_history_handler)
    return _history_handler


def configure_logging(level: str = "info", enabled: bool = True, *, stream_handler: bool = False) -> logging.Logger:
    """Apply the pipeline logging options to the package logger.

    Parameters
    ----------
    level:
        One of ``debug``, ``info``, ``warn`` or ``error``.
    enabled:
        ``False`` silences the package logger entirely.
    stream_handler:
        Attach a :class:`logging.StreamHandler` using :class:`StageFormatter`.
        Only the command line does this; libraries leave handlers to the host.
    """

    try:
        numeric = LOG_LEVELS[level.lower()]
    except KeyError as exc:
        raise ValueError(f"Unknown log level: {level}") from exc

    logger = logging.getLogger(PACKAGE_LOGGER)
    # child loggers inherit the effective level, so raising it silences them all
    logger.setLevel(numeric if enabled else logging.CRITICAL + 1)
    get_history_handler()

    if stream_handler and not any(isinstance(h, logging.StreamHandler) and not isinstance(h, LogHistoryHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(StageFormatter())
        logger.addHandler(handler)
    return logger


__all__ = [
    "PACKAGE_LOGGER",
    "LOG_LEVELS",
    "StageFormatter",
    "LogHistoryHandler",
    "get_history_handler",
    "configure_logging",
]
