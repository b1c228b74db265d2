"""Synchronous publish/subscribe registry used by the pipeline controller."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

LOGGER = logging.getLogger(__name__)

STAGE_START = "stage:start"
STAGE_PROGRESS = "stage:progress"
STAGE_COMPLETE = "stage:complete"
STAGE_ERROR = "stage:error"
PIPELINE_COMPLETE = "pipeline:complete"
PIPELINE_ERROR = "pipeline:error"
PIPELINE_CANCEL = "pipeline:cancel"

EVENTS = (
    STAGE_START,
    STAGE_PROGRESS,
    STAGE_COMPLETE,
    STAGE_ERROR,
    PIPELINE_COMPLETE,
    PIPELINE_ERROR,
    PIPELINE_CANCEL,
)

Handler = Callable[[Any], None]


class EventEmitter:
    """Handlers run in subscription order on the emitting thread.

    A handler that raises is logged and skipped; the remaining handlers and
    the emitter itself carry on.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Handler]] = {}

    def on(self, event: str, handler: Handler) -> None:
        handlers = self._listeners.setdefault(event, [])
        if handler not in handlers:
            handlers.append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._listeners.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, payload: Any = None) -> None:
        # copy so handlers may unsubscribe while being dispatched
        for handler in list(self._listeners.get(event, ())):
            try:
                handler(payload)
            except Exception:
                LOGGER.exception("Error in event handler for %s", event)


__all__ = [
    "STAGE_START",
    "STAGE_PROGRESS",
    "STAGE_COMPLETE",
    "STAGE_ERROR",
    "PIPELINE_COMPLETE",
    "PIPELINE_ERROR",
    "PIPELINE_CANCEL",
    "EVENTS",
    "EventEmitter",
]
