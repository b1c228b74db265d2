"""Pipeline lifecycle states and the transition table between them."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple


class PipelineStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    PAUSED = "paused"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def running(self) -> bool:
        """``True`` while a run is in flight (processing or paused)."""

        return self in (PipelineStatus.PROCESSING, PipelineStatus.PAUSED)


class PipelineAction(str, Enum):
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    CANCEL = "cancel"
    COMPLETE = "complete"
    FAIL = "fail"


_IDLE_LIKE = (PipelineStatus.IDLE, PipelineStatus.COMPLETE, PipelineStatus.ERROR, PipelineStatus.CANCELLED)

TRANSITIONS: Dict[Tuple[PipelineStatus, PipelineAction], PipelineStatus] = {
    **{(status, PipelineAction.START): PipelineStatus.PROCESSING for status in _IDLE_LIKE},
    (PipelineStatus.PROCESSING, PipelineAction.PAUSE): PipelineStatus.PAUSED,
    (PipelineStatus.PAUSED, PipelineAction.RESUME): PipelineStatus.PROCESSING,
    (PipelineStatus.PROCESSING, PipelineAction.CANCEL): PipelineStatus.CANCELLED,
    (PipelineStatus.PAUSED, PipelineAction.CANCEL): PipelineStatus.CANCELLED,
    (PipelineStatus.PROCESSING, PipelineAction.COMPLETE): PipelineStatus.COMPLETE,
    (PipelineStatus.PAUSED, PipelineAction.COMPLETE): PipelineStatus.COMPLETE,
    (PipelineStatus.PROCESSING, PipelineAction.FAIL): PipelineStatus.ERROR,
    (PipelineStatus.PAUSED, PipelineAction.FAIL): PipelineStatus.ERROR,
}


def transition(status: PipelineStatus, action: PipelineAction) -> PipelineStatus:
    """Next status for ``action``; pairs not in the table leave it unchanged."""

    return TRANSITIONS.get((status, action), status)


__all__ = ["PipelineStatus", "PipelineAction", "TRANSITIONS", "transition"]
