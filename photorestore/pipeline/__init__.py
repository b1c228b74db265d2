"""Pipeline controller, lifecycle states and event registry."""

from .controller import ProgressSnapshot, RestorationPipeline, StageResult, process_image, process_image_with_progress
from .events import EVENTS, EventEmitter
from .session import SessionStore
from .state import PipelineAction, PipelineStatus, transition

__all__ = [
    "ProgressSnapshot",
    "RestorationPipeline",
    "StageResult",
    "process_image",
    "process_image_with_progress",
    "EVENTS",
    "EventEmitter",
    "SessionStore",
    "PipelineAction",
    "PipelineStatus",
    "transition",
]
