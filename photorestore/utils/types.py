from typing import Any, Dict, Optional, TypedDict


class ProgressDetails(TypedDict):
    current_step: str
    total_steps: int
    current_step_index: int


class StageStartEvent(TypedDict):
    stage: int
    name: str
    timestamp: float


class StageProgressEvent(TypedDict):
    stage: int
    progress: float
    message: str
    details: ProgressDetails


class StageCompleteEvent(TypedDict):
    stage: int
    duration: float
    result: Any


class StageErrorEvent(TypedDict):
    stage: int
    error: BaseException
    recoverable: bool


class PipelineCompleteEvent(TypedDict):
    result: Any
    total_duration: float
    stage_durations: Dict[int, float]


class PipelineErrorEvent(TypedDict):
    error: BaseException
    stage: Optional[int]


class PipelineCancelEvent(TypedDict):
    stage: Optional[int]
