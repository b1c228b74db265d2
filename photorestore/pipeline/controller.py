"""Pipeline controller: sequences the four stages and tracks their progress.

A run is strictly sequential.  Control calls (:meth:`RestorationPipeline.pause`,
:meth:`~RestorationPipeline.resume`, :meth:`~RestorationPipeline.cancel`) only
change the status; the running :meth:`~RestorationPipeline.process` call
observes it at the boundaries between stages, so a stage that already started
always runs to completion.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Union

from photorestore.config.settings import STAGE_INFO, EngineConfig, merge_config, validate_config
from photorestore.errors import ConfigError, PipelineBusyError, PipelineCancelled, StageExecutionError
from photorestore.image_analysis.detection import detect
from photorestore.ingestion.loader import ImageSource, ingest, read_source
from photorestore.ingestion.validation import validate_file
from photorestore.logger import configure_logging
from photorestore.restoration.alchemy import restore
from photorestore.restoration.report import RestoredImage
from photorestore.slicer.smartcrop import smart_crop
from photorestore.utils.types import (
    PipelineCancelEvent,
    PipelineCompleteEvent,
    PipelineErrorEvent,
    ProgressDetails,
    StageCompleteEvent,
    StageErrorEvent,
    StageProgressEvent,
    StageStartEvent,
)

from .events import (
    PIPELINE_CANCEL,
    PIPELINE_COMPLETE,
    PIPELINE_ERROR,
    STAGE_COMPLETE,
    STAGE_ERROR,
    STAGE_PROGRESS,
    STAGE_START,
    EventEmitter,
)
from .session import SessionStore
from .state import PipelineAction, PipelineStatus, transition

LOGGER = logging.getLogger(__name__)

TOTAL_STAGES = 4
PROGRESS_STEPS = 10


@dataclass
class StageResult:
    stage: int
    name: str
    success: bool
    duration: float
    data: Any = None
    error: Optional[BaseException] = None


@dataclass
class ProgressSnapshot:
    current_stage: int
    current_stage_name: str
    total_stages: int
    stage_progress: float
    overall_progress: int
    status: PipelineStatus
    start_time: Optional[datetime]
    estimated_time_remaining: Optional[float]
    message: str


class RestorationPipeline(EventEmitter):
    """Runs ingestion, detection, smart cropping and restoration in order.

    Parameters
    ----------
    config:
        An :class:`EngineConfig` or a nested mapping of overrides applied on
        top of the defaults.  Invalid configurations raise
        :class:`~photorestore.errors.ConfigError`.
    clock:
        Monotonic seconds, used for durations, throttling and ETA.
    sleep:
        Called with ``pause_poll_interval`` while a run is paused.
    wall_clock:
        Source of the start and completion timestamps.
    session_store:
        Optional collaborator notified after every completed run.
    """

    def __init__(
        self,
        config: Union[EngineConfig, Mapping[str, Any], None] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        wall_clock: Callable[[], datetime] = datetime.now,
        session_store: Optional[SessionStore] = None,
    ) -> None:
        super().__init__()
        self._clock = clock
        self._sleep = sleep
        self._wall_clock = wall_clock
        self._session_store = session_store
        self._lock = threading.Lock()
        self._config = self._checked(config)
        self._apply_logging()
        self._reset()
        self._status = PipelineStatus.IDLE

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @staticmethod
    def _checked(config: Union[EngineConfig, Mapping[str, Any], None], base: Optional[EngineConfig] = None) -> EngineConfig:
        if config is None:
            cfg = (base or EngineConfig()).copy()
        elif isinstance(config, EngineConfig):
            cfg = config.copy()
        else:
            cfg = merge_config(base or EngineConfig(), config)
        errors = validate_config(cfg)
        if errors:
            raise ConfigError(errors)
        return cfg

    def _apply_logging(self) -> None:
        configure_logging(self._config.pipeline.log_level, self._config.pipeline.enable_logging)

    def update_config(self, partial: Union[EngineConfig, Mapping[str, Any]]) -> None:
        self._config = self._checked(partial, base=self._config)
        self._apply_logging()

    def get_config(self) -> EngineConfig:
        return self._config.copy()

    # ------------------------------------------------------------------
    # Status and control
    # ------------------------------------------------------------------
    @property
    def status(self) -> PipelineStatus:
        return self._status

    def is_processing(self) -> bool:
        return self._status is PipelineStatus.PROCESSING

    def is_paused(self) -> bool:
        return self._status is PipelineStatus.PAUSED

    def _transition(self, action: PipelineAction) -> bool:
        with self._lock:
            previous = self._status
            self._status = transition(previous, action)
            return self._status is not previous

    def pause(self) -> None:
        if self._transition(PipelineAction.PAUSE):
            LOGGER.info("Pipeline paused")

    def resume(self) -> None:
        if self._transition(PipelineAction.RESUME):
            LOGGER.info("Pipeline resumed")

    def cancel(self) -> None:
        if self._transition(PipelineAction.CANCEL):
            LOGGER.info("Pipeline cancelled")
            self.emit(PIPELINE_CANCEL, PipelineCancelEvent(stage=self._current_stage))

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------
    def get_progress(self) -> ProgressSnapshot:
        weights = self._config.pipeline.stage_weights
        stage = self._current_stage
        overall = sum(weights[:stage - 1]) * 100 + weights[stage - 1] * self._stage_progress

        eta = None
        if self._started is not None and overall > 0:
            elapsed = (self._clock() - self._started) * 1000.0
            if elapsed > 0:
                eta = float(round((100 - overall) / (overall / elapsed)))

        info = STAGE_INFO[stage]
        return ProgressSnapshot(
            current_stage=stage,
            current_stage_name=info["name"],
            total_stages=TOTAL_STAGES,
            stage_progress=self._stage_progress,
            overall_progress=int(round(overall)),
            status=self._status,
            start_time=self._start_time,
            estimated_time_remaining=eta,
            message=info["description"],
        )

    def get_stage_result(self, stage: int) -> Optional[StageResult]:
        return self._stage_results.get(stage)

    def _emit_stage_progress(self, stage: int, progress: float, message: str) -> None:
        self._stage_progress = progress
        now = self._clock()
        interval = self._config.pipeline.progress_interval / 1000.0
        boundary = progress <= 0 or progress >= 100
        if not boundary and self._last_progress_emit is not None and now - self._last_progress_emit < interval:
            return
        self._last_progress_emit = now
        self.emit(
            STAGE_PROGRESS,
            StageProgressEvent(
                stage=stage,
                progress=progress,
                message=message,
                details=ProgressDetails(
                    current_step=message,
                    total_steps=PROGRESS_STEPS,
                    current_step_index=int(progress // 10),
                ),
            ),
        )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------
    def _reset(self) -> None:
        self._current_stage = 1
        self._stage_progress = 0.0
        self._started: Optional[float] = None
        self._start_time: Optional[datetime] = None
        self._last_progress_emit: Optional[float] = None
        self._stage_results: Dict[int, StageResult] = {}
        self._stage_durations: Dict[int, float] = {}

    def _run_stage(self, stage: int, execute: Callable[[Callable[[float, str], None]], Any]) -> Any:
        name = STAGE_INFO[stage]["name"]
        self._current_stage = stage
        self._stage_progress = 0.0
        self._last_progress_emit = None

        LOGGER.info("Starting stage %d: %s", stage, name, extra={"stage": stage})
        self.emit(STAGE_START, StageStartEvent(stage=stage, name=name, timestamp=self._wall_clock().timestamp()))

        started = self._clock()
        try:
            data = execute(lambda progress, message: self._emit_stage_progress(stage, progress, message))
        except Exception as exc:
            duration = (self._clock() - started) * 1000.0
            self._stage_durations[stage] = duration
            self._stage_results[stage] = StageResult(stage, name, False, duration, None, exc)
            LOGGER.error("Stage %d failed: %s", stage, exc, extra={"stage": stage})
            self.emit(STAGE_ERROR, StageErrorEvent(stage=stage, error=exc, recoverable=False))
            raise StageExecutionError(stage, name, exc) from exc

        duration = (self._clock() - started) * 1000.0
        self._stage_durations[stage] = duration
        result = StageResult(stage, name, True, duration, data)
        self._stage_results[stage] = result
        LOGGER.info("Stage %d complete in %.0fms", stage, duration, extra={"stage": stage})
        self.emit(STAGE_COMPLETE, StageCompleteEvent(stage=stage, duration=duration, result=result))
        return data

    def _checkpoint(self) -> None:
        """Honour cancel and pause requests after a stage finished."""

        if self._status is PipelineStatus.CANCELLED:
            raise PipelineCancelled(self._current_stage)
        while self._status is PipelineStatus.PAUSED:
            self._sleep(self._config.pipeline.pause_poll_interval)
        if self._status is PipelineStatus.CANCELLED:
            raise PipelineCancelled(self._current_stage)

    def _fail(self, error: BaseException, stage: Optional[int]) -> None:
        self._transition(PipelineAction.FAIL)
        LOGGER.error("Pipeline failed: %s", error)
        self.emit(PIPELINE_ERROR, PipelineErrorEvent(error=error, stage=stage))

    def process(self, source: ImageSource, filename: Optional[str] = None) -> RestoredImage:
        """Run all four stages over ``source`` and return the restored image.

        Raises
        ------
        PipelineBusyError
            Another run is processing or paused.
        ValidationError
            The file was rejected before any stage started.
        StageExecutionError
            A stage raised; ``cause`` holds the original exception.
        PipelineCancelled
            :meth:`cancel` was called during the run.
        """

        with self._lock:
            if self._status.running:
                raise PipelineBusyError()
            self._reset()
            self._status = transition(self._status, PipelineAction.START)
        self._started = self._clock()
        self._start_time = self._wall_clock()
        cfg = self._config
        LOGGER.info("Starting restoration pipeline")

        try:
            data, name = read_source(source, filename)
            check = validate_file(data, name, cfg)
            for warning in check.warnings:
                LOGGER.warning(warning)
            check.raise_for_errors()
        except Exception as exc:
            self._fail(exc, None)
            raise

        try:
            raster = self._run_stage(1, lambda progress: ingest(data, name, cfg, progress))
            self._checkpoint()
            detection = self._run_stage(2, lambda progress: detect(raster, cfg.detection, progress))
            self._checkpoint()
            crop = self._run_stage(3, lambda progress: smart_crop(detection, cfg.smart_crop, progress))
            self._checkpoint()
            restored = self._run_stage(
                4,
                lambda progress: restore(
                    crop,
                    cfg.restoration,
                    progress,
                    original_name=raster.metadata.original_name if raster.metadata else name,
                    clock=self._clock,
                    wall_clock=self._wall_clock,
                ),
            )
            self._checkpoint()
        except PipelineCancelled:
            LOGGER.info("Pipeline run stopped after stage %d", self._current_stage)
            raise
        except StageExecutionError as exc:
            self._fail(exc, exc.stage)
            raise

        total = (self._clock() - self._started) * 1000.0
        restored.report.processing_time = {"total": total, "by_stage": dict(self._stage_durations)}
        self._transition(PipelineAction.COMPLETE)
        LOGGER.info("Pipeline complete in %.0fms", total)

        if self._session_store is not None:
            self._save_session(restored, name)

        self.emit(
            PIPELINE_COMPLETE,
            PipelineCompleteEvent(result=restored, total_duration=total, stage_durations=dict(self._stage_durations)),
        )
        return restored

    def _save_session(self, restored: RestoredImage, name: Optional[str]) -> None:
        try:
            self._session_store.save_session(
                name or "untitled",
                self._wall_clock().isoformat(),
                restored.report.summary(),
            )
        except Exception:
            LOGGER.exception("Saving the session summary failed")


# ----------------------------------------------------------------------
# Convenience functions
# ----------------------------------------------------------------------
def process_image(
    source: ImageSource,
    filename: Optional[str] = None,
    config: Union[EngineConfig, Mapping[str, Any], None] = None,
) -> RestoredImage:
    """Restore ``source`` with a throwaway pipeline."""

    return RestorationPipeline(config).process(source, filename)


def process_image_with_progress(
    source: ImageSource,
    on_progress: Callable[[ProgressSnapshot], None],
    filename: Optional[str] = None,
    config: Union[EngineConfig, Mapping[str, Any], None] = None,
) -> RestoredImage:
    """Like :func:`process_image`, calling ``on_progress`` with a snapshot on
    every stage start and progress event."""

    pipeline = RestorationPipeline(config)
    pipeline.on(STAGE_START, lambda _payload: on_progress(pipeline.get_progress()))
    pipeline.on(STAGE_PROGRESS, lambda _payload: on_progress(pipeline.get_progress()))
    return pipeline.process(source, filename)


__all__ = [
    "StageResult",
    "ProgressSnapshot",
    "RestorationPipeline",
    "process_image",
    "process_image_with_progress",
]
