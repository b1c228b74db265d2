from datetime import datetime

import pytest

from photorestore.errors import ConfigError, PipelineBusyError, PipelineCancelled, StageExecutionError, ValidationError
from photorestore.pipeline import PipelineStatus, RestorationPipeline, process_image_with_progress
from photorestore.pipeline.events import (
    PIPELINE_CANCEL,
    PIPELINE_COMPLETE,
    PIPELINE_ERROR,
    STAGE_COMPLETE,
    STAGE_ERROR,
    STAGE_PROGRESS,
    STAGE_START,
)

from conftest import encode_png, solid_pixels

FIXED_TIME = datetime(2024, 5, 1, 12, 0, 0)


def _pipeline(config=None, **kwargs):
    kwargs.setdefault("clock", lambda: 0.0)
    kwargs.setdefault("wall_clock", lambda: FIXED_TIME)
    return RestorationPipeline(config, **kwargs)


def _record(pipeline, *events):
    seen = []
    for event in events:
        pipeline.on(event, lambda payload, event=event: seen.append((event, payload)))
    return seen


class RecordingStore:
    def __init__(self):
        self.calls = []

    def save_session(self, filename, timestamp, summary):
        self.calls.append((filename, timestamp, summary))


def test_successful_run_emits_lifecycle_events(gray_png):
    pipeline = _pipeline()
    seen = _record(pipeline, STAGE_START, STAGE_PROGRESS, STAGE_COMPLETE, PIPELINE_COMPLETE, PIPELINE_ERROR)

    result = pipeline.process(gray_png, "scan.png")

    assert pipeline.status is PipelineStatus.COMPLETE
    assert result.width == 100 and result.height == 100
    assert result.metadata["original_name"] == "scan.png"
    assert result.metadata["processed_at"] == FIXED_TIME.isoformat()
    assert [p["stage"] for e, p in seen if e == STAGE_START] == [1, 2, 3, 4]
    assert [p["name"] for e, p in seen if e == STAGE_START] == ["ingestion", "detection", "smartcrop", "alchemy"]
    for stage in (1, 2, 3, 4):
        # a frozen clock throttles everything but the boundaries
        assert [p["progress"] for e, p in seen if e == STAGE_PROGRESS and p["stage"] == stage] == [0, 100]
    assert [e for e, p in seen][-1] == PIPELINE_COMPLETE
    assert not any(e == PIPELINE_ERROR for e, p in seen)

    complete = seen[-1][1]
    assert complete["result"] is result
    assert set(complete["stage_durations"]) == {1, 2, 3, 4}
    assert result.report.processing_time["by_stage"] == complete["stage_durations"]
    assert pipeline.get_stage_result(3).success


def test_progress_details_follow_stage_progress(gray_png):
    pipeline = _pipeline({"pipeline": {"progress_interval": 0}})
    seen = _record(pipeline, STAGE_PROGRESS)

    pipeline.process(gray_png, "scan.png")

    stage_two = [p for e, p in seen if p["stage"] == 2]
    assert len(stage_two) > 2
    for payload in stage_two:
        assert payload["details"]["total_steps"] == 10
        assert payload["details"]["current_step_index"] == int(payload["progress"] // 10)
        assert payload["details"]["current_step"] == payload["message"]


def test_pipeline_can_run_again_after_completion(gray_png):
    pipeline = _pipeline()

    pipeline.process(gray_png, "a.png")
    pipeline.process(gray_png, "b.png")

    assert pipeline.status is PipelineStatus.COMPLETE


def test_control_calls_are_ignored_when_idle():
    pipeline = _pipeline()
    seen = _record(pipeline, PIPELINE_CANCEL)

    pipeline.pause()
    pipeline.resume()
    pipeline.cancel()

    assert pipeline.status is PipelineStatus.IDLE
    assert not pipeline.is_processing() and not pipeline.is_paused()
    assert seen == []


def test_idle_progress_snapshot():
    snapshot = _pipeline().get_progress()

    assert snapshot.current_stage == 1
    assert snapshot.current_stage_name == "ingestion"
    assert snapshot.total_stages == 4
    assert snapshot.overall_progress == 0
    assert snapshot.estimated_time_remaining is None
    assert snapshot.status is PipelineStatus.IDLE


def test_cancel_is_observed_at_the_next_stage_boundary(gray_png):
    pipeline = _pipeline()
    seen = _record(pipeline, STAGE_START, PIPELINE_CANCEL, PIPELINE_ERROR)

    def cancel_after_detection(payload):
        if payload["stage"] == 2:
            pipeline.cancel()

    pipeline.on(STAGE_COMPLETE, cancel_after_detection)

    with pytest.raises(PipelineCancelled) as excinfo:
        pipeline.process(gray_png, "scan.png")

    assert excinfo.value.stage == 2
    assert pipeline.status is PipelineStatus.CANCELLED
    assert [p["stage"] for e, p in seen if e == STAGE_START] == [1, 2]
    assert (PIPELINE_CANCEL, {"stage": 2}) in seen
    assert not any(e == PIPELINE_ERROR for e, p in seen)


def test_second_process_call_is_rejected_while_running(gray_png):
    pipeline = _pipeline()
    errors = []

    def reenter(payload):
        if payload["stage"] == 1:
            try:
                pipeline.process(gray_png, "again.png")
            except PipelineBusyError as exc:
                errors.append(exc)

    pipeline.on(STAGE_START, reenter)
    pipeline.process(gray_png, "scan.png")

    assert len(errors) == 1
    assert pipeline.status is PipelineStatus.COMPLETE


def test_pause_blocks_until_resumed(gray_png):
    sleeps = []

    def fake_sleep(seconds):
        sleeps.append(seconds)
        pipeline.resume()

    pipeline = _pipeline(sleep=fake_sleep)
    statuses = []

    def pause_after_ingestion(payload):
        if payload["stage"] == 1:
            pipeline.pause()
            statuses.append(pipeline.status)

    pipeline.on(STAGE_COMPLETE, pause_after_ingestion)
    pipeline.process(gray_png, "scan.png")

    assert statuses == [PipelineStatus.PAUSED]
    assert sleeps == [0.1]
    assert pipeline.status is PipelineStatus.COMPLETE


def test_stage_failure_is_wrapped(gray_png):
    pipeline = _pipeline()
    seen = _record(pipeline, STAGE_ERROR, PIPELINE_ERROR)

    with pytest.raises(StageExecutionError) as excinfo:
        pipeline.process(encode_png(solid_pixels(5, 5)), "tiny.png")

    assert excinfo.value.stage == 1
    assert isinstance(excinfo.value.cause, ValidationError)
    assert pipeline.status is PipelineStatus.ERROR
    assert seen[0][0] == STAGE_ERROR
    assert seen[0][1]["recoverable"] is False
    assert seen[1][0] == PIPELINE_ERROR
    assert seen[1][1]["stage"] == 1
    assert not pipeline.get_stage_result(1).success


def test_rejected_file_raises_validation_error_unwrapped(gray_png):
    pipeline = _pipeline()
    seen = _record(pipeline, STAGE_START, PIPELINE_ERROR)

    with pytest.raises(ValidationError):
        pipeline.process(gray_png, "scan.gif")

    assert pipeline.status is PipelineStatus.ERROR
    assert [e for e, p in seen] == [PIPELINE_ERROR]
    assert seen[0][1]["stage"] is None


def test_session_store_receives_summary(gray_png):
    store = RecordingStore()
    pipeline = _pipeline(session_store=store)

    pipeline.process(gray_png, "scan.png")

    filename, timestamp, summary = store.calls[0]
    assert filename == "scan.png"
    assert timestamp == FIXED_TIME.isoformat()
    assert "enhancements" in summary and "improvement" in summary


def test_failing_session_store_does_not_fail_the_run(gray_png):
    class BrokenStore:
        def save_session(self, filename, timestamp, summary):
            raise IOError("disk full")

    pipeline = _pipeline(session_store=BrokenStore())

    pipeline.process(gray_png, "scan.png")

    assert pipeline.status is PipelineStatus.COMPLETE


def test_invalid_config_is_rejected():
    with pytest.raises(ConfigError):
        _pipeline({"smart_crop": {"max_shards": 0}})

    pipeline = _pipeline()
    with pytest.raises(ConfigError):
        pipeline.update_config({"restoration": {"inpainting_method": "magic"}})
    assert pipeline.get_config().restoration.inpainting_method == "patchmatch"


def test_get_config_returns_a_copy():
    pipeline = _pipeline({"smart_crop": {"strategy": "grid"}})

    cfg = pipeline.get_config()
    cfg.smart_crop.strategy = "adaptive"

    assert pipeline.get_config().smart_crop.strategy == "grid"


def test_process_image_with_progress_reports_snapshots(gray_png):
    snapshots = []

    result = process_image_with_progress(gray_png, snapshots.append, filename="scan.png")

    assert result.width == 100
    assert snapshots[0].current_stage == 1
    assert snapshots[-1].current_stage == 4
    assert snapshots[-1].overall_progress == 100
    overall = [s.overall_progress for s in snapshots]
    assert overall == sorted(overall)


def test_overall_progress_weights_completed_stages_and_estimates_time_left(gray_png):
    now = {"value": 0.0}
    pipeline = _pipeline({"pipeline": {"progress_interval": 0}}, clock=lambda: now["value"])
    snapshots = []

    def advance_clock(payload):
        if payload["stage"] == 2:
            now["value"] = 1.0

    def capture(payload):
        if payload["stage"] == 2 and payload["progress"] == 50:
            snapshots.append(pipeline.get_progress())

    pipeline.on(STAGE_START, advance_clock)
    pipeline.on(STAGE_PROGRESS, capture)

    pipeline.process(gray_png, "scan.png")

    assert len(snapshots) == 1
    snapshot = snapshots[0]
    assert snapshot.current_stage == 2
    assert snapshot.current_stage_name == "detection"
    assert snapshot.stage_progress == 50
    assert snapshot.overall_progress == 25
    assert snapshot.estimated_time_remaining == 3000.0


def test_overall_progress_follows_configured_weights(gray_png):
    pipeline = _pipeline({"pipeline": {"progress_interval": 0, "stage_weights": (0.1, 0.2, 0.3, 0.4)}})
    snapshots = []
    pipeline.on(
        STAGE_PROGRESS,
        lambda payload: snapshots.append(pipeline.get_progress())
        if payload["stage"] == 3 and payload["progress"] == 50
        else None,
    )

    pipeline.process(gray_png, "scan.png")

    assert [s.overall_progress for s in snapshots] == [45]
