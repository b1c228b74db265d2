import logging

import pytest

from photorestore.pipeline.events import EVENTS, STAGE_START, EventEmitter
from photorestore.pipeline.state import TRANSITIONS, PipelineAction, PipelineStatus, transition


def test_handlers_run_in_subscription_order_without_duplicates():
    emitter = EventEmitter()
    calls = []
    first = lambda payload: calls.append(("first", payload))
    second = lambda payload: calls.append(("second", payload))

    emitter.on(STAGE_START, first)
    emitter.on(STAGE_START, second)
    emitter.on(STAGE_START, first)
    emitter.emit(STAGE_START, {"stage": 1})

    assert calls == [("first", {"stage": 1}), ("second", {"stage": 1})]
    assert emitter.listener_count(STAGE_START) == 2


def test_off_and_remove_all_listeners():
    emitter = EventEmitter()
    handler = lambda payload: None
    emitter.on("a", handler)
    emitter.on("b", handler)

    emitter.off("a", handler)
    emitter.off("missing", handler)
    assert emitter.listener_count("a") == 0

    emitter.remove_all_listeners("b")
    assert emitter.listener_count("b") == 0

    emitter.on("a", handler)
    emitter.remove_all_listeners()
    assert emitter.listener_count("a") == 0


def test_failing_handler_is_logged_and_others_still_run(caplog):
    emitter = EventEmitter()
    calls = []

    def broken(payload):
        raise RuntimeError("boom")

    emitter.on("evt", broken)
    emitter.on("evt", calls.append)

    with caplog.at_level(logging.ERROR, logger="photorestore.pipeline.events"):
        emitter.emit("evt", 42)

    assert calls == [42]
    assert "Error in event handler for evt" in caplog.text


def test_handler_may_unsubscribe_during_dispatch():
    emitter = EventEmitter()
    calls = []

    def once(payload):
        calls.append(payload)
        emitter.off("evt", once)

    emitter.on("evt", once)
    emitter.emit("evt", 1)
    emitter.emit("evt", 2)

    assert calls == [1]


def test_event_names():
    assert EVENTS == (
        "stage:start",
        "stage:progress",
        "stage:complete",
        "stage:error",
        "pipeline:complete",
        "pipeline:error",
        "pipeline:cancel",
    )


@pytest.mark.parametrize(
    "status",
    [PipelineStatus.IDLE, PipelineStatus.COMPLETE, PipelineStatus.ERROR, PipelineStatus.CANCELLED],
)
def test_start_is_allowed_from_every_terminal_state(status):
    assert transition(status, PipelineAction.START) is PipelineStatus.PROCESSING
    assert not status.running


def test_pause_resume_cycle():
    paused = transition(PipelineStatus.PROCESSING, PipelineAction.PAUSE)

    assert paused is PipelineStatus.PAUSED
    assert paused.running
    assert transition(paused, PipelineAction.RESUME) is PipelineStatus.PROCESSING
    assert transition(paused, PipelineAction.CANCEL) is PipelineStatus.CANCELLED


def test_invalid_transitions_leave_status_unchanged():
    assert transition(PipelineStatus.IDLE, PipelineAction.PAUSE) is PipelineStatus.IDLE
    assert transition(PipelineStatus.IDLE, PipelineAction.RESUME) is PipelineStatus.IDLE
    assert transition(PipelineStatus.PROCESSING, PipelineAction.START) is PipelineStatus.PROCESSING
    assert transition(PipelineStatus.COMPLETE, PipelineAction.CANCEL) is PipelineStatus.COMPLETE
    assert (PipelineStatus.IDLE, PipelineAction.COMPLETE) not in TRANSITIONS


def test_status_values_are_plain_strings():
    assert PipelineStatus.PROCESSING == "processing"
