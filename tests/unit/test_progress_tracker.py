"""Unit tests for stage progress anchors and the progress tracker."""

from __future__ import annotations

import pytest

from pagevoice.models.datatypes import PipelineStage, ProgressEvent, stage_label
from pagevoice.pipeline.progress import STAGE_ANCHORS, ProgressTracker, interpolate


def test_stage_anchors_are_contiguous() -> None:
    """Each stage window should start where the previous one ended."""

    windows = [
        STAGE_ANCHORS[stage]
        for stage in (
            PipelineStage.EXTRACTING_PAGES,
            PipelineStage.RECOGNIZING_TEXT,
            PipelineStage.TRANSLATING,
            PipelineStage.SYNTHESIZING,
            PipelineStage.ASSEMBLING,
        )
    ]

    assert windows[0][0] == 0.0
    assert windows[-1][1] == 100.0
    for (_, previous_end), (start, _) in zip(windows, windows[1:]):
        assert previous_end == start


@pytest.mark.parametrize(
    ("stage", "done", "total", "expected"),
    [
        (PipelineStage.EXTRACTING_PAGES, 0, 0, 0.0),
        (PipelineStage.EXTRACTING_PAGES, 1, 2, 5.0),
        (PipelineStage.RECOGNIZING_TEXT, 1, 2, 35.0),
        (PipelineStage.TRANSLATING, 1, 3, 65.0),
        (PipelineStage.SYNTHESIZING, 3, 3, 95.0),
        (PipelineStage.ASSEMBLING, 1, 1, 100.0),
        (PipelineStage.COMPLETE, 0, 0, 100.0),
    ],
)
def test_interpolate_within_stage_window(
    stage: PipelineStage, done: int, total: int, expected: float
) -> None:
    """Percentages interpolate linearly inside each stage's window."""

    assert interpolate(stage, done, total) == pytest.approx(expected)


def test_tracker_forwards_events_in_order() -> None:
    """Events should reach the callback synchronously and be recorded."""

    received: list[ProgressEvent] = []
    tracker = ProgressTracker(received.append)

    tracker.emit(PipelineStage.EXTRACTING_PAGES, "Cropping PDF pages...")
    tracker.emit(PipelineStage.EXTRACTING_PAGES, "Cropped page 1 (1/1)", 1, 1)

    assert [event.percent_complete for event in received] == [0.0, 10.0]
    assert tracker.events == tuple(received)
    assert tracker.stage is PipelineStage.EXTRACTING_PAGES


def test_tracker_never_decreases_percentage() -> None:
    """An event computed below the previous percentage is clamped up to it."""

    tracker = ProgressTracker()

    tracker.emit(PipelineStage.SYNTHESIZING, "Generating speech...")
    event = tracker.emit(PipelineStage.RECOGNIZING_TEXT, "late", 1, 2)

    assert event.percent_complete == 75.0


def test_failed_event_repeats_last_percentage() -> None:
    """A failure event keeps the percentage reached so far."""

    tracker = ProgressTracker()
    tracker.emit(PipelineStage.RECOGNIZING_TEXT, "Extracting text... (1/2)", 1, 2)

    event = tracker.emit(PipelineStage.FAILED, "Recognizing text failed: boom")

    assert event.percent_complete == 35.0
    assert tracker.stage is PipelineStage.FAILED


def test_stage_labels_are_human_readable() -> None:
    """Stage identifiers render as capitalized labels, including pre-stage ones."""

    assert stage_label(PipelineStage.EXTRACTING_PAGES.value) == "Extracting pages"
    assert stage_label(PipelineStage.SYNTHESIZING.value) == "Synthesizing"
    assert stage_label("request") == "Request"


def test_raising_callback_is_detached_and_reported() -> None:
    """A failing listener is reported once and later events are only recorded."""

    received: list[ProgressEvent] = []
    reported: list[tuple[PipelineStage, Exception]] = []

    def _listener(event: ProgressEvent) -> None:
        received.append(event)
        raise ValueError("ui exploded")

    tracker = ProgressTracker(
        _listener, on_callback_error=lambda stage, exc: reported.append((stage, exc))
    )
    tracker.emit(PipelineStage.EXTRACTING_PAGES, "Cropping PDF pages...")
    tracker.emit(PipelineStage.EXTRACTING_PAGES, "Cropped page 1 (1/1)", 1, 1)

    assert len(received) == 1
    assert [(stage, str(exc)) for stage, exc in reported] == [
        (PipelineStage.EXTRACTING_PAGES, "ui exploded")
    ]
    assert [event.percent_complete for event in tracker.events] == [0.0, 10.0]


def test_raising_callback_without_handler_propagates() -> None:
    """Without an error handler the listener's exception reaches the emitter."""

    def _listener(event: ProgressEvent) -> None:
        raise ValueError("ui exploded")

    tracker = ProgressTracker(_listener)

    with pytest.raises(ValueError, match="ui exploded"):
        tracker.emit(PipelineStage.EXTRACTING_PAGES, "Cropping PDF pages...")
    assert len(tracker.events) == 1
