"""Progress anchors and the per-request progress tracker.

Each stage owns a fixed percentage window. Within a stage, progress is
interpolated by `units_done / total_units`:

    extracting_pages   0 - 10
    recognizing_text  10 - 60
    translating       60 - 75
    synthesizing      75 - 95
    assembling        95 - 100
    complete         100

A `failed` event repeats the last emitted percentage.
"""

from __future__ import annotations

from collections.abc import Callable

from ..models.datatypes import PipelineStage, ProgressEvent

ProgressCallback = Callable[[ProgressEvent], None]

STAGE_ANCHORS: dict[PipelineStage, tuple[float, float]] = {
    PipelineStage.EXTRACTING_PAGES: (0.0, 10.0),
    PipelineStage.RECOGNIZING_TEXT: (10.0, 60.0),
    PipelineStage.TRANSLATING: (60.0, 75.0),
    PipelineStage.SYNTHESIZING: (75.0, 95.0),
    PipelineStage.ASSEMBLING: (95.0, 100.0),
    PipelineStage.COMPLETE: (100.0, 100.0),
}


def interpolate(stage: PipelineStage, units_done: int = 0, total_units: int = 0) -> float:
    """Return the anchored percentage for a stage's fractional completion."""

    start, end = STAGE_ANCHORS[stage]
    if total_units <= 0:
        return start
    fraction = min(1.0, max(0.0, units_done / total_units))
    return round(start + (end - start) * fraction, 2)


class ProgressTracker:
    """Record and forward the progress events of one request.

    Percentages never decrease: an event computed below the previous one is
    clamped up to it. A callback that raises is detached; the error goes to
    `on_callback_error` and later events are only recorded.
    """

    def __init__(
        self,
        callback: ProgressCallback | None = None,
        on_callback_error: Callable[[PipelineStage, Exception], None] | None = None,
    ) -> None:
        self._callback = callback
        self._on_callback_error = on_callback_error
        self._events: list[ProgressEvent] = []
        self._last_percent = 0.0
        self._stage = PipelineStage.IDLE

    @property
    def stage(self) -> PipelineStage:
        """Return the stage of the most recent event."""

        return self._stage

    @property
    def last_percent(self) -> float:
        """Return the most recently emitted percentage."""

        return self._last_percent

    @property
    def events(self) -> tuple[ProgressEvent, ...]:
        """Return every event emitted so far, in order."""

        return tuple(self._events)

    def emit(
        self,
        stage: PipelineStage,
        message: str,
        units_done: int = 0,
        total_units: int = 0,
    ) -> ProgressEvent:
        """Build, record, and forward one progress event."""

        if stage is PipelineStage.FAILED or stage is PipelineStage.IDLE:
            percent = self._last_percent
        else:
            percent = max(self._last_percent, interpolate(stage, units_done, total_units))
        event = ProgressEvent(stage=stage, percent_complete=percent, message=message)
        self._events.append(event)
        self._last_percent = percent
        self._stage = stage
        if self._callback is not None:
            try:
                self._callback(event)
            except Exception as exc:
                self._callback = None
                if self._on_callback_error is None:
                    raise
                self._on_callback_error(stage, exc)
        return event
