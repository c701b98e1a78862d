"""Stage telemetry helper methods for the pagevoice pipeline.

Responsibilities:
- Emit stage start/complete/failure events to the structured logger.
- Wrap stage actions so any collaborator error surfaces as a stage-scoped failure.
- Check the cooperative cancel flag between units of work.
"""

from __future__ import annotations

from collections.abc import Callable
import threading
from typing import TypeVar

from loguru import logger

from ..errors import CollaboratorFailure, PipelineCancelled, PipelineStageError
from ..models.datatypes import PipelineStage
from ..providers.clients import ProviderError
from ..telemetry.logger import RunLogger

_StageResult = TypeVar("_StageResult")

_PROVIDER_HINTS = {
    "invalid_api_key": (
        "Set a valid API key via `pagevoice credentials` or pass a one-time `--api-key`."
    ),
    "invalid_model": "Use a model identifier that the provider has available.",
    "timeout": "Retry the command. If timeouts persist, check the provider service.",
    "transport": "Check that the provider service is running and reachable, then retry.",
}


class PipelineTelemetryMixin:
    """Provide stage-telemetry helper methods."""

    _run_logger: RunLogger | None
    _cancel_requested: threading.Event

    def _on_stage_start(self, stage: PipelineStage) -> None:
        """Emit a stage-start event to the structured logger."""

        if self._run_logger is not None:
            self._run_logger.log_stage_start(stage.value)

    def _on_stage_complete(self, stage: PipelineStage, **context: object) -> None:
        """Emit a stage-complete event to the structured logger."""

        if self._run_logger is not None:
            self._run_logger.log_stage_complete(stage.value, **context)

    def _on_stage_failure(self, stage: PipelineStage, exc: Exception) -> None:
        """Emit stage-failure event with sanitized exception metadata."""

        if self._run_logger is not None:
            self._run_logger.log_stage_failure(stage.value, type(exc).__name__)

    def _on_callback_error(self, stage: PipelineStage, exc: Exception) -> None:
        """Log a failing progress callback without failing the request."""

        if self._run_logger is not None:
            self._run_logger.log_callback_failure(stage.value, type(exc).__name__)
        else:
            logger.warning(
                "Progress callback raised {} during {}; detached.", type(exc).__name__, stage.value
            )

    def _on_unit_complete(self, stage: PipelineStage, done: int, total: int) -> None:
        if self._run_logger is not None:
            self._run_logger.log_unit_progress(stage.value, done, total)

    def _checkpoint(self, stage: PipelineStage) -> None:
        """Raise `PipelineCancelled` when a cancel was requested."""

        if self._cancel_requested.is_set():
            raise PipelineCancelled("Processing was cancelled.", stage=stage.value)

    def _run_stage(
        self,
        stage: PipelineStage,
        action: Callable[[], _StageResult],
    ) -> _StageResult:
        """Run one stage, emitting telemetry and wrapping foreign errors.

        Raises:
            PipelineStageError: Unchanged when the stage raised one, otherwise a
                `CollaboratorFailure` chained to the original exception.
        """

        self._on_stage_start(stage)
        try:
            result = action()
        except PipelineStageError as exc:
            self._on_stage_failure(stage, exc)
            raise
        except Exception as exc:
            self._on_stage_failure(stage, exc)
            raise self._collaborator_failure(stage, exc) from exc
        self._on_stage_complete(stage)
        return result

    @staticmethod
    def _collaborator_failure(stage: PipelineStage, exc: Exception) -> CollaboratorFailure:
        """Convert a collaborator exception into a stage-scoped failure."""

        detail = str(exc).strip() or type(exc).__name__
        hint = None
        if isinstance(exc, ProviderError):
            hint = _PROVIDER_HINTS.get(exc.failure_kind)
        return CollaboratorFailure(detail, stage=stage.value, hint=hint)
