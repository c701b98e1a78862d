"""Domain exceptions for pipeline and CLI diagnostics.

Every error that ends a request derives from `PagevoiceError`. Errors tied to a
pipeline stage carry the stage identifier so the orchestrator and the CLI can
report where a run stopped.
"""

from __future__ import annotations


class PagevoiceError(RuntimeError):
    """Base class for errors surfaced to pipeline callers."""

    def __init__(self, detail: str, *, hint: str | None = None) -> None:
        """Initialize an error with a human-readable detail and optional hint."""

        super().__init__(detail)
        self.detail = detail
        self.hint = hint


class PipelineStageError(PagevoiceError):
    """Raised when a specific pipeline stage fails."""

    default_stage = "pipeline"

    def __init__(
        self,
        detail: str,
        *,
        stage: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail, hint=hint)
        self.stage = stage or self.default_stage


class InvalidRequest(PipelineStageError):
    """Raised when an audiobook request cannot be processed as submitted."""

    default_stage = "request"


class InvalidCropRegion(InvalidRequest):
    """Raised when crop margins leave an empty or out-of-bounds page region."""

    default_stage = "extracting_pages"


class CollaboratorFailure(PipelineStageError):
    """Raised when a renderer, recognizer, translator, synthesizer or storage call fails."""


class NoAudioData(PipelineStageError):
    """Raised when assembly receives no audio samples."""

    default_stage = "assembling"


class SampleRateMismatch(PipelineStageError):
    """Raised when audio segments disagree on their sample rate."""

    default_stage = "assembling"


class PipelineCancelled(PipelineStageError):
    """Raised between units of work after a cooperative cancel request."""


class AlreadyProcessing(PagevoiceError):
    """Raised when a request is submitted while another one is still in flight."""
