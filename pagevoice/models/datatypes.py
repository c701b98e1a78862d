"""Core datatypes shared across pagevoice modules.

Responsibilities:
- Represent immutable records exchanged between pipeline stages.
- Provide explicit typing for the request, the progress stream and the audio payloads.

Key types:
- `AudiobookRequest`, `CropMargins`, `PipelineStage`, `ProgressEvent`,
  `ProcessedPage`, `TextChunk`, `AudioSegment`, `AssembledAudio`, and `PipelineResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import math
from pathlib import Path

import numpy as np

from ..errors import InvalidRequest
from ..languages import SupportedLanguage


class PipelineStage(str, Enum):
    """Linear processing stages of one audiobook request."""

    IDLE = "idle"
    EXTRACTING_PAGES = "extracting_pages"
    RECOGNIZING_TEXT = "recognizing_text"
    TRANSLATING = "translating"
    SYNTHESIZING = "synthesizing"
    ASSEMBLING = "assembling"
    COMPLETE = "complete"
    FAILED = "failed"


def stage_label(stage: str) -> str:
    """Return the human-readable label for a stage identifier.

    Failures raised before any stage ran carry identifiers such as `request`
    that are not `PipelineStage` members, so this works on plain strings.
    """

    return stage.replace("_", " ").capitalize()


@dataclass(frozen=True, slots=True)
class CropMargins:
    """Header/footer margins excluded from text recognition.

    Attributes:
        top: Distance from the top page edge.
        bottom: Distance from the bottom page edge.
    """

    top: float = 0.0
    bottom: float = 0.0

    def scaled(self, factor: float) -> CropMargins:
        """Return margins multiplied by a scale factor."""

        return CropMargins(top=self.top * factor, bottom=self.bottom * factor)

    @property
    def total(self) -> float:
        """Return the combined vertical extent removed by both margins."""

        return self.top + self.bottom


@dataclass(frozen=True, slots=True)
class AudiobookRequest:
    """One immutable audiobook conversion request.

    Attributes:
        document_bytes: Raw PDF document content.
        page_range: 1-based inclusive `(start_page, end_page)`.
        crop_margins: Margins in source page pixel units.
        source_language: Language of the document text.
        target_language: Language of the narrated output.
    """

    document_bytes: bytes
    page_range: tuple[int, int]
    crop_margins: CropMargins = field(default_factory=CropMargins)
    source_language: SupportedLanguage = SupportedLanguage.ENGLISH
    target_language: SupportedLanguage = SupportedLanguage.ENGLISH

    @property
    def needs_translation(self) -> bool:
        """Return whether source and target languages differ."""

        return self.source_language != self.target_language

    def page_numbers(self) -> range:
        """Return requested 1-based page numbers in order."""

        start, end = self.page_range
        return range(start, end + 1)

    def validate(self) -> None:
        """Validate request fields that do not depend on the document content."""

        if not self.document_bytes:
            raise InvalidRequest("Document is empty.")
        if not isinstance(self.page_range, tuple) or len(self.page_range) != 2:
            raise InvalidRequest("Page range must contain a start and an end page.")
        start, end = self.page_range
        if isinstance(start, bool) or isinstance(end, bool):
            raise InvalidRequest("Page range bounds must be integers.")
        if not isinstance(start, int) or not isinstance(end, int):
            raise InvalidRequest("Page range bounds must be integers.")
        if start < 1:
            raise InvalidRequest(f"Start page must be 1 or greater, got {start}.")
        if start > end:
            raise InvalidRequest(
                f"Start page {start} is after end page {end}.",
                hint="Pass the range as `start-end` with start <= end.",
            )
        if not isinstance(self.crop_margins, CropMargins):
            raise InvalidRequest(
                f"Crop margins must be a `CropMargins` value, got `{self.crop_margins!r}`.",
                hint="Build margins with `CropMargins(top=..., bottom=...)`.",
            )
        for name, value in (("top", self.crop_margins.top), ("bottom", self.crop_margins.bottom)):
            if (
                isinstance(value, bool)
                or not isinstance(value, (int, float))
                or not math.isfinite(value)
                or value < 0
            ):
                raise InvalidRequest(f"Crop margin `{name}` must be a non-negative number.")
        for name, language in (
            ("source_language", self.source_language),
            ("target_language", self.target_language),
        ):
            if not isinstance(language, SupportedLanguage):
                raise InvalidRequest(f"`{name}` must be a supported language, got `{language}`.")


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """One progress notification emitted by the orchestrator."""

    stage: PipelineStage
    percent_complete: float
    message: str


@dataclass(frozen=True, slots=True)
class ProcessedPage:
    """A cropped page handed from the renderer to the recognizer.

    Attributes:
        page_number: 1-based page number within the source document.
        media_type: `application/pdf` or `image/png`.
        data: Encoded page payload.
        width: Width of the kept region in rendered units.
        height: Height of the kept region in rendered units.
    """

    page_number: int
    media_type: str
    data: bytes
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class TextChunk:
    """A bounded, trimmed piece of recognized text."""

    index: int
    text: str


@dataclass(frozen=True, slots=True, eq=False)
class AudioSegment:
    """Synthesized audio for exactly one chunk.

    Attributes:
        samples: Mono float32 samples, nominally within [-1.0, 1.0].
        sample_rate: Samples per second.
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        """Normalize samples to a flat float32 array and check the sample rate."""

        if isinstance(self.sample_rate, bool) or int(self.sample_rate) <= 0:
            raise ValueError(f"Sample rate must be a positive integer, got {self.sample_rate}.")
        object.__setattr__(self, "sample_rate", int(self.sample_rate))
        object.__setattr__(
            self, "samples", np.asarray(self.samples, dtype=np.float32).reshape(-1)
        )

    @property
    def duration_seconds(self) -> float:
        """Return segment duration in seconds."""

        return len(self.samples) / float(self.sample_rate)


@dataclass(frozen=True, slots=True)
class AssembledAudio:
    """Final WAV container bytes plus descriptive metadata."""

    data: bytes
    sample_rate: int
    sample_count: int

    @property
    def duration_seconds(self) -> float:
        """Return playback duration in seconds."""

        return self.sample_count / float(self.sample_rate)


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """Terminal outcome of one submitted request.

    Attributes:
        stage: `PipelineStage.COMPLETE` or `PipelineStage.FAILED`.
        events: Ordered progress events emitted for the request.
        audio: Assembled audio on success.
        output_path: Persisted audio path when a storage collaborator is configured.
        chunks: Final (possibly translated) chunk texts on success.
        error: Human-readable failure message.
        detail: Failure detail without the stage prefix.
        failed_stage: Identifier of the stage that failed.
        hint: Optional remediation hint for a failure.
    """

    stage: PipelineStage
    events: tuple[ProgressEvent, ...]
    audio: AssembledAudio | None = None
    output_path: Path | None = None
    chunks: tuple[TextChunk, ...] = ()
    error: str | None = None
    detail: str | None = None
    failed_stage: str | None = None
    hint: str | None = None

    @property
    def succeeded(self) -> bool:
        """Return whether the request completed."""

        return self.stage is PipelineStage.COMPLETE
