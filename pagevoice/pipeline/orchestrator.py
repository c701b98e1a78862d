"""Pipeline orchestration for pagevoice.

Responsibilities:
- Sequence extract -> recognize -> [translate] -> synthesize -> assemble for one request.
- Own the request's stage and progress stream and turn any stage error into `Failed`.
- Reject overlapping submissions and honor cooperative cancellation.

Key types:
- `StageOrchestrator`: single-request state machine facade.
"""

from __future__ import annotations

import threading

from ..audio.encoder import AudioFrameEncoder
from ..errors import AlreadyProcessing, PipelineStageError
from ..io.geometry import PageGeometryMapper
from ..io.page_renderers import PageRenderer
from ..io.recognizers import TextRecognizer
from ..io.storage import DEFAULT_OUTPUT_NAME, ArtifactStore
from ..models.datatypes import AudiobookRequest, PipelineResult, PipelineStage, stage_label
from ..providers.translator import Translator
from ..telemetry.logger import RunLogger
from ..text.chunking import TextChunker
from ..text.cleaners import TextCleaner
from ..tts.synthesizer import Synthesizer
from ..tts.voices import DEFAULT_VOICE_IDS
from .execution import PipelineExecutionMixin
from .progress import ProgressCallback, ProgressTracker
from .telemetry import PipelineTelemetryMixin


class StageOrchestrator(PipelineExecutionMixin, PipelineTelemetryMixin):
    """Run audiobook requests one at a time through the staged pipeline."""

    def __init__(
        self,
        renderer: PageRenderer,
        recognizer: TextRecognizer,
        synthesizer: Synthesizer,
        translator: Translator | None = None,
        storage: ArtifactStore | None = None,
        chunker: TextChunker | None = None,
        encoder: AudioFrameEncoder | None = None,
        mapper: PageGeometryMapper | None = None,
        cleaner: TextCleaner | None = None,
        run_logger: RunLogger | None = None,
        voice_id: str = DEFAULT_VOICE_IDS["kokoro"],
        output_name: str = DEFAULT_OUTPUT_NAME,
    ) -> None:
        """Initialize collaborators; omitted core components use defaults."""

        self._renderer = renderer
        self._recognizer = recognizer
        self._synthesizer = synthesizer
        self._translator = translator
        self._storage = storage
        self._chunker = chunker if chunker is not None else TextChunker()
        self._encoder = encoder if encoder is not None else AudioFrameEncoder()
        self._mapper = mapper if mapper is not None else PageGeometryMapper()
        self._cleaner = cleaner if cleaner is not None else TextCleaner()
        self._run_logger = run_logger
        self.voice_id = voice_id
        self.output_name = output_name

        self._lock = threading.Lock()
        self._cancel_requested = threading.Event()
        self._tracker: ProgressTracker | None = None

    @property
    def stage(self) -> PipelineStage:
        """Return the current stage of this orchestrator instance."""

        if self._tracker is None:
            return PipelineStage.IDLE
        return self._tracker.stage

    @property
    def is_processing(self) -> bool:
        """Return whether a request is in flight."""

        return self._lock.locked()

    def cancel(self) -> None:
        """Ask the in-flight request to stop at its next unit boundary.

        An in-flight collaborator call is never interrupted.
        """

        self._cancel_requested.set()

    def submit(
        self,
        request: AudiobookRequest,
        on_progress: ProgressCallback | None = None,
    ) -> PipelineResult:
        """Process one request to completion or failure.

        `on_progress` receives every event synchronously as it is emitted. If it
        raises, the error is logged, the callback is detached for the rest of
        the request, and processing continues.

        Raises:
            AlreadyProcessing: If another request is still in flight.
        """

        if not self._lock.acquire(blocking=False):
            raise AlreadyProcessing(
                "A request is already being processed.",
                hint="Wait for the current request to finish, then resubmit.",
            )
        try:
            self._cancel_requested.clear()
            tracker = ProgressTracker(on_progress, on_callback_error=self._on_callback_error)
            self._tracker = tracker
            try:
                return self._execute(request, tracker)
            except PipelineStageError as exc:
                return self._fail(exc, tracker)
        finally:
            self._lock.release()

    def _execute(self, request: AudiobookRequest, tracker: ProgressTracker) -> PipelineResult:
        """Run every stage in order and build the successful result."""

        self._validate_request(request)
        pages = self._run_stage(
            PipelineStage.EXTRACTING_PAGES,
            lambda: self._extract_pages(request, tracker),
        )
        chunks = self._run_stage(
            PipelineStage.RECOGNIZING_TEXT,
            lambda: self._recognize(request, pages, tracker),
        )
        if request.needs_translation and chunks:
            chunks = self._run_stage(
                PipelineStage.TRANSLATING,
                lambda: self._translate(request, chunks, tracker),
            )
        segments = self._run_stage(
            PipelineStage.SYNTHESIZING,
            lambda: self._synthesize(chunks, tracker),
        )
        audio, output_path = self._run_stage(
            PipelineStage.ASSEMBLING,
            lambda: self._assemble(segments, tracker),
        )

        start, end = request.page_range
        tracker.emit(
            PipelineStage.COMPLETE,
            f"Audiobook generated successfully! Pages {start}-{end} processed.",
        )
        if self._run_logger is not None:
            self._run_logger.log_run_result(
                "complete",
                chunks=len(chunks),
                samples=audio.sample_count,
                sample_rate=audio.sample_rate,
            )
        return PipelineResult(
            stage=PipelineStage.COMPLETE,
            events=tracker.events,
            audio=audio,
            output_path=output_path,
            chunks=tuple(chunks),
        )

    def _fail(self, exc: PipelineStageError, tracker: ProgressTracker) -> PipelineResult:
        """Emit the terminal failure event and build a result without partial output."""

        message = f"{stage_label(exc.stage)} failed: {exc.detail}"
        tracker.emit(PipelineStage.FAILED, message)
        if self._run_logger is not None:
            self._run_logger.log_run_result(
                "failed", failed_stage=exc.stage, error_type=type(exc).__name__
            )
        return PipelineResult(
            stage=PipelineStage.FAILED,
            events=tracker.events,
            error=message,
            detail=exc.detail,
            failed_stage=exc.stage,
            hint=exc.hint,
        )

