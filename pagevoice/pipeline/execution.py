"""Core stage execution helpers for the pagevoice pipeline.

Responsibilities:
- Render and crop the requested pages.
- Recognize, clean, and chunk page text.
- Drive chunks through optional translation and mandatory synthesis.
- Assemble synthesized segments and persist the finished audio.

Every helper runs sequentially and checks the cancel flag between units of work.
"""

from __future__ import annotations

from pathlib import Path

from ..audio.encoder import AudioFrameEncoder
from ..errors import CollaboratorFailure, InvalidRequest
from ..io.geometry import PageGeometry, PageGeometryMapper
from ..io.page_renderers import PageRenderer
from ..io.recognizers import TextRecognizer
from ..io.storage import ArtifactStore
from ..models.datatypes import (
    AssembledAudio,
    AudiobookRequest,
    AudioSegment,
    PipelineStage,
    ProcessedPage,
    TextChunk,
)
from ..providers.translator import Translator
from ..telemetry.logger import RunLogger
from ..text.chunking import TextChunker
from ..text.cleaners import TextCleaner
from ..tts.synthesizer import Synthesizer
from .progress import ProgressTracker


class PipelineExecutionMixin:
    """Provide stage-level pipeline helper methods."""

    _renderer: PageRenderer
    _recognizer: TextRecognizer
    _translator: Translator | None
    _synthesizer: Synthesizer
    _storage: ArtifactStore | None
    _chunker: TextChunker
    _cleaner: TextCleaner
    _encoder: AudioFrameEncoder
    _mapper: PageGeometryMapper
    _run_logger: RunLogger | None
    voice_id: str
    output_name: str

    def _validate_request(self, request: AudiobookRequest) -> None:
        """Reject requests that cannot run before any collaborator is called."""

        request.validate()
        if request.needs_translation and self._translator is None:
            raise InvalidRequest(
                f"Translating {request.source_language.value} to "
                f"{request.target_language.value} needs a translator, but none is configured.",
                hint="Configure a translator or use the same source and target language.",
            )

    def _extract_pages(
        self, request: AudiobookRequest, tracker: ProgressTracker
    ) -> list[ProcessedPage]:
        """Render one cropped page per requested page that exists in the document."""

        stage = PipelineStage.EXTRACTING_PAGES
        tracker.emit(stage, "Cropping PDF pages...")
        document = request.document_bytes
        page_count = self._renderer.page_count(document)

        page_numbers: list[int] = []
        for page_number in request.page_numbers():
            if page_number > page_count:
                if self._run_logger is not None:
                    self._run_logger.log_page_dropped(page_number, page_count)
                continue
            page_numbers.append(page_number)

        pages: list[ProcessedPage] = []
        for done, page_number in enumerate(page_numbers, start=1):
            self._checkpoint(stage)
            width, height = self._renderer.page_size(document, page_number)
            geometry = PageGeometry(width=width, height=height, scale=self._renderer.render_scale)
            rendered = self._mapper.to_rendered(request.crop_margins, geometry)
            pages.append(
                self._renderer.render(document, page_number, rendered.top, rendered.bottom)
            )
            self._on_unit_complete(stage, done, len(page_numbers))
            tracker.emit(
                stage,
                f"Cropped page {page_number} ({done}/{len(page_numbers)})",
                done,
                len(page_numbers),
            )
        return pages

    def _recognize(
        self,
        request: AudiobookRequest,
        pages: list[ProcessedPage],
        tracker: ProgressTracker,
    ) -> list[TextChunk]:
        """Recognize every page, clean the joined text once, and chunk it."""

        stage = PipelineStage.RECOGNIZING_TEXT
        tracker.emit(stage, "Extracting text...")
        texts: list[str] = []
        for done, page in enumerate(pages, start=1):
            self._checkpoint(stage)
            texts.append(self._recognizer.recognize(page, request.source_language))
            self._on_unit_complete(stage, done, len(pages))
            tracker.emit(
                stage,
                f"Extracting text... ({done}/{len(pages)})",
                done,
                len(pages),
            )
        cleaned = self._cleaner.clean("\n".join(texts))
        return self._chunker.split(cleaned)

    def _translate(
        self,
        request: AudiobookRequest,
        chunks: list[TextChunk],
        tracker: ProgressTracker,
    ) -> list[TextChunk]:
        """Replace each chunk's text with its translation, preserving order."""

        stage = PipelineStage.TRANSLATING
        translator = self._translator
        if translator is None:
            raise InvalidRequest("No translator is configured.", stage=stage.value)
        tracker.emit(stage, "Translating...")
        translated: list[TextChunk] = []
        for done, chunk in enumerate(chunks, start=1):
            self._checkpoint(stage)
            text = translator.translate(
                request.source_language, request.target_language, chunk.text
            )
            translated.append(TextChunk(index=chunk.index, text=text))
            self._on_unit_complete(stage, done, len(chunks))
            tracker.emit(
                stage,
                f"Translating... ({done}/{len(chunks)})",
                done,
                len(chunks),
            )
        return translated

    def _synthesize(
        self, chunks: list[TextChunk], tracker: ProgressTracker
    ) -> list[AudioSegment]:
        """Synthesize exactly one segment per chunk, in chunk order."""

        stage = PipelineStage.SYNTHESIZING
        tracker.emit(stage, "Generating speech...")
        segments: list[AudioSegment] = []
        for done, chunk in enumerate(chunks, start=1):
            self._checkpoint(stage)
            segment = self._synthesizer.synthesize(chunk.text, self.voice_id)
            if not isinstance(segment, AudioSegment):
                raise CollaboratorFailure(
                    f"Synthesizer returned {type(segment).__name__} for chunk {chunk.index}.",
                    stage=stage.value,
                )
            if len(segment.samples) == 0:
                raise CollaboratorFailure(
                    f"Synthesizer returned no samples for chunk {chunk.index}.",
                    stage=stage.value,
                )
            segments.append(segment)
            self._on_unit_complete(stage, done, len(chunks))
            tracker.emit(
                stage,
                f"Generating speech... ({done}/{len(chunks)})",
                done,
                len(chunks),
            )
        return segments

    def _assemble(
        self, segments: list[AudioSegment], tracker: ProgressTracker
    ) -> tuple[AssembledAudio, Path | None]:
        """Encode all segments into one WAV payload and persist it when storage is set."""

        stage = PipelineStage.ASSEMBLING
        tracker.emit(stage, "Combining audio chunks...")
        self._checkpoint(stage)
        audio = self._encoder.encode(segments)
        output_path = None
        if self._storage is not None:
            output_path = self._storage.persist(audio.data, self.output_name)
        tracker.emit(stage, "Audio assembled.", 1, 1)
        return audio, output_path
