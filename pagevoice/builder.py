"""Config-driven audiobook build facade.

Responsibilities:
- Read the input document and resolve page range and crop defaults from it.
- Build collaborators for the configured recognizer, translator and synthesizer.
- Run the orchestrator and raise a stage-scoped error when the run fails.
- Describe page geometry and crop preview offsets without running the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import PagevoiceConfig
from .errors import PipelineStageError
from .io.geometry import CropOverlay, PageGeometry, PageGeometryMapper
from .io.page_renderers import PageRenderError, PageRenderer
from .io.storage import ArtifactStore
from .models.datatypes import AudiobookRequest, CropMargins, PipelineResult
from .parsing import parse_page_range
from .pipeline.orchestrator import StageOrchestrator
from .pipeline.progress import ProgressCallback
from .provider_factory import ProviderFactory
from .telemetry.logger import RunLogger
from .text.chunking import TextChunker


@dataclass(frozen=True, slots=True)
class PageInspection:
    """Geometry summary of one page under a crop selection."""

    page_count: int
    page_number: int
    width: float
    height: float
    margins: CropMargins
    remaining_height: float
    overlay: CropOverlay


class AudiobookBuilder:
    """Turn a `PagevoiceConfig` into a finished audiobook file."""

    def __init__(
        self,
        factory: ProviderFactory | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        self._factory = factory if factory is not None else ProviderFactory()
        self._run_logger = run_logger

    def build(
        self,
        config: PagevoiceConfig,
        on_progress: ProgressCallback | None = None,
    ) -> PipelineResult:
        """Run the pipeline for `config` and return the completed result.

        Raises:
            PipelineStageError: If the input cannot be read or any stage fails.
        """

        config.validate()
        document = self._read_document(config.input_pdf)
        renderer = self._factory.create_renderer(config.recognizer, config.renderer_dpi)
        mapper = PageGeometryMapper(max_margin_fraction=config.max_margin_fraction)
        page_count = self._page_count(renderer, document)
        page_range = self._resolve_page_range(config, page_count)
        margins = self._resolve_margins(config, renderer, document, page_range[0], page_count)

        source, target = config.source, config.target
        translator = None
        if source != target:
            translator = self._factory.create_translator(
                config.translator, config.translate_model, config.ollama_base_url
            )
        synthesizer = self._factory.create_synthesizer(
            config.synthesizer,
            target,
            config.tts_model,
            api_key=config.resolved_api_key() if config.synthesizer == "openai" else None,
        )
        orchestrator = StageOrchestrator(
            renderer=renderer,
            recognizer=self._factory.create_recognizer(config.recognizer),
            synthesizer=synthesizer,
            translator=translator,
            storage=ArtifactStore(config.output_dir),
            chunker=TextChunker(config.chunk_size_chars),
            mapper=mapper,
            run_logger=self._run_logger,
            voice_id=config.resolved_voice(),
            output_name=config.output_name,
        )
        request = AudiobookRequest(
            document_bytes=document,
            page_range=page_range,
            crop_margins=margins,
            source_language=source,
            target_language=target,
        )
        result = orchestrator.submit(request, on_progress=on_progress)
        if not result.succeeded:
            raise PipelineStageError(
                result.detail or result.error or "Pipeline failed.",
                stage=result.failed_stage,
                hint=result.hint,
            )
        return result

    def inspect(self, config: PagevoiceConfig, page_number: int | None = None) -> PageInspection:
        """Describe a page and the effect of the configured crop margins on it."""

        document = self._read_document(config.input_pdf)
        renderer = self._factory.create_renderer("text-layer")
        page_count = self._page_count(renderer, document)
        if page_number is None:
            page_number = self._resolve_page_range(config, page_count)[0]
        if not 1 <= page_number <= page_count:
            raise PipelineStageError(
                f"Page {page_number} is outside the document (1-{page_count}).",
                stage="input",
            )
        margins = self._resolve_margins(config, renderer, document, page_number, page_count)
        width, height = renderer.page_size(document, page_number)
        mapper = PageGeometryMapper(max_margin_fraction=config.max_margin_fraction)
        geometry = PageGeometry(width=width, height=height)
        return PageInspection(
            page_count=page_count,
            page_number=page_number,
            width=width,
            height=height,
            margins=margins,
            remaining_height=mapper.remaining_height(margins, geometry),
            overlay=mapper.to_display(margins, width),
        )

    @staticmethod
    def _read_document(path: Path) -> bytes:
        """Read the input PDF bytes or raise an input-stage error."""

        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise PipelineStageError(
                f"Input PDF not found: `{path}`.",
                stage="input",
                hint="Pass an existing PDF path.",
            ) from exc
        except OSError as exc:
            raise PipelineStageError(f"Could not read `{path}`: {exc}", stage="input") from exc

    @staticmethod
    def _page_count(renderer: PageRenderer, document: bytes) -> int:
        """Return the document page count or raise an input-stage error."""

        try:
            return renderer.page_count(document)
        except PageRenderError as exc:
            raise PipelineStageError(
                str(exc), stage="input", hint="Check that the input is a valid PDF file."
            ) from exc

    @staticmethod
    def _resolve_page_range(config: PagevoiceConfig, page_count: int) -> tuple[int, int]:
        """Return the configured page range, or every page when none is set."""

        if config.page_range is None:
            return 1, max(1, page_count)
        try:
            return parse_page_range(config.page_range)
        except ValueError as exc:
            raise PipelineStageError(str(exc), stage="config") from exc

    @staticmethod
    def _resolve_margins(
        config: PagevoiceConfig,
        renderer: PageRenderer,
        document: bytes,
        page_number: int,
        page_count: int,
    ) -> CropMargins:
        """Fill unset margins with the default fraction of the reference page height."""

        if config.crop_top is not None and config.crop_bottom is not None:
            return CropMargins(top=float(config.crop_top), bottom=float(config.crop_bottom))
        reference_page = min(max(1, page_number), max(1, page_count))
        try:
            _, height = renderer.page_size(document, reference_page)
        except PageRenderError as exc:
            raise PipelineStageError(str(exc), stage="input") from exc
        defaults = PageGeometryMapper.default_margins(height)
        return CropMargins(
            top=float(config.crop_top) if config.crop_top is not None else defaults.top,
            bottom=float(config.crop_bottom) if config.crop_bottom is not None else defaults.bottom,
        )
