"""Unit tests for the config-driven audiobook builder."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any
import wave

import pytest

from pagevoice.builder import AudiobookBuilder
from pagevoice.config import PagevoiceConfig, RuntimeConfigSources
from pagevoice.errors import PipelineStageError
from pagevoice.languages import SupportedLanguage
from pagevoice.models.datatypes import CropMargins, PipelineStage, ProgressEvent
from pagevoice.provider_factory import ProviderFactory
from pagevoice.providers.clients import ProviderError
from tests.fakes import FailingCollaborator, FakeSynthesizer, FakeTranslator
from tests.pdf_factory import book_page, build_pdf


@pytest.fixture
def book_path(tmp_path: Path, two_page_book_pdf: bytes) -> Path:
    """Write the two-page fixture PDF to disk."""

    path = tmp_path / "book.pdf"
    path.write_bytes(two_page_book_pdf)
    return path


@pytest.fixture
def fake_synthesizer(monkeypatch: pytest.MonkeyPatch) -> FakeSynthesizer:
    """Replace the configured synthesizer with an in-memory tone generator."""

    synthesizer = FakeSynthesizer(sample_rate=24000, samples_per_char=4)
    monkeypatch.setattr(
        ProviderFactory,
        "create_synthesizer",
        staticmethod(lambda *args, **kwargs: synthesizer),
    )
    return synthesizer


def test_build_crops_headers_and_writes_wav(
    book_path: Path, tmp_path: Path, fake_synthesizer: FakeSynthesizer
) -> None:
    """Default margins remove running headers and footers before narration."""

    events: list[ProgressEvent] = []
    config = PagevoiceConfig(input_pdf=book_path, output_dir=tmp_path / "out")

    result = AudiobookBuilder().build(config, on_progress=events.append)

    assert [chunk.text for chunk in result.chunks] == ["Page one text. Page two text."]
    assert fake_synthesizer.calls == [("Page one text. Page two text.", "af_bella")]
    assert result.output_path == tmp_path / "out" / "audiobook.wav"
    with wave.open(io.BytesIO(result.output_path.read_bytes()), "rb") as wav_file:
        assert wav_file.getframerate() == 24000
        assert wav_file.getnframes() == len("Page one text. Page two text.") * 4
    assert events[-1].stage is PipelineStage.COMPLETE
    assert events[-1].message == "Audiobook generated successfully! Pages 1-2 processed."


def test_build_honours_page_range_and_output_name(
    book_path: Path, tmp_path: Path, fake_synthesizer: FakeSynthesizer
) -> None:
    """Only the configured pages are narrated into the configured file."""

    config = PagevoiceConfig(
        input_pdf=book_path,
        output_dir=tmp_path / "out",
        output_name="second.wav",
        page_range="2",
        crop_top=50,
        crop_bottom=50,
    )

    result = AudiobookBuilder().build(config)

    assert [chunk.text for chunk in result.chunks] == ["Page two text."]
    assert result.output_path == tmp_path / "out" / "second.wav"


def test_build_translates_when_languages_differ(
    book_path: Path,
    tmp_path: Path,
    fake_synthesizer: FakeSynthesizer,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A differing target language wires a translator into the run."""

    translator = FakeTranslator()
    created: list[tuple[Any, ...]] = []

    def create_translator(*args: Any) -> FakeTranslator:
        created.append(args)
        return translator

    monkeypatch.setattr(ProviderFactory, "create_translator", staticmethod(create_translator))
    config = PagevoiceConfig(
        input_pdf=book_path,
        output_dir=tmp_path / "out",
        source_language="English",
        target_language="Portuguese",
    )

    result = AudiobookBuilder().build(config)

    assert created == [("ollama", "qwen3:14b", "http://localhost:11434")]
    assert translator.calls[0][1] is SupportedLanguage.PORTUGUESE
    assert result.chunks[0].text.startswith("[Portuguese] ")


def test_build_passes_resolved_api_key_to_openai(
    book_path: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """The OpenAI synthesizer receives the highest-precedence API key."""

    received: list[dict[str, Any]] = []

    def create_synthesizer(provider_id: str, language: SupportedLanguage, model: str, **kwargs: Any):
        received.append({"provider_id": provider_id, "language": language, **kwargs})
        return FakeSynthesizer()

    monkeypatch.setattr(ProviderFactory, "create_synthesizer", staticmethod(create_synthesizer))
    config = PagevoiceConfig(
        input_pdf=book_path,
        output_dir=tmp_path / "out",
        synthesizer="openai",
        api_key="file-key",
        runtime_sources=RuntimeConfigSources(secure={"api_key": "stored-key"}),
    )

    result = AudiobookBuilder().build(config)

    assert received == [
        {"provider_id": "openai", "language": SupportedLanguage.ENGLISH, "api_key": "stored-key"}
    ]
    assert result.chunks


def test_build_raises_stage_error_on_pipeline_failure(
    book_path: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Failed runs surface as a stage error with the provider hint."""

    failing = FailingCollaborator(ProviderError("auth failed", failure_kind="invalid_api_key"))
    monkeypatch.setattr(
        ProviderFactory, "create_synthesizer", staticmethod(lambda *args, **kwargs: failing)
    )
    config = PagevoiceConfig(input_pdf=book_path, output_dir=tmp_path / "out")

    with pytest.raises(PipelineStageError) as exc_info:
        AudiobookBuilder().build(config)

    assert exc_info.value.stage == "synthesizing"
    assert exc_info.value.detail == "auth failed"
    assert "credentials" in (exc_info.value.hint or "")
    assert not (tmp_path / "out" / "audiobook.wav").exists()


def test_build_reports_missing_input(tmp_path: Path) -> None:
    """A missing PDF is an input-stage error with a hint."""

    config = PagevoiceConfig(input_pdf=tmp_path / "missing.pdf", output_dir=tmp_path / "out")

    with pytest.raises(PipelineStageError) as exc_info:
        AudiobookBuilder().build(config)

    assert exc_info.value.stage == "input"
    assert exc_info.value.hint


def test_build_reports_undecodable_input(tmp_path: Path) -> None:
    """A file that is not a PDF is an input-stage error."""

    path = tmp_path / "notes.pdf"
    path.write_text("plain text", encoding="utf-8")

    with pytest.raises(PipelineStageError) as exc_info:
        AudiobookBuilder().build(PagevoiceConfig(input_pdf=path, output_dir=tmp_path))

    assert exc_info.value.stage == "input"


def test_inspect_reports_default_margins_and_overlay(book_path: Path) -> None:
    """Inspection uses 8% default margins and a 400px preview overlay."""

    inspection = AudiobookBuilder().inspect(PagevoiceConfig(input_pdf=book_path))

    assert inspection.page_count == 2
    assert inspection.page_number == 1
    assert (inspection.width, inspection.height) == (595.0, 842.0)
    assert inspection.margins == CropMargins(top=67, bottom=67)
    assert inspection.remaining_height == 842 - 134
    assert inspection.overlay.scale_factor == pytest.approx(400 / 595)
    assert inspection.overlay.top == pytest.approx(67 * 400 / 595)


def test_inspect_uses_explicit_margins_and_page(tmp_path: Path) -> None:
    """Explicit margins and page number override the defaults."""

    path = tmp_path / "letter.pdf"
    path.write_bytes(build_pdf([book_page("H", ["x"], "F")] * 3, width=612, height=792))

    inspection = AudiobookBuilder().inspect(
        PagevoiceConfig(input_pdf=path, crop_top=30, crop_bottom=0), page_number=3
    )

    assert inspection.page_number == 3
    assert inspection.margins == CropMargins(top=30, bottom=0)
    assert inspection.remaining_height == 762


def test_inspect_rejects_page_outside_document(book_path: Path) -> None:
    """Inspecting a page past the end is an input error."""

    with pytest.raises(PipelineStageError, match="outside the document"):
        AudiobookBuilder().inspect(PagevoiceConfig(input_pdf=book_path), page_number=9)
