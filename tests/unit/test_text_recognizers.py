"""Unit tests for text-layer and OCR recognizers."""

from __future__ import annotations

import subprocess

import pytest

from pagevoice.io.page_renderers import PdfPageCropper
from pagevoice.io.recognizers import (
    PdfTextLayerRecognizer,
    RecognitionError,
    TesseractRecognizer,
)
from pagevoice.languages import SupportedLanguage
from pagevoice.models.datatypes import ProcessedPage
from pagevoice.runtime_tools import ExternalToolError
from pagevoice.text.cleaners import TextCleaner
from tests.pdf_factory import book_page, build_pdf


def _png_page(page_number: int = 1) -> ProcessedPage:
    return ProcessedPage(
        page_number=page_number,
        media_type="image/png",
        data=b"\x89PNG fake",
        width=100.0,
        height=100.0,
    )


def test_text_layer_drops_text_outside_crop_band() -> None:
    """Only lines whose baseline lies inside the crop box are recognized."""

    document = build_pdf(
        [book_page("Running Header", ["First body line.", "Second body line."], "Footer 7")]
    )
    page = PdfPageCropper().render(document, 1, crop_top=50, crop_bottom=50)

    text = PdfTextLayerRecognizer().recognize(page, SupportedLanguage.ENGLISH)

    assert "First body line." in text
    assert "Second body line." in text
    assert "Running Header" not in text
    assert "Footer 7" not in text
    assert TextCleaner().clean(text) == "First body line. Second body line."


def test_text_layer_keeps_everything_without_margins() -> None:
    """Zero margins keep headers and footers too."""

    document = build_pdf([book_page("Running Header", ["Body."], "Footer 7")])
    page = PdfPageCropper().render(document, 1, crop_top=0, crop_bottom=0)

    text = PdfTextLayerRecognizer().recognize(page, SupportedLanguage.ENGLISH)

    assert "Running Header" in text
    assert "Footer 7" in text


def test_text_layer_requires_pdf_payload() -> None:
    """Raster pages cannot be read by the text-layer recognizer."""

    with pytest.raises(RecognitionError, match="application/pdf"):
        PdfTextLayerRecognizer().recognize(_png_page(), SupportedLanguage.ENGLISH)


def test_tesseract_runs_with_language_model(monkeypatch: pytest.MonkeyPatch) -> None:
    """OCR passes the language's Tesseract code and normalizes form feeds."""

    captured: list[list[str]] = []

    def fake_run_tool(arguments: list[str], **_: object) -> subprocess.CompletedProcess:
        captured.append(arguments)
        return subprocess.CompletedProcess(arguments, 0, stdout="Bonjour\fle monde", stderr="")

    monkeypatch.setattr("pagevoice.io.recognizers.run_tool", fake_run_tool)

    text = TesseractRecognizer().recognize(_png_page(3), SupportedLanguage.FRENCH)

    assert text == "Bonjour\nle monde"
    arguments = captured[0]
    assert arguments[0] == "tesseract"
    assert arguments[1].endswith("page-3.png")
    assert arguments[2:] == ["stdout", "-l", "fra"]


def test_tesseract_failure_becomes_recognition_error(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tool failures surface as recognition errors."""

    def failing_tool(arguments: list[str], **_: object) -> subprocess.CompletedProcess:
        raise ExternalToolError("tesseract failed: missing traineddata")

    monkeypatch.setattr("pagevoice.io.recognizers.run_tool", failing_tool)

    with pytest.raises(RecognitionError, match="traineddata"):
        TesseractRecognizer().recognize(_png_page(), SupportedLanguage.HINDI)


def test_tesseract_requires_png_payload() -> None:
    """PDF payloads must be rasterized before OCR."""

    page = ProcessedPage(
        page_number=1, media_type="application/pdf", data=b"%PDF", width=1.0, height=1.0
    )

    with pytest.raises(RecognitionError, match="image/png"):
        TesseractRecognizer().recognize(page, SupportedLanguage.ENGLISH)
