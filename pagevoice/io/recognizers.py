"""Text recognition collaborators.

Responsibilities:
- Turn one processed page payload into raw text.
- Keep recognition free of cleanup; normalization runs once on the joined text.
"""

from __future__ import annotations

import io
from pathlib import Path
import tempfile
from typing import Protocol

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..languages import SupportedLanguage
from ..models.datatypes import ProcessedPage
from ..runtime_tools import ExternalToolError, run_tool
from .page_renderers import PDF_MEDIA_TYPE, PNG_MEDIA_TYPE

_BASELINE_TOLERANCE = 0.5


class RecognitionError(RuntimeError):
    """Raised when a page payload cannot be recognized."""


class TextRecognizer(Protocol):
    """Protocol for page text recognizers."""

    def recognize(self, page: ProcessedPage, language: SupportedLanguage) -> str:
        """Return the raw text found on a processed page."""


class PdfTextLayerRecognizer:
    """Read the embedded text layer of a cropped single-page PDF."""

    def recognize(self, page: ProcessedPage, language: SupportedLanguage) -> str:
        """Extract text whose baseline falls inside the page crop box.

        The language hint is unused; the text layer is already encoded text.
        """

        if page.media_type != PDF_MEDIA_TYPE:
            raise RecognitionError(
                f"Text-layer recognition needs `{PDF_MEDIA_TYPE}`, got `{page.media_type}`."
            )
        try:
            pdf_page = PdfReader(io.BytesIO(page.data)).pages[0]
        except (PdfReadError, ValueError, KeyError, IndexError) as exc:
            raise RecognitionError(
                f"Could not read page {page.page_number}: {exc}"
            ) from exc

        box = pdf_page.cropbox
        lower, upper = float(box.bottom), float(box.top)
        fragments: list[str] = []
        last_baseline: list[float] = []

        def visit(text, cm, tm, font_dict, font_size) -> None:
            if not text:
                return
            baseline = tm[4] * cm[1] + tm[5] * cm[3] + cm[5]
            if not lower <= baseline <= upper:
                return
            if last_baseline and abs(last_baseline[0] - baseline) > _BASELINE_TOLERANCE:
                fragments.append("\n")
            fragments.append(text)
            last_baseline[:] = [baseline]

        pdf_page.extract_text(visitor_text=visit)
        return "".join(fragments)


class TesseractRecognizer:
    """Run the `tesseract` OCR tool against a rasterized page."""

    def recognize(self, page: ProcessedPage, language: SupportedLanguage) -> str:
        """OCR a PNG page with the language's Tesseract model."""

        if page.media_type != PNG_MEDIA_TYPE:
            raise RecognitionError(
                f"OCR needs `{PNG_MEDIA_TYPE}` input, got `{page.media_type}`."
            )
        with tempfile.TemporaryDirectory(prefix="pagevoice_ocr_") as work_dir:
            image_path = Path(work_dir) / f"page-{page.page_number}.png"
            image_path.write_bytes(page.data)
            try:
                result = run_tool(
                    [
                        "tesseract",
                        str(image_path),
                        "stdout",
                        "-l",
                        language.tesseract_code,
                    ]
                )
            except ExternalToolError as exc:
                raise RecognitionError(str(exc)) from exc
        return result.stdout.replace("\f", "\n")
