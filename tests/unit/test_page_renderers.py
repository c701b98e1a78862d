"""Unit tests for PDF page cropping and rasterization."""

from __future__ import annotations

import io
from pathlib import Path
import subprocess

from pypdf import PdfReader
import pytest

from pagevoice.io.page_renderers import (
    PDF_MEDIA_TYPE,
    PNG_MEDIA_TYPE,
    PageRenderError,
    PdfPageCropper,
    PopplerPageRasterizer,
)
from pagevoice.runtime_tools import ExternalToolError


def test_cropper_reports_page_count_and_size(two_page_book_pdf: bytes) -> None:
    """Page count and crop-box size come straight from the document."""

    cropper = PdfPageCropper()

    assert cropper.page_count(two_page_book_pdf) == 2
    assert cropper.page_size(two_page_book_pdf, 2) == (595.0, 842.0)
    assert cropper.render_scale == 1.0


def test_cropper_shrinks_crop_box_by_margins(two_page_book_pdf: bytes) -> None:
    """The rendered page keeps the band between the header and footer margins."""

    page = PdfPageCropper().render(two_page_book_pdf, 1, crop_top=50, crop_bottom=60)

    assert page.page_number == 1
    assert page.media_type == PDF_MEDIA_TYPE
    assert page.width == 595.0
    assert page.height == 842.0 - 110.0
    cropped = PdfReader(io.BytesIO(page.data))
    assert len(cropped.pages) == 1
    box = cropped.pages[0].cropbox
    assert float(box.bottom) == 60.0
    assert float(box.top) == 792.0


def test_cropper_rejects_pages_outside_document(two_page_book_pdf: bytes) -> None:
    """Asking for a page past the end is a render error."""

    with pytest.raises(PageRenderError, match="outside the document"):
        PdfPageCropper().render(two_page_book_pdf, 3, crop_top=0, crop_bottom=0)


def test_cropper_rejects_crop_without_content(two_page_book_pdf: bytes) -> None:
    """Margins that meet in the middle leave nothing to render."""

    with pytest.raises(PageRenderError, match="no content"):
        PdfPageCropper().render(two_page_book_pdf, 1, crop_top=500, crop_bottom=400)


def test_cropper_rejects_undecodable_document() -> None:
    """Bytes that are not a PDF raise a render error."""

    with pytest.raises(PageRenderError, match="Could not decode"):
        PdfPageCropper().page_count(b"definitely not a pdf")


def test_rasterizer_invokes_pdftoppm_with_pixel_crop(
    two_page_book_pdf: bytes, monkeypatch: pytest.MonkeyPatch
) -> None:
    """The rasterizer renders one page and crops in device pixels."""

    captured: list[list[str]] = []

    def fake_run_tool(arguments: list[str], **_: object) -> subprocess.CompletedProcess:
        captured.append(arguments)
        Path(f"{arguments[-1]}.png").write_bytes(b"\x89PNG fake")
        return subprocess.CompletedProcess(arguments, 0, stdout="", stderr="")

    monkeypatch.setattr("pagevoice.io.page_renderers.run_tool", fake_run_tool)
    rasterizer = PopplerPageRasterizer(dpi=144)

    page = rasterizer.render(two_page_book_pdf, 2, crop_top=100, crop_bottom=100)

    assert rasterizer.render_scale == 2.0
    assert page.media_type == PNG_MEDIA_TYPE
    assert page.data == b"\x89PNG fake"
    assert page.width == 1190.0
    assert page.height == 1684.0 - 200.0
    arguments = captured[0]
    assert arguments[0] == "pdftoppm"
    assert arguments[arguments.index("-f") + 1] == "2"
    assert arguments[arguments.index("-r") + 1] == "144"
    assert arguments[arguments.index("-y") + 1] == "100"
    assert arguments[arguments.index("-H") + 1] == "1484"


def test_rasterizer_reports_missing_tool(
    two_page_book_pdf: bytes, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A missing `pdftoppm` becomes a render error."""

    def missing_tool(arguments: list[str], **_: object) -> subprocess.CompletedProcess:
        raise ExternalToolError("The `pdftoppm` command is required but was not found.", missing=True)

    monkeypatch.setattr("pagevoice.io.page_renderers.run_tool", missing_tool)

    with pytest.raises(PageRenderError, match="pdftoppm"):
        PopplerPageRasterizer().render(two_page_book_pdf, 1, crop_top=0, crop_bottom=0)


def test_rasterizer_rejects_non_positive_dpi() -> None:
    """DPI must be positive."""

    with pytest.raises(ValueError):
        PopplerPageRasterizer(dpi=0)
