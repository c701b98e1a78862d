"""Page rendering and cropping collaborators.

Responsibilities:
- Report page count and page size for a PDF document held in memory.
- Produce one cropped page payload per requested page for the recognizer.

Both renderers receive crop margins that are already scaled to their own
`render_scale` (see `PageGeometryMapper`).
"""

from __future__ import annotations

import io
from pathlib import Path
import tempfile
from typing import Protocol

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from pypdf.generic import RectangleObject

from ..models.datatypes import ProcessedPage
from ..runtime_tools import ExternalToolError, run_tool

PDF_MEDIA_TYPE = "application/pdf"
PNG_MEDIA_TYPE = "image/png"
POINTS_PER_INCH = 72.0


class PageRenderError(RuntimeError):
    """Raised when a document cannot be decoded or a page cannot be rendered."""


class PageRenderer(Protocol):
    """Protocol for page render/crop collaborators."""

    render_scale: float

    def page_count(self, document: bytes) -> int:
        """Return the number of pages in the document."""

    def page_size(self, document: bytes, page_number: int) -> tuple[float, float]:
        """Return `(width, height)` of a 1-based page in source units."""

    def render(
        self, document: bytes, page_number: int, crop_top: float, crop_bottom: float
    ) -> ProcessedPage:
        """Return the cropped page payload for recognition."""


class PdfPageCropper:
    """Crop pages by shrinking their PDF crop box; output stays vector PDF."""

    render_scale = 1.0

    def __init__(self) -> None:
        """Initialize an empty single-document reader cache."""

        self._cached_document: bytes | None = None
        self._cached_reader: PdfReader | None = None

    def page_count(self, document: bytes) -> int:
        """Return the number of pages in the document."""

        return len(self._reader(document).pages)

    def page_size(self, document: bytes, page_number: int) -> tuple[float, float]:
        """Return crop-box width and height of a 1-based page in points."""

        box = self._page(document, page_number).cropbox
        return float(box.width), float(box.height)

    def render(
        self, document: bytes, page_number: int, crop_top: float, crop_bottom: float
    ) -> ProcessedPage:
        """Copy one page into a new PDF with header/footer bands cropped away."""

        page = self._page(document, page_number)
        writer = PdfWriter()
        copied = writer.add_page(page)
        box = copied.cropbox
        left, bottom = float(box.left), float(box.bottom)
        right, top = float(box.right), float(box.top)
        kept_bottom = bottom + crop_bottom
        kept_top = top - crop_top
        if kept_top <= kept_bottom:
            raise PageRenderError(
                f"Crop leaves no content on page {page_number}."
            )
        copied.cropbox = RectangleObject((left, kept_bottom, right, kept_top))

        output = io.BytesIO()
        writer.write(output)
        return ProcessedPage(
            page_number=page_number,
            media_type=PDF_MEDIA_TYPE,
            data=output.getvalue(),
            width=right - left,
            height=kept_top - kept_bottom,
        )

    def _page(self, document: bytes, page_number: int):
        """Return a 1-based page object or raise a render error."""

        reader = self._reader(document)
        if not 1 <= page_number <= len(reader.pages):
            raise PageRenderError(
                f"Page {page_number} is outside the document (1-{len(reader.pages)})."
            )
        return reader.pages[page_number - 1]

    def _reader(self, document: bytes) -> PdfReader:
        """Decode the document, reusing the reader for repeated calls."""

        if self._cached_reader is not None and self._cached_document == document:
            return self._cached_reader
        try:
            reader = PdfReader(io.BytesIO(document))
            _ = len(reader.pages)
        except (PdfReadError, ValueError, KeyError, TypeError) as exc:
            raise PageRenderError(f"Could not decode PDF document: {exc}") from exc
        self._cached_document = document
        self._cached_reader = reader
        return reader


class PopplerPageRasterizer(PdfPageCropper):
    """Rasterize pages to PNG with `pdftoppm`, cropping in device pixels."""

    def __init__(self, dpi: int = 150) -> None:
        """Initialize rasterization resolution in dots per inch."""

        super().__init__()
        if dpi <= 0:
            raise ValueError("`dpi` must be a positive integer.")
        self.dpi = dpi
        self.render_scale = dpi / POINTS_PER_INCH

    def render(
        self, document: bytes, page_number: int, crop_top: float, crop_bottom: float
    ) -> ProcessedPage:
        """Render one page at `dpi` and keep the band between the margins."""

        width, height = self.page_size(document, page_number)
        pixel_width = int(round(width * self.render_scale))
        pixel_height = int(round(height * self.render_scale))
        offset_y = int(round(crop_top))
        kept_height = pixel_height - offset_y - int(round(crop_bottom))
        if kept_height <= 0:
            raise PageRenderError(f"Crop leaves no content on page {page_number}.")

        with tempfile.TemporaryDirectory(prefix="pagevoice_") as work_dir:
            source_path = Path(work_dir) / "document.pdf"
            source_path.write_bytes(document)
            output_stem = Path(work_dir) / "page"
            try:
                run_tool(
                    [
                        "pdftoppm",
                        "-f", str(page_number),
                        "-l", str(page_number),
                        "-r", str(self.dpi),
                        "-cropbox",
                        "-x", "0",
                        "-y", str(offset_y),
                        "-W", str(pixel_width),
                        "-H", str(kept_height),
                        "-png",
                        "-singlefile",
                        str(source_path),
                        str(output_stem),
                    ]
                )
            except ExternalToolError as exc:
                raise PageRenderError(str(exc)) from exc
            image = output_stem.with_suffix(".png").read_bytes()

        return ProcessedPage(
            page_number=page_number,
            media_type=PNG_MEDIA_TYPE,
            data=image,
            width=float(pixel_width),
            height=float(kept_height),
        )
