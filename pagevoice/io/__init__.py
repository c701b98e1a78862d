"""Input/output stage components for pagevoice.

This package contains page rendering, text recognition, crop geometry, and
output storage collaborators used by the pipeline.
"""

from .geometry import CropOverlay, PageGeometry, PageGeometryMapper
from .page_renderers import PageRenderError, PdfPageCropper, PopplerPageRasterizer
from .recognizers import PdfTextLayerRecognizer, RecognitionError, TesseractRecognizer
from .storage import ArtifactStore

__all__ = [
    "ArtifactStore",
    "CropOverlay",
    "PageGeometry",
    "PageGeometryMapper",
    "PageRenderError",
    "PdfPageCropper",
    "PdfTextLayerRecognizer",
    "PopplerPageRasterizer",
    "RecognitionError",
    "TesseractRecognizer",
]
