"""Crop-margin geometry between source, rendered and display coordinates.

Responsibilities:
- Scale user crop margins from source page units to a renderer's resolution.
- Map margins back to source units and onto an on-screen preview overlay.
- Reject margins that would leave an empty or oversized crop.

Source units are page pixels at viewport scale 1.0, which equal PDF points.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

from ..errors import InvalidCropRegion
from ..models.datatypes import CropMargins

DEFAULT_MARGIN_FRACTION = 0.08
MAX_MARGIN_FRACTION = 0.4
DISPLAY_WIDTH_PX = 400.0


@dataclass(frozen=True, slots=True)
class PageGeometry:
    """Native page size in source units plus the renderer's scale factor."""

    width: float
    height: float
    scale: float = 1.0

    @property
    def rendered_width(self) -> float:
        """Return page width in rendered units."""

        return self.width * self.scale

    @property
    def rendered_height(self) -> float:
        """Return page height in rendered units."""

        return self.height * self.scale


@dataclass(frozen=True, slots=True)
class CropOverlay:
    """Header/footer band heights in display pixels for a crop preview."""

    top: float
    bottom: float
    scale_factor: float


class PageGeometryMapper:
    """Convert and validate crop margins across coordinate spaces."""

    def __init__(self, max_margin_fraction: float | None = MAX_MARGIN_FRACTION) -> None:
        """Initialize with the per-edge margin cap as a fraction of page height."""

        if max_margin_fraction is not None and not 0 < max_margin_fraction <= 1:
            raise ValueError("`max_margin_fraction` must be within (0, 1].")
        self.max_margin_fraction = max_margin_fraction

    def to_rendered(self, margins: CropMargins, geometry: PageGeometry) -> CropMargins:
        """Scale source-unit margins to rendered units and validate the result.

        Raises:
            InvalidCropRegion: If the scaled margins leave no page area or exceed the cap.
        """

        self._require_positive_geometry(geometry)
        rendered = margins.scaled(geometry.scale)
        self.validate(rendered, geometry.rendered_height)
        return rendered

    def to_source(self, margins: CropMargins, geometry: PageGeometry) -> CropMargins:
        """Map rendered-unit margins back to source units."""

        self._require_positive_geometry(geometry)
        return margins.scaled(1.0 / geometry.scale)

    def to_display(
        self,
        margins: CropMargins,
        source_width: float,
        display_width: float = DISPLAY_WIDTH_PX,
    ) -> CropOverlay:
        """Map source-unit margins onto a preview rendered `display_width` pixels wide."""

        if source_width <= 0 or display_width <= 0:
            raise ValueError("Page and display widths must be positive.")
        factor = display_width / source_width
        scaled = margins.scaled(factor)
        return CropOverlay(top=scaled.top, bottom=scaled.bottom, scale_factor=factor)

    def remaining_height(self, margins: CropMargins, geometry: PageGeometry) -> float:
        """Return the rendered height left for recognition after cropping."""

        rendered = self.to_rendered(margins, geometry)
        return geometry.rendered_height - rendered.total

    @staticmethod
    def default_margins(page_height: float) -> CropMargins:
        """Return default header/footer margins for a page of the given height."""

        margin = float(round(page_height * DEFAULT_MARGIN_FRACTION))
        return CropMargins(top=margin, bottom=margin)

    def validate(self, margins: CropMargins, height: float) -> None:
        """Check margins against a page height expressed in the same units."""

        for name, value in (("top", margins.top), ("bottom", margins.bottom)):
            if not math.isfinite(value) or value < 0:
                raise InvalidCropRegion(f"Crop margin `{name}` must be a non-negative number.")
        if margins.total >= height:
            raise InvalidCropRegion(
                f"Crop margins {margins.top:g} + {margins.bottom:g} leave no content "
                f"on a page {height:g} units high.",
                hint="Reduce the top or bottom crop margin.",
            )
        if self.max_margin_fraction is None:
            return
        limit = height * self.max_margin_fraction
        for name, value in (("top", margins.top), ("bottom", margins.bottom)):
            if value > limit:
                raise InvalidCropRegion(
                    f"Crop margin `{name}` ({value:g}) exceeds "
                    f"{self.max_margin_fraction:.0%} of the page height ({limit:g}).",
                    hint="Reduce the margin or raise `max_margin_fraction`.",
                )

    @staticmethod
    def _require_positive_geometry(geometry: PageGeometry) -> None:
        if geometry.width <= 0 or geometry.height <= 0 or geometry.scale <= 0:
            raise InvalidCropRegion(
                f"Page geometry {geometry.width:g}x{geometry.height:g} "
                f"at scale {geometry.scale:g} is not usable."
            )
