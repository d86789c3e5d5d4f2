from __future__ import annotations

from typing import Optional, Sequence

from docstamp.core.config import get_settings
from docstamp.core.logging import get_logger
from docstamp.models import WatermarkSpec
from docstamp.services import positioning
from docstamp.utils.pdf_document import ContentAppender, PdfDocument

logger = get_logger("overlay")


class OverlayPdfWatermarker:
    """Writes watermark text as vector operators on top of the existing page content."""

    def __init__(
        self,
        opacity: Optional[float] = None,
        margin: Optional[float] = None,
        spacing: Optional[float] = None,
        font_name: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        self.opacity = settings.watermark_opacity if opacity is None else opacity
        self.margin = settings.position_margin if margin is None else margin
        self.spacing = settings.tile_spacing if spacing is None else spacing
        self.font_name = font_name or settings.overlay_font

    def watermark(self, document: PdfDocument, page_index: int, specs: Sequence[WatermarkSpec]) -> None:
        logger.debug("Overlaying %d watermark(s) on page %d", len(specs), page_index)
        with document.append_content(page_index, self.font_name) as content:
            for spec in specs:
                self._stamp(content, spec)

    def _stamp(self, content: ContentAppender, spec: WatermarkSpec) -> None:
        box = content.box
        text_width = content.text_width(spec.text, spec.text_size)
        text_height, descent = content.text_extent(spec.text_size)

        content.set_fill_color(spec.color, alpha=self.opacity)
        content.set_font(spec.text_size)

        anchors = positioning.anchors_for(
            spec,
            box.width,
            box.height,
            text_width,
            text_height,
            margin=self.margin,
            spacing=self.spacing,
        )
        for anchor in anchors:
            # anchors are y-down from the top of the crop box; PDF space is y-up with a baseline
            x = box.left + anchor.x
            y = box.bottom + box.height - anchor.y - text_height - descent
            content.draw_text(spec.text, x, y)
