from __future__ import annotations

from io import BytesIO
from typing import Optional, Sequence

from docstamp.core.config import get_settings
from docstamp.core.errors import EncodeError
from docstamp.core.logging import get_logger
from docstamp.models import WatermarkSpec
from docstamp.services.image_watermarker import ImageWatermarker
from docstamp.utils.pdf_document import PdfDocument
from docstamp.utils.pdf_render import PageRenderer

logger = get_logger("draw")

POINTS_PER_INCH = 72.0
INTERMEDIATE_FORMAT = "JPEG"


class DrawPdfWatermarker:
    """
    Flattens a page into a stamped raster.

    The page is rendered, every spec is drawn into the raster in list order and
    the page content is replaced by the result. ``text_size`` is a pixel size on
    the raster unless ``scale_text_to_dpi`` is set, which reads it as points.
    Original vector content is lost; the watermark cannot be removed by
    deleting an overlay object.
    """

    def __init__(
        self,
        image_watermarker: Optional[ImageWatermarker] = None,
        scale_text_to_dpi: Optional[bool] = None,
    ) -> None:
        self.image_watermarker = image_watermarker or ImageWatermarker()
        if scale_text_to_dpi is None:
            scale_text_to_dpi = get_settings().scale_draw_text_to_dpi
        self.scale_text_to_dpi = scale_text_to_dpi

    def watermark(
        self,
        document: PdfDocument,
        renderer: PageRenderer,
        page_index: int,
        dpi: float,
        specs: Sequence[WatermarkSpec],
    ) -> None:
        logger.debug("Drawing %d watermark(s) on page %d at %s dpi", len(specs), page_index, dpi)

        image = renderer.render_page_as_image(page_index, dpi)
        buffer = BytesIO()
        try:
            image.save(buffer, format=INTERMEDIATE_FORMAT, quality=self.image_watermarker.jpeg_quality)
        except (OSError, ValueError) as exc:
            raise EncodeError(f"Cannot encode rendered page {page_index}: {exc}") from exc
        stamped = buffer.getvalue()

        for spec in specs:
            if self.scale_text_to_dpi:
                spec = self._to_pixels(spec, dpi / POINTS_PER_INCH)
            stamped = self.image_watermarker.watermark(stamped, INTERMEDIATE_FORMAT, spec)

        box = document.crop_box(page_index)
        document.replace_visible_content(page_index, stamped, box.left, box.bottom, box.width, box.height)

    @staticmethod
    def _to_pixels(spec: WatermarkSpec, scale: float) -> WatermarkSpec:
        # text_size is in points; the raster is dpi/72 pixels per point
        return spec.model_copy(update={"text_size": max(1, int(round(spec.text_size * scale)))})
