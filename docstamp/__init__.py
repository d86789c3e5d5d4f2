from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from docstamp.core.config import get_settings
from docstamp.core.logging import configure_logging
from docstamp.models import Coordinates, WatermarkMethod, WatermarkPosition, WatermarkSpec
from docstamp.services import (
    DrawPdfWatermarker,
    ImageWatermarker,
    ImageWatermarkService,
    OverlayPdfWatermarker,
    WatermarkPdfService,
    WatermarkServiceConfig,
)
from docstamp.utils.file_utils import Source
from docstamp.utils.pdf_document import PdfDocument


def watermark_pdf(source: Source, specs: Sequence[WatermarkSpec], parallel: bool = False) -> bytes:
    """Watermark a PDF with the default services, drawing pages on a thread pool when ``parallel``."""
    if not parallel:
        return WatermarkPdfService.create().watermark(source, specs)
    with ThreadPoolExecutor(max_workers=get_settings().max_workers) as executor:
        return WatermarkPdfService.create(executor=executor).watermark(source, specs)


def watermark_image(source: Source, image_format: str, specs: Sequence[WatermarkSpec]) -> bytes:
    return ImageWatermarkService().watermark(source, image_format, specs)


__all__ = [
    "Coordinates",
    "DrawPdfWatermarker",
    "ImageWatermarkService",
    "ImageWatermarker",
    "OverlayPdfWatermarker",
    "PdfDocument",
    "WatermarkMethod",
    "WatermarkPdfService",
    "WatermarkPosition",
    "WatermarkServiceConfig",
    "WatermarkSpec",
    "configure_logging",
    "watermark_image",
    "watermark_pdf",
]
