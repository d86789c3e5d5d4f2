from .draw_watermarker import DrawPdfWatermarker
from .image_service import ImageWatermarkService
from .image_watermarker import ImageWatermarker
from .overlay_watermarker import OverlayPdfWatermarker
from .watermark_service import WatermarkPdfService, WatermarkServiceConfig

__all__ = [
    "DrawPdfWatermarker",
    "ImageWatermarkService",
    "ImageWatermarker",
    "OverlayPdfWatermarker",
    "WatermarkPdfService",
    "WatermarkServiceConfig",
]
