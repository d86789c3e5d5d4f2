from __future__ import annotations

from typing import Optional, Sequence

from docstamp.core.logging import get_logger
from docstamp.models import WatermarkSpec
from docstamp.services.image_watermarker import ImageWatermarker
from docstamp.utils.file_utils import Source, read_source

logger = get_logger("image")


class ImageWatermarkService:
    """Applies a list of watermark specs to a standalone raster image."""

    def __init__(self, image_watermarker: Optional[ImageWatermarker] = None) -> None:
        self.image_watermarker = image_watermarker or ImageWatermarker()

    def watermark(self, image: Source, image_format: str, specs: Sequence[WatermarkSpec]) -> bytes:
        """
        Stamp every spec onto ``image`` in list order and return it in ``image_format``.

        The rendering method of a spec is irrelevant for rasters, every spec is
        drawn into the pixels. An empty list returns the input unchanged.
        """
        data = read_source(image)
        if not specs:
            return data

        logger.info("Applying %d watermark(s) to %s image", len(specs), image_format)
        decoded = self.image_watermarker.decode(data)
        stamped = decoded
        for spec in specs:
            stamped = self.image_watermarker.stamp(stamped, spec)
        return self.image_watermarker.encode(stamped, image_format, decoded.mode)
