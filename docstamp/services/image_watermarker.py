from __future__ import annotations

from io import BytesIO
from typing import Optional

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from docstamp.core.config import get_settings
from docstamp.core.errors import DecodeError, EncodeError
from docstamp.models import WatermarkSpec
from docstamp.services import positioning
from docstamp.utils.file_utils import Source, normalize_image_format, read_source


def _load_font(size: int) -> ImageFont.FreeTypeFont:
    # FreeType faces are not shared between threads, load a fresh one per stamp
    return ImageFont.load_default(size=size)


class ImageWatermarker:
    """Stamps a text watermark onto an encoded raster image with Pillow."""

    def __init__(
        self,
        opacity: Optional[float] = None,
        margin: Optional[float] = None,
        spacing: Optional[float] = None,
        jpeg_quality: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.opacity = settings.watermark_opacity if opacity is None else opacity
        self.margin = settings.position_margin if margin is None else margin
        self.spacing = settings.tile_spacing if spacing is None else spacing
        self.jpeg_quality = jpeg_quality or settings.jpeg_quality

    def watermark(self, image: Source, image_format: str, spec: WatermarkSpec) -> bytes:
        """
        Return a stamped copy of ``image`` encoded in ``image_format``.

        Raises:
            DecodeError: the bytes are not an image Pillow understands.
            EncodeError: the stamped image cannot be written in ``image_format``.
        """
        source = self.decode(read_source(image))
        return self.encode(self.stamp(source, spec), image_format, source.mode)

    def stamp(self, image: Image.Image, spec: WatermarkSpec) -> Image.Image:
        base = image.convert("RGBA")
        layer = Image.new("RGBA", base.size, (255, 255, 255, 0))
        draw = ImageDraw.Draw(layer)

        font = _load_font(spec.text_size)
        left, top, right, bottom = draw.textbbox((0, 0), spec.text, font=font)
        text_width, text_height = right - left, bottom - top

        alpha = int(round(255 * max(0.0, min(1.0, self.opacity))))
        fill = (*spec.color, alpha)

        anchors = positioning.anchors_for(
            spec,
            base.width,
            base.height,
            text_width,
            text_height,
            margin=self.margin,
            spacing=self.spacing,
        )
        for anchor in anchors:
            # textbbox is relative to the draw origin, shift so the ink box starts at the anchor
            draw.text((anchor.x - left, anchor.y - top), spec.text, font=font, fill=fill)

        return Image.alpha_composite(base, layer)

    @staticmethod
    def decode(data: bytes) -> Image.Image:
        try:
            image = Image.open(BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
            raise DecodeError(f"Cannot decode image: {exc}") from exc
        return image

    def encode(self, image: Image.Image, image_format: str, source_mode: str = "RGB") -> bytes:
        fmt = normalize_image_format(image_format)
        if fmt == "JPEG" or "A" not in source_mode:
            image = image.convert("RGB")

        options = {"quality": self.jpeg_quality} if fmt == "JPEG" else {}
        buffer = BytesIO()
        try:
            image.save(buffer, format=fmt, **options)
        except (KeyError, ValueError, OSError) as exc:
            raise EncodeError(f"Cannot encode image as {fmt}: {exc}") from exc
        return buffer.getvalue()
