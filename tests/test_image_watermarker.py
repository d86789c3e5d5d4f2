from io import BytesIO

import pytest
from PIL import Image

from docstamp.core.errors import DecodeError, EncodeError
from docstamp.models import WatermarkPosition, WatermarkSpec
from docstamp.services import ImageWatermarker, ImageWatermarkService


def _open(data: bytes) -> Image.Image:
    image = Image.open(BytesIO(data))
    image.load()
    return image


def _changed(before: Image.Image, after: Image.Image, box) -> bool:
    return before.crop(box).tobytes() != after.convert(before.mode).crop(box).tobytes()


def test_center_stamp_only_touches_the_middle(sample_png):
    spec = WatermarkSpec(text="DRAFT", text_size=20, color=(0, 0, 0), position=WatermarkPosition.CENTER)
    result = ImageWatermarker(opacity=1.0).watermark(sample_png, "png", spec)

    before, after = _open(sample_png), _open(result)
    assert after.format == "PNG"
    assert after.size == before.size
    assert _changed(before, after, (60, 30, 140, 70))
    assert not _changed(before, after, (0, 0, 20, 20))
    assert not _changed(before, after, (180, 80, 200, 100))


def test_input_bytes_are_untouched(sample_png):
    original = bytes(sample_png)
    spec = WatermarkSpec(text="DRAFT", text_size=20)
    ImageWatermarker().watermark(sample_png, "PNG", spec)
    assert sample_png == original


def test_bottom_right_stamp(sample_png):
    spec = WatermarkSpec(text="(c)", text_size=14, color=(255, 0, 0), position=WatermarkPosition.BOTTOM_RIGHT)
    result = ImageWatermarker(opacity=1.0, margin=5).watermark(sample_png, "PNG", spec)

    before, after = _open(sample_png), _open(result)
    assert _changed(before, after, (150, 70, 200, 100))
    assert not _changed(before, after, (0, 0, 100, 50))


def test_trademark_is_repeated_over_the_image(sample_png):
    spec = WatermarkSpec(text="TM", text_size=12, is_trademark=True, position=WatermarkPosition.CENTER)
    result = ImageWatermarker(opacity=1.0, spacing=10).watermark(sample_png, "PNG", spec)

    before, after = _open(sample_png), _open(result)
    assert _changed(before, after, (0, 0, 40, 30))
    assert _changed(before, after, (100, 0, 200, 50))
    assert _changed(before, after, (0, 50, 100, 100))


def test_jpeg_stays_jpeg(sample_jpeg):
    spec = WatermarkSpec(text="sample", text_size=30)
    result = ImageWatermarker().watermark(sample_jpeg, "jpg", spec)
    assert _open(result).format == "JPEG"


def test_accepts_a_path(tmp_path, sample_png):
    path = tmp_path / "photo.png"
    path.write_bytes(sample_png)
    spec = WatermarkSpec(text="x", text_size=10)
    result = ImageWatermarker().watermark(path, "PNG", spec)
    assert _open(result).size == (200, 100)


def test_garbage_raises_decode_error():
    spec = WatermarkSpec(text="x", text_size=10)
    with pytest.raises(DecodeError):
        ImageWatermarker().watermark(b"definitely not an image", "PNG", spec)


def test_unknown_format_raises_encode_error(sample_png):
    spec = WatermarkSpec(text="x", text_size=10)
    with pytest.raises(EncodeError):
        ImageWatermarker().watermark(sample_png, "NOT-A-FORMAT", spec)


class TestImageWatermarkService:
    def test_empty_spec_list_returns_input(self, sample_png):
        assert ImageWatermarkService().watermark(sample_png, "PNG", []) == sample_png

    def test_specs_are_applied_in_order(self, sample_png):
        first = WatermarkSpec(text="AAAA", text_size=20, color=(255, 0, 0), position=WatermarkPosition.CENTER)
        second = WatermarkSpec(text="AAAA", text_size=20, color=(0, 0, 255), position=WatermarkPosition.CENTER)
        watermarker = ImageWatermarker(opacity=1.0)

        result = _open(ImageWatermarkService(watermarker).watermark(sample_png, "PNG", [first, second]))
        colors = {color for _, color in result.convert("RGB").getcolors(maxcolors=100000)}

        # the later spec is drawn on top of the earlier one
        assert (0, 0, 255) in colors
        assert (255, 0, 0) not in colors
