from io import BytesIO

import pytest
from PIL import Image
from pypdf import PdfReader

from docstamp.core.errors import DocumentIOError, RenderError
from docstamp.utils.pdf_document import PdfDocument
from docstamp.utils.pdf_render import PageRenderer


def _jpeg(size=(100, 100), color=(200, 10, 10)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format="JPEG")
    return buffer.getvalue()


def test_load_rejects_non_pdf():
    with pytest.raises(DocumentIOError):
        PdfDocument.load(b"plain text, no header")


def test_load_from_path(tmp_path, sample_pdf):
    path = tmp_path / "in.pdf"
    path.write_bytes(sample_pdf)
    document = PdfDocument.load(path)
    assert document.page_count == 3
    assert not document.is_encrypted


def test_crop_box_matches_page(sample_pdf):
    box = PdfDocument.load(sample_pdf).crop_box(0)
    assert (box.left, box.bottom) == (0, 0)
    assert box.width == 612
    assert box.height == 792


def test_encrypted_source_is_never_re_encrypted(pdf_factory):
    document = PdfDocument.load(pdf_factory(pages=2, encrypted=True))
    assert document.is_encrypted

    reader = PdfReader(BytesIO(document.serialize()))
    assert not reader.is_encrypted
    assert "/Encrypt" not in reader.trailer
    assert "Page 1" in reader.pages[0].extract_text()

    document.strip_security()
    assert not document.is_encrypted
    assert not PdfReader(BytesIO(document.serialize())).is_encrypted


def test_password_protected_source_serializes_without_password(pdf_factory):
    source = pdf_factory(pages=1, encrypted=True, user_password="letmein")
    with pytest.raises(DocumentIOError):
        PdfDocument.load(source)

    document = PdfDocument.load(source, password="letmein")
    reader = PdfReader(BytesIO(document.serialize()))
    assert not reader.is_encrypted
    assert "Page 1" in reader.pages[0].extract_text()


def test_replace_visible_content_discards_old_content(sample_pdf):
    document = PdfDocument.load(sample_pdf)
    box = document.crop_box(1)
    document.replace_visible_content(1, _jpeg(), box.left, box.bottom, box.width, box.height)

    reader = PdfReader(BytesIO(document.serialize()))
    assert len(reader.pages) == 3
    assert "Page 1" in reader.pages[0].extract_text()
    assert reader.pages[1].extract_text().strip() == ""
    assert len(reader.pages[1].images) == 1
    assert "Page 3" in reader.pages[2].extract_text()


def test_append_content_keeps_existing_content(sample_pdf):
    document = PdfDocument.load(sample_pdf)
    with document.append_content(0) as content:
        content.set_fill_color((255, 0, 0), alpha=0.5)
        content.set_font(18)
        content.draw_text("STAMPED", 100, 100)

    text = PdfReader(BytesIO(document.serialize())).pages[0].extract_text()
    assert "Page 1" in text
    assert "STAMPED" in text


def test_append_content_flushes_when_the_block_fails(sample_pdf):
    document = PdfDocument.load(sample_pdf)
    with pytest.raises(RuntimeError):
        with document.append_content(0) as content:
            content.draw_text("PARTIAL", 100, 100)
            raise RuntimeError("boom")

    assert "PARTIAL" in PdfReader(BytesIO(document.serialize())).pages[0].extract_text()


def test_append_content_on_missing_page(sample_pdf):
    document = PdfDocument.load(sample_pdf)
    with pytest.raises(DocumentIOError):
        with document.append_content(10):
            pass


class TestPageRenderer:
    def test_renders_crop_box_at_dpi(self, sample_pdf):
        with PageRenderer(PdfDocument.load(sample_pdf)) as renderer:
            image = renderer.render_page_as_image(0, 72)
        assert image.mode == "RGB"
        assert image.size == (612, 792)

    def test_render_of_missing_page_raises(self, sample_pdf):
        with PageRenderer(PdfDocument.load(sample_pdf)) as renderer:
            with pytest.raises(RenderError) as info:
                renderer.render_page_as_image(7, 72)
        assert info.value.page_index == 7

    def test_closed_renderer_raises(self, sample_pdf):
        renderer = PageRenderer(PdfDocument.load(sample_pdf))
        renderer.close()
        with pytest.raises(RenderError):
            renderer.render_page_as_image(0, 72)
