from __future__ import annotations

from io import BytesIO
from typing import Callable, Generator

import pytest
from PIL import Image
from pypdf import PdfReader, PdfWriter
from pypdf.constants import UserAccessPermissions
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from docstamp.core.config import get_settings


@pytest.fixture(autouse=True)
def settings_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    # low resolution keeps rasterization fast
    monkeypatch.setenv("DOCSTAMP_DRAW_DPI", "72")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def build_pdf(pages: int = 1, encrypted: bool = False, pagesize=letter, user_password: str = "") -> bytes:
    packet = BytesIO()
    c = canvas.Canvas(packet, pagesize=pagesize, invariant=1)
    width, height = pagesize
    for number in range(1, pages + 1):
        c.setFillColorRGB(0.2, 0.4, 0.8)
        c.rect(40, 40, width / 3, height / 4, fill=1, stroke=0)
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 24)
        c.drawString(72, height - 100, f"Page {number}")
        c.showPage()
    c.save()

    if not encrypted:
        return packet.getvalue()

    writer = PdfWriter(clone_from=PdfReader(BytesIO(packet.getvalue())))
    writer.encrypt(
        user_password=user_password,
        owner_password="owner-secret",
        permissions_flag=UserAccessPermissions.PRINT,
    )
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def pdf_factory() -> Callable[..., bytes]:
    return build_pdf


@pytest.fixture
def sample_pdf() -> bytes:
    return build_pdf(pages=3)


def _to_bytes(image: Image.Image, fmt: str) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def sample_png() -> bytes:
    return _to_bytes(Image.new("RGB", (200, 100), color=(255, 255, 255)), "PNG")


@pytest.fixture
def sample_jpeg() -> bytes:
    return _to_bytes(Image.new("RGB", (320, 240), color=(255, 255, 255)), "JPEG")
