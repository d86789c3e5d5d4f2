from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from io import BytesIO
from typing import Iterator, Optional, Tuple

from pypdf import PageObject, PdfReader, PdfWriter
from pypdf.errors import PdfReadError, PyPdfError
from pypdf.generic import DictionaryObject, NameObject
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from docstamp.core.config import get_settings
from docstamp.core.errors import DocumentIOError
from docstamp.utils.file_utils import Source, looks_like_pdf, read_source


@dataclass(frozen=True)
class PageBox:
    """Visible area of a page in PDF user space (origin bottom-left)."""

    left: float
    bottom: float
    width: float
    height: float


class ContentAppender:
    """
    Append-only drawing handle for one page.

    Coordinates passed to :meth:`draw_text` are PDF user space; the text
    baseline sits at ``y``.
    """

    def __init__(self, box: PageBox, page_size: Tuple[float, float], font_name: str) -> None:
        self.box = box
        self.font_name = font_name
        self._font_size: float = 12
        self._packet = BytesIO()
        # invariant=1 keeps the generated stream free of timestamps and random ids
        self._canvas = canvas.Canvas(self._packet, pagesize=page_size, invariant=1)
        self._canvas.setFont(font_name, self._font_size)
        self._dirty = False

    def set_fill_color(self, rgb: Tuple[int, int, int], alpha: float = 1.0) -> None:
        red, green, blue = (channel / 255 for channel in rgb)
        self._canvas.setFillColorRGB(red, green, blue, alpha=alpha)

    def set_font(self, size: float) -> None:
        self._font_size = size
        self._canvas.setFont(self.font_name, size)

    def text_width(self, text: str, size: Optional[float] = None) -> float:
        return pdfmetrics.stringWidth(text, self.font_name, size or self._font_size)

    def text_extent(self, size: Optional[float] = None) -> Tuple[float, float]:
        """Return ``(height, descent)`` of a line of text, descent being negative."""
        ascent, descent = pdfmetrics.getAscentDescent(self.font_name, size or self._font_size)
        return ascent - descent, descent

    def draw_text(self, text: str, x: float, y: float) -> None:
        self._canvas.drawString(x, y, text)
        self._dirty = True

    def finish(self) -> Optional[PageObject]:
        if not self._dirty:
            return None
        self._canvas.save()
        self._packet.seek(0)
        return PdfReader(self._packet).pages[0]


class PdfDocument:
    """
    Mutable PDF container backed by a :class:`pypdf.PdfWriter`.

    Page mutations are serialized with a lock; the writer shares one object
    table across pages and is not safe for concurrent writes.
    """

    def __init__(self, writer: PdfWriter, encrypted: bool = False) -> None:
        self._writer = writer
        self._encrypted = encrypted
        self._lock = threading.RLock()

    @classmethod
    def load(cls, source: Source, password: Optional[str] = None) -> "PdfDocument":
        data = read_source(source)
        if not looks_like_pdf(data):
            raise DocumentIOError("Source is not a PDF document")
        try:
            # pypdf tries the empty user password when none is given
            reader = PdfReader(BytesIO(data), password=password)
            writer = PdfWriter(clone_from=reader)
        except (PdfReadError, PyPdfError, ValueError) as exc:
            raise DocumentIOError(f"Cannot load PDF document: {exc}") from exc
        return cls(writer, encrypted=reader.is_encrypted)

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------
    @property
    def page_count(self) -> int:
        return len(self._writer.pages)

    def get_page(self, index: int) -> PageObject:
        return self._writer.pages[index]

    def crop_box(self, index: int) -> PageBox:
        box = self.get_page(index).cropbox
        return PageBox(
            left=float(box.left),
            bottom=float(box.bottom),
            width=float(box.width),
            height=float(box.height),
        )

    def _page_size(self, index: int) -> Tuple[float, float]:
        box = self.get_page(index).mediabox
        return float(box.right), float(box.top)

    def replace_visible_content(
        self,
        index: int,
        image_bytes: bytes,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        """Overwrite page ``index`` so it shows only ``image_bytes`` drawn in the given box."""
        try:
            with self._lock:
                packet = BytesIO()
                c = canvas.Canvas(packet, pagesize=self._page_size(index), invariant=1)
                c.drawImage(ImageReader(BytesIO(image_bytes)), x, y, width=width, height=height)
                c.save()
                packet.seek(0)
                image_page = PdfReader(packet).pages[0]

                page = self.get_page(index)
                page.replace_contents(None)
                page[NameObject("/Resources")] = DictionaryObject()
                page.merge_page(image_page)
        except (OSError, PyPdfError, ValueError) as exc:
            raise DocumentIOError(f"Cannot replace content of page {index}: {exc}") from exc

    @contextmanager
    def append_content(self, index: int, font_name: Optional[str] = None) -> Iterator[ContentAppender]:
        """
        Yield an append-mode drawing handle for page ``index``.

        Whatever was drawn is merged on top of the existing content when the
        block exits, including when it exits with an error.
        """
        try:
            appender = ContentAppender(
                self.crop_box(index),
                self._page_size(index),
                font_name or get_settings().overlay_font,
            )
        except (IndexError, KeyError, PyPdfError) as exc:
            raise DocumentIOError(f"Cannot open content stream of page {index}: {exc}") from exc

        try:
            yield appender
        finally:
            try:
                overlay = appender.finish()
                if overlay is not None:
                    with self._lock:
                        self.get_page(index).merge_page(overlay)
            except (OSError, PyPdfError, ValueError) as exc:
                raise DocumentIOError(f"Cannot flush content stream of page {index}: {exc}") from exc

    # ------------------------------------------------------------------
    # Security & serialization
    # ------------------------------------------------------------------
    @property
    def is_encrypted(self) -> bool:
        return self._encrypted

    def strip_security(self) -> None:
        """Mark the document as no longer carrying the source's encryption."""
        self._encrypted = False

    def serialize(self) -> bytes:
        """
        Write the document to bytes.

        Pages are written decrypted, as loaded. The document is never
        re-encrypted, so the source's permissions are not reapplied.
        """
        with self._lock:
            return self._write(self._writer)

    @staticmethod
    def _write(writer: PdfWriter) -> bytes:
        buffer = BytesIO()
        try:
            writer.write(buffer)
        except (OSError, PyPdfError, ValueError) as exc:
            raise DocumentIOError(f"Cannot serialize PDF document: {exc}") from exc
        return buffer.getvalue()
