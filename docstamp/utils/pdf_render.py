from __future__ import annotations

import threading
from typing import Optional

import fitz  # PyMuPDF
from PIL import Image

from docstamp.core.errors import RenderError
from docstamp.utils.pdf_document import PdfDocument


class PageRenderer:
    """
    Rasterizes pages of a :class:`PdfDocument` with PyMuPDF.

    The renderer works on a snapshot taken when it is created, so pages can be
    rewritten in the document while other pages are still being rendered.
    MuPDF contexts are not thread-safe; rendering calls are serialized.
    """

    def __init__(self, document: PdfDocument) -> None:
        self._lock = threading.Lock()
        try:
            self._snapshot: Optional[fitz.Document] = fitz.open(
                stream=document.serialize(),
                filetype="pdf",
            )
        except Exception as exc:  # MuPDF raises its own hierarchy
            raise RenderError(f"Cannot open document for rendering: {exc}") from exc

    def render_page_as_image(self, page_index: int, dpi: float) -> Image.Image:
        """
        Render page ``page_index`` (zero-based) at ``dpi`` as an RGB image of its crop box.

        The page rotation is ignored so the raster lines up with the unrotated
        crop box it is written back into.
        """
        with self._lock:
            if self._snapshot is None:
                raise RenderError("Renderer is closed", page_index)
            try:
                page = self._snapshot.load_page(page_index)
                page.set_rotation(0)
                pixmap = page.get_pixmap(dpi=int(round(dpi)), alpha=False, colorspace=fitz.csRGB)
                return Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)
            except Exception as exc:  # MuPDF raises its own hierarchy
                raise RenderError(f"Cannot render page {page_index}: {exc}", page_index) from exc

    def close(self) -> None:
        with self._lock:
            if self._snapshot is not None:
                self._snapshot.close()
                self._snapshot = None

    def __enter__(self) -> "PageRenderer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
