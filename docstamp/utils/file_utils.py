from __future__ import annotations

from pathlib import Path
from typing import IO, Union

from docstamp.core.errors import DocumentIOError, EncodeError

Source = Union[bytes, bytearray, str, Path, IO[bytes]]

_FORMAT_ALIASES = {
    "JPG": "JPEG",
    "JPE": "JPEG",
    "TIF": "TIFF",
}


def normalize_image_format(image_format: str) -> str:
    """Map a file type or extension (``jpg``, ``.png``) to a Pillow format name."""
    name = (image_format or "").strip().lstrip(".").upper()
    if not name:
        raise EncodeError("An image format is required")
    return _FORMAT_ALIASES.get(name, name)


def read_source(source: Source) -> bytes:
    """Return the raw bytes behind an in-memory buffer, a path or a binary stream."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, Path)):
        try:
            return Path(source).read_bytes()
        except OSError as exc:
            raise DocumentIOError(f"Cannot read {source}: {exc}") from exc
    return source.read()


def looks_like_pdf(data: bytes) -> bool:
    """Cheap header check; PDF readers tolerate up to 1 KiB of leading garbage."""
    return b"%PDF-" in data[:1024]
