from __future__ import annotations

from typing import Optional


class WatermarkError(Exception):
    """Base class for every error raised while watermarking."""


class ConfigurationError(WatermarkError):
    """A required collaborator was not configured."""


class ServiceUnavailableError(ConfigurationError):
    def __init__(self, missing: str) -> None:
        super().__init__(f"Incorrect configuration: no {missing} watermarker configured")
        self.missing = missing


class ExecutorUnavailableError(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("Parallel execution requested but no executor is configured")


class DecodeError(WatermarkError):
    """The image codec could not parse the input bytes."""


class EncodeError(WatermarkError):
    """The image codec could not re-encode the stamped image."""


class RenderError(WatermarkError):
    """A page could not be rasterized."""

    def __init__(self, message: str, page_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.page_index = page_index


class DocumentIOError(WatermarkError, OSError):
    """Reading, mutating or serializing the document failed."""


class AsyncTaskError(WatermarkError):
    """A page task failed during parallel execution; the original error is ``__cause__``."""

    def __init__(self, page_index: int, cause: BaseException) -> None:
        super().__init__(f"An error occurred during watermarking on page number {page_index}: {cause}")
        self.page_index = page_index
        self.__cause__ = cause
