from __future__ import annotations

from concurrent.futures import Executor, Future, wait
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Union

from docstamp.core.config import get_settings
from docstamp.core.errors import AsyncTaskError, ExecutorUnavailableError, ServiceUnavailableError
from docstamp.core.logging import get_logger
from docstamp.models import WatermarkMethod, WatermarkSpec
from docstamp.services.draw_watermarker import DrawPdfWatermarker
from docstamp.services.overlay_watermarker import OverlayPdfWatermarker
from docstamp.utils.file_utils import Source
from docstamp.utils.pdf_document import PdfDocument
from docstamp.utils.pdf_render import PageRenderer

logger = get_logger("service")

PhaseHandler = Callable[[PdfDocument, List[WatermarkSpec], bool], None]


@dataclass(frozen=True)
class WatermarkServiceConfig:
    """Collaborators of :class:`WatermarkPdfService`; both strategies are required."""

    draw: Optional[DrawPdfWatermarker]
    overlay: Optional[OverlayPdfWatermarker]
    executor: Optional[Executor] = None
    dpi: Optional[float] = None

    def validate(self) -> None:
        if self.draw is None:
            raise ServiceUnavailableError("draw")
        if self.overlay is None:
            raise ServiceUnavailableError("overlay")


class WatermarkPdfService:
    """
    Applies a list of watermark specs to every page of a PDF document.

    Specs are grouped by method. The draw group runs first over all pages,
    in parallel when an executor is available; the overlay group runs after
    it, one page at a time, because it reads content the draw phase may have
    replaced. Any encryption is removed from the result.
    """

    def __init__(self, config: WatermarkServiceConfig) -> None:
        try:
            config.validate()
        except ServiceUnavailableError:
            logger.error("Incorrect configuration. An empty service")
            raise

        self.draw_service: DrawPdfWatermarker = config.draw
        self.overlay_service: OverlayPdfWatermarker = config.overlay
        self.executor = config.executor
        self.dpi = config.dpi or get_settings().draw_dpi

        # insertion order is the phase order
        self._phases: Dict[WatermarkMethod, PhaseHandler] = {
            WatermarkMethod.DRAW: self._draw,
            WatermarkMethod.OVERLAY: self._overlay,
        }

    @classmethod
    def create(cls, executor: Optional[Executor] = None, dpi: Optional[float] = None) -> "WatermarkPdfService":
        """Service wired with the default draw and overlay watermarkers."""
        return cls(
            WatermarkServiceConfig(
                draw=DrawPdfWatermarker(),
                overlay=OverlayPdfWatermarker(),
                executor=executor,
                dpi=dpi,
            )
        )

    def watermark(
        self,
        document: Union[PdfDocument, Source],
        specs: Sequence[WatermarkSpec],
        parallel: Optional[bool] = None,
    ) -> bytes:
        """
        Watermark ``document`` and return the resulting PDF bytes.

        Args:
            document: a loaded :class:`PdfDocument` (mutated in place), raw PDF
                bytes, a path or a binary stream.
            specs: watermarks to apply, in drawing order.
            parallel: run draw pages on the executor. ``None`` means "when an
                executor is configured".

        Raises:
            ExecutorUnavailableError: ``parallel`` is true but there is no executor.
            AsyncTaskError: a page failed during parallel drawing.
        """
        run_parallel = self._resolve_parallel(parallel)
        if not isinstance(document, PdfDocument):
            document = PdfDocument.load(document)

        groups = self._partition(specs)
        for method, handler in self._phases.items():
            group = groups[method]
            if group:
                logger.info("Applying %d %s watermark(s) to %d page(s)", len(group), method.value, document.page_count)
                handler(document, group, run_parallel)

        self._remove_security(document)
        return document.serialize()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def _resolve_parallel(self, parallel: Optional[bool]) -> bool:
        if parallel is None:
            return self.executor is not None
        if parallel and self.executor is None:
            logger.error("An empty executor")
            raise ExecutorUnavailableError()
        return parallel

    def _partition(self, specs: Sequence[WatermarkSpec]) -> Dict[WatermarkMethod, List[WatermarkSpec]]:
        groups: Dict[WatermarkMethod, List[WatermarkSpec]] = {method: [] for method in self._phases}
        for spec in specs:
            groups[spec.method].append(spec)
        return groups

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def _draw(self, document: PdfDocument, specs: List[WatermarkSpec], parallel: bool) -> None:
        with PageRenderer(document) as renderer:
            if parallel:
                self._draw_async(document, renderer, specs)
            else:
                self._draw_sync(document, renderer, specs)

    def _draw_sync(self, document: PdfDocument, renderer: PageRenderer, specs: List[WatermarkSpec]) -> None:
        for page_index in range(document.page_count):
            self.draw_service.watermark(document, renderer, page_index, self.dpi, specs)

    def _draw_async(self, document: PdfDocument, renderer: PageRenderer, specs: List[WatermarkSpec]) -> None:
        executor = self.executor
        if executor is None:
            logger.error("An empty executor")
            raise ExecutorUnavailableError()
        futures: List[Future] = [
            executor.submit(self._draw_page_task, document, renderer, page_index, specs)
            for page_index in range(document.page_count)
        ]
        wait(futures)
        for future in futures:
            future.result()

    def _draw_page_task(
        self,
        document: PdfDocument,
        renderer: PageRenderer,
        page_index: int,
        specs: List[WatermarkSpec],
    ) -> None:
        try:
            self.draw_service.watermark(document, renderer, page_index, self.dpi, specs)
        except Exception as exc:
            logger.error("An error occurred during watermarking on page number %d", page_index, exc_info=exc)
            raise AsyncTaskError(page_index, exc) from exc

    def _overlay(self, document: PdfDocument, specs: List[WatermarkSpec], parallel: bool) -> None:
        # content streams of one writer are never mutated concurrently
        for page_index in range(document.page_count):
            self.overlay_service.watermark(document, page_index, specs)

    @staticmethod
    def _remove_security(document: PdfDocument) -> None:
        if document.is_encrypted:
            logger.info("Removing document security")
            document.strip_security()
