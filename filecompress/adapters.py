"""Processing adapters: hand a source file to a library and keep the result."""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from .document_optimizer import DocumentOptimizer
from .image_compressor import ImageCompressor
from .models import (
    CompressedImageResult,
    OptimizedDocumentResult,
    ProcessingConfig,
    SourceFile,
)
from .state import AppState, Notice, ResultSlot, Ticket
from .utils import format_size

logger = logging.getLogger(__name__)

T = TypeVar("T")

IMAGE_FAILURE_NOTICE = "Error compressing image."
DOCUMENT_FAILURE_NOTICE = "Error processing PDF. Ensure it is a valid PDF file."


@dataclass
class Invocation(Generic[T]):
    """
    Outcome of one adapter call.

    ``notice`` belongs to this call alone. A superseded call carries
    neither a result nor a notice.
    """
    ticket: Ticket
    result: Optional[T] = None
    notice: Optional[Notice] = None
    superseded: bool = False

    @property
    def succeeded(self) -> bool:
        return self.result is not None


class _ProcessingAdapter:
    """Runs one external call with the overlay shown and commits on success."""

    failure_notice = ""

    def __init__(self, state: AppState):
        self.state = state

    def _run(self, slot: ResultSlot, source: SourceFile, operation: Callable[[], T]) -> Invocation[T]:
        if source.size == 0:
            raise ValueError("Source file is empty")

        ticket = slot.begin()
        self.state.overlay.show(ticket)
        try:
            result = operation()
        except Exception:
            logger.exception("Processing %s failed", source.filename or "<unnamed>")
            if not slot.is_current(ticket):
                return Invocation(ticket, superseded=True)
            return Invocation(ticket, notice=Notice(level="error", message=self.failure_notice))
        finally:
            self.state.overlay.hide(ticket)

        if not slot.commit(ticket, result):
            return Invocation(ticket, superseded=True)

        logger.info(
            "Processed %s: %s -> %s",
            source.filename or "<unnamed>", format_size(source.size), format_size(result.size),
        )
        return Invocation(ticket, result=result)


class ImageProcessingAdapter(_ProcessingAdapter):
    """Compresses images into the image result slot."""

    failure_notice = IMAGE_FAILURE_NOTICE

    def __init__(self, state: AppState, compressor: Optional[ImageCompressor] = None):
        super().__init__(state)
        self.compressor = compressor or ImageCompressor()

    def process(
        self,
        source: SourceFile,
        config: Optional[ProcessingConfig] = None,
    ) -> Invocation[CompressedImageResult]:
        """
        Compress an image and store the result.

        Args:
            source: Image to compress (must be non-empty)
            config: Compression parameters; defaults when omitted

        Returns:
            Invocation holding the stored result, or the failure notice
        """
        config = config or ProcessingConfig()
        return self._run(
            self.state.image_slot,
            source,
            lambda: self.compressor.compress(source, config),
        )


class DocumentProcessingAdapter(_ProcessingAdapter):
    """Optimizes PDFs into the document result slot."""

    failure_notice = DOCUMENT_FAILURE_NOTICE

    def __init__(self, state: AppState, optimizer: Optional[DocumentOptimizer] = None):
        super().__init__(state)
        self.optimizer = optimizer or DocumentOptimizer()

    def process(self, source: SourceFile) -> Invocation[OptimizedDocumentResult]:
        """
        Optimize a PDF and store the result.

        Returns:
            Invocation holding the stored result, or the failure notice
        """
        return self._run(
            self.state.document_slot,
            source,
            lambda: OptimizedDocumentResult(
                data=self.optimizer.optimize(source.data),
                original_size=source.size,
            ),
        )
