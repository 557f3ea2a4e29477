"""PDF structural optimization built on PyMuPDF."""

import logging

import fitz  # PyMuPDF

from .errors import ExternalProcessingFailure, InvalidDocument
from .utils import format_size

logger = logging.getLogger(__name__)


class DocumentOptimizer:
    """
    Loads a PDF into memory and serializes it straight back out.

    Saving drops unreferenced objects, rebuilds the xref table and packs
    objects into object streams. Page content, fonts and images are copied
    as they are, never re-encoded.
    """

    def __init__(self, garbage: int = 1, use_object_streams: bool = True):
        """
        Initialize optimizer.

        Args:
            garbage: PyMuPDF garbage collection level (1 drops unused objects)
            use_object_streams: Pack objects into compressed object streams
        """
        self.garbage = garbage
        self.use_object_streams = use_object_streams

    def optimize(self, data: bytes) -> bytes:
        """
        Run one load/save cycle over a PDF.

        Args:
            data: Raw PDF bytes

        Returns:
            The re-serialized document

        Raises:
            InvalidDocument: If the bytes do not load as an unencrypted PDF
            ExternalProcessingFailure: If serialization fails
        """
        if not data:
            raise InvalidDocument("Document is empty")

        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise InvalidDocument(f"Failed to open PDF: {e}") from e

        try:
            if not doc.is_pdf:
                raise InvalidDocument("Not a PDF document")
            if doc.needs_pass:
                raise InvalidDocument("PDF is encrypted")
            if doc.page_count == 0:
                raise InvalidDocument("PDF has no pages")

            try:
                optimized = doc.tobytes(
                    garbage=self.garbage,
                    deflate=False,
                    use_objstms=1 if self.use_object_streams else 0,
                )
            except Exception as e:
                raise ExternalProcessingFailure(f"Failed to save PDF: {e}") from e
        finally:
            doc.close()

        logger.debug("Optimized PDF from %s to %s", format_size(len(data)), format_size(len(optimized)))
        return optimized
