"""File intake: validate a picked or dropped file and dispatch it."""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from .adapters import DocumentProcessingAdapter, ImageProcessingAdapter
from .errors import InvalidFileType
from .models import (
    CompressedImageResult,
    Mode,
    OptimizedDocumentResult,
    PDF_MIME_TYPE,
    ProcessingConfig,
    SourceFile,
)
from .state import Notice

logger = logging.getLogger(__name__)

PICKER = "picker"
DROP = "drop"


@dataclass
class IntakeOutcome:
    """What happened to a file presented to intake."""
    mode: Mode
    accepted: bool
    via: str
    reason: Optional[str] = None
    result: Union[CompressedImageResult, OptimizedDocumentResult, None] = None
    notice: Optional[Notice] = None
    superseded: bool = False

    @property
    def processed(self) -> bool:
        return self.result is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "mode": self.mode.value,
            "accepted": self.accepted,
            "via": self.via,
            "reason": self.reason,
            "processed": self.processed,
            "result": self.result.to_dict() if self.result else None,
            "notice": self.notice.to_dict() if self.notice else None,
            "superseded": self.superseded,
        }


def matches_mode(mode: Mode, mime_type: str) -> bool:
    """Check whether a normalized MIME type belongs to ``mode``."""
    if mode is Mode.IMAGE:
        return mime_type.startswith("image/")
    return mime_type == PDF_MIME_TYPE


class FileIntake:
    """
    Accepts a single file per event and forwards it to the mode's adapter.

    Files whose type does not match the mode are not processed and raise
    no user notice. The returned IntakeOutcome records why.
    """

    def __init__(
        self,
        image_adapter: ImageProcessingAdapter,
        document_adapter: DocumentProcessingAdapter,
    ):
        self.image_adapter = image_adapter
        self.document_adapter = document_adapter

    def validate(self, mode: Mode, source: Optional[SourceFile]) -> None:
        """
        Raise InvalidFileType unless ``source`` may be processed in ``mode``.
        """
        if source is None:
            raise InvalidFileType("No file provided")
        if source.size == 0:
            raise InvalidFileType(f"{source.filename or 'File'} is empty")
        if not matches_mode(mode, source.normalized_type):
            raise InvalidFileType(
                f"{source.mime_type or 'unknown type'} is not accepted in {mode.value} mode"
            )

    def pick(
        self,
        mode: Union[Mode, str],
        source: Optional[SourceFile],
        config: Optional[ProcessingConfig] = None,
    ) -> IntakeOutcome:
        """Handle a file chosen with the file picker."""
        return self._dispatch(Mode.parse(mode), source, config, PICKER)

    def drop(
        self,
        mode: Union[Mode, str],
        source: Optional[SourceFile],
        config: Optional[ProcessingConfig] = None,
    ) -> IntakeOutcome:
        """Handle a file released on a drop zone."""
        return self._dispatch(Mode.parse(mode), source, config, DROP)

    def _dispatch(
        self,
        mode: Mode,
        source: Optional[SourceFile],
        config: Optional[ProcessingConfig],
        via: str,
    ) -> IntakeOutcome:
        try:
            self.validate(mode, source)
        except InvalidFileType as e:
            logger.debug("Ignoring %s file: %s", via, e)
            return IntakeOutcome(mode=mode, accepted=False, via=via, reason=str(e))

        if mode is Mode.IMAGE:
            invocation = self.image_adapter.process(source, config)
        else:
            invocation = self.document_adapter.process(source)

        return IntakeOutcome(
            mode=mode,
            accepted=True,
            via=via,
            result=invocation.result,
            notice=invocation.notice,
            superseded=invocation.superseded,
        )
