"""Export a held result as a downloadable file."""

import io
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .models import Mode
from .state import AppState
from .utils import export_filename

logger = logging.getLogger(__name__)

FILENAME_PREFIXES = {
    Mode.IMAGE: "compressed",
    Mode.DOCUMENT: "optimized",
}


@dataclass
class ExportArtifact:
    """A result ready to be saved. ``handle`` is closed once saving returns."""
    filename: str
    mime_type: str
    handle: io.BytesIO


class Exporter:
    """Builds download artifacts from the result slots."""

    def __init__(self, state: AppState, clock: Callable[[], float] = time.time):
        self.state = state
        self.clock = clock

    def export(
        self,
        category: Union[Mode, str],
        save_as: Callable[[ExportArtifact], None],
        label: Optional[str] = None,
    ) -> bool:
        """
        Hand the category's held result to ``save_as``.

        Args:
            category: Which result slot to export
            save_as: Performs the save, e.g. writes a file or builds a response
            label: Appended to the generated filename to tell exports apart

        Returns:
            False if the slot is empty and nothing was saved
        """
        category = Mode.parse(category)
        result = self.state.slot(category).value
        if result is None:
            logger.info("Nothing to export for %s", category.value)
            return False

        handle = io.BytesIO(result.data)
        artifact = ExportArtifact(
            filename=export_filename(
                FILENAME_PREFIXES[category], result.mime_type, self.clock, label
            ),
            mime_type=result.mime_type,
            handle=handle,
        )
        try:
            save_as(artifact)
        finally:
            handle.close()

        logger.info("Exported %s as %s", category.value, artifact.filename)
        return True
