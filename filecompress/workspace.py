"""One page's session: state plus the components that act on it."""

import time
from typing import Callable, Optional, Union

from .adapters import DocumentProcessingAdapter, ImageProcessingAdapter
from .document_optimizer import DocumentOptimizer
from .export import Exporter
from .image_compressor import ImageCompressor
from .intake import FileIntake
from .models import Mode
from .state import AppState


class Workspace:
    """Wires a single AppState into the adapters, intake and exporter."""

    def __init__(
        self,
        compressor: Optional[ImageCompressor] = None,
        optimizer: Optional[DocumentOptimizer] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.state = AppState()
        self.image_adapter = ImageProcessingAdapter(self.state, compressor)
        self.document_adapter = DocumentProcessingAdapter(self.state, optimizer)
        self.intake = FileIntake(self.image_adapter, self.document_adapter)
        self.exporter = Exporter(self.state)
        self.clock = clock
        self.last_used = clock()

    def touch(self) -> None:
        """Record that the workspace was just used."""
        self.last_used = self.clock()

    def idle_seconds(self) -> float:
        return self.clock() - self.last_used

    def switch_tab(self, tab: Union[Mode, str]) -> Mode:
        return self.state.view.switch_tab(tab)

    def to_dict(self) -> dict:
        return self.state.to_dict()
