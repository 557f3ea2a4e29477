"""In-memory application state: result slots, overlay and view."""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Generic, NamedTuple, Optional, Set, TypeVar, Union

from .models import CompressedImageResult, Mode, OptimizedDocumentResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Ticket(NamedTuple):
    """Identifies one adapter invocation within a category."""
    category: Mode
    seq: int


@dataclass(frozen=True)
class Notice:
    """A user-visible message, shown the way a blocking alert would be."""
    level: str
    message: str

    def to_dict(self) -> dict:
        return {"level": self.level, "message": self.message}


class ResultSlot(Generic[T]):
    """
    Holds the most recent successful result for one category.

    Each invocation takes a ticket with begin(). Only the newest ticket
    may commit, so a slow, superseded invocation never overwrites a
    newer result.
    """

    def __init__(self, category: Mode):
        self.category = category
        self._value: Optional[T] = None
        self._issued = 0
        self._lock = threading.Lock()

    def begin(self) -> Ticket:
        """Issue a ticket for a new invocation."""
        with self._lock:
            self._issued += 1
            return Ticket(self.category, self._issued)

    def is_current(self, ticket: Ticket) -> bool:
        """Check whether ``ticket`` is the newest one issued."""
        with self._lock:
            return ticket.seq == self._issued

    def commit(self, ticket: Ticket, value: T) -> bool:
        """
        Replace the held value if ``ticket`` is the newest issued.

        Returns:
            True if the value was stored
        """
        with self._lock:
            if ticket.seq != self._issued:
                logger.info(
                    "Dropping superseded %s result (ticket %d, newest %d)",
                    self.category.value, ticket.seq, self._issued,
                )
                return False
            self._value = value
            return True

    @property
    def value(self) -> Optional[T]:
        with self._lock:
            return self._value

    @property
    def is_empty(self) -> bool:
        return self.value is None


class Overlay:
    """
    Blocking "processing" indicator.

    Visible while any invocation is outstanding. Showing a new ticket
    retires older tickets of the same category, whose results can no
    longer be committed.
    """

    def __init__(self):
        self._outstanding: Set[Ticket] = set()
        self._lock = threading.Lock()

    def show(self, ticket: Ticket) -> None:
        with self._lock:
            self._outstanding = {
                t for t in self._outstanding
                if t.category != ticket.category or t.seq > ticket.seq
            }
            self._outstanding.add(ticket)

    def hide(self, ticket: Ticket) -> None:
        with self._lock:
            self._outstanding.discard(ticket)

    @property
    def visible(self) -> bool:
        with self._lock:
            return bool(self._outstanding)


class ViewState:
    """Tracks which of the two sections is visible."""

    def __init__(self, active: Mode = Mode.IMAGE):
        self.sections: Dict[Mode, bool] = {mode: False for mode in Mode}
        self.sections[active] = True

    @property
    def active(self) -> Mode:
        return next(mode for mode, shown in self.sections.items() if shown)

    def switch_tab(self, tab: Union[Mode, str]) -> Mode:
        """
        Deactivate every section, then activate the one matching ``tab``.

        Raises:
            ValueError: If ``tab`` names no section
        """
        mode = Mode.parse(tab)
        for section in self.sections:
            self.sections[section] = False
        self.sections[mode] = True
        return mode


class AppState:
    """Everything one user session holds in memory."""

    def __init__(self):
        self.image_slot: ResultSlot[CompressedImageResult] = ResultSlot(Mode.IMAGE)
        self.document_slot: ResultSlot[OptimizedDocumentResult] = ResultSlot(Mode.DOCUMENT)
        self.overlay = Overlay()
        self.view = ViewState()

    def slot(self, category: Union[Mode, str]) -> ResultSlot:
        category = Mode.parse(category)
        if category is Mode.IMAGE:
            return self.image_slot
        return self.document_slot

    def to_dict(self) -> dict:
        image = self.image_slot.value
        document = self.document_slot.value
        return {
            "active_tab": self.view.active.value,
            "overlay_visible": self.overlay.visible,
            "image": image.to_dict() if image else None,
            "document": document.to_dict() if document else None,
        }
