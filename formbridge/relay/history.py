"""Bounded capture history held by the relay."""
import itertools
import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Optional

from ..extractor.models import FormSchema
from ..protocol.messages import CaptureHistoryEntry

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10


class CaptureHistory:
    """Ring buffer of recent captures, newest first.

    Index 0 is always the newest entry. Adding past capacity evicts the
    oldest. The selected index points at the capture handed out by
    ``selected()``; a new capture selects itself.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self._entries: deque[CaptureHistoryEntry] = deque(maxlen=capacity)
        self._sequence = itertools.count(1)
        self._selected: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    @property
    def selected_index(self) -> Optional[int]:
        return self._selected

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, schema: FormSchema) -> CaptureHistoryEntry:
        """Record a capture and select it."""
        with self._lock:
            entry = CaptureHistoryEntry(
                sequence=next(self._sequence),
                received_at=datetime.now(timezone.utc),
                form_schema=schema,
            )
            if len(self._entries) == self.capacity:
                logger.debug(f"Evicting capture #{self._entries[-1].sequence}")
            self._entries.appendleft(entry)
            self._selected = 0
        return entry

    def entries(self) -> list[CaptureHistoryEntry]:
        with self._lock:
            return list(self._entries)

    def selected(self) -> Optional[CaptureHistoryEntry]:
        with self._lock:
            if self._selected is None:
                return None
            return self._entries[self._selected]

    def select(self, index: int) -> CaptureHistoryEntry:
        """Select an entry by index.

        Raises:
            IndexError: If there is no entry at that index.
        """
        with self._lock:
            self._check_index(index)
            self._selected = index
            return self._entries[index]

    def remove(self, index: int) -> CaptureHistoryEntry:
        """Remove an entry by index, keeping the selection on the same capture.

        Raises:
            IndexError: If there is no entry at that index.
        """
        with self._lock:
            self._check_index(index)
            entry = self._entries[index]
            del self._entries[index]
            if self._selected is not None:
                if self._selected == index:
                    self._selected = 0 if self._entries else None
                elif self._selected > index:
                    self._selected -= 1
            return entry

    def clear_selection(self) -> None:
        """Forget the selected capture; entries stay listed."""
        with self._lock:
            self._selected = None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._selected = None

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._entries):
            raise IndexError(f"No capture at index {index}")
