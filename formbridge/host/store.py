"""Host-side persistence of recent captures."""
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Optional

from pydantic import BaseModel, ValidationError

from ..core.config import StoreConfig
from ..extractor.models import FormSchema

logger = logging.getLogger(__name__)


class StoredCaptures(BaseModel):
    """On-disk layout: captures newest first plus the selection."""

    selected_index: Optional[int] = None
    captures: list[FormSchema] = []


class CaptureStore:
    """Keeps the last N captures and the selected one across restarts."""

    def __init__(self, path: Path = Path("data/captures.json"), max_entries: int = 10) -> None:
        self._path = path
        self._max_entries = max_entries
        self._captures: list[FormSchema] = []
        self._selected: Optional[int] = None
        self._lock = Lock()
        self._load()

    @classmethod
    def from_config(cls, config: StoreConfig) -> "CaptureStore":
        return cls(path=config.path, max_entries=config.max_entries)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def selected_index(self) -> Optional[int]:
        return self._selected

    def __len__(self) -> int:
        return len(self._captures)

    def add(self, schema: FormSchema) -> None:
        """Store a capture as the newest entry and select it."""
        with self._lock:
            self._captures.insert(0, schema)
            del self._captures[self._max_entries:]
            self._selected = 0
            self._save()

    def get_all(self) -> list[FormSchema]:
        """Get all captures, newest first."""
        with self._lock:
            return list(self._captures)

    def latest(self) -> Optional[FormSchema]:
        with self._lock:
            return self._captures[0] if self._captures else None

    def selected(self) -> Optional[FormSchema]:
        with self._lock:
            if self._selected is None:
                return None
            return self._captures[self._selected]

    def select(self, index: int) -> FormSchema:
        """Select a capture by index.

        Raises:
            IndexError: If there is no capture at that index.
        """
        with self._lock:
            schema = self._captures[self._checked(index)]
            self._selected = index
            self._save()
            return schema

    def remove(self, index: int) -> FormSchema:
        """Remove a capture by index.

        Raises:
            IndexError: If there is no capture at that index.
        """
        with self._lock:
            schema = self._captures.pop(self._checked(index))
            if self._selected is not None:
                if self._selected == index:
                    self._selected = 0 if self._captures else None
                elif self._selected > index:
                    self._selected -= 1
            self._save()
            return schema

    def clear(self) -> None:
        with self._lock:
            self._captures = []
            self._selected = None
            self._save()

    def _checked(self, index: int) -> int:
        if not 0 <= index < len(self._captures):
            raise IndexError(f"No capture at index {index}")
        return index

    def _save(self) -> None:
        """Save captures to disk."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = StoredCaptures(selected_index=self._selected, captures=self._captures)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(data.model_dump(mode="json"), f, indent=2)

    def _load(self) -> None:
        """Load captures from disk."""
        if not self._path.exists():
            return

        try:
            with open(self._path, encoding="utf-8") as f:
                data = StoredCaptures.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Could not load captures from {self._path}: {e}")
            return

        self._captures = data.captures[: self._max_entries]
        selected = data.selected_index
        if selected is not None and not 0 <= selected < len(self._captures):
            selected = 0 if self._captures else None
        self._selected = selected
        logger.info(f"Loaded {len(self._captures)} captures from {self._path}")
