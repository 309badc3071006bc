"""
Progress Store - Where PlayerProgress lives between sessions.

The store:
- Loads and saves one PlayerProgress document
- Stores on local disk as JSON (camelCase wire shape)
- No database required

Design decisions:
- A missing or unreadable file loads as fresh progress (logged)
- Writes go to a temp file first, then replace the real file
- Write failures raise; the caller decides whether they are fatal
"""

from __future__ import annotations
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from .schemas import PlayerProgress

logger = logging.getLogger(__name__)


class ProgressStore(ABC):
    """Abstract base class for progress persistence."""

    @abstractmethod
    def load_progress(self) -> PlayerProgress:
        """Saved progress, or fresh progress when nothing is saved."""
        pass

    @abstractmethod
    def save_progress(self, progress: PlayerProgress) -> None:
        """Persist progress. May raise OSError or a serialization error."""
        pass


class InMemoryProgressStore(ProgressStore):
    """Keeps progress in memory (tests, API simulations)."""

    def __init__(self, progress: PlayerProgress | None = None):
        self._wire = progress.to_wire() if progress else None

    def load_progress(self) -> PlayerProgress:
        if self._wire is None:
            return PlayerProgress()
        return PlayerProgress.model_validate(self._wire)

    def save_progress(self, progress: PlayerProgress) -> None:
        self._wire = progress.to_wire()


class JsonFileProgressStore(ProgressStore):
    """
    File-based progress store.

    Usage:
        store = JsonFileProgressStore(data_dir="~/.protocol_engine")
        progress = store.load_progress()
        progress.cipher_fragments += 10
        store.save_progress(progress)
    """

    FILENAME = "progress.json"

    def __init__(self, data_dir: str | Path | None = None, filename: str | None = None):
        if data_dir is None:
            data_dir = Path.home() / ".protocol_engine"
        self.data_dir = Path(data_dir).expanduser()
        self.path = self.data_dir / (filename or self.FILENAME)

    def load_progress(self) -> PlayerProgress:
        """
        Load saved progress.

        Returns fresh progress if nothing is saved or the file is unreadable.
        """
        if not self.path.exists():
            return PlayerProgress()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return PlayerProgress.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Could not read progress from %s, starting fresh: %s", self.path, e)
            return PlayerProgress()

    def save_progress(self, progress: PlayerProgress) -> None:
        """Write progress; raises OSError if the disk write fails."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(progress.to_wire(), f, indent=2)
            os.replace(tmp_path, self.path)
        finally:
            tmp_path.unlink(missing_ok=True)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
