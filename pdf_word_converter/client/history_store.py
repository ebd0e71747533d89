"""Persisted conversion history.

The history lives in a small JSON key-value file under a single key. It is
read once when the tracker starts and overwritten after every mutation.
"""
import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from pdf_word_converter.config import HISTORY_KEY, HISTORY_PATH
from pdf_word_converter.web.schemas import HistoryEntry

logger = logging.getLogger(__name__)


class HistoryStore:
    """Key-value file holding the serialized history log."""

    def __init__(self, path: Optional[Path] = None, key: str = HISTORY_KEY):
        self.path = Path(path) if path else HISTORY_PATH
        self.key = key

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable client state {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    def load(self) -> List[HistoryEntry]:
        """Read the history log, newest first. Invalid entries are dropped."""
        entries = []
        for raw in self._read_all().get(self.key, []):
            try:
                entries.append(HistoryEntry.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed history entry: {e}")
        return entries

    def save(self, entries: List[HistoryEntry]) -> None:
        """Overwrite the history log."""
        data = self._read_all()
        data[self.key] = [entry.to_wire() for entry in entries]
        self._write_all(data)

    def clear(self) -> None:
        """Remove the history record entirely."""
        data = self._read_all()
        if data.pop(self.key, None) is None and not self.path.exists():
            return
        self._write_all(data)
