"""Client-side conversion job tracker.

This module holds the state machine behind the upload page:
- Selected files wait in a pending batch until submitted
- A submitted batch is sent as one request; its results are merged into
  the persisted history, newest first
- History entries with a download URL can be fetched and saved

The UI is not part of this module. Anything that wants to display the
tracker's state implements ``TrackerView``; the tracker calls it after
every state change.
"""

import asyncio
import logging
import mimetypes
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import ValidationError

from pdf_word_converter.client.api_client import ConverterAPIClient
from pdf_word_converter.client.formatting import format_file_size
from pdf_word_converter.client.history_store import HistoryStore
from pdf_word_converter.config import (
    DOWNLOAD_DIR,
    PDF_CONTENT_TYPE,
    RECENT_DOWNLOADS_LIMIT,
    get_max_file_size_bytes,
)
from pdf_word_converter.exceptions import ConverterAPIError
from pdf_word_converter.services.conversion_service import derive_converted_name
from pdf_word_converter.web.schemas import ConversionStatus, HistoryEntry

logger = logging.getLogger(__name__)


@dataclass
class CandidateFile:
    """A file offered for upload, before validation."""
    path: Path
    name: str
    size: int
    content_type: Optional[str]

    @classmethod
    def from_path(cls, path) -> "CandidateFile":
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            path=path,
            name=path.name,
            size=path.stat().st_size,
            content_type=content_type,
        )


@dataclass
class PendingFile:
    """A validated file waiting in the current batch."""
    file: CandidateFile
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: str = "pending"

    @property
    def name(self) -> str:
        return self.file.name

    @property
    def size(self) -> int:
        return self.file.size


class TrackerView:
    """Display hooks for the tracker. The defaults do nothing."""

    def render_files(self, files: List[PendingFile]) -> None:
        pass

    def set_submit_enabled(self, enabled: bool) -> None:
        pass

    def render_history(self, history: List[HistoryEntry]) -> None:
        pass

    def render_recent_downloads(self, recent: List[HistoryEntry]) -> None:
        pass

    def show_progress(self, percent: int, text: str) -> None:
        pass

    def hide_progress(self) -> None:
        pass

    def notify(self, message: str, level: str = "info") -> None:
        pass


class ConversionJobTracker:
    """Tracks pending uploads, batch submission and conversion history."""

    def __init__(
        self,
        api_client: ConverterAPIClient,
        history_store: HistoryStore,
        view: Optional[TrackerView] = None,
        download_dir: Optional[Path] = None,
        max_file_size: Optional[int] = None,
    ):
        self.api_client = api_client
        self.history_store = history_store
        self.view = view or TrackerView()
        self.download_dir = Path(download_dir) if download_dir else DOWNLOAD_DIR
        self.max_file_size = max_file_size if max_file_size is not None else get_max_file_size_bytes()

        self.files: List[PendingFile] = []
        self.history: List[HistoryEntry] = history_store.load()
        self.submitting = False

        self._render_files()
        self._render_history()

    # ========================
    # Derived state
    # ========================

    @property
    def can_submit(self) -> bool:
        return bool(self.files) and not self.submitting

    def recent_downloads(self) -> List[HistoryEntry]:
        """Most recent successful conversions, newest first."""
        successful = [e for e in self.history if e.status == ConversionStatus.SUCCESS]
        return successful[:RECENT_DOWNLOADS_LIMIT]

    def get_entry(self, entry_id: str) -> Optional[HistoryEntry]:
        return next((e for e in self.history if e.id == entry_id), None)

    # ========================
    # Rendering
    # ========================

    def _render_files(self) -> None:
        self.view.render_files(list(self.files))
        self.view.set_submit_enabled(self.can_submit)

    def _render_history(self) -> None:
        self.view.render_history(list(self.history))
        self.view.render_recent_downloads(self.recent_downloads())

    # ========================
    # Operations
    # ========================

    def add_files(self, candidates: Iterable[CandidateFile]) -> List[PendingFile]:
        """
        Validate candidates and append the accepted ones to the batch.

        Returns:
            The newly added pending files, in the order offered
        """
        added = []
        for candidate in candidates:
            if candidate.content_type != PDF_CONTENT_TYPE:
                self.view.notify(f"Only PDF files are supported ({candidate.name})", "error")
                continue
            if candidate.size > self.max_file_size:
                max_mb = self.max_file_size // (1024 * 1024)
                self.view.notify(f"File size must be less than {max_mb}MB ({candidate.name})", "error")
                continue
            pending = PendingFile(file=candidate)
            self.files.append(pending)
            added.append(pending)

        self._render_files()
        return added

    def remove_file(self, file_id: str) -> None:
        """Drop a pending file. Unknown ids are ignored."""
        self.files = [f for f in self.files if f.id != file_id]
        self._render_files()

    async def submit_batch(self) -> List[HistoryEntry]:
        """
        Send the whole batch and record the results in history.

        On transport failure the batch is left untouched. On success every
        result, including per-file errors, becomes a history entry and the
        batch is cleared.

        Returns:
            The history entries created for this batch (empty on failure)
        """
        if not self.files:
            return []

        batch = list(self.files)
        self.submitting = True
        self.view.set_submit_enabled(False)
        self.view.show_progress(10, "Uploading files...")

        try:
            results = await asyncio.to_thread(
                self.api_client.convert_files,
                [f.file.path for f in batch],
                [f.name for f in batch],
                [f.file.content_type for f in batch],
            )
            entries = self._history_entries_from_results(results)
        except (ConverterAPIError, OSError) as e:
            logger.error(f"Conversion error: {e}")
            self.submitting = False
            self.view.hide_progress()
            self.view.notify(f"Conversion failed: {getattr(e, 'message', None) or e}", "error")
            self._render_files()
            return []
        finally:
            self.submitting = False

        self.view.show_progress(50, "Converting files...")

        created = []
        for entry in entries:
            self.history.insert(0, entry)
            created.append(entry)
        self.history_store.save(self.history)

        self.view.show_progress(100, "Conversion completed!")

        # Errors are kept in history; nothing is retried
        batch_ids = {f.id for f in batch}
        self.files = [f for f in self.files if f.id not in batch_ids]
        self._render_files()
        self._render_history()

        self.view.hide_progress()
        self.view.notify("Files converted successfully!", "success")
        return created

    @classmethod
    def _history_entries_from_results(cls, results) -> List[HistoryEntry]:
        try:
            return [cls._history_entry_from_result(r) for r in results]
        except (ValidationError, AttributeError, TypeError) as e:
            raise ConverterAPIError(f"Invalid response from conversion API: {e}") from e

    @staticmethod
    def _history_entry_from_result(result: dict) -> HistoryEntry:
        common = dict(
            id=uuid.uuid4().hex,
            file_name=result.get("originalName"),
            converted_at=datetime.now(timezone.utc),
        )
        if result.get("status") == ConversionStatus.SUCCESS.value:
            size = result.get("size")
            return HistoryEntry(
                **common,
                converted_name=result.get("convertedName"),
                original_size=format_file_size(size) if size is not None else None,
                status=ConversionStatus.SUCCESS,
                download_url=result.get("downloadUrl"),
            )
        return HistoryEntry(
            **common,
            status=ConversionStatus.ERROR,
            error=result.get("error"),
        )

    def download_entry(self, entry_id: str) -> Optional[Path]:
        """
        Save the converted file of a history entry.

        Returns:
            Path of the saved file, or None if the entry is unknown, has no
            download URL or the download failed
        """
        entry = self.get_entry(entry_id)
        if entry is None or not entry.download_url:
            self.view.notify("Download not available", "error")
            return None

        # Only the final component of a server-supplied name is used
        filename = Path(entry.converted_name or derive_converted_name(entry.file_name)).name
        self.view.notify("Download started!", "success")
        try:
            return self.api_client.download(entry.download_url, self.download_dir / filename)
        except ConverterAPIError as e:
            self.view.notify(f"Download failed: {e.message}", "error")
            return None
        except OSError as e:
            logger.error(f"Could not save {filename}: {e}")
            self.view.notify(f"Download failed: {e}", "error")
            return None

    def clear_history(self) -> None:
        """Empty the history log."""
        self.history = []
        self.history_store.clear()
        self._render_history()
        self.view.notify("History cleared successfully", "success")
