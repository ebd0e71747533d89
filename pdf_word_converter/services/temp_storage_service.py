"""Temporary storage service for uploaded and converted files.

This service manages the two flat storage areas used during conversion:
- uploads: incoming PDFs, removed as soon as they have been processed
- converted: placeholder outputs, served for download until swept

It also owns the stale file sweep that runs on a fixed interval for the
lifetime of the server process.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Optional

from pdf_word_converter.config import (
    CONVERSION_CONFIG,
    UPLOAD_FIELD_NAME,
    get_converted_dir,
    get_upload_dir,
)
from pdf_word_converter.exceptions import FileNotFoundInStorageError

logger = logging.getLogger(__name__)

_COPY_CHUNK_SIZE = 1024 * 1024


@dataclass
class StoredUpload:
    """An uploaded file that has been written to the uploads area."""
    original_name: str
    stored_name: str
    path: Path
    size: int
    content_type: Optional[str] = None


class TempStorageService:
    """Service for managing temporary file storage during conversion."""

    def __init__(
        self,
        upload_dir: Optional[Path] = None,
        converted_dir: Optional[Path] = None,
    ):
        """
        Initialize the temp storage service.

        Args:
            upload_dir: Directory for incoming uploads (defaults to config)
            converted_dir: Directory for converted outputs (defaults to config)
        """
        self.upload_dir = Path(upload_dir) if upload_dir else get_upload_dir()
        self.converted_dir = Path(converted_dir) if converted_dir else get_converted_dir()
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.converted_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def generate_stored_name(original_name: str, field_name: str = UPLOAD_FIELD_NAME) -> str:
        """
        Build a collision-resistant name for an uploaded file.

        The name is ``<field>-<epoch ms>-<random>.<ext>``, keeping the
        extension of the original file name.
        """
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"{field_name}-{unique_suffix}{Path(original_name).suffix}"

    def save_upload(
        self,
        original_name: str,
        source: BinaryIO,
        content_type: Optional[str] = None,
    ) -> StoredUpload:
        """
        Copy an uploaded file's content into the uploads area.

        Args:
            original_name: File name as sent by the client
            source: Readable binary stream positioned at the start
            content_type: MIME type as sent by the client

        Returns:
            StoredUpload describing the saved file
        """
        stored_name = self.generate_stored_name(original_name)
        path = self.upload_dir / stored_name

        size = 0
        try:
            with open(path, "wb") as out:
                while True:
                    chunk = source.read(_COPY_CHUNK_SIZE)
                    if not chunk:
                        break
                    out.write(chunk)
                    size += len(chunk)
        except OSError:
            path.unlink(missing_ok=True)
            raise

        logger.debug(f"Saved upload: {path} ({size} bytes)")
        return StoredUpload(
            original_name=original_name,
            stored_name=stored_name,
            path=path,
            size=size,
            content_type=content_type,
        )

    def remove_file(self, path: Path) -> bool:
        """
        Remove a file if it still exists.

        Returns:
            True if a file was removed, False if it was already gone
        """
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.debug(f"Removed temp file: {path}")
        return True

    def converted_path(self, name: str) -> Path:
        """Get the output location for a converted file name."""
        return self.converted_dir / name

    def get_converted_file(self, name: str) -> Path:
        """
        Look up a converted file by name.

        Raises:
            FileNotFoundInStorageError: If no such file exists in the
                converted area
        """
        path = (self.converted_dir / name).resolve()
        if path.parent != self.converted_dir.resolve() or not path.is_file():
            raise FileNotFoundInStorageError(name)
        return path

    def cleanup_stale_files(self, max_age_hours: Optional[float] = None) -> int:
        """
        Delete files in both storage areas older than the specified age.

        Deletion errors are logged and skipped; this never raises.

        Args:
            max_age_hours: Maximum age in hours before cleanup

        Returns:
            Number of files deleted
        """
        if max_age_hours is None:
            max_age_hours = CONVERSION_CONFIG["max_file_age_hours"]

        max_age_seconds = max_age_hours * 60 * 60
        now = time.time()
        cleaned = 0

        for directory in (self.upload_dir, self.converted_dir):
            if not directory.exists():
                continue

            try:
                entries = list(directory.iterdir())
            except OSError as e:
                logger.error(f"Failed to list {directory}: {e}")
                continue

            for entry in entries:
                try:
                    if not entry.is_file():
                        continue
                    if now - entry.stat().st_mtime <= max_age_seconds:
                        continue
                    entry.unlink()
                    cleaned += 1
                    logger.info(f"Cleaned up old file: {entry}")
                except OSError as e:
                    logger.error(f"Error deleting {entry}: {e}")

        if cleaned > 0:
            logger.info(f"Cleaned up {cleaned} stale files")

        return cleaned

    def get_storage_stats(self) -> dict:
        """
        Get statistics about temporary storage usage.

        Returns:
            Dictionary with per-area file counts and sizes
        """
        stats = {}
        for label, directory in (("uploads", self.upload_dir), ("converted", self.converted_dir)):
            files: List[Path] = []
            if directory.exists():
                files = [f for f in directory.iterdir() if f.is_file()]
            total_size = sum(f.stat().st_size for f in files)
            stats[label] = {
                "total_files": len(files),
                "total_size_bytes": total_size,
                "total_size_mb": round(total_size / (1024 * 1024), 2),
            }
        return stats


async def run_periodic_cleanup(
    storage: TempStorageService,
    interval_seconds: Optional[float] = None,
    max_age_hours: Optional[float] = None,
) -> None:
    """
    Sweep stale files on a fixed interval until cancelled.

    The first sweep happens one interval after start. Failures are logged
    and the loop carries on.
    """
    if interval_seconds is None:
        interval_seconds = CONVERSION_CONFIG["cleanup_interval_seconds"]

    logger.info(f"Stale file sweep scheduled every {interval_seconds} seconds")
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(storage.cleanup_stale_files, max_age_hours)
        except Exception as e:
            logger.error(f"Stale file sweep failed: {e}")
