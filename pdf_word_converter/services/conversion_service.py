"""Conversion service for batches of uploaded PDFs.

This service covers everything between the transport layer and the
response envelope:
- Upload validation (count, MIME type, size)
- Output name derivation
- The converter interface and its placeholder implementation
- Batch processing with per-file failure isolation
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import quote

from pdf_word_converter.config import (
    CONVERSION_CONFIG,
    PDF_CONTENT_TYPE,
    get_download_route,
    get_max_file_size_bytes,
)
from pdf_word_converter.exceptions import (
    ConversionFailedError,
    UploadValidationError,
)
from pdf_word_converter.services.temp_storage_service import (
    StoredUpload,
    TempStorageService,
)
from pdf_word_converter.web.schemas import ConversionResult, ConversionStatus

logger = logging.getLogger(__name__)

_PDF_SUFFIX = re.compile(r"\.pdf$", re.IGNORECASE)


def derive_converted_name(name: str) -> str:
    """
    Replace a trailing ``.pdf`` extension with ``.docx``.

    Example:
        >>> derive_converted_name("report.pdf")
        'report.docx'
    """
    if _PDF_SUFFIX.search(name):
        return _PDF_SUFFIX.sub(".docx", name)
    return f"{name}.docx"


def format_megabytes(size: int) -> str:
    """Render a byte count as megabytes with two decimals."""
    return f"{size / 1024 / 1024:.2f} MB"


class UploadValidator:
    """Validates upload parts before any of them is stored."""

    def __init__(self, max_file_size: Optional[int] = None):
        self.max_file_size = max_file_size if max_file_size is not None else get_max_file_size_bytes()

    @property
    def max_file_size_mb(self) -> int:
        return self.max_file_size // (1024 * 1024)

    def validate_type(self, filename: str, content_type: Optional[str]) -> None:
        """Reject anything that is not declared as a PDF."""
        if content_type != PDF_CONTENT_TYPE or not _PDF_SUFFIX.search(filename or ""):
            raise UploadValidationError(UploadValidationError.NOT_PDF)

    def validate_size(self, size: int) -> None:
        """Reject files over the per-file limit."""
        if size > self.max_file_size:
            raise UploadValidationError(
                UploadValidationError.TOO_LARGE.format(max_mb=self.max_file_size_mb)
            )

    def validate_batch(self, parts: Sequence[tuple]) -> None:
        """
        Validate a batch of ``(filename, content_type, size)`` tuples.

        The first invalid part rejects the whole batch.

        Raises:
            UploadValidationError: If the batch is empty or any part is invalid
        """
        if not parts:
            raise UploadValidationError(UploadValidationError.NO_FILES)

        for filename, content_type, size in parts:
            self.validate_type(filename, content_type)
            self.validate_size(size)


class DocumentConverter(ABC):
    """Turns one stored PDF into an output file."""

    @abstractmethod
    async def convert(self, upload: StoredUpload, destination: Path) -> None:
        """
        Convert ``upload`` and write the result to ``destination``.

        Raises:
            ConversionFailedError: If the file cannot be converted
        """


class PlaceholderConverter(DocumentConverter):
    """Stand-in converter that waits a while and writes a text placeholder.

    The wait grows with input size at ``ms_per_kb`` and is clamped to
    ``[min_delay, max_delay]`` seconds.
    """

    def __init__(
        self,
        min_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        ms_per_kb: Optional[float] = None,
    ):
        self.min_delay = min_delay if min_delay is not None else CONVERSION_CONFIG["min_delay_seconds"]
        self.max_delay = max_delay if max_delay is not None else CONVERSION_CONFIG["max_delay_seconds"]
        self.ms_per_kb = ms_per_kb if ms_per_kb is not None else CONVERSION_CONFIG["delay_ms_per_kb"]

    def processing_time(self, size: int) -> float:
        """Get the simulated processing time in seconds for ``size`` bytes."""
        seconds = (size / 1000) * self.ms_per_kb / 1000
        return min(self.max_delay, max(self.min_delay, seconds))

    @staticmethod
    def render_placeholder(upload: StoredUpload, completed_at: datetime) -> str:
        return (
            f"This is a converted Word document from {upload.original_name}\n\n"
            f"Original file size: {format_megabytes(upload.size)}\n"
            f"Conversion completed at: {completed_at.isoformat()}\n\n"
            "Note: This is a demo conversion. In a real implementation, "
            "the actual PDF content would be extracted and converted to Word format."
        )

    async def convert(self, upload: StoredUpload, destination: Path) -> None:
        if not upload.path.exists():
            raise ConversionFailedError(f"Uploaded file is missing: {upload.original_name}")

        await asyncio.sleep(self.processing_time(upload.size))

        destination.parent.mkdir(parents=True, exist_ok=True)
        content = self.render_placeholder(upload, datetime.now(timezone.utc))
        destination.write_text(content, encoding="utf-8")


class BatchConverter:
    """Processes a batch of stored uploads, one file at a time."""

    def __init__(
        self,
        storage: TempStorageService,
        converter: Optional[DocumentConverter] = None,
    ):
        self.storage = storage
        self.converter = converter or PlaceholderConverter()

    @staticmethod
    def build_download_url(stored_output_name: str, converted_name: str) -> str:
        """Address an output by its generated name, hinting the save name."""
        return (
            f"{get_download_route()}{quote(stored_output_name)}"
            f"?name={quote(converted_name)}"
        )

    def _discard_input(self, upload: StoredUpload) -> None:
        try:
            self.storage.remove_file(upload.path)
        except OSError as e:
            # Left for the stale-file sweep
            logger.error(f"Failed to remove upload {upload.path}: {e}")

    async def convert_file(self, upload: StoredUpload) -> ConversionResult:
        """
        Convert one stored upload.

        Never raises: failures are reported as an error result. The uploaded
        input is removed on every path.
        """
        converted_name = derive_converted_name(upload.original_name)
        output_name = derive_converted_name(upload.stored_name)

        try:
            await self.converter.convert(upload, self.storage.converted_path(output_name))
        except Exception as e:
            logger.error(f"Error converting {upload.original_name}: {e}")
            return ConversionResult(
                original_name=upload.original_name,
                converted_name=converted_name,
                size=upload.size,
                status=ConversionStatus.ERROR,
                error=str(e) or e.__class__.__name__,
            )
        finally:
            self._discard_input(upload)

        logger.info(f"Converted {upload.original_name} -> {output_name}")
        return ConversionResult(
            original_name=upload.original_name,
            converted_name=converted_name,
            size=upload.size,
            status=ConversionStatus.SUCCESS,
            download_url=self.build_download_url(output_name, converted_name),
        )

    async def convert_batch(self, uploads: List[StoredUpload]) -> List[ConversionResult]:
        """
        Convert every upload in order and return one result per input.

        Raises:
            UploadValidationError: If the batch is empty
        """
        if not uploads:
            raise UploadValidationError(UploadValidationError.NO_FILES)

        results = []
        for upload in uploads:
            results.append(await self.convert_file(upload))

        failed = sum(1 for r in results if r.status == ConversionStatus.ERROR)
        logger.info(f"Batch finished: {len(results) - failed} converted, {failed} failed")
        return results
