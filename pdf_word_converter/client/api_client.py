"""
Client for the PDF to Word conversion API.

Used by the job tracker to submit batches and fetch converted files.
Any object with a requests-style ``get``/``post`` interface can be passed
as the session (a ``requests.Session`` by default).
"""
import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urljoin

import requests

from pdf_word_converter.config import (
    API_BASE_URL,
    API_PREFIX,
    PDF_CONTENT_TYPE,
    UPLOAD_FIELD_NAME,
)
from pdf_word_converter.exceptions import ConverterAPIError

logger = logging.getLogger(__name__)


class ConverterAPIClient:
    """Client for the conversion API endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: int = 600,
        session: Optional[Any] = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Base URL of the API (e.g., "http://localhost:3000").
                      If not provided, reads PDF_CONVERTER_API_URL.
            timeout: Request timeout in seconds (default: 600 = 10 minutes)
            session: requests-compatible session to send requests with
        """
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return urljoin(self.base_url + "/", path.lstrip("/"))

    @staticmethod
    def _check(response, action: str) -> None:
        if response.status_code >= 400:
            try:
                detail = response.json().get("error")
            except ValueError:
                detail = None
            message = f"HTTP error! status: {response.status_code}"
            if detail:
                message = f"{message} ({detail})"
            logger.error(f"{action} failed: {message}")
            raise ConverterAPIError(message, status_code=response.status_code)

    def health_check(self) -> Dict:
        """
        Check if the API is running.

        Returns:
            Health payload with keys: status, message

        Raises:
            ConverterAPIError: If the API is unreachable or unhealthy
        """
        try:
            response = self.session.get(self._url(f"{API_PREFIX}/health"), timeout=10)
        except requests.RequestException as e:
            logger.error(f"Health check failed: {e}")
            raise ConverterAPIError(str(e)) from e
        self._check(response, "Health check")
        return response.json()

    def is_available(self) -> bool:
        """Check if the API is available (non-throwing)."""
        try:
            return self.health_check().get("status") == "OK"
        except ConverterAPIError:
            return False

    def convert_files(
        self,
        paths: Sequence[Path],
        names: Optional[Sequence[str]] = None,
        content_types: Optional[Sequence[str]] = None,
    ) -> List[Dict]:
        """
        Upload files as one batch and wait for the conversion results.

        Args:
            paths: Local files to upload, in submission order
            names: File names to send (defaults to each path's name)
            content_types: MIME types to send (defaults to application/pdf)

        Returns:
            List of result dicts in submission order

        Raises:
            ConverterAPIError: On connection failure or non-2xx status
        """
        names = list(names) if names else [Path(p).name for p in paths]
        content_types = list(content_types) if content_types else [PDF_CONTENT_TYPE] * len(paths)

        logger.info(f"Uploading {len(paths)} files for conversion")
        with ExitStack() as stack:
            files = [
                (UPLOAD_FIELD_NAME, (name, stack.enter_context(open(path, "rb")), content_type))
                for path, name, content_type in zip(paths, names, content_types)
            ]
            try:
                response = self.session.post(
                    self._url(f"{API_PREFIX}/convert"),
                    files=files,
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                logger.error(f"Conversion request failed: {e}")
                raise ConverterAPIError(str(e)) from e

        self._check(response, "Conversion")
        try:
            return response.json()["results"]
        except (ValueError, KeyError, TypeError) as e:
            raise ConverterAPIError(f"Invalid response from conversion API: {e}") from e

    def download(self, url: str, destination: Path) -> Path:
        """
        Fetch a converted file and save it.

        Args:
            url: Download URL as returned by the API (absolute or relative)
            destination: Local path to write

        Returns:
            The destination path

        Raises:
            ConverterAPIError: On connection failure or non-2xx status
        """
        try:
            response = self.session.get(self._url(url), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Download failed: {e}")
            raise ConverterAPIError(str(e)) from e

        self._check(response, "Download")
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(response.content)
        logger.info(f"Saved {destination} ({len(response.content)} bytes)")
        return destination
