"""Shared fixtures for the converter test suite.

Every test gets its own storage directories under ``tmp_path`` and an app
whose placeholder converter does not wait.
"""

import io

import pytest
from fastapi.testclient import TestClient

from pdf_word_converter.services.conversion_service import (
    BatchConverter,
    PlaceholderConverter,
)
from pdf_word_converter.services.temp_storage_service import TempStorageService
from pdf_word_converter.web.app import create_app

PDF_HEADER = b"%PDF-1.4\n"


def make_pdf_bytes(size: int) -> bytes:
    """Bytes that look like a PDF, padded to ``size``."""
    return PDF_HEADER + b"0" * max(0, size - len(PDF_HEADER))


def pdf_part(name: str, size: int = 1024, content_type: str = "application/pdf"):
    """A multipart ``files`` entry."""
    return ("files", (name, io.BytesIO(make_pdf_bytes(size)), content_type))


@pytest.fixture
def storage(tmp_path) -> TempStorageService:
    return TempStorageService(
        upload_dir=tmp_path / "uploads",
        converted_dir=tmp_path / "converted",
    )


@pytest.fixture
def instant_converter() -> PlaceholderConverter:
    return PlaceholderConverter(min_delay=0, max_delay=0)


@pytest.fixture
def batch_converter(storage, instant_converter) -> BatchConverter:
    return BatchConverter(storage, instant_converter)


@pytest.fixture
def app(storage, batch_converter):
    return create_app(storage=storage, batch_converter=batch_converter)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
