#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Centralized configuration for pdf_word_converter.

This module is the single source of truth for storage paths, upload limits
and timings used by both the conversion server and the client tracker.
Values can be overridden via environment variables (a ``.env`` file in the
working directory is loaded first if present).

Environment Variables:
    PDF_CONVERTER_BASE_DIR: Root for the storage directories (default: cwd)
    PDF_CONVERTER_USE_SYSTEM_TEMP: Keep storage under the system temp dir
    PDF_CONVERTER_UPLOAD_DIR: Override uploads directory
    PDF_CONVERTER_CONVERTED_DIR: Override converted files directory
    PDF_CONVERTER_MAX_FILE_SIZE_MB: Per-file upload limit
    PDF_CONVERTER_MIN_DELAY_SECONDS / PDF_CONVERTER_MAX_DELAY_SECONDS:
        Bounds for the simulated conversion time
    PDF_CONVERTER_CLEANUP_INTERVAL_SECONDS: Stale file sweep interval
    PDF_CONVERTER_MAX_FILE_AGE_HOURS: Age after which temp files are swept
    PDF_CONVERTER_HOST / PDF_CONVERTER_PORT: Server bind address
    PDF_CONVERTER_API_URL: Base URL used by the client
    PDF_CONVERTER_HISTORY_PATH: Client history file
    PDF_CONVERTER_DOWNLOAD_DIR: Where the client saves downloads
"""

import os
import tempfile
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Storage root. The serverless build keeps everything under the temp dir.
if _env_bool('PDF_CONVERTER_USE_SYSTEM_TEMP'):
    BASE_DIR = Path(tempfile.gettempdir())
else:
    BASE_DIR = Path(os.getenv('PDF_CONVERTER_BASE_DIR', os.getcwd()))

UPLOAD_DIR = Path(os.getenv('PDF_CONVERTER_UPLOAD_DIR', str(BASE_DIR / 'uploads')))
CONVERTED_DIR = Path(os.getenv('PDF_CONVERTER_CONVERTED_DIR', str(BASE_DIR / 'converted')))

# HTTP surface
API_PREFIX = '/api'
UPLOAD_FIELD_NAME = 'files'
PDF_CONTENT_TYPE = 'application/pdf'
DOCX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'
SERVER_HOST = os.getenv('PDF_CONVERTER_HOST', '0.0.0.0')
SERVER_PORT = int(os.getenv('PDF_CONVERTER_PORT', '3000'))

CONVERSION_CONFIG = {
    "max_file_size_mb": int(os.getenv('PDF_CONVERTER_MAX_FILE_SIZE_MB', '50')),
    "min_delay_seconds": float(os.getenv('PDF_CONVERTER_MIN_DELAY_SECONDS', '1.0')),
    "max_delay_seconds": float(os.getenv('PDF_CONVERTER_MAX_DELAY_SECONDS', '5.0')),
    # Simulated work grows by roughly 1ms per KB of input
    "delay_ms_per_kb": 1.0,
    "cleanup_interval_seconds": int(os.getenv('PDF_CONVERTER_CLEANUP_INTERVAL_SECONDS', '3600')),
    "max_file_age_hours": float(os.getenv('PDF_CONVERTER_MAX_FILE_AGE_HOURS', '24')),
}

# Client side
API_BASE_URL = os.getenv('PDF_CONVERTER_API_URL', f'http://localhost:{SERVER_PORT}')
HISTORY_PATH = Path(os.getenv(
    'PDF_CONVERTER_HISTORY_PATH',
    str(Path.home() / '.pdf_word_converter' / 'client_state.json'),
))
HISTORY_KEY = 'conversionHistory'
DOWNLOAD_DIR = Path(os.getenv('PDF_CONVERTER_DOWNLOAD_DIR', os.getcwd()))
RECENT_DOWNLOADS_LIMIT = 6


def get_upload_dir() -> Path:
    """Get the uploads directory, creating it if needed."""
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    return UPLOAD_DIR


def get_converted_dir() -> Path:
    """Get the converted files directory, creating it if needed."""
    CONVERTED_DIR.mkdir(parents=True, exist_ok=True)
    return CONVERTED_DIR


def get_max_file_size_bytes() -> int:
    """Get the per-file upload limit in bytes.

    Example:
        >>> get_max_file_size_bytes()
        52428800
    """
    return CONVERSION_CONFIG["max_file_size_mb"] * 1024 * 1024


def get_download_route() -> str:
    """Get the route prefix converted files are served from."""
    return f"{API_PREFIX}/download/"


if __name__ == "__main__":
    print("=" * 60)
    print("PDF to Word Converter - Configuration")
    print("=" * 60)
    print(f"BASE_DIR:        {BASE_DIR}")
    print(f"UPLOAD_DIR:      {UPLOAD_DIR}")
    print(f"CONVERTED_DIR:   {CONVERTED_DIR}")
    print(f"API_BASE_URL:    {API_BASE_URL}")
    print(f"HISTORY_PATH:    {HISTORY_PATH}")
    for key, value in CONVERSION_CONFIG.items():
        print(f"{key + ':':17s}{value}")
    print("=" * 60)
