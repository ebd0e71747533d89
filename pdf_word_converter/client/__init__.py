"""Client side of the PDF to Word converter.

Main components:
- job_tracker.py: Pending batch, submission and history state machine
- history_store.py: Persisted history log
- api_client.py: HTTP client for the conversion API
- cli.py: Console front end for the tracker
"""

from pdf_word_converter.client.api_client import ConverterAPIClient
from pdf_word_converter.client.history_store import HistoryStore
from pdf_word_converter.client.job_tracker import (
    CandidateFile,
    ConversionJobTracker,
    PendingFile,
    TrackerView,
)

__all__ = [
    "CandidateFile",
    "ConversionJobTracker",
    "ConverterAPIClient",
    "HistoryStore",
    "PendingFile",
    "TrackerView",
]
