#!/usr/bin/env python3
"""
Command-line front end for the conversion job tracker.

Usage:
    python -m pdf_word_converter.client health
    python -m pdf_word_converter.client convert report.pdf slides.pdf
    python -m pdf_word_converter.client history
    python -m pdf_word_converter.client download <entry-id> --dest ./out
    python -m pdf_word_converter.client clear-history
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List

from pdf_word_converter.client.api_client import ConverterAPIClient
from pdf_word_converter.client.history_store import HistoryStore
from pdf_word_converter.client.job_tracker import (
    CandidateFile,
    ConversionJobTracker,
    TrackerView,
)
from pdf_word_converter.config import API_BASE_URL, HISTORY_PATH
from pdf_word_converter.exceptions import ConverterAPIError
from pdf_word_converter.web.schemas import ConversionStatus, HistoryEntry

logger = logging.getLogger(__name__)


class ConsoleView(TrackerView):
    """Prints tracker notices and progress to the terminal."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self.errors = 0

    def show_progress(self, percent: int, text: str) -> None:
        print(f"[{percent:3d}%] {text}", file=self.stream)

    def notify(self, message: str, level: str = "info") -> None:
        if level == "error":
            self.errors += 1
        marker = {"success": "✓", "error": "✗"}.get(level, "•")
        print(f"{marker} {message}", file=self.stream)


def format_entry(entry: HistoryEntry) -> str:
    when = entry.converted_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    line = f"{entry.id}  {when}  {entry.status.value:7s}  {entry.file_name}"
    if entry.status == ConversionStatus.SUCCESS:
        return f"{line} -> {entry.converted_name} ({entry.original_size})"
    return f"{line}: {entry.error}"


def print_entries(entries: List[HistoryEntry], empty_message: str) -> None:
    if not entries:
        print(empty_message)
        return
    for entry in entries:
        print(format_entry(entry))


def setup_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='python -m pdf_word_converter.client',
        description='Convert PDF files with the PDF to Word Converter API',
    )
    parser.add_argument(
        '--api-url',
        default=API_BASE_URL,
        help=f'Base URL of the API (default: {API_BASE_URL})'
    )
    parser.add_argument(
        '--history',
        type=Path,
        default=HISTORY_PATH,
        help=f'Client state file (default: {HISTORY_PATH})'
    )
    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('health', help='Check that the API is reachable')

    convert = subparsers.add_parser('convert', help='Upload PDFs as one batch')
    convert.add_argument('files', nargs='+', type=Path, help='PDF files to convert')

    subparsers.add_parser('history', help='Show conversion history, newest first')
    subparsers.add_parser('recent', help='Show recent successful conversions')

    download = subparsers.add_parser('download', help='Download a converted file')
    download.add_argument('entry_id', help='History entry id')
    download.add_argument('--dest', type=Path, default=Path.cwd(), help='Directory to save into')

    subparsers.add_parser('clear-history', help='Delete all history entries')

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    api_client = ConverterAPIClient(base_url=args.api_url)

    if args.command == 'health':
        try:
            health = api_client.health_check()
        except ConverterAPIError as e:
            print(f"✗ API not available: {e.message}")
            return 1
        print(f"✓ {health.get('status')}: {health.get('message')}")
        return 0

    view = ConsoleView()
    tracker = ConversionJobTracker(
        api_client,
        HistoryStore(args.history),
        view=view,
        download_dir=getattr(args, 'dest', None),
    )

    if args.command == 'convert':
        missing = [str(p) for p in args.files if not p.is_file()]
        if missing:
            logger.error(f"Files not found: {', '.join(missing)}")
            print(f"✗ Files not found: {', '.join(missing)}")
            return 1
        tracker.add_files(CandidateFile.from_path(p) for p in args.files)
        created = asyncio.run(tracker.submit_batch())
        print_entries(list(reversed(created)), "Nothing was converted.")
        failed = sum(1 for e in created if e.status == ConversionStatus.ERROR)
        return 0 if created and failed == 0 and view.errors == 0 else 1

    if args.command == 'history':
        print_entries(tracker.history, "No conversion history yet.")
        return 0

    if args.command == 'recent':
        print_entries(tracker.recent_downloads(), "No recent downloads.")
        return 0

    if args.command == 'download':
        saved = tracker.download_entry(args.entry_id)
        if saved is None:
            return 1
        print(f"Saved to {saved}")
        return 0

    if args.command == 'clear-history':
        tracker.clear_history()
        return 0

    return 1


if __name__ == '__main__':
    sys.exit(main())
