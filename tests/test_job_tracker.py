"""Tests for the client-side job tracker state machine."""

import asyncio
from pathlib import Path

import pytest

from pdf_word_converter.client.history_store import HistoryStore
from pdf_word_converter.client.job_tracker import (
    CandidateFile,
    ConversionJobTracker,
    TrackerView,
)
from pdf_word_converter.exceptions import ConverterAPIError
from pdf_word_converter.web.schemas import ConversionStatus


class RecordingView(TrackerView):
    def __init__(self):
        self.notices = []
        self.submit_enabled = []
        self.file_renders = []
        self.history_renders = []
        self.recent_renders = []
        self.progress = []

    def render_files(self, files):
        self.file_renders.append([f.name for f in files])

    def set_submit_enabled(self, enabled):
        self.submit_enabled.append(enabled)

    def render_history(self, history):
        self.history_renders.append([e.id for e in history])

    def render_recent_downloads(self, recent):
        self.recent_renders.append([e.id for e in recent])

    def show_progress(self, percent, text):
        self.progress.append((percent, text))

    def hide_progress(self):
        self.progress.append(None)

    def notify(self, message, level="info"):
        self.notices.append((level, message))


class FakeAPIClient:
    """Answers conversions with canned results and records calls."""

    def __init__(self, fail_names=(), error=None):
        self.fail_names = set(fail_names)
        self.error = error
        self.batches = []
        self.downloads = []

    def convert_files(self, paths, names=None, content_types=None):
        if self.error:
            raise self.error
        self.batches.append(list(names))
        results = []
        for name in names:
            if name in self.fail_names:
                results.append({"originalName": name, "status": "error", "error": "Corrupt PDF"})
            else:
                converted = name[:-4] + ".docx"
                results.append({
                    "originalName": name,
                    "convertedName": converted,
                    "size": 1536,
                    "status": "success",
                    "downloadUrl": f"/api/download/files-1-2.docx?name={converted}",
                })
        return results

    def download(self, url, destination):
        self.downloads.append((url, Path(destination)))
        return Path(destination)


def candidate(name, size=1024, content_type="application/pdf"):
    return CandidateFile(path=Path(name), name=name, size=size, content_type=content_type)


@pytest.fixture
def view():
    return RecordingView()


@pytest.fixture
def api():
    return FakeAPIClient()


@pytest.fixture
def store(tmp_path):
    return HistoryStore(tmp_path / "state.json")


@pytest.fixture
def tracker(api, store, view, tmp_path):
    return ConversionJobTracker(api, store, view=view, download_dir=tmp_path / "downloads")


def submit(tracker):
    return asyncio.run(tracker.submit_batch())


# ========================
# Selecting files
# ========================

def test_add_files_keeps_order_and_enables_submit(tracker, view):
    added = tracker.add_files([candidate("a.pdf"), candidate("b.pdf")])

    assert [f.name for f in tracker.files] == ["a.pdf", "b.pdf"]
    assert [f.id for f in added] == [f.id for f in tracker.files]
    assert all(f.status == "pending" for f in tracker.files)
    assert len({f.id for f in tracker.files}) == 2
    assert view.file_renders[-1] == ["a.pdf", "b.pdf"]
    assert view.submit_enabled[-1] is True


def test_add_files_rejects_non_pdf_and_oversize(tracker, view):
    tracker.add_files([
        candidate("notes.txt", content_type="text/plain"),
        candidate("ok.pdf"),
        candidate("huge.pdf", size=50 * 1024 * 1024 + 1),
        candidate("limit.pdf", size=50 * 1024 * 1024),
    ])

    assert [f.name for f in tracker.files] == ["ok.pdf", "limit.pdf"]
    errors = [m for level, m in view.notices if level == "error"]
    assert len(errors) == 2
    assert "Only PDF files are supported" in errors[0]
    assert "File size must be less than 50MB" in errors[1]


def test_nothing_accepted_leaves_submit_disabled(tracker, view):
    tracker.add_files([candidate("image.png", content_type="image/png")])
    assert tracker.files == []
    assert view.submit_enabled[-1] is False


def test_remove_file(tracker, view):
    first, second = tracker.add_files([candidate("a.pdf"), candidate("b.pdf")])

    tracker.remove_file(first.id)
    assert [f.name for f in tracker.files] == ["b.pdf"]

    tracker.remove_file("no-such-id")
    assert [f.name for f in tracker.files] == ["b.pdf"]

    tracker.remove_file(second.id)
    assert tracker.files == []
    assert view.submit_enabled[-1] is False


def test_candidate_from_path(tmp_path):
    pdf = tmp_path / "report.pdf"
    pdf.write_bytes(b"%PDF-1.4 content")

    c = CandidateFile.from_path(pdf)

    assert c.name == "report.pdf"
    assert c.size == len(b"%PDF-1.4 content")
    assert c.content_type == "application/pdf"


# ========================
# Submitting
# ========================

def test_submit_empty_batch_is_noop(tracker, api, view):
    assert submit(tracker) == []
    assert api.batches == []
    assert view.progress == []


def test_submit_records_history_and_clears_batch(tracker, api, store, view):
    tracker.add_files([candidate("a.pdf"), candidate("b.pdf")])

    created = submit(tracker)

    assert api.batches == [["a.pdf", "b.pdf"]]
    assert [e.file_name for e in created] == ["a.pdf", "b.pdf"]
    # Each result is prepended, so the last result ends up first
    assert [e.file_name for e in tracker.history] == ["b.pdf", "a.pdf"]
    assert tracker.files == []
    assert view.submit_enabled[-1] is False

    entry = tracker.history[0]
    assert entry.status == ConversionStatus.SUCCESS
    assert entry.converted_name == "b.docx"
    assert entry.original_size == "1.5 KB"
    assert entry.download_url.startswith("/api/download/")

    assert [e.id for e in store.load()] == [e.id for e in tracker.history]
    assert view.progress[0] == (10, "Uploading files...")
    assert (100, "Conversion completed!") in view.progress
    assert view.progress[-1] is None
    assert view.notices[-1] == ("success", "Files converted successfully!")


def test_per_file_errors_are_recorded_not_retried(store, view, tmp_path):
    api = FakeAPIClient(fail_names={"bad.pdf"})
    tracker = ConversionJobTracker(api, store, view=view, download_dir=tmp_path)
    tracker.add_files([candidate("good.pdf"), candidate("bad.pdf")])

    submit(tracker)

    assert tracker.files == []
    bad = tracker.history[0]
    assert bad.status == ConversionStatus.ERROR
    assert bad.error == "Corrupt PDF"
    assert bad.download_url is None
    assert len(api.batches) == 1


def test_transport_failure_keeps_batch(store, view, tmp_path):
    api = FakeAPIClient(error=ConverterAPIError("HTTP error! status: 500", status_code=500))
    tracker = ConversionJobTracker(api, store, view=view, download_dir=tmp_path)
    tracker.add_files([candidate("a.pdf")])

    assert submit(tracker) == []

    assert [f.name for f in tracker.files] == ["a.pdf"]
    assert tracker.history == []
    assert store.load() == []
    assert view.notices[-1] == ("error", "Conversion failed: HTTP error! status: 500")
    assert view.progress[-1] is None
    assert view.submit_enabled[-1] is True
    assert tracker.submitting is False


@pytest.mark.parametrize(
    "results",
    [
        [{"status": "success", "size": 10}],
        {"originalName": "a.pdf", "status": "success"},
    ],
)
def test_malformed_results_keep_batch_and_clear_progress(tracker, api, store, view, results):
    api.convert_files = lambda paths, names=None, content_types=None: results
    tracker.add_files([candidate("a.pdf")])

    assert submit(tracker) == []

    assert [f.name for f in tracker.files] == ["a.pdf"]
    assert tracker.history == []
    assert store.load() == []
    assert view.progress[-1] is None
    level, message = view.notices[-1]
    assert level == "error"
    assert message.startswith("Conversion failed: Invalid response from conversion API")
    assert view.submit_enabled[-1] is True


def test_sequential_submissions_are_newest_first(tracker, store):
    for name in ("first.pdf", "second.pdf", "third.pdf"):
        tracker.add_files([candidate(name)])
        submit(tracker)

    names = [e.file_name for e in store.load()]
    assert names[:3] == ["third.pdf", "second.pdf", "first.pdf"]


def test_history_is_read_at_startup(tracker, api, store, view, tmp_path):
    tracker.add_files([candidate("a.pdf")])
    submit(tracker)

    restarted = ConversionJobTracker(api, store, view=RecordingView(), download_dir=tmp_path)

    assert [e.id for e in restarted.history] == [e.id for e in tracker.history]


def test_recent_downloads_are_first_six_successes(store, view, tmp_path):
    api = FakeAPIClient(fail_names={"bad0.pdf", "bad1.pdf"})
    tracker = ConversionJobTracker(api, store, view=view, download_dir=tmp_path)
    names = [f"ok{i}.pdf" for i in range(8)] + ["bad0.pdf", "bad1.pdf"]
    tracker.add_files([candidate(n) for n in names])
    submit(tracker)

    recent = tracker.recent_downloads()

    assert len(recent) == 6
    assert all(e.status == ConversionStatus.SUCCESS for e in recent)
    assert [e.file_name for e in recent] == [f"ok{i}.pdf" for i in range(7, 1, -1)]
    assert view.recent_renders[-1] == [e.id for e in recent]


# ========================
# Downloading
# ========================

def test_download_success_entry(tracker, api, tmp_path):
    tracker.add_files([candidate("report.pdf")])
    [entry] = submit(tracker)

    saved = tracker.download_entry(entry.id)

    assert saved == tmp_path / "downloads" / "report.docx"
    assert api.downloads == [(entry.download_url, saved)]
    assert tracker.view.notices[-1] == ("success", "Download started!")


def test_download_unknown_entry(tracker, api, view):
    assert tracker.download_entry("missing") is None
    assert api.downloads == []
    assert view.notices[-1] == ("error", "Download not available")


def test_download_error_entry(store, view, tmp_path):
    api = FakeAPIClient(fail_names={"bad.pdf"})
    tracker = ConversionJobTracker(api, store, view=view, download_dir=tmp_path)
    tracker.add_files([candidate("bad.pdf")])
    [entry] = submit(tracker)

    assert tracker.download_entry(entry.id) is None
    assert api.downloads == []
    assert view.notices[-1] == ("error", "Download not available")


def test_download_falls_back_to_derived_name(tracker, api, store, tmp_path):
    tracker.add_files([candidate("report.pdf")])
    [entry] = submit(tracker)
    without_name = entry.model_copy(update={"converted_name": None})
    tracker.history = [without_name]

    saved = tracker.download_entry(entry.id)

    assert saved.name == "report.docx"


def test_download_failure_is_reported(tracker, api, view):
    tracker.add_files([candidate("report.pdf")])
    [entry] = submit(tracker)

    def broken_download(url, destination):
        raise ConverterAPIError("HTTP error! status: 404 (File not found)", status_code=404)

    api.download = broken_download

    assert tracker.download_entry(entry.id) is None
    assert view.notices[-1][0] == "error"


def test_download_write_failure_is_reported(tracker, api, view):
    tracker.add_files([candidate("report.pdf")])
    [entry] = submit(tracker)

    def unwritable(url, destination):
        raise PermissionError(f"Permission denied: '{destination}'")

    api.download = unwritable

    assert tracker.download_entry(entry.id) is None
    level, message = view.notices[-1]
    assert level == "error"
    assert message.startswith("Download failed: Permission denied")


def test_download_keeps_only_base_name(tracker, api, tmp_path):
    tracker.add_files([candidate("report.pdf")])
    [entry] = submit(tracker)
    tracker.history = [entry.model_copy(update={"converted_name": "../../escape.docx"})]

    saved = tracker.download_entry(entry.id)

    assert saved == tmp_path / "downloads" / "escape.docx"


# ========================
# Clearing history
# ========================

def test_clear_history_twice(tracker, store, view):
    tracker.add_files([candidate("a.pdf")])
    submit(tracker)

    tracker.clear_history()
    assert tracker.history == []
    assert store.load() == []

    tracker.clear_history()
    assert tracker.history == []
    assert store.load() == []
    assert view.history_renders[-1] == []
    assert view.recent_renders[-1] == []
    assert view.notices[-1] == ("success", "History cleared successfully")
