"""Tests for the command-line front end."""

import pytest

from conftest import make_pdf_bytes
from pdf_word_converter.client import cli


class CannedAPIClient:
    """Reports every file named in ``fail_names`` as a failed conversion."""

    def __init__(self, fail_names=()):
        self.fail_names = set(fail_names)

    def convert_files(self, paths, names=None, content_types=None):
        results = []
        for name in names:
            if name in self.fail_names:
                results.append({"originalName": name, "status": "error", "error": "Corrupt PDF"})
            else:
                results.append({
                    "originalName": name,
                    "convertedName": name[:-4] + ".docx",
                    "size": 1024,
                    "status": "success",
                    "downloadUrl": "/api/download/files-1-2.docx",
                })
        return results


@pytest.fixture
def pdfs(tmp_path):
    paths = []
    for name in ("good.pdf", "bad.pdf"):
        path = tmp_path / name
        path.write_bytes(make_pdf_bytes(1024))
        paths.append(path)
    return paths


def run_convert(monkeypatch, tmp_path, paths, fail_names=()):
    monkeypatch.setattr(cli, "ConverterAPIClient", lambda base_url=None: CannedAPIClient(fail_names))
    argv = ["--history", str(tmp_path / "state.json"), "convert"] + [str(p) for p in paths]
    return cli.main(argv)


def test_convert_exits_zero_when_all_succeed(monkeypatch, tmp_path, pdfs, capsys):
    assert run_convert(monkeypatch, tmp_path, pdfs) == 0
    assert "good.pdf -> good.docx" in capsys.readouterr().out


def test_convert_exits_nonzero_on_per_file_error(monkeypatch, tmp_path, pdfs, capsys):
    assert run_convert(monkeypatch, tmp_path, pdfs, fail_names={"bad.pdf"}) == 1
    assert "bad.pdf: Corrupt PDF" in capsys.readouterr().out


def test_convert_missing_file(monkeypatch, tmp_path):
    assert run_convert(monkeypatch, tmp_path, [tmp_path / "nowhere.pdf"]) == 1
