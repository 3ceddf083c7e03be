"""Tests for file loading, saving and formatting."""

import json
from pathlib import Path

import pytest

from bibround.config import WorkspaceConfig
from bibround.exceptions import InvalidDataError
from bibround.library import format_file, load_document, load_edits, save_document

UNFORMATTED = """@ARTICLE{k1,
    Author = {John Smith},
    Year = 2020,
}
"""

FORMATTED = """@article{k1,
  author = {Smith, John},
  year = 2020
}

"""


def test_workspace_config_paths():
    """Test standard paths under a workspace root."""
    config = WorkspaceConfig.from_workspace(Path("/ws"))

    assert config.bib_path == Path("/ws/bib/library.bib")
    assert config.export_path == Path("/ws/bib/generated/resolved.json")
    assert config.edits_path == Path("/ws/data/edits.json")

    override = WorkspaceConfig.from_workspace(Path("/ws"), bib_path=Path("/other/refs.bib"))
    assert override.bib_path == Path("/other/refs.bib")


def test_load_document_logs_diagnostics(tmp_path, caplog):
    """Test malformed blocks are logged while loading."""
    bib_path = tmp_path / "library.bib"
    bib_path.write_text("@misc{no key here}\n@misc{ok, note = {x}}\n", encoding="utf-8")

    document = load_document(bib_path)

    assert [entry.key for entry in document.entries] == ["ok"]
    assert "missing-key" in caplog.text


def test_load_document_missing_file(tmp_path):
    """Test a missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError, match="Bibliography file not found"):
        load_document(tmp_path / "missing.bib")


def test_save_document_creates_directories(tmp_path):
    """Test saving into a directory that does not exist yet."""
    source = tmp_path / "library.bib"
    source.write_text(FORMATTED, encoding="utf-8")
    target = tmp_path / "out" / "copy.bib"

    save_document(load_document(source), target)

    assert target.read_text(encoding="utf-8") == FORMATTED


def test_format_file_in_place(tmp_path):
    """Test formatting rewrites the file and reports the change."""
    bib_path = tmp_path / "library.bib"
    bib_path.write_text(UNFORMATTED, encoding="utf-8")

    changed, text = format_file(bib_path)

    assert changed is True
    assert text == FORMATTED
    assert bib_path.read_text(encoding="utf-8") == FORMATTED

    changed, _ = format_file(bib_path)
    assert changed is False


def test_format_file_dry_run_and_output(tmp_path):
    """Test dry runs write nothing and output paths leave the input alone."""
    bib_path = tmp_path / "library.bib"
    bib_path.write_text(UNFORMATTED, encoding="utf-8")

    changed, text = format_file(bib_path, dry_run=True)
    assert changed is True
    assert text == FORMATTED
    assert bib_path.read_text(encoding="utf-8") == UNFORMATTED

    output_path = tmp_path / "formatted.bib"
    format_file(bib_path, output_path)
    assert output_path.read_text(encoding="utf-8") == FORMATTED
    assert bib_path.read_text(encoding="utf-8") == UNFORMATTED


def test_load_edits(tmp_path):
    """Test loading both accepted edit file shapes."""
    edits_path = tmp_path / "edits.json"
    edits_path.write_text(
        json.dumps(
            {
                "variables": [{"key": "pub", "value": "ACME"}],
                "fields": [{"key": "k1", "field": "publisher", "value": "pub"}],
            }
        ),
        encoding="utf-8",
    )

    batch = load_edits(edits_path)
    assert batch.variables[0].value == "ACME"
    assert batch.fields[0].field == "publisher"

    edits_path.write_text(json.dumps([{"key": "k1", "field": "note", "value": None}]))
    batch = load_edits(edits_path)
    assert batch.variables == []
    assert batch.fields[0].value is None


def test_load_edits_errors(tmp_path):
    """Test missing files, invalid JSON and unexpected shapes."""
    edits_path = tmp_path / "edits.json"
    with pytest.raises(FileNotFoundError, match="Edits file not found"):
        load_edits(edits_path)

    edits_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid JSON"):
        load_edits(edits_path)

    edits_path.write_text(json.dumps([{"key": "k1", "value": "x"}]), encoding="utf-8")
    with pytest.raises(InvalidDataError):
        load_edits(edits_path)

    edits_path.write_text(json.dumps([{"key": "k1", "field": "f", "value": "x", "extra": 1}]))
    with pytest.raises(InvalidDataError):
        load_edits(edits_path)

    edits_path.write_text(json.dumps("just a string"), encoding="utf-8")
    with pytest.raises(InvalidDataError, match="Expected object or array"):
        load_edits(edits_path)
