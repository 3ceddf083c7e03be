"""Tests for the sort module."""

import tempfile
from pathlib import Path

import pytest

from bibround import parse
from bibround.library import load_document
from bibround.sort import sort_entries, sort_library

LIBRARY = """@string{ali = "Zebra, Alice"}

@book{zebra-2020,
  author = ali,
  title = {Zebras and Their Stripes},
  year = {2020}
}

@article{alpha-2019,
  author = {Alpha, Bob},
  title = {Alpha Particles},
  year = {2019}
}

@misc{undated,
  author = {Middle, Max},
  title = {No Year}
}

@book{beta-2021,
  author = {Beta, Charlie},
  title = {Beta Testing},
  year = {2021}
}
"""


@pytest.fixture
def temp_library_bib():
    """Create a temporary library.bib file with test entries."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".bib", delete=False, encoding="utf-8") as f:
        f.write(LIBRARY)
        return Path(f.name)


def _keys(by: str) -> list[str]:
    return [entry.key for entry in sort_entries(parse(LIBRARY), by)]


def test_sort_by_key() -> None:
    """Test sorting alphabetically by citekey."""
    assert _keys("key") == ["alpha-2019", "beta-2021", "undated", "zebra-2020"]


def test_sort_by_author_uses_resolved_names() -> None:
    """Test the author sort sees variable values, not variable names."""
    assert _keys("author") == ["alpha-2019", "beta-2021", "undated", "zebra-2020"]


def test_sort_by_year_newest_first() -> None:
    """Test the year sort puts entries without a year last."""
    assert _keys("year") == ["beta-2021", "zebra-2020", "alpha-2019", "undated"]


def test_sort_by_type_is_stable() -> None:
    """Test entries of the same type keep their relative order."""
    assert _keys("type") == ["alpha-2019", "zebra-2020", "beta-2021", "undated"]


def test_sort_returns_unresolved_entries() -> None:
    """Test the sorted entries are the document's own objects."""
    document = parse(LIBRARY)

    entries = sort_entries(document, "year")

    assert all(any(entry is own for own in document.entries) for entry in entries)
    assert all(entry.resolved_fields == {} for entry in entries)


def test_invalid_sort_mode() -> None:
    """Test an unknown mode raises ValueError."""
    with pytest.raises(ValueError, match="Invalid sort mode: title"):
        sort_entries(parse(LIBRARY), "title")


def test_sort_library(temp_library_bib: Path) -> None:
    """Test sorting a file in place."""
    try:
        count = sort_library(temp_library_bib, by="key")

        assert count == 4
        document = load_document(temp_library_bib)
        assert [entry.key for entry in document.entries] == [
            "alpha-2019",
            "beta-2021",
            "undated",
            "zebra-2020",
        ]
        assert document.variable_values() == {"ali": "Zebra, Alice"}
        content = temp_library_bib.read_text(encoding="utf-8")
        assert "  author = ali,\n" in content
    finally:
        temp_library_bib.unlink()
