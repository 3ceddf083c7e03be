"""Sorting functionality for bibliography documents."""

import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .library import load_document, save_document
from .model import BibliographyDocument, Entry
from .resolver import resolve

logger = logging.getLogger(__name__)

SORT_MODES = ("key", "author", "year", "type")

_LEADING_DIGITS = re.compile(r"\s*(\d+)")


def sort_entries(document: BibliographyDocument, by: str = "key") -> list[Entry]:
    """Return the entries of ``document`` in sorted order.

    Modes:
        ``key``: alphabetically by citekey
        ``author``: by resolved author text
        ``year``: newest first, entries without a numeric year last
        ``type``: by entry type

    The sort is stable and the returned entries are the document's own objects.

    Raises:
        ValueError: If ``by`` is not a known sort mode
    """
    if by not in SORT_MODES:
        raise ValueError(f"Invalid sort mode: {by}")

    # Author and year are compared on resolved values
    resolved = resolve(document)
    sort_key = _SORT_KEYS[by]
    pairs = sorted(zip(resolved.entries, document.entries), key=lambda pair: sort_key(pair[0]))
    return [original for _, original in pairs]


def sort_library(library_path: Path, by: str = "key") -> int:
    """Sort the entries of a .bib file in place.

    Args:
        library_path: Path to the .bib file
        by: Sort mode, one of :data:`SORT_MODES`

    Returns:
        Number of entries written
    """
    logger.info(f"Sorting {library_path.name} by {by}")

    document = load_document(library_path)
    document.entries = sort_entries(document, by)
    save_document(document, library_path)

    logger.info(f"✓ Successfully sorted {len(document.entries)} entries by {by}")
    return len(document.entries)


def _year(entry: Entry) -> int:
    match = _LEADING_DIGITS.match(entry.resolved("year"))
    return int(match.group(1)) if match else 0


_SORT_KEYS: dict[str, Callable[[Entry], Any]] = {
    "key": lambda entry: entry.key,
    "author": lambda entry: entry.resolved("author").lower(),
    "year": lambda entry: -_year(entry),
    "type": lambda entry: entry.entry_type,
}
