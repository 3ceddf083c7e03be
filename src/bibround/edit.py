"""In-place editing of a bibliography document.

These helpers are the write side used by an editing layer. They change the raw
representation only; call :func:`bibround.resolve` afterwards to refresh
resolved values.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .authors import author_raw_value
from .exceptions import (
    DuplicateEntryError,
    EntryNotFoundError,
    InvalidDataError,
    VariableExistsError,
    VariableNotFoundError,
)
from .model import (
    AuthorName,
    BibliographyDocument,
    Entry,
    Field,
    FieldKind,
    RawValue,
    StringVariable,
    braces_balanced,
)
from .scanner import parse_value_text
from .types import EditBatch

logger = logging.getLogger(__name__)


def add_entry(document: BibliographyDocument, entry: Entry) -> None:
    """Append a new entry.

    Raises:
        DuplicateEntryError: If an entry with the same key exists
    """
    if document.find(entry.key) is not None:
        raise DuplicateEntryError(f"Entry with key '{entry.key}' already exists")
    document.entries.append(entry)
    logger.debug("Added entry %s", entry.key)


def replace_entry(document: BibliographyDocument, key: str, entry: Entry) -> None:
    """Replace the entry ``key`` with ``entry``, keeping its position.

    Raises:
        EntryNotFoundError: If no entry has key ``key``
        DuplicateEntryError: If ``entry`` renames onto another existing key
    """
    index = _index_of(document, key)
    if entry.key != key and document.find(entry.key) is not None:
        raise DuplicateEntryError(f"Entry with key '{entry.key}' already exists")
    document.entries[index] = entry
    logger.debug("Replaced entry %s", key)


def delete_entry(document: BibliographyDocument, key: str) -> Entry:
    """Remove and return the entry ``key``.

    Raises:
        EntryNotFoundError: If no entry has key ``key``
    """
    return document.entries.pop(_index_of(document, key))


def set_field(
    document: BibliographyDocument, key: str, name: str, value: RawValue | str
) -> Field:
    """Set a field of entry ``key``.

    ``value`` is either a :class:`RawValue` or BibTeX value source such as
    ``{Some Title}``, ``jan`` or ``me # " and " # "Doe, Jane"``.

    Raises:
        EntryNotFoundError: If no entry has key ``key``
        InvalidDataError: If ``value`` is text that does not parse as a value
    """
    entry = document.entries[_index_of(document, key)]
    raw = value if isinstance(value, RawValue) else _parse_raw(value)

    updated = entry.set_field(name, raw)
    if updated.kind is FieldKind.AUTHOR:
        # Stale until the next resolve; the raw value is written meanwhile
        entry.authors = []
    return updated


def remove_field(document: BibliographyDocument, key: str, name: str) -> bool:
    """Remove a field from entry ``key``. Returns ``False`` if it was absent."""
    entry = document.entries[_index_of(document, key)]
    removed = entry.fields.pop(name.lower(), None)
    if removed is None:
        return False
    entry.resolved_fields.pop(removed.name, None)
    if removed.kind is FieldKind.AUTHOR:
        entry.authors = []
    return True


def set_authors(document: BibliographyDocument, key: str, authors: Sequence[AuthorName]) -> None:
    """Replace the author list of entry ``key`` and rebuild its raw ``author`` field."""
    entry = document.entries[_index_of(document, key)]
    raw = author_raw_value(authors, document.variable_values())
    entry.set_field("author", raw)
    entry.authors = list(authors)


def add_variable(document: BibliographyDocument, key: str, value: str) -> StringVariable:
    """Define a new string variable.

    Raises:
        VariableExistsError: If the variable is already defined
    """
    if key.lower() in document.variables:
        raise VariableExistsError(f"String variable '{key}' already exists")
    return set_variable(document, key, value)


def set_variable(document: BibliographyDocument, key: str, value: str) -> StringVariable:
    """Define or replace a string variable.

    Raises:
        InvalidDataError: If the braces in ``value`` do not balance
    """
    if not braces_balanced(value):
        raise InvalidDataError(f"Unbalanced braces in value of '{key}': {value!r}")
    variable = StringVariable(key, value)
    document.variables[variable.key] = variable
    return variable


def delete_variable(document: BibliographyDocument, key: str) -> None:
    """Remove a string variable.

    Raises:
        VariableNotFoundError: If the variable is not defined
    """
    if document.variables.pop(key.lower(), None) is None:
        raise VariableNotFoundError(f"String variable '{key}' not found")


def apply_edits(document: BibliographyDocument, batch: EditBatch) -> list[str]:
    """Apply an edit batch, variables first.

    Returns:
        One human readable line per applied change

    Raises:
        EntryNotFoundError: If a field edit names an unknown entry
        VariableNotFoundError: If a deletion names an unknown variable
        InvalidDataError: If a field value does not parse or a variable value
            has unbalanced braces
    """
    changes: list[str] = []

    for variable_edit in batch.variables:
        if variable_edit.value is None:
            delete_variable(document, variable_edit.key)
            changes.append(f"@string {variable_edit.key}: deleted")
        else:
            set_variable(document, variable_edit.key, variable_edit.value)
            changes.append(f"@string {variable_edit.key}: set to {variable_edit.value!r}")

    for field_edit in batch.fields:
        if field_edit.value is None:
            if remove_field(document, field_edit.key, field_edit.field):
                changes.append(f"{field_edit.key}.{field_edit.field}: removed")
            else:
                logger.warning(f"{field_edit.key} has no field '{field_edit.field}' to remove")
        else:
            set_field(document, field_edit.key, field_edit.field, field_edit.value)
            changes.append(f"{field_edit.key}.{field_edit.field}: set to {field_edit.value}")

    logger.info("Applied %d edits", len(changes))
    return changes


def _index_of(document: BibliographyDocument, key: str) -> int:
    for index, entry in enumerate(document.entries):
        if entry.key == key:
            return index
    raise EntryNotFoundError(f"Entry with key '{key}' not found")


def _parse_raw(text: str) -> RawValue:
    raw = parse_value_text(text)
    if raw is None:
        raise InvalidDataError(f"Not a valid BibTeX value: {text!r}")
    return raw
