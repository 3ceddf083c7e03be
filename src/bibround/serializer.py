"""Serialization of documents back to BibTeX source."""

from __future__ import annotations

from collections.abc import Mapping

from .authors import author_raw_value
from .model import BibliographyDocument, Entry, Field, FieldKind, quotable


def serialize(document: BibliographyDocument) -> str:
    """Render a document as BibTeX text.

    String variables come first, one ``@string`` block each, followed by the
    entries in document order. Fields inherited through ``crossref`` are not
    written. Never raises.
    """
    variables = document.variable_values()
    parts = [serialize_variable(key, value) for key, value in variables.items()]
    parts.extend(serialize_entry(entry, variables) for entry in document.entries)
    return "".join(parts)


def serialize_variable(key: str, value: str) -> str:
    source = f'"{value}"' if quotable(value) else f"{{{value}}}"
    return f"@string{{{key} = {source}}}\n\n"


def serialize_entry(entry: Entry, variables: Mapping[str, str]) -> str:
    """Render one entry, fields in their original order."""
    fields = [item for name, item in entry.fields.items() if name not in entry.inherited_fields]

    lines = [f"@{entry.entry_type}{{{entry.key},"]
    for index, item in enumerate(fields):
        line = f"  {item.name} = {_field_source(entry, item, variables)}"
        if index < len(fields) - 1:
            line += ","
        lines.append(line)
    lines.append("}")

    return "\n".join(lines) + "\n\n"


def _field_source(entry: Entry, item: Field, variables: Mapping[str, str]) -> str:
    if item.kind is FieldKind.AUTHOR and entry.authors:
        return author_raw_value(entry.authors, variables).to_bibtex()
    return item.value.to_bibtex()
