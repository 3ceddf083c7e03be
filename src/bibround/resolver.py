"""Variable substitution, author parsing and crossref inheritance."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from .authors import parse_authors
from .model import AuthorName, BibliographyDocument, Entry, Field, FieldKind, RawValue, Segment

logger = logging.getLogger(__name__)

MONTHS: dict[str, str] = {
    "jan": "January",
    "feb": "February",
    "mar": "March",
    "apr": "April",
    "may": "May",
    "jun": "June",
    "jul": "July",
    "aug": "August",
    "sep": "September",
    "oct": "October",
    "nov": "November",
    "dec": "December",
}


def resolve_value(raw: RawValue, lookup: Mapping[str, str]) -> str:
    """Resolve a raw value against a variable lookup keyed by lowercased name.

    Bare tokens naming a variable are replaced by its value; anything else is
    its own text. Segments are joined without a separator, as ``#`` does.
    """
    return "".join(_resolve_segment(segment, lookup) for segment in raw.segments)


def _resolve_segment(segment: Segment, lookup: Mapping[str, str]) -> str:
    if segment.is_bare:
        return lookup.get(segment.text.lower(), segment.text)
    return segment.text


def resolve(document: BibliographyDocument) -> BibliographyDocument:
    """Return a resolved copy of ``document``.

    Every entry of the copy gets ``resolved_fields`` and ``authors`` filled in,
    and fields missing from an entry are inherited from its ``crossref``
    target. The input document is not modified. Never raises.
    """
    resolved = document.copy()
    variables = resolved.variable_values()

    # Document variables take precedence over the built-in month names
    lookup = {**MONTHS, **variables}

    for entry in resolved.entries:
        _resolve_entry(entry, lookup, variables)

    _inherit_crossrefs(resolved.entries)

    logger.debug("Resolved %d entries", len(resolved.entries))
    return resolved


def _resolve_entry(entry: Entry, lookup: Mapping[str, str], variables: Mapping[str, str]) -> None:
    # Inherited fields from an earlier resolution are recomputed from the target
    for name in entry.inherited_fields:
        entry.fields.pop(name, None)
    entry.inherited_fields.clear()

    entry.resolved_fields = {
        name: resolve_value(item.value, lookup) for name, item in entry.fields.items()
    }
    entry.authors = []

    for name, item in entry.fields.items():
        if item.kind is FieldKind.AUTHOR:
            entry.authors = parse_authors(item.value, entry.resolved_fields[name], variables)


def _inherit_crossrefs(entries: list[Entry]) -> None:
    """Copy fields from crossref targets into the entries that reference them.

    Targets are snapshotted before any inheritance, so a target's own crossref
    is never followed.
    """
    snapshots: dict[str, tuple[Entry, dict[str, Field], dict[str, str], list[AuthorName]]] = {}
    # Filled back to front so the first entry with a duplicated key is the target
    for entry in reversed(entries):
        snapshots[entry.key.lower()] = (
            entry,
            dict(entry.fields),
            dict(entry.resolved_fields),
            list(entry.authors),
        )

    for entry in entries:
        crossref = next(
            (item for item in entry.fields.values() if item.kind is FieldKind.CROSSREF), None
        )
        if crossref is None:
            continue

        target_key = entry.resolved_fields[crossref.name].strip().lower()
        snapshot = snapshots.get(target_key)
        if snapshot is None:
            logger.debug("Entry %s references unknown crossref target %r", entry.key, target_key)
            continue

        target, target_fields, target_resolved, target_authors = snapshot
        if target is entry:
            continue

        for name, item in target_fields.items():
            if name in entry.fields:
                continue
            entry.fields[name] = Field(name, item.value)
            entry.resolved_fields[name] = target_resolved[name]
            entry.inherited_fields.add(name)
            if item.kind is FieldKind.AUTHOR:
                entry.authors = list(target_authors)

        logger.debug("Entry %s inherited fields from %s", entry.key, target.key)
