"""JSON export of resolved entries."""

import logging
from pathlib import Path

import msgspec

from .authors import author_display
from .exceptions import FileOperationError
from .model import BibliographyDocument
from .resolver import resolve
from .types import ResolvedEntryRecord

logger = logging.getLogger(__name__)


def build_records(document: BibliographyDocument) -> list[ResolvedEntryRecord]:
    """Resolve ``document`` and describe each entry as a plain record."""
    resolved = resolve(document)
    variables = resolved.variable_values()

    return [
        ResolvedEntryRecord(
            type=entry.entry_type,
            key=entry.key,
            fields=dict(entry.resolved_fields),
            authors=[author_display(author, variables) for author in entry.authors],
            inherited=sorted(entry.inherited_fields),
        )
        for entry in resolved.entries
    ]


def export_resolved(document: BibliographyDocument) -> bytes:
    """Encode the resolved entries of ``document`` as indented JSON."""
    encoded = msgspec.json.encode(build_records(document))
    return msgspec.json.format(encoded, indent=2)


def write_export(document: BibliographyDocument, output_path: Path) -> int:
    """Write the resolved JSON export to ``output_path``.

    Returns:
        Number of exported entries

    Raises:
        FileOperationError: If the file cannot be written
    """
    payload = export_resolved(document)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(payload)
    except OSError as e:
        raise FileOperationError(f"Failed to write {output_path}: {e}") from e

    logger.info(f"Exported {len(document.entries)} resolved entries to {output_path}")
    return len(document.entries)
