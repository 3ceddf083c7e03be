"""Loading and saving BibTeX files and edit batches."""

import json
import logging
from pathlib import Path

from .exceptions import FileOperationError
from .json_validation import validate_edit_batch
from .model import BibliographyDocument
from .resolver import resolve
from .scanner import parse
from .serializer import serialize
from .types import EditBatch

logger = logging.getLogger(__name__)


def read_text(bib_path: Path) -> str:
    """Read a bibliography file as UTF-8.

    Raises:
        FileNotFoundError: If the file doesn't exist
        FileOperationError: If the file cannot be read or decoded
    """
    if not bib_path.exists():
        raise FileNotFoundError(f"Bibliography file not found: {bib_path}")

    try:
        return bib_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileOperationError(f"Failed to read {bib_path}: {e}") from e


def load_document(bib_path: Path) -> BibliographyDocument:
    """Parse a bibliography file into a raw document.

    Args:
        bib_path: Path to the .bib file

    Returns:
        The parsed, unresolved document

    Raises:
        FileNotFoundError: If the file doesn't exist
        FileOperationError: If the file cannot be read or decoded
    """
    logger.debug(f"Parsing .bib file: {bib_path}")
    document = parse(read_text(bib_path))

    for diagnostic in document.diagnostics:
        logger.warning(f"{bib_path.name}: {diagnostic}")

    logger.debug(f"Found {len(document.entries)} entries in {bib_path.name}")
    return document


def save_document(document: BibliographyDocument, bib_path: Path) -> None:
    """Serialize a document and write it to ``bib_path``.

    Raises:
        FileOperationError: If the file cannot be written
    """
    try:
        bib_path.parent.mkdir(parents=True, exist_ok=True)
        with open(bib_path, "w", encoding="utf-8") as f:
            f.write(serialize(document))
    except OSError as e:
        raise FileOperationError(f"Failed to write {bib_path}: {e}") from e

    logger.info(f"Updated {bib_path} with {len(document.entries)} entries")


def format_file(
    bib_path: Path, output_path: Path | None = None, *, dry_run: bool = False
) -> tuple[bool, str]:
    """Rewrite a bibliography file in canonical form.

    Args:
        bib_path: Path to the .bib file
        output_path: Where to write the result (default: ``bib_path``)
        dry_run: If ``True`` compute the result without writing it

    Returns:
        Tuple ``(changed, text)``; ``changed`` tells whether the formatted text
        differs from the current contents of the input file
    """
    original = read_text(bib_path)
    document = resolve(parse(original))
    formatted = serialize(document)
    changed = formatted != original

    if dry_run:
        logger.info(f"Dry run: {bib_path.name} {'would change' if changed else 'is unchanged'}")
        return changed, formatted

    target = output_path or bib_path
    if changed or target != bib_path:
        save_document(document, target)

    return changed, formatted


def load_edits(edits_path: Path) -> EditBatch:
    """Load a JSON edit batch.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the JSON is invalid
        InvalidDataError: If the JSON does not describe edits
    """
    try:
        with open(edits_path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise FileNotFoundError(f"Edits file not found: {edits_path}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {edits_path}: {e}") from e

    batch = validate_edit_batch(data)
    logger.debug(
        f"Loaded {len(batch.fields)} field edits and {len(batch.variables)} variable edits"
    )
    return batch
