"""Validation checks for bibliography documents and serialized output."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import bibtexparser

from .library import read_text
from .model import BibliographyDocument, FieldKind
from .resolver import MONTHS, resolve
from .scanner import parse
from .serializer import serialize

logger = logging.getLogger(__name__)

_NUMBER_PATTERN = re.compile(r"\d+")


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A problem found in a document."""

    severity: str
    message: str
    key: str | None = None

    def __str__(self) -> str:
        where = f"{self.key}: " if self.key else ""
        return f"{self.severity}: {where}{self.message}"


def check_syntax(text: str, expected_entries: int | None = None) -> list[str]:
    """Re-parse BibTeX text with bibtexparser and report anything it rejects.

    Args:
        text: BibTeX source, typically produced by :func:`bibround.serialize`
        expected_entries: If given, the number of entries bibtexparser must find

    Returns:
        List of problem descriptions, empty when the text is valid
    """
    try:
        library = bibtexparser.parse_string(text)
    except Exception as e:  # pragma: no cover - parser raises custom errors
        return [f"bibtexparser could not parse the text: {e}"]

    problems = [f"Failed to parse block: {block}" for block in library.failed_blocks]

    if expected_entries is not None and len(library.entries) != expected_entries:
        found = len(library.entries)
        problems.append(f"Expected {expected_entries} entries, bibtexparser found {found}")

    return problems


def validate_document(document: BibliographyDocument) -> list[ValidationIssue]:
    """Check a parsed document for problems that do not stop parsing.

    Reports scan diagnostics, duplicate citekeys, dangling or chained crossrefs
    and variable references that resolve to their own text.
    """
    issues = [ValidationIssue("error", str(diagnostic)) for diagnostic in document.diagnostics]

    seen: dict[str, str] = {}
    for entry in document.entries:
        folded = entry.key.lower()
        if folded in seen:
            message = f"duplicate of entry '{seen[folded]}'"
            issues.append(ValidationIssue("error", message, entry.key))
        else:
            seen[folded] = entry.key

    crossrefs: dict[str, str] = {}
    for entry in document.entries:
        for item in entry.fields.values():
            if item.kind is FieldKind.CROSSREF:
                crossrefs[entry.key.lower()] = item.value.text.strip().lower()

    known = set(document.variables) | set(MONTHS)
    for entry in document.entries:
        target = crossrefs.get(entry.key.lower())
        if target is not None:
            if target not in seen:
                message = f"crossref target '{target}' not found"
                issues.append(ValidationIssue("warning", message, entry.key))
            elif target in crossrefs and target != entry.key.lower():
                issues.append(
                    ValidationIssue(
                        "warning",
                        f"crossref target '{target}' has its own crossref, which is not followed",
                        entry.key,
                    )
                )

        for item in entry.fields.values():
            for segment in item.value.segments:
                if (
                    segment.is_bare
                    and segment.text.lower() not in known
                    and not _NUMBER_PATTERN.fullmatch(segment.text)
                ):
                    issues.append(
                        ValidationIssue(
                            "warning",
                            f"field '{item.name}' references undefined variable '{segment.text}'",
                            entry.key,
                        )
                    )

    return issues


def validate_file(bib_path: Path) -> bool:
    """Validate a .bib file and the output it would be formatted to.

    Args:
        bib_path: Path to the .bib file

    Returns:
        True if no errors were found (warnings are logged but allowed)

    Raises:
        FileNotFoundError: If the file doesn't exist
        FileOperationError: If the file cannot be read
    """
    logger.info(f"Validating {bib_path.name}")

    document = parse(read_text(bib_path))
    issues = validate_document(document)

    problems = check_syntax(serialize(resolve(document)), expected_entries=len(document.entries))
    issues.extend(ValidationIssue("error", f"formatted output: {problem}") for problem in problems)

    errors = [issue for issue in issues if issue.severity == "error"]
    for issue in issues:
        if issue.severity == "error":
            logger.error(str(issue))
        else:
            logger.warning(str(issue))

    if errors:
        logger.error(f"✗ Found {len(errors)} errors in {bib_path.name}")
        return False

    logger.info(f"✓ All {len(document.entries)} entries in {bib_path.name} are valid")
    return True
