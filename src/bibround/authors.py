"""Author list parsing, name normalization and rendering."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

from .model import (
    AuthorName,
    BibliographyDocument,
    LiteralAuthor,
    PersonName,
    RawValue,
    Segment,
    SegmentKind,
    braces_balanced,
    quotable,
)

_AND_PATTERN = re.compile(r"\s+and\s+", re.IGNORECASE)

AUTHOR_JOINER = " and "


def normalize_author_name(name: str) -> AuthorName:
    """Normalize a single author name.

    ``{Acme Corp}`` is kept verbatim as a :class:`LiteralAuthor`. ``Smith, John``
    splits on the first comma. ``John Smith`` takes the final token as the last
    name.
    """
    text = name.strip()

    if _is_brace_wrapped(text):
        return LiteralAuthor(text[1:-1].strip())

    if "," in text:
        parts = [part.strip() for part in text.split(",")]
        return PersonName(parts[0], ", ".join(parts[1:]))

    parts = text.split()
    if not parts:
        return PersonName("")
    return PersonName(parts[-1], " ".join(parts[:-1]))


def split_author_list(text: str) -> list[str]:
    """Split an author field on ``and`` outside of braces."""
    names: list[str] = []
    start = 0
    for match in _AND_PATTERN.finditer(text):
        prefix = text[: match.start()]
        if prefix.count("{") != prefix.count("}"):
            continue
        names.append(text[start : match.start()])
        start = match.end()
    names.append(text[start:])
    return [name.strip() for name in names if name.strip()]


def parse_authors(raw: RawValue, resolved: str, variables: Mapping[str, str]) -> list[AuthorName]:
    """Build the author list of an entry.

    Args:
        raw: The raw ``author`` value
        resolved: The resolved ``author`` text
        variables: Document string variables, keyed by lowercased name

    Returns:
        Authors in source order
    """
    if raw.is_concatenation:
        authors: list[AuthorName] = []
        for segment in raw.segments:
            if segment.is_bare and segment.text.lower() in variables:
                authors.append(LiteralAuthor(segment.text))
                continue
            text = segment.text.strip()
            if not text or text == "and":
                continue
            authors.append(normalize_author_name(text))
        return authors

    segment = raw.segments[0]
    if segment.is_bare and segment.text.lower() in variables:
        return [LiteralAuthor(segment.text)]

    return [normalize_author_name(name) for name in split_author_list(resolved)]


def is_variable_author(author: AuthorName, variables: Mapping[str, str]) -> bool:
    """A literal author naming a document variable, even one written as ``{me}``."""
    return isinstance(author, LiteralAuthor) and author.text.lower() in variables


def author_display(author: AuthorName, variables: Mapping[str, str]) -> str:
    """Human readable name, with variable references replaced by their value."""
    if is_variable_author(author, variables):
        return variables[author.text.lower()]
    return author.display()


def author_raw_value(authors: Sequence[AuthorName], variables: Mapping[str, str]) -> RawValue:
    """Build the raw ``author`` value written for an author list.

    When any author is a variable reference the result is a concatenation in
    which variables stay bare and other names are quoted (braced when they
    contain a ``"`` or end in a backslash), joined by ``" and "``.
    Otherwise all names go into one braced literal.
    """
    if any(is_variable_author(author, variables) for author in authors):
        segments: list[Segment] = []
        for author in authors:
            if segments:
                segments.append(Segment(SegmentKind.QUOTED, AUTHOR_JOINER))
            if is_variable_author(author, variables):
                segments.append(Segment(SegmentKind.BARE, author.display()))
            else:
                text = _protected(author)
                kind = SegmentKind.QUOTED if quotable(text) else SegmentKind.BRACED
                segments.append(Segment(kind, text))
        return RawValue(tuple(segments))

    return RawValue.literal(AUTHOR_JOINER.join(_protected(author) for author in authors))


def all_authors(document: BibliographyDocument) -> list[str]:
    """Sorted unique author names across all entries of a resolved document."""
    variables = document.variable_values()
    names = {
        author_display(author, variables)
        for entry in document.entries
        for author in entry.authors
    }
    return sorted(names)


def _protected(author: AuthorName) -> str:
    # Literal names go back in braces so they are not inverted on the next parse
    if isinstance(author, LiteralAuthor):
        return f"{{{author.text}}}"
    return author.display()


def _is_brace_wrapped(text: str) -> bool:
    return (
        len(text) >= 2
        and text.startswith("{")
        and text.endswith("}")
        and braces_balanced(text[1:-1])
    )
