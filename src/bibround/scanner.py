"""Tolerant scanner for BibTeX source text.

The scanner walks the text once, splitting it into top-level ``@type{...}`` or
``@type(...)`` blocks. ``@string`` blocks populate the variable table,
``@comment`` blocks are collected and everything else becomes an :class:`Entry`.
Problems never abort the scan: broken blocks are skipped and recorded as
:class:`Diagnostic` items on the result.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from .model import (
    BibliographyDocument,
    Diagnostic,
    DiagnosticKind,
    Entry,
    RawValue,
    Segment,
    SegmentKind,
    StringVariable,
)
from .resolver import MONTHS, resolve_value

logger = logging.getLogger(__name__)

# A percent sign not preceded by a backslash starts a comment running to end of line
_COMMENT_PATTERN = re.compile(r"(?<!\\)%.*$", re.MULTILINE)
_TYPE_PATTERN = re.compile(r"[A-Za-z]+")
_FIELD_NAME_PATTERN = re.compile(r"\s*([A-Za-z_][\w\-:.+]*)\s*=")
_BARE_PATTERN = re.compile(r'[^,#{}"]+')
_CLOSING_QUOTE_PATTERN = re.compile(r'(?<!\\)"')
_BRACE_PATTERN = re.compile(r"[{}]")
_BRACE_OR_PAREN_PATTERN = re.compile(r"[{}()]")
_WHITESPACE_PATTERN = re.compile(r"\s+")

_VARIABLE_BLOCKS = frozenset({"string", "preamble"})


@dataclass(slots=True)
class ScanResult:
    """Raw output of :func:`scan`."""

    entries: list[Entry] = field(default_factory=list)
    variables: dict[str, StringVariable] = field(default_factory=dict)
    comments: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def parse(text: str) -> BibliographyDocument:
    """Parse BibTeX source into a document of raw entries and variables.

    Never raises. Malformed blocks are left out of the document and listed in
    ``document.diagnostics``.
    """
    result = scan(text)
    logger.debug(
        "Parsed %d entries and %d string variables (%d diagnostics)",
        len(result.entries),
        len(result.variables),
        len(result.diagnostics),
    )
    return BibliographyDocument(
        entries=result.entries,
        variables=result.variables,
        comments=result.comments,
        diagnostics=result.diagnostics,
    )


def strip_comments(text: str) -> str:
    """Normalize line endings and drop ``%`` comments.

    The strip is line based and does not know about quoted or braced values, so
    a ``%`` inside a field value also truncates that line.
    """
    return _COMMENT_PATTERN.sub("", text.replace("\r\n", "\n"))


def scan(text: str) -> ScanResult:
    """Split BibTeX source into entries, variables and comments."""
    result = ScanResult()
    source = strip_comments(text)
    cursor = 0

    while True:
        at_index = source.find("@", cursor)
        if at_index == -1:
            break

        type_match = _TYPE_PATTERN.match(source, at_index + 1)
        if not type_match:
            cursor = at_index + 1
            continue

        block_type = type_match.group(0).lower()
        open_index = _skip_whitespace(source, type_match.end())
        if open_index >= len(source) or source[open_index] not in "{(":
            # Free text such as an e-mail address, not a block
            cursor = type_match.end()
            continue

        close_index = find_block_end(source, open_index)
        line = _line_of(source, at_index)
        if close_index is None:
            _report(
                result,
                DiagnosticKind.MALFORMED_BLOCK,
                f"unbalanced '{source[open_index]}' in @{block_type} block",
                line,
            )
            cursor = open_index + 1
            continue

        _scan_block(result, block_type, source[open_index + 1 : close_index], line)
        cursor = close_index + 1

    return result


def find_block_end(text: str, open_index: int) -> int | None:
    """Return the index of the delimiter closing the one at ``open_index``.

    Brace-delimited blocks count braces only. Parenthesis-delimited blocks count
    parentheses outside braces and require the braces inside to balance.
    Returns ``None`` when there is no balanced close.
    """
    if text[open_index] == "{":
        depth = 1
        for match in _BRACE_PATTERN.finditer(text, open_index + 1):
            depth += 1 if match.group(0) == "{" else -1
            if depth == 0:
                return match.start()
        return None

    depth = 1
    brace_depth = 0
    for match in _BRACE_OR_PAREN_PATTERN.finditer(text, open_index + 1):
        char = match.group(0)
        if char == "{":
            brace_depth += 1
        elif char == "}":
            brace_depth -= 1
            if brace_depth < 0:
                return None
        elif brace_depth == 0:
            depth += 1 if char == "(" else -1
            if depth == 0:
                return match.start()
    return None


def parse_value(text: str, start: int = 0) -> tuple[RawValue, int] | None:
    """Parse one field value beginning at ``start``.

    Operands joined by top-level ``#`` become a concatenation list. Returns the
    value and the index just past it, or ``None`` if no value can be read.
    """
    segments: list[Segment] = []
    cursor = start

    while True:
        operand = _parse_operand(text, cursor)
        if operand is None:
            return None
        segment, cursor = operand
        segments.append(segment)

        cursor = _skip_whitespace(text, cursor)
        if cursor < len(text) and text[cursor] == "#":
            cursor += 1
            continue
        break

    # Operands of a concatenation keep their edge spaces, e.g. the " and " joiner
    if len(segments) == 1:
        segments[0] = Segment(segments[0].kind, segments[0].text.strip())
    return RawValue(tuple(segments)), cursor


def parse_value_text(text: str) -> RawValue | None:
    """Parse a complete value written as BibTeX source, e.g. ``me # " and " # {Doe}``.

    Returns ``None`` if the text is not a single well-formed value.
    """
    parsed = parse_value(text)
    if parsed is None:
        return None
    value, end = parsed
    if text[end:].strip():
        return None
    return value


def _parse_operand(text: str, start: int) -> tuple[Segment, int] | None:
    cursor = _skip_whitespace(text, start)
    if cursor >= len(text):
        return None

    char = text[cursor]
    if char == "{":
        end = find_block_end(text, cursor)
        if end is None:
            return None
        return Segment(SegmentKind.BRACED, _collapse(text[cursor + 1 : end])), end + 1

    if char == '"':
        closing = _CLOSING_QUOTE_PATTERN.search(text, cursor + 1)
        if closing is None:
            return None
        end = closing.start()
        return Segment(SegmentKind.QUOTED, _collapse(text[cursor + 1 : end])), end + 1

    bare = _BARE_PATTERN.match(text, cursor)
    if not bare:
        return None
    token = _collapse(bare.group(0)).strip()
    if not token:
        return None
    return Segment(SegmentKind.BARE, token), bare.end()


def _scan_block(result: ScanResult, block_type: str, body: str, line: int) -> None:
    if block_type in _VARIABLE_BLOCKS:
        variable = _parse_variable(body, result.variables)
        if variable is None:
            logger.debug(
                "Ignoring @%s block without a key = value pair (line %d)", block_type, line
            )
        else:
            result.variables[variable.key] = variable
        return

    if block_type == "comment":
        result.comments.append(body.strip())
        return

    entry = _parse_entry(result, block_type, body, line)
    if entry is not None:
        result.entries.append(entry)


def _parse_variable(body: str, known: dict[str, StringVariable]) -> StringVariable | None:
    match = _FIELD_NAME_PATTERN.match(body)
    if not match:
        return None

    parsed = parse_value(body, match.end())
    if parsed is None:
        return None

    # A definition can only see variables defined above it
    lookup = dict(MONTHS)
    lookup.update((key, variable.value) for key, variable in known.items())
    raw, _ = parsed
    return StringVariable(match.group(1), resolve_value(raw, lookup))


def _parse_entry(result: ScanResult, block_type: str, body: str, line: int) -> Entry | None:
    comma = _find_top_level_comma(body)
    key = body[:comma].strip() if comma != -1 else ""
    if not key:
        _report(
            result,
            DiagnosticKind.MISSING_KEY,
            f"@{block_type} block has no citation key before its fields",
            line,
        )
        return None

    entry = Entry(block_type, key)
    cursor = comma + 1

    while True:
        cursor = _skip_whitespace(body, cursor)
        if cursor >= len(body):
            break

        name_match = _FIELD_NAME_PATTERN.match(body, cursor)
        if not name_match:
            _report(
                result,
                DiagnosticKind.MALFORMED_FIELD,
                f"unexpected text in entry '{key}': {body[cursor:cursor + 30]!r}",
                line,
            )
            break

        parsed = parse_value(body, name_match.end())
        if parsed is None:
            _report(
                result,
                DiagnosticKind.MALFORMED_FIELD,
                f"could not read value of field '{name_match.group(1)}' in entry '{key}'",
                line,
            )
            break

        value, cursor = parsed
        entry.set_field(name_match.group(1), value)

        cursor = _skip_whitespace(body, cursor)
        if cursor < len(body) and body[cursor] == ",":
            cursor += 1

    return entry


def _find_top_level_comma(text: str) -> int:
    depth = 0
    for index, char in enumerate(text):
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == "," and depth == 0:
            return index
    return -1


def _report(result: ScanResult, kind: DiagnosticKind, message: str, line: int) -> None:
    diagnostic = Diagnostic(kind, message, line)
    logger.warning("Skipping malformed input: %s", diagnostic)
    result.diagnostics.append(diagnostic)


def _skip_whitespace(text: str, index: int) -> int:
    while index < len(text) and text[index].isspace():
        index += 1
    return index


def _collapse(text: str) -> str:
    return _WHITESPACE_PATTERN.sub(" ", text)


def _line_of(text: str, index: int) -> int:
    return text.count("\n", 0, index) + 1
