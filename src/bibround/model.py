"""Data model for parsed BibTeX documents."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

# Bare tokens that can be written back without delimiters
_BARE_TOKEN_PATTERN = re.compile(r"[\w\-:.+/]+")


class SegmentKind(Enum):
    """How a value operand was delimited in the source text."""

    BRACED = "braced"
    QUOTED = "quoted"
    BARE = "bare"


@dataclass(frozen=True, slots=True)
class Segment:
    """One operand of a field value, without its delimiters."""

    kind: SegmentKind
    text: str

    @property
    def is_bare(self) -> bool:
        return self.kind is SegmentKind.BARE

    def to_bibtex(self) -> str:
        """Render the operand with the delimiters it was written with."""
        if self.kind is SegmentKind.BARE:
            return self.text
        if self.kind is SegmentKind.QUOTED:
            return f'"{self.text}"'
        return f"{{{self.text}}}"


@dataclass(frozen=True, slots=True)
class RawValue:
    """A field value as written, before variable substitution.

    A single segment is a plain literal (or bare token). Several segments form a
    concatenation list joined by ``#`` in the source.
    """

    segments: tuple[Segment, ...]

    @classmethod
    def literal(cls, text: str) -> RawValue:
        return cls((Segment(SegmentKind.BRACED, text),))

    @classmethod
    def reference(cls, name: str) -> RawValue:
        return cls((Segment(SegmentKind.BARE, name),))

    @property
    def is_concatenation(self) -> bool:
        return len(self.segments) > 1

    @property
    def text(self) -> str:
        """Concatenated literal text of all segments, ignoring variables."""
        return "".join(segment.text for segment in self.segments)

    def to_bibtex(self) -> str:
        """Render the value as BibTeX source.

        Single literals are written in braces. Bare tokens and concatenation
        lists keep their operand structure so variable references survive.
        """
        if self.is_concatenation:
            return " # ".join(segment.to_bibtex() for segment in self.segments)

        segment = self.segments[0]
        if segment.is_bare and _BARE_TOKEN_PATTERN.fullmatch(segment.text):
            return segment.text
        if segment.kind is SegmentKind.QUOTED and not braces_balanced(segment.text):
            return segment.to_bibtex()
        return f"{{{segment.text}}}"


class FieldKind(Enum):
    """Field names that drive special handling during resolution and output."""

    AUTHOR = "author"
    CROSSREF = "crossref"
    GENERIC = "generic"

    @classmethod
    def of(cls, name: str) -> FieldKind:
        if name == "author":
            return cls.AUTHOR
        if name == "crossref":
            return cls.CROSSREF
        return cls.GENERIC


@dataclass(slots=True)
class Field:
    """A named field of an entry. The name is stored lowercased."""

    name: str
    value: RawValue
    kind: FieldKind = field(init=False)

    def __post_init__(self) -> None:
        self.name = self.name.lower()
        self.kind = FieldKind.of(self.name)


@dataclass(frozen=True, slots=True)
class LiteralAuthor:
    """An author kept verbatim: a variable reference or a braced corporate name."""

    text: str

    def display(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class PersonName:
    """A personal name normalized to ``Last, First``."""

    last: str
    first: str = ""

    def display(self) -> str:
        return f"{self.last}, {self.first}" if self.first else self.last


AuthorName = LiteralAuthor | PersonName


@dataclass(slots=True)
class Entry:
    """One bibliographic record."""

    entry_type: str
    key: str
    fields: dict[str, Field] = field(default_factory=dict)
    resolved_fields: dict[str, str] = field(default_factory=dict)
    authors: list[AuthorName] = field(default_factory=list)
    inherited_fields: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.entry_type = self.entry_type.lower()

    def set_field(self, name: str, value: RawValue) -> Field:
        """Add or replace a field. A replaced field keeps its position."""
        new_field = Field(name, value)
        self.fields[new_field.name] = new_field
        self.inherited_fields.discard(new_field.name)
        return new_field

    def raw(self, name: str) -> RawValue | None:
        found = self.fields.get(name.lower())
        return found.value if found else None

    def resolved(self, name: str, default: str = "") -> str:
        return self.resolved_fields.get(name.lower(), default)

    def copy(self) -> Entry:
        """Return an independent copy. Values and author names are immutable and shared."""
        return Entry(
            self.entry_type,
            self.key,
            fields={name: Field(name, item.value) for name, item in self.fields.items()},
            resolved_fields=dict(self.resolved_fields),
            authors=list(self.authors),
            inherited_fields=set(self.inherited_fields),
        )


@dataclass(slots=True)
class StringVariable:
    """A ``@string`` macro. The key is stored lowercased."""

    key: str
    value: str

    def __post_init__(self) -> None:
        self.key = self.key.lower()


class DiagnosticKind(Enum):
    MALFORMED_BLOCK = "malformed-block"
    MISSING_KEY = "missing-key"
    MALFORMED_FIELD = "malformed-field"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A recoverable problem found while scanning."""

    kind: DiagnosticKind
    message: str
    line: int

    def __str__(self) -> str:
        return f"line {self.line}: {self.kind.value}: {self.message}"


@dataclass(slots=True)
class BibliographyDocument:
    """Entries and string variables parsed from one BibTeX source."""

    entries: list[Entry] = field(default_factory=list)
    variables: dict[str, StringVariable] = field(default_factory=dict)
    comments: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def find(self, key: str) -> Entry | None:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def variable_values(self) -> dict[str, str]:
        return {key: variable.value for key, variable in self.variables.items()}

    def copy(self) -> BibliographyDocument:
        return BibliographyDocument(
            entries=[entry.copy() for entry in self.entries],
            variables={
                key: StringVariable(variable.key, variable.value)
                for key, variable in self.variables.items()
            },
            comments=list(self.comments),
            diagnostics=list(self.diagnostics),
        )


def quotable(text: str) -> bool:
    """Return ``True`` if ``text`` reads back unchanged between double quotes.

    A ``"`` anywhere, or a trailing backslash escaping the closing quote, would
    end or extend the quoted value early.
    """
    return '"' not in text and not text.endswith("\\")


def braces_balanced(text: str) -> bool:
    """Return ``True`` if braces in ``text`` nest correctly."""
    depth = 0
    for char in text:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0
