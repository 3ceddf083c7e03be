"""Structured types for JSON data exchanged with bibround."""

import msgspec


class FieldEdit(msgspec.Struct, forbid_unknown_fields=True):
    """One field edit: set ``field`` of entry ``key`` to BibTeX source ``value``.

    A ``value`` of ``None`` removes the field.
    """

    key: str
    field: str
    value: str | None


class VariableEdit(msgspec.Struct, forbid_unknown_fields=True):
    """Define, replace or (with ``value`` of ``None``) delete a string variable."""

    key: str
    value: str | None


class EditBatch(msgspec.Struct):
    """Contents of an edits file."""

    fields: list[FieldEdit] = []
    variables: list[VariableEdit] = []


class ResolvedEntryRecord(msgspec.Struct):
    """Resolved view of one entry, as written by the export."""

    type: str
    key: str
    fields: dict[str, str]
    authors: list[str]
    inherited: list[str]
