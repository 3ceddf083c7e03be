"""JSON validation utilities for type-safe data loading."""

from typing import Any

import msgspec

from .exceptions import InvalidDataError
from .types import EditBatch


def validate_edit_batch(data: Any) -> EditBatch:
    """Validate decoded JSON as an :class:`EditBatch`.

    A bare list is accepted as a list of field edits.

    Raises:
        InvalidDataError: If the data does not match the expected structure
    """
    if isinstance(data, list):
        data = {"fields": data}

    if not isinstance(data, dict):
        raise InvalidDataError(f"Expected object or array, got {type(data).__name__}")

    try:
        return msgspec.convert(data, type=EditBatch)
    except msgspec.ValidationError as e:
        raise InvalidDataError(f"Invalid edit data: {e}") from e
