"""Custom exception types for bibround operations."""


class BibroundError(Exception):
    """Base exception for all bibround operations."""


class FileOperationError(BibroundError):
    """Raised when file I/O operations fail."""


class InvalidDataError(BibroundError):
    """Raised when edit or variable data fails validation."""


class DuplicateEntryError(BibroundError):
    """Raised when an entry key already exists in the document."""


class EntryNotFoundError(BibroundError):
    """Raised when an entry key is not present in the document."""


class VariableExistsError(BibroundError):
    """Raised when adding a string variable whose key is already defined."""


class VariableNotFoundError(BibroundError):
    """Raised when a string variable key is not defined."""
