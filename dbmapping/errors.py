"""
Exception hierarchy for dbmapping.

Marshaling and storage failures derive from DBMappingError so callers can
catch them in one place. PrimaryKeyConfigurationError is kept outside
MarshalError: it signals a broken model declaration, not bad data, and
should not be swallowed by handlers written for runtime failures.
"""

from __future__ import annotations


class DBMappingError(Exception):
    """Base exception for dbmapping failures."""


class MarshalError(DBMappingError):
    """Raised when a value graph cannot be marshaled into a flat record."""


class InvalidRootError(MarshalError, TypeError):
    """Raised when the value handed to marshal() is not a record instance."""


class UnsupportedValueError(MarshalError, TypeError):
    """Raised when a field holds a value with no storable representation."""

    def __init__(self, path: str, value: object) -> None:
        self.path = path
        self.value_type = type(value).__name__
        super().__init__(f"Cannot marshal field[{path}] of type {self.value_type}")


class PrimaryKeyConfigurationError(DBMappingError):
    """Raised when a record type declares zero or conflicting primary keys."""


class StorageError(DBMappingError):
    """Raised when a storage collaborator rejects a flat record or query."""


class UnknownFieldError(StorageError, KeyError):
    """Raised when an operation references a column the table does not know."""

    def __init__(self, field: str, action: str = "use") -> None:
        self.field = field
        self.action = action
        super().__init__(field)

    def __str__(self) -> str:
        return f"Trying to {self.action} unknown field[{self.field}]"


class InvalidClauseError(StorageError, ValueError):
    """Raised when a where/order-by clause uses an unsupported operator."""


class TableAlreadyExistsError(StorageError):
    """Raised when a mapping already defines a table with the same name."""


class NoPrimaryKeyError(StorageError):
    """Raised when a table schema has no primary key column."""


__all__ = [
    "DBMappingError",
    "MarshalError",
    "InvalidRootError",
    "UnsupportedValueError",
    "PrimaryKeyConfigurationError",
    "StorageError",
    "UnknownFieldError",
    "InvalidClauseError",
    "TableAlreadyExistsError",
    "NoPrimaryKeyError",
]
