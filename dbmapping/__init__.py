"""
dbmapping - marshal in-memory records into flat, storable mappings.

This package walks a record graph (dataclasses or pydantic models) and produces
a single FlatRecord of field name to storable value, applying per-field tags:

- custom names and exclusion (``db_field("name")``, ``db_field("-")``)
- inlining of sub-records into the parent's namespace (``,inline``)
- zero-value elision (``,omitempty``)
- primary-key inference with propagation and override (``,pk``)

Types may supply their own representation by implementing ``marshal_db``.
A PostgreSQL table collaborator consumes the resulting flat records.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from dbmapping.config import Settings, get_settings
from dbmapping.domain.models import (
    PK_MARKER,
    Column,
    FlatRecord,
    OrderByClause,
    UInt,
    WhereClause,
)
from dbmapping.errors import (
    DBMappingError,
    InvalidRootError,
    MarshalError,
    PrimaryKeyConfigurationError,
    StorageError,
    UnknownFieldError,
    UnsupportedValueError,
)
from dbmapping.marshaling import (
    AbstractDBMarshaler,
    DBMarshaler,
    db_field,
    db_tag,
    marshal,
    marshal_default,
)
from dbmapping.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Marshaling
    "marshal",
    "marshal_default",
    "db_field",
    "db_tag",
    "DBMarshaler",
    "AbstractDBMarshaler",
    # Data model
    "PK_MARKER",
    "FlatRecord",
    "UInt",
    "Column",
    "WhereClause",
    "OrderByClause",
    # Errors
    "DBMappingError",
    "MarshalError",
    "InvalidRootError",
    "UnsupportedValueError",
    "PrimaryKeyConfigurationError",
    "StorageError",
    "UnknownFieldError",
    # Logging
    "configure_logging",
    "get_logger",
]
