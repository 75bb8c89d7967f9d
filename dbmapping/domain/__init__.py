"""
Domain package for dbmapping.

Exports the flat record type produced by the marshaling engine and the schema
and clause models consumed by storage collaborators.
"""

from dbmapping.domain.models import (
    DIRECTIONS,
    OPERATORS,
    PK_MARKER,
    Column,
    FlatRecord,
    OrderByClause,
    UInt,
    WhereClause,
)

__all__ = [
    "DIRECTIONS",
    "OPERATORS",
    "PK_MARKER",
    "Column",
    "FlatRecord",
    "OrderByClause",
    "UInt",
    "WhereClause",
]
