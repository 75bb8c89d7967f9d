"""
Domain models for dbmapping.

FlatRecord is the output of the marshaling engine: a plain mapping of exposed
field name to storable value, plus one reserved marker entry naming the
primary key. The pydantic models describe the schema and query clauses a
storage collaborator consumes alongside flat records.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

PK_MARKER = "__pk"

EQUAL_OPERATOR = "="
DIFF_OPERATOR = "<>"
LESS_OPERATOR = "<"
LESS_OR_EQUAL_OPERATOR = "<="
GREATER_OPERATOR = ">"
GREATER_OR_EQUAL_OPERATOR = ">="
OPERATORS = frozenset(
    {
        EQUAL_OPERATOR,
        DIFF_OPERATOR,
        LESS_OPERATOR,
        LESS_OR_EQUAL_OPERATOR,
        GREATER_OPERATOR,
        GREATER_OR_EQUAL_OPERATOR,
    }
)

ORDER_BY_ASC = "ASC"
ORDER_BY_DESC = "DESC"
DIRECTIONS = frozenset({ORDER_BY_ASC, ORDER_BY_DESC})


class UInt(int):
    """
    Unsigned integer produced for fields annotated as ``UInt``.

    Kept distinct from plain ``int`` so storage code can pick an unsigned
    column type without guessing from the value.
    """

    def __new__(cls, value: Any = 0) -> "UInt":
        number = int.__new__(cls, value)
        if number < 0:
            raise ValueError(f"UInt cannot hold negative value {number}")
        return number

    def __repr__(self) -> str:
        return f"UInt({int(self)})"


class FlatRecord(dict):
    """
    Flat mapping of field name to value produced by ``marshal``.

    The ``__pk`` entry is metadata, not a column: it names which of the other
    keys identifies the record.
    """

    @property
    def primary_key(self) -> Optional[str]:
        return self.get(PK_MARKER)

    def columns(self) -> Dict[str, Any]:
        """Entries without the primary-key marker."""
        return {key: value for key, value in self.items() if key != PK_MARKER}


class Column(BaseModel):
    """
    Description of a single table column.
    """

    name: str = Field(..., description="Column name, matching a flat record key.")
    type: str = Field(..., description="SQL type, e.g. VARCHAR(255), BIGINT, JSONB.")
    primary_key: bool = Field(False, description="Whether the column is part of the primary key.")
    null: bool = Field(False, description="Whether NULL is allowed.")
    default: str = Field("", description="Default literal, emitted verbatim.")
    comment: str = Field("", description="Documentation string for the column.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }


class WhereClause(BaseModel):
    """Filter of the form ``field operator value``; the value is bound as a parameter."""

    field: str
    operator: str = EQUAL_OPERATOR
    value: Any = None

    model_config = {"frozen": True}


class OrderByClause(BaseModel):
    """Sort of the form ``field direction``."""

    field: str
    direction: str = ORDER_BY_ASC

    model_config = {"frozen": True}


__all__ = [
    "PK_MARKER",
    "OPERATORS",
    "DIRECTIONS",
    "EQUAL_OPERATOR",
    "DIFF_OPERATOR",
    "LESS_OPERATOR",
    "LESS_OR_EQUAL_OPERATOR",
    "GREATER_OPERATOR",
    "GREATER_OR_EQUAL_OPERATOR",
    "ORDER_BY_ASC",
    "ORDER_BY_DESC",
    "UInt",
    "FlatRecord",
    "Column",
    "WhereClause",
    "OrderByClause",
]
