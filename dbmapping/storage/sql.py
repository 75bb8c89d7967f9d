"""
PostgreSQL statement generation for flat records.

Every function is pure: it validates the flat record or clauses against the
table's known columns and returns ``(sql, params)`` with ``%s`` placeholders.
Identifiers are only ever column names taken from the schema; values are
always bound as parameters.
"""

from __future__ import annotations

import datetime as dt
import enum
import json
from collections.abc import Mapping
from functools import partial
from typing import Any, Dict, List, Optional, Sequence, Tuple

from psycopg.types.json import Jsonb

from dbmapping.domain.models import (
    DIRECTIONS,
    OPERATORS,
    PK_MARKER,
    Column,
    OrderByClause,
    WhereClause,
)
from dbmapping.errors import InvalidClauseError, NoPrimaryKeyError, StorageError, UnknownFieldError

STRING = "string"
INTEGER = "integer"
NUMERIC = "numeric"
FLOAT = "float"
BOOLEAN = "boolean"
TEMPORAL = "temporal"
JSON = "json"
UUID = "uuid"
BINARY = "binary"
ARRAY = "array"
UNKNOWN = "unknown"

_PREFIXES: List[Tuple[Tuple[str, ...], str]] = [
    (("CHAR", "VARCHAR", "TEXT", "CITEXT"), STRING),
    # INTERVAL must be matched before the INT prefix
    (("TIMESTAMP", "DATE", "TIME", "INTERVAL"), TEMPORAL),
    (("SMALLINT", "INT", "BIGINT", "SMALLSERIAL", "SERIAL", "BIGSERIAL"), INTEGER),
    (("NUMERIC", "DECIMAL"), NUMERIC),
    (("REAL", "DOUBLE", "FLOAT"), FLOAT),
    (("BOOL",), BOOLEAN),
    (("JSON",), JSON),
    (("UUID",), UUID),
    (("BYTEA",), BINARY),
]


def type_category(column_type: str) -> str:
    """Classify a SQL column type, e.g. ``VARCHAR(64)`` -> ``string``."""
    normalized = column_type.strip().upper()
    if normalized.endswith("[]"):
        return ARRAY
    for prefixes, category in _PREFIXES:
        if normalized.startswith(prefixes):
            return category
    return UNKNOWN


def _json_default(value: Any) -> Any:
    if isinstance(value, (dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return str(value)


_json_dumps = partial(json.dumps, default=_json_default)


def _strip_marker(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _strip_marker(v) for k, v in value.items() if k != PK_MARKER}
    if isinstance(value, list):
        return [_strip_marker(v) for v in value]
    return value


def adapt_value(column: Column, value: Any) -> Any:
    """Wrap composite values bound to JSON columns; everything else passes through."""
    if type_category(column.type) == JSON and isinstance(value, (Mapping, list)):
        return Jsonb(_strip_marker(value), dumps=_json_dumps)
    return value


def _known(columns: Dict[str, Column], field: str, action: str) -> Column:
    column = columns.get(field)
    if column is None:
        raise UnknownFieldError(field, action)
    return column


def _quote_literal(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def primary_key_columns(columns: Dict[str, Column]) -> List[str]:
    return [column.name for column in columns.values() if column.primary_key]


def create_table_sql(table: str, columns: Dict[str, Column]) -> List[str]:
    """
    Statements creating ``table`` and documenting its columns.

    Raises
    ------
    NoPrimaryKeyError
        If no column is flagged as primary key.
    """
    primary_key = primary_key_columns(columns)
    if not primary_key:
        raise NoPrimaryKeyError(f"No primary key was informed for table[{table}]")

    definitions = []
    for column in columns.values():
        definition = f"{column.name} {column.type} {'NULL' if column.null else 'NOT NULL'}"
        if column.default:
            definition += f" DEFAULT {column.default}"
        definitions.append(definition)
    definitions.append(f"PRIMARY KEY ({', '.join(primary_key)})")

    statements = [f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(definitions)})"]
    for column in columns.values():
        if column.comment:
            statements.append(
                f"COMMENT ON COLUMN {table}.{column.name} IS {_quote_literal(column.comment)}"
            )
    return statements


def insert_sql(
    table: str,
    columns: Dict[str, Column],
    doc: Mapping,
    upsert: bool = False,
) -> Tuple[str, List[Any]]:
    """
    INSERT statement for a flat record; the primary-key marker is skipped.

    With ``upsert`` the statement updates the non-key columns on conflict.
    """
    fields: List[str] = []
    params: List[Any] = []
    for key, value in doc.items():
        if key == PK_MARKER:
            continue
        column = _known(columns, key, "add")
        fields.append(key)
        params.append(adapt_value(column, value))

    if not fields:
        raise StorageError(f"Nothing to insert into table[{table}]")

    sql = (
        f"INSERT INTO {table} ({', '.join(fields)}) "
        f"VALUES ({', '.join(['%s'] * len(fields))})"
    )

    if upsert:
        primary_key = primary_key_columns(columns)
        if not primary_key:
            raise NoPrimaryKeyError(f"No primary key was informed for table[{table}]")
        assignments = [f"{field} = EXCLUDED.{field}" for field in fields if field not in primary_key]
        sql += f" ON CONFLICT ({', '.join(primary_key)}) "
        sql += f"DO UPDATE SET {', '.join(assignments)}" if assignments else "DO NOTHING"

    return sql, params


def update_sql(table: str, columns: Dict[str, Column], doc: Mapping) -> Tuple[str, List[Any]]:
    """
    UPDATE statement matching on the primary-key columns present in ``doc``.

    Parameters are the assigned values followed by the key values.
    """
    key_fields: List[str] = []
    key_params: List[Any] = []
    fields: List[str] = []
    params: List[Any] = []

    for key, value in doc.items():
        if key == PK_MARKER:
            continue
        column = _known(columns, key, "update")
        if column.primary_key:
            key_fields.append(f"{key} = %s")
            key_params.append(value)
            continue
        fields.append(f"{key} = %s")
        params.append(adapt_value(column, value))

    if not key_fields:
        raise StorageError(f"Update on table[{table}] has no primary key value")
    if not fields:
        raise StorageError(f"Update on table[{table}] has nothing to assign")

    sql = f"UPDATE {table} SET {', '.join(fields)} WHERE {' AND '.join(key_fields)}"
    return sql, params + key_params


def select_sql(
    table: str,
    columns: Dict[str, Column],
    fields: Optional[Sequence[str]] = None,
    where: Sequence[WhereClause] = (),
    sort: Sequence[OrderByClause] = (),
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Tuple[str, List[str], List[Any]]:
    """
    SELECT statement; returns ``(sql, selected fields, params)``.

    ``fields=None`` selects every known column in declaration order.
    """
    selected = list(fields) if fields else list(columns)
    for field in selected:
        _known(columns, field, "select")

    sql = f"SELECT {', '.join(selected)} FROM {table}"
    params: List[Any] = []

    if where:
        clauses = []
        for clause in where:
            _known(columns, clause.field, "filter by")
            if clause.operator not in OPERATORS:
                raise InvalidClauseError(f"Unsupported operator[{clause.operator}]")
            clauses.append(f"{clause.field} {clause.operator} %s")
            params.append(clause.value)
        sql += " WHERE " + " AND ".join(clauses)

    if sort:
        orders = []
        for order in sort:
            _known(columns, order.field, "sort by")
            direction = order.direction.upper()
            if direction not in DIRECTIONS:
                raise InvalidClauseError(f"Unsupported sort direction[{order.direction}]")
            orders.append(f"{order.field} {direction}")
        sql += " ORDER BY " + ", ".join(orders)

    for keyword, amount in (("LIMIT", limit), ("OFFSET", offset)):
        if amount is None:
            continue
        if amount < 0:
            raise InvalidClauseError(f"{keyword} must not be negative")
        sql += f" {keyword} %s"
        params.append(amount)

    return sql, selected, params


__all__ = [
    "type_category",
    "adapt_value",
    "primary_key_columns",
    "create_table_sql",
    "insert_sql",
    "update_sql",
    "select_sql",
]
