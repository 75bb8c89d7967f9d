"""
Row hydration: driver rows -> FlatRecord.

psycopg already returns native Python values for the supported column types,
so hydration validates the column types, drops NULLs and restores the
primary-key marker for single-column keys.
"""

from __future__ import annotations

from typing import Any, Dict, Sequence

from dbmapping.domain.models import PK_MARKER, Column, FlatRecord
from dbmapping.errors import StorageError, UnknownFieldError
from dbmapping.storage.sql import UNKNOWN, primary_key_columns, type_category


def hydrate(columns: Dict[str, Column], fields: Sequence[str], row: Sequence[Any]) -> FlatRecord:
    """
    Build a FlatRecord from one result row.

    Raises
    ------
    UnknownFieldError
        If a selected field is not a known column.
    StorageError
        If a column type cannot be read back.
    """
    if len(fields) != len(row):
        raise StorageError(f"Row has {len(row)} values for {len(fields)} fields")

    doc = FlatRecord()
    for field, value in zip(fields, row):
        column = columns.get(field)
        if column is None:
            raise UnknownFieldError(field, "select")
        if type_category(column.type) == UNKNOWN:
            raise StorageError(f"Cannot read type[{column.type}] from database")
        if value is None:
            continue
        doc[field] = value

    primary_key = primary_key_columns(columns)
    if len(primary_key) == 1 and primary_key[0] in doc:
        doc[PK_MARKER] = primary_key[0]
    return doc


__all__ = ["hydrate"]
