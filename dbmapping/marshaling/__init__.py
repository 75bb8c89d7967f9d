"""
Marshaling engine: record graph -> FlatRecord.

Re-exports the entry points and the tag helpers used to declare record types.
"""

from dbmapping.marshaling.decoder import SKIP, decode_value
from dbmapping.marshaling.engine import marshal, marshal_default
from dbmapping.marshaling.hooks import AbstractDBMarshaler, DBMarshaler
from dbmapping.marshaling.tags import (
    Behavior,
    FieldDescriptor,
    db_field,
    db_tag,
    describe,
    is_record,
    parse_tag,
)
from dbmapping.marshaling.zero import is_zero

__all__ = [
    "SKIP",
    "decode_value",
    "marshal",
    "marshal_default",
    "AbstractDBMarshaler",
    "DBMarshaler",
    "Behavior",
    "FieldDescriptor",
    "db_field",
    "db_tag",
    "describe",
    "is_record",
    "parse_tag",
    "is_zero",
]
