"""
Struct traversal: flatten a record graph into a single FlatRecord.

Usage:
    from dbmapping import marshal

    doc = marshal(user)
    doc.primary_key   # e.g. "id"

Per record, fields are visited in declaration order. Inline sub-records merge
their entries (and primary-key marker) into the parent; a primary key declared
directly on the parent overrides an inherited one. The root record must end up
with exactly one primary-key marker.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dbmapping.domain.models import PK_MARKER, FlatRecord
from dbmapping.errors import InvalidRootError, PrimaryKeyConfigurationError
from dbmapping.marshaling.decoder import SKIP, decode_value
from dbmapping.marshaling.hooks import has_hook
from dbmapping.marshaling.tags import Behavior, is_record, iter_fields
from dbmapping.marshaling.zero import is_zero
from dbmapping.utils.logging import get_logger

log = get_logger(__name__)


def _encode_nested(value: Any, path: str) -> Any:
    if has_hook(value):
        log.debug("Custom marshaler used", extra={"path": path, "record": type(value).__name__})
        return value.marshal_db()
    return _flatten(value, path)


def _merge_inline(acc: FlatRecord, nested: Mapping, direct_pk: bool) -> None:
    for key, value in nested.items():
        if key == PK_MARKER and direct_pk:
            continue
        acc[key] = value


def _flatten(record: Any, path: str) -> FlatRecord:
    acc = FlatRecord()
    direct_pk = False

    for descriptor, value in iter_fields(record):
        field_path = f"{path}.{descriptor.attr}"
        behavior = descriptor.behavior

        if behavior is Behavior.OMIT_EMPTY and is_zero(value):
            continue

        decoded = decode_value(value, field_path, _encode_nested, unsigned=descriptor.unsigned)
        if decoded is SKIP:
            continue

        if behavior is Behavior.INLINE and is_record(value) and isinstance(decoded, Mapping):
            _merge_inline(acc, decoded, direct_pk)
            continue

        acc[descriptor.name] = decoded

        if behavior is Behavior.PRIMARY_KEY:
            # describe() rejects two direct keys per type, so this is the only one
            acc[PK_MARKER] = descriptor.name
            direct_pk = True

    return acc


def _check_root(obj: Any) -> None:
    if not is_record(obj):
        raise InvalidRootError(
            f"dbmapping: marshal expects a dataclass or pydantic model instance, "
            f"got {type(obj).__name__}"
        )


def _require_primary_key(doc: FlatRecord, obj: Any) -> FlatRecord:
    if doc.primary_key is None:
        log.critical("Record has no primary key", extra={"record": type(obj).__name__})
        raise PrimaryKeyConfigurationError(
            f"{type(obj).__name__} resolves to no primary key; "
            "tag one field with ',pk' or inline a record that has one"
        )
    return doc


def marshal_default(obj: Any) -> FlatRecord:
    """
    Flatten ``obj`` structurally, ignoring any custom marshaler on ``obj`` itself.

    Hooks on nested values still apply. Meant to be called from inside a
    ``marshal_db`` implementation to reuse the generic algorithm.

    Raises
    ------
    InvalidRootError
        If ``obj`` is not a record instance.
    PrimaryKeyConfigurationError
        If the record type declares more than one primary key.
    """
    _check_root(obj)
    return _flatten(obj, type(obj).__name__)


def marshal(obj: Any) -> FlatRecord:
    """
    Marshal a record into a FlatRecord.

    If ``obj`` implements ``marshal_db`` its result is returned as is (copied
    into a FlatRecord); it must be a mapping.

    Raises
    ------
    InvalidRootError
        If ``obj`` is not a record instance or its hook returns a non-mapping.
    UnsupportedValueError
        If a field holds a value that cannot be stored.
    PrimaryKeyConfigurationError
        If the record type declares conflicting primary keys or none at all.
    """
    _check_root(obj)

    if has_hook(obj):
        result = obj.marshal_db()
        if not isinstance(result, Mapping):
            raise InvalidRootError(
                f"dbmapping: {type(obj).__name__}.marshal_db must return a mapping, "
                f"got {type(result).__name__}"
            )
        return result if isinstance(result, FlatRecord) else FlatRecord(result)

    doc = _require_primary_key(marshal_default(obj), obj)
    log.debug(
        "Record marshaled",
        extra={"record": type(obj).__name__, "fields": len(doc) - 1, "primary_key": doc.primary_key},
    )
    return doc


__all__ = ["marshal", "marshal_default"]
