"""
Field decoding: turn one field value into a storable representation.

Records are handed back to the traversal engine through the ``on_record``
callback so this module stays free of engine state.
"""

from __future__ import annotations

import datetime as dt
import enum
import uuid
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Callable

from dbmapping.domain.models import UInt
from dbmapping.errors import UnsupportedValueError
from dbmapping.marshaling.tags import is_record
from dbmapping.utils.logging import get_logger

log = get_logger(__name__)


class _Skip:
    """Sentinel for "contribute nothing", distinct from an empty value."""

    _instance = None

    def __new__(cls) -> "_Skip":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SKIP"

    def __bool__(self) -> bool:
        return False


SKIP = _Skip()

RecordEncoder = Callable[[Any, str], Any]

_PASSTHROUGH_TYPES = (
    str,
    bytes,
    float,
    Decimal,
    dt.date,
    dt.time,
    dt.timedelta,
    uuid.UUID,
    enum.Enum,
)


def _decode_int(value: int, path: str, unsigned: bool) -> int:
    if unsigned or isinstance(value, UInt):
        if value < 0:
            log.error("Negative value in unsigned field", extra={"path": path, "value": int(value)})
            raise UnsupportedValueError(path, value)
        return UInt(value)
    return int(value)


def decode_value(
    value: Any,
    path: str,
    on_record: RecordEncoder,
    unsigned: bool = False,
) -> Any:
    """
    Decode ``value`` found at ``path``.

    Returns SKIP for absent values. Sequences are decoded element by element
    in order; an absent element keeps its slot as None.

    Raises
    ------
    UnsupportedValueError
        If the value has no storable representation.
    """
    if value is None:
        return SKIP

    if is_record(value):
        return on_record(value, path)

    # bool is an int subclass; it is a scalar of its own
    if isinstance(value, bool):
        return value

    if isinstance(value, int):
        return _decode_int(value, path, unsigned)

    if isinstance(value, _PASSTHROUGH_TYPES):
        return value

    if isinstance(value, (list, tuple)):
        decoded = []
        for index, item in enumerate(value):
            item_value = decode_value(item, f"{path}[{index}]", on_record, unsigned)
            decoded.append(None if item_value is SKIP else item_value)
        return decoded

    if isinstance(value, Mapping) and all(isinstance(key, str) for key in value):
        decoded_map = {}
        for key, item in value.items():
            item_value = decode_value(item, f"{path}.{key}", on_record, unsigned)
            if item_value is not SKIP:
                decoded_map[key] = item_value
        return decoded_map

    log.error(
        "Unsupported value kind",
        extra={"path": path, "value_type": type(value).__name__},
    )
    raise UnsupportedValueError(path, value)


__all__ = ["SKIP", "decode_value"]
