"""
Zero-value detection for ``omitempty`` fields.
"""

from __future__ import annotations

import datetime as dt
import uuid
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from dbmapping.marshaling.tags import describe, is_record

_NUMBER_TYPES = (int, float, complex, Decimal)


def is_zero(value: Any) -> bool:
    """
    Return True when ``value`` equals the default of its type.

    Records are zero when every included field is zero. Types with no natural
    default (enums, arbitrary objects) are never zero.
    """
    if value is None:
        return True
    if isinstance(value, bool):
        return value is False
    if isinstance(value, _NUMBER_TYPES):
        return value == 0
    if isinstance(value, (str, bytes, bytearray)):
        return len(value) == 0
    # datetime is a date subclass, so it must be checked first
    if isinstance(value, dt.datetime):
        return value.replace(tzinfo=None) == dt.datetime.min
    if isinstance(value, dt.date):
        return value == dt.date.min
    if isinstance(value, dt.time):
        return value.replace(tzinfo=None) == dt.time()
    if isinstance(value, dt.timedelta):
        return value == dt.timedelta(0)
    if isinstance(value, uuid.UUID):
        return value.int == 0
    if isinstance(value, (Sequence, Mapping)):
        return len(value) == 0
    if is_record(value):
        return all(
            is_zero(getattr(value, descriptor.attr))
            for descriptor in describe(type(value))
            if descriptor.include
        )
    return False


__all__ = ["is_zero"]
