import datetime as dt
import enum
from dataclasses import dataclass
from decimal import Decimal

import pytest

from dbmapping import UInt, UnsupportedValueError
from dbmapping.marshaling.decoder import SKIP, decode_value


@dataclass
class Point:
    x: int = 0


class Color(enum.Enum):
    RED = "red"


def _record_stub(value, path):
    return {"record": type(value).__name__, "path": path}


def _decode(value, unsigned=False):
    return decode_value(value, "root", _record_stub, unsigned=unsigned)


def test_none_is_skipped():
    assert _decode(None) is SKIP
    assert not SKIP


def test_records_are_delegated():
    assert _decode(Point()) == {"record": "Point", "path": "root"}


@pytest.mark.parametrize(
    "value",
    ["text", b"raw", 1.5, Decimal("2.50"), dt.datetime(2024, 5, 1), dt.date(2024, 5, 1), Color.RED],
)
def test_scalars_pass_through(value):
    assert _decode(value) is value


def test_integers_keep_their_family():
    assert type(_decode(7)) is int
    assert type(_decode(7, unsigned=True)) is UInt
    assert type(_decode(UInt(7))) is UInt
    assert _decode(True) is True


def test_sequences_decode_elementwise_in_order():
    decoded = _decode((3, None, Point(), "x"))

    assert decoded == [3, None, {"record": "Point", "path": "root[2]"}, "x"]


def test_string_keyed_mappings_decode_values():
    assert _decode({"a": 1, "b": None, "c": [Point()]}) == {
        "a": 1,
        "c": [{"record": "Point", "path": "root.c[0]"}],
    }


@pytest.mark.parametrize("value", [{1, 2}, {1: "a"}, lambda: None, object(), (i for i in range(2))])
def test_unsupported_values_fail_loudly(value):
    with pytest.raises(UnsupportedValueError, match=r"field\[root\]"):
        _decode(value)
