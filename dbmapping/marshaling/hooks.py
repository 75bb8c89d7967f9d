"""
Custom marshaler capability.

A record type that implements ``marshal_db`` supplies its own storable
representation and is not traversed by the engine. Inside the hook, call
``dbmapping.marshal_default(self)`` to run the structural algorithm on the
same value without re-entering the hook.
"""

from __future__ import annotations

import abc
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DBMarshaler(Protocol):
    """
    Capability checked before a record is traversed.

    The returned value is used verbatim: no inline merge, omit-empty or
    primary-key inference is applied to it.
    """

    def marshal_db(self) -> Any:
        ...


class AbstractDBMarshaler(abc.ABC):
    """
    Optional ABC helper for records that always marshal themselves.
    """

    @abc.abstractmethod
    def marshal_db(self) -> Any:  # pragma: no cover - interface only
        """Return the storable representation of this value."""
        raise NotImplementedError


def has_hook(value: Any) -> bool:
    return isinstance(value, DBMarshaler)


__all__ = ["DBMarshaler", "AbstractDBMarshaler", "has_hook"]
