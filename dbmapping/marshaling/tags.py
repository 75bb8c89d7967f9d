"""
Field tags and per-type descriptor tables.

A tag is the ``db`` annotation attached to a record field:

    name            expose the field as ``name``
    name,option     expose as ``name`` with one behavior option
    ,option         default name (attribute lower-cased) plus an option
    -               never expose the field

Options are ``inline``, ``omitempty`` and ``pk``; unknown options are ignored.

Dataclasses carry the tag in field metadata (see ``db_field``); pydantic models
carry it in ``json_schema_extra`` (see ``db_tag``). ``describe`` turns a record
type into an ordered tuple of FieldDescriptor once and caches it.
"""

from __future__ import annotations

import dataclasses
import enum
import re
import types
import typing
from functools import lru_cache
from typing import Any, Dict, Iterator, Optional, Tuple

from pydantic import BaseModel

from dbmapping.domain.models import UInt
from dbmapping.errors import PrimaryKeyConfigurationError
from dbmapping.utils.logging import get_logger

log = get_logger(__name__)

TAG_KEY = "db"
IGNORE_NAME = "-"
DESCRIPTOR_CACHE_SIZE = 512

_WRAPPER_TEXT = re.compile(r"^(?:Optional|List|list)\[(.*)\]$")
_OPTIONAL_TEXT = re.compile(r"^(.*?)\s*\|\s*None$|^None\s*\|\s*(.*)$")

_UnionType = getattr(types, "UnionType", None)


class Behavior(str, enum.Enum):
    NONE = ""
    INLINE = "inline"
    OMIT_EMPTY = "omitempty"
    PRIMARY_KEY = "pk"
    IGNORE = "-"


@dataclasses.dataclass(frozen=True)
class FieldDescriptor:
    """Static description of one record field."""

    attr: str
    name: str
    behavior: Behavior
    order: int
    unsigned: bool = False

    @property
    def include(self) -> bool:
        return self.behavior is not Behavior.IGNORE


def parse_tag(tag: Optional[str], attr: str) -> Tuple[str, Behavior, bool]:
    """
    Resolve a tag into ``(exposed_name, behavior, include)``.

    Only the first option after the name is read. A bare ``-`` excludes the
    field; ``-,`` exposes the literal name ``-``.
    """
    parts = (tag or "").split(",")
    name = parts[0]

    if name == IGNORE_NAME and len(parts) == 1:
        return IGNORE_NAME, Behavior.IGNORE, False
    if not name:
        name = attr.lower()

    behavior = Behavior.NONE
    if len(parts) > 1:
        option = parts[1].strip()
        if option and option != IGNORE_NAME:
            try:
                behavior = Behavior(option)
            except ValueError:
                behavior = Behavior.NONE

    return name, behavior, True


def db_field(tag: str = "", **kwargs: Any) -> Any:
    """
    ``dataclasses.field`` carrying a db tag.

    Example
    -------
        @dataclass
        class Person:
            id: int = db_field(",pk", default=0)
            address: Optional[Address] = db_field("delivery_address", default=None)
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def db_tag(tag: str) -> Dict[str, str]:
    """
    ``json_schema_extra`` payload carrying a db tag for pydantic fields.

    Example
    -------
        class Person(BaseModel):
            id: int = Field(0, json_schema_extra=db_tag(",pk"))
    """
    return {TAG_KEY: tag}


def is_record(value: Any) -> bool:
    """Whether ``value`` is a record instance (dataclass or pydantic model)."""
    if isinstance(value, type):
        return False
    return isinstance(value, BaseModel) or dataclasses.is_dataclass(value)


def _unwrap_text(hint: str) -> str:
    text = hint.replace("typing.", "").strip()
    while True:
        wrapped = _WRAPPER_TEXT.match(text)
        if wrapped:
            text = wrapped.group(1).strip()
            continue
        optional = _OPTIONAL_TEXT.match(text)
        if optional:
            text = (optional.group(1) or optional.group(2)).strip()
            continue
        return text


def _is_unsigned(hint: Any) -> bool:
    """Whether ``hint`` is UInt, optionally wrapped in Optional and/or List."""
    if hint is None:
        return False
    if isinstance(hint, str):
        return _unwrap_text(hint) == "UInt"
    if isinstance(hint, typing.ForwardRef):
        return _is_unsigned(hint.__forward_arg__)
    if isinstance(hint, type) and issubclass(hint, UInt):
        return True

    origin = typing.get_origin(hint)
    args = typing.get_args(hint)
    if origin is list and len(args) == 1:
        return _is_unsigned(args[0])
    if origin is typing.Union or (_UnionType is not None and origin is _UnionType):
        members = [arg for arg in args if arg is not type(None)]
        return len(members) == 1 and _is_unsigned(members[0])
    # mixed containers rely on isinstance(value, UInt) at decode time
    return False


def _type_hints(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # Locally defined types cannot always be resolved; raw annotations
        # are still good enough to spot UInt.
        hints: Dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


def _raw_fields(cls: type) -> Iterator[Tuple[str, Optional[str], Any]]:
    if isinstance(cls, type) and issubclass(cls, BaseModel):
        for attr, info in cls.model_fields.items():
            extra = info.json_schema_extra
            tag = extra.get(TAG_KEY) if isinstance(extra, dict) else None
            yield attr, tag, info.annotation
        return

    hints = _type_hints(cls)
    for f in dataclasses.fields(cls):
        yield f.name, f.metadata.get(TAG_KEY), hints.get(f.name, f.type)


@lru_cache(maxsize=DESCRIPTOR_CACHE_SIZE)
def describe(cls: type) -> Tuple[FieldDescriptor, ...]:
    """
    Build the descriptor table for a record type, in declaration order.

    Raises
    ------
    PrimaryKeyConfigurationError
        If two fields of the type declare ``pk`` directly.
    """
    descriptors = []
    primary_key: Optional[str] = None

    for order, (attr, tag, hint) in enumerate(_raw_fields(cls)):
        name, behavior, include = parse_tag(tag, attr)
        if behavior is Behavior.PRIMARY_KEY:
            if primary_key is not None:
                log.critical(
                    "Conflicting primary keys declared",
                    extra={"record": cls.__name__, "fields": [primary_key, name]},
                )
                raise PrimaryKeyConfigurationError(
                    f"{cls.__name__} declares more than one primary key: "
                    f"{primary_key!r} and {name!r}"
                )
            primary_key = name

        descriptors.append(
            FieldDescriptor(
                attr=attr,
                name=name,
                behavior=behavior,
                order=order,
                unsigned=_is_unsigned(hint),
            )
        )

    return tuple(descriptors)


def iter_fields(record: Any) -> Iterator[Tuple[FieldDescriptor, Any]]:
    """Yield ``(descriptor, current value)`` for every included field of a record."""
    for descriptor in describe(type(record)):
        if not descriptor.include:
            continue
        yield descriptor, getattr(record, descriptor.attr)


__all__ = [
    "TAG_KEY",
    "Behavior",
    "FieldDescriptor",
    "parse_tag",
    "db_field",
    "db_tag",
    "is_record",
    "describe",
    "iter_fields",
]
