"""
Storage collaborator interfaces.

A Mapping owns named tables; a Table accepts flat records produced by
``dbmapping.marshal`` and returns flat records hydrated from storage. Concrete
backends (e.g. PostgreSQL) implement the Table ABC.
"""

from __future__ import annotations

import abc
from typing import Any, Iterable, List, Mapping as MappingT, Optional, Protocol, Sequence, runtime_checkable

from dbmapping.domain.models import Column, FlatRecord, OrderByClause, WhereClause


@runtime_checkable
class Table(Protocol):
    """
    Common interface all table backends must implement.

    Attributes
    ----------
    name : str
        Table name.
    columns : Mapping[str, Column]
        Known columns keyed by name, in declaration order.
    """

    name: str
    columns: MappingT[str, Column]

    def create_table(self) -> None:
        ...

    def insert(self, doc: MappingT[str, Any]) -> None:
        ...

    def upsert(self, doc: MappingT[str, Any]) -> None:
        ...

    def update(self, doc: MappingT[str, Any]) -> None:
        ...

    def query_one(
        self,
        fields: Optional[Sequence[str]] = None,
        where: Sequence[WhereClause] = (),
        sort: Sequence[OrderByClause] = (),
    ) -> Optional[FlatRecord]:
        ...

    def query(
        self,
        fields: Optional[Sequence[str]] = None,
        where: Sequence[WhereClause] = (),
        sort: Sequence[OrderByClause] = (),
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[FlatRecord]:
        ...


@runtime_checkable
class Mapping(Protocol):
    """Registry of tables for one database."""

    def new_table(self, name: str, columns: Iterable[Column]) -> Table:
        ...


class AbstractTable(abc.ABC):
    """
    ABC helper for class-based table backends.

    Subclasses receive ``name`` and ``columns`` and implement the statements.
    """

    def __init__(self, name: str, columns: Iterable[Column]) -> None:
        self.name = name
        self.columns = {column.name: column for column in columns}

    @property
    def primary_key(self) -> List[str]:
        return [column.name for column in self.columns.values() if column.primary_key]

    @abc.abstractmethod
    def create_table(self) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def insert(self, doc: MappingT[str, Any]) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def upsert(self, doc: MappingT[str, Any]) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def update(self, doc: MappingT[str, Any]) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def query(
        self,
        fields: Optional[Sequence[str]] = None,
        where: Sequence[WhereClause] = (),
        sort: Sequence[OrderByClause] = (),
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[FlatRecord]:  # pragma: no cover - interface only
        raise NotImplementedError

    def query_one(
        self,
        fields: Optional[Sequence[str]] = None,
        where: Sequence[WhereClause] = (),
        sort: Sequence[OrderByClause] = (),
    ) -> Optional[FlatRecord]:
        """Return the first matching record, or None."""
        results = self.query(fields, where, sort, limit=1)
        return results[0] if results else None


__all__ = ["Table", "Mapping", "AbstractTable"]
