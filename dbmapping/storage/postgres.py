"""
PostgreSQL table backend for flat records.

Usage:
    from dbmapping import marshal
    from dbmapping.storage import PostgresMapping
    from dbmapping.domain import Column

    mapping = PostgresMapping()
    users = mapping.new_table("users", [Column(name="id", type="BIGINT", primary_key=True), ...])
    users.create_table()
    users.insert(marshal(user))

Each operation borrows one connection from a psycopg_pool.ConnectionPool; the
pool commits when the connection is returned.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping as MappingT, Optional, Sequence

from psycopg_pool import ConnectionPool

from dbmapping.config import get_settings
from dbmapping.domain.models import Column, FlatRecord, OrderByClause, WhereClause
from dbmapping.errors import TableAlreadyExistsError
from dbmapping.infrastructure.db_factory import apply_statement_timeout, get_sync_pool
from dbmapping.storage.abstract import AbstractTable
from dbmapping.storage.hydrate import hydrate
from dbmapping.storage.sql import create_table_sql, insert_sql, select_sql, update_sql
from dbmapping.utils.logging import get_logger

log = get_logger(__name__)


class PostgresTable(AbstractTable):
    """
    Table backed by a PostgreSQL relation.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        name: str,
        columns: Iterable[Column],
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        super().__init__(name, columns)
        self._pool = pool
        if statement_timeout_ms is None:
            statement_timeout_ms = get_settings().db_statement_timeout_ms
        self.statement_timeout_ms = statement_timeout_ms

    def _execute(self, statements: Sequence[tuple[str, Sequence[Any]]]) -> None:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                apply_statement_timeout(cur, self.statement_timeout_ms)
                for sql, params in statements:
                    log.debug("Executing statement", extra={"table": self.name, "sql": sql})
                    cur.execute(sql, params)

    def create_table(self) -> None:
        self._execute([(sql, ()) for sql in create_table_sql(self.name, self.columns)])
        log.info("Table ensured", extra={"table": self.name, "columns": len(self.columns)})

    def insert(self, doc: MappingT[str, Any]) -> None:
        self._execute([insert_sql(self.name, self.columns, doc)])

    def upsert(self, doc: MappingT[str, Any]) -> None:
        self._execute([insert_sql(self.name, self.columns, doc, upsert=True)])

    def update(self, doc: MappingT[str, Any]) -> None:
        self._execute([update_sql(self.name, self.columns, doc)])

    def query(
        self,
        fields: Optional[Sequence[str]] = None,
        where: Sequence[WhereClause] = (),
        sort: Sequence[OrderByClause] = (),
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[FlatRecord]:
        sql, selected, params = select_sql(
            self.name, self.columns, fields, where, sort, limit=limit, offset=offset
        )
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                apply_statement_timeout(cur, self.statement_timeout_ms)
                log.debug("Executing query", extra={"table": self.name, "sql": sql})
                cur.execute(sql, params)
                rows = cur.fetchall()

        return [hydrate(self.columns, selected, row) for row in rows]


class PostgresMapping:
    """
    Registry of PostgresTable instances sharing one connection pool.
    """

    def __init__(self, pool: Optional[ConnectionPool] = None) -> None:
        self._pool = pool
        self._tables: Dict[str, PostgresTable] = {}

    @property
    def pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = get_sync_pool()
        return self._pool

    def new_table(self, name: str, columns: Iterable[Column]) -> PostgresTable:
        """
        Define a table mapping.

        Raises
        ------
        TableAlreadyExistsError
            If ``name`` was already defined on this mapping.
        """
        if name in self._tables:
            raise TableAlreadyExistsError(f"Mapping to table[{name}] was already defined")

        table = PostgresTable(self.pool, name, columns)
        self._tables[name] = table
        return table

    def table(self, name: str) -> PostgresTable:
        return self._tables[name]


__all__ = ["PostgresTable", "PostgresMapping"]
