"""
Storage collaborators consuming flat records.

This module re-exports the abstract interfaces and the PostgreSQL backend so
downstream code can import from `dbmapping.storage` directly.
"""

from dbmapping.storage.abstract import AbstractTable, Mapping, Table
from dbmapping.storage.hydrate import hydrate
from dbmapping.storage.postgres import PostgresMapping, PostgresTable

__all__ = [
    # Abstracts
    "AbstractTable",
    "Mapping",
    "Table",
    # PostgreSQL backend
    "PostgresMapping",
    "PostgresTable",
    "hydrate",
]
