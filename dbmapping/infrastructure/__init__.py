"""
Infrastructure package for dbmapping.

Centralizes database connectivity concerns (connection factory, pooling).
Keep this layer focused on I/O and resource management, decoupled from the
marshaling engine.
"""

from dbmapping.infrastructure.db_factory import (
    PoolManager,
    apply_statement_timeout,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)

__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]
