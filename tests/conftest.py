"""
Pytest configuration for dbmapping.

Provides fixtures for:
- Settings override for integration tests
- Database connection and pool management
- A scratch table dropped after each integration test
"""

from __future__ import annotations

import os
from typing import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from dbmapping.config import Settings
from dbmapping.marshaling.tags import describe

INTEGRATION_TABLE = "dbmapping_it_users"


@pytest.fixture(autouse=True)
def _fresh_descriptor_cache() -> Generator[None, None, None]:
    """Locally defined record types must not leak descriptors between tests."""
    yield
    describe.cache_clear()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "dbmapping"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return test_settings.dsn


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_pool(test_dsn: str, db_connection_available: bool) -> Generator[ConnectionPool, None, None]:
    """
    Provide a session-scoped connection pool for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    pool = ConnectionPool(conninfo=test_dsn, min_size=1, max_size=2, open=True)
    try:
        yield pool
    finally:
        pool.close()


@pytest.fixture(scope="function")
def clean_table(db_pool: ConnectionPool) -> Generator[str, None, None]:
    """
    Drop the integration table before and after each test function.
    """
    with db_pool.connection() as conn:
        conn.execute(f"DROP TABLE IF EXISTS {INTEGRATION_TABLE}")
    yield INTEGRATION_TABLE
    with db_pool.connection() as conn:
        conn.execute(f"DROP TABLE IF EXISTS {INTEGRATION_TABLE}")
