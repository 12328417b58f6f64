"""
Shared fixtures for integration tests.

PostgreSQL-backed tests are skipped when the configured database
(DATABASE_URL, see docker-compose) cannot be reached.
"""

from collections.abc import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from registrar.adapters.repository.postgres import run_migrations
from registrar.config.settings import get_settings


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests, migrated to the latest schema."""
    settings = get_settings()
    try:
        psycopg.connect(settings.database_url, connect_timeout=2).close()
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty every registry table before the test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM domain_records")
        conn.execute("DELETE FROM registry_config")
        conn.execute("DELETE FROM ledger_accounts")
    yield


def fund(pool: ConnectionPool, account: str, amount: int) -> None:
    """Credit a ledger account directly."""
    with pool.connection() as conn:
        conn.execute(
            """
            INSERT INTO ledger_accounts (account, balance) VALUES (%s, %s)
            ON CONFLICT (account) DO UPDATE SET balance = ledger_accounts.balance + EXCLUDED.balance
            """,
            (account, amount),
        )
