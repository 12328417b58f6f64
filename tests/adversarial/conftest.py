"""
Shared fixtures for adversarial tests.

Every adversarial scenario runs against both store backends: the
in-memory store always, PostgreSQL when the configured database is
reachable.
"""

from collections.abc import Callable, Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from registrar.adapters.repository.memory import InMemoryRegistryStore
from registrar.adapters.repository.postgres import PostgresRegistryStore, run_migrations
from registrar.config.settings import get_settings
from registrar.domain.lifecycle import DomainLifecycleService
from registrar.domain.ports import RegistryStore
from registrar.domain.quote import QuotePolicy, QuoteResolver
from registrar.domain.registry import RegistryConfigService
from registrar.domain.treasury import TreasuryService
from tests.conftest import (
    AUTHORITY,
    BASE_PRICE_CENTS,
    GRACE_PERIOD,
    MIN_RESERVE,
    PROGRAM_ID,
    SOL,
    START,
    FakePriceFeed,
    FrozenClock,
)

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial

Funder = Callable[[str, int], None]


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for adversarial tests, skipped without PostgreSQL."""
    settings = get_settings()
    try:
        psycopg.connect(settings.database_url, connect_timeout=2).close()
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=25,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture(params=["memory", "postgres"])
def backend(request: pytest.FixtureRequest) -> tuple[RegistryStore, Funder]:
    """A fresh, empty store plus a function that credits ledger accounts."""
    if request.param == "memory":
        store = InMemoryRegistryStore()
        return store, store.deposit

    pool = request.getfixturevalue("pool")
    with pool.connection() as conn:
        conn.execute("DELETE FROM domain_records")
        conn.execute("DELETE FROM registry_config")
        conn.execute("DELETE FROM ledger_accounts")

    def fund(account: str, amount: int) -> None:
        with pool.connection() as conn:
            conn.execute(
                """
                INSERT INTO ledger_accounts (account, balance) VALUES (%s, %s)
                ON CONFLICT (account) DO UPDATE
                SET balance = ledger_accounts.balance + EXCLUDED.balance
                """,
                (account, amount),
            )

    return PostgresRegistryStore(pool, PROGRAM_ID), fund


@pytest.fixture
def store(backend: tuple[RegistryStore, Funder]) -> RegistryStore:
    return backend[0]


@pytest.fixture
def fund(backend: tuple[RegistryStore, Funder]) -> Funder:
    return backend[1]


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture
def lifecycle(store: RegistryStore, clock: FrozenClock) -> DomainLifecycleService:
    return DomainLifecycleService(
        store=store,
        quotes=QuoteResolver(price_feed=FakePriceFeed(clock), policy=QuotePolicy()),
        clock=clock,
        program_id=PROGRAM_ID,
    )


@pytest.fixture
def treasury(store: RegistryStore) -> TreasuryService:
    return TreasuryService(store=store, program_id=PROGRAM_ID, min_reserve=MIN_RESERVE)


@pytest.fixture
def initialized(store: RegistryStore, fund: Funder) -> RegistryConfigService:
    """Initialized registry whose authority holds 10 SOL."""
    fund(AUTHORITY, 10 * SOL)
    service = RegistryConfigService(store=store, program_id=PROGRAM_ID, min_reserve=MIN_RESERVE)
    service.initialize(AUTHORITY, BASE_PRICE_CENTS, GRACE_PERIOD)
    return service


def balance_of(store: RegistryStore, account: str) -> int:
    with store.transaction() as tx:
        return tx.balance(account)
