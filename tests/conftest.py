"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock and price feed
- An in-memory registry store with funded wallets
- Domain services wired against them
"""

import pytest

from registrar.adapters.repository.memory import InMemoryRegistryStore
from registrar.domain.lifecycle import DomainLifecycleService
from registrar.domain.models import PriceReading
from registrar.domain.quote import SOL_USD_PRICE_FEED_ID, QuotePolicy, QuoteResolver
from registrar.domain.registry import RegistryConfigService
from registrar.domain.treasury import TreasuryService

PROGRAM_ID = "test-program"
START = 1_700_000_000
SOL = 1_000_000_000
MIN_RESERVE = 1_000_000

AUTHORITY = "authority-key"
PAYER = "payer-key"
OWNER_A = "owner-a-key"
OWNER_B = "owner-b-key"
STRANGER = "stranger-key"

BASE_PRICE_CENTS = 500  # $5.00
GRACE_PERIOD = 604_800  # 7 days

# $150.00 per SOL at exponent -8, confidence $0.10
PRICE = 15_000_000_000
CONFIDENCE = 10_000_000
EXPONENT = -8
# ceil(500 * 10**9 * 10**8 / (15_000_000_000 * 100))
ONE_YEAR_FEE = 33_333_334


class FrozenClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, now: int) -> None:
        self.current = now

    def now(self) -> int:
        return self.current

    def advance(self, seconds: int) -> None:
        self.current += seconds


class FakePriceFeed:
    """Price feed serving a mutable reading published ``age`` seconds ago."""

    def __init__(self, clock: FrozenClock) -> None:
        self.clock = clock
        self.feed_id = SOL_USD_PRICE_FEED_ID
        self.price = PRICE
        self.confidence = CONFIDENCE
        self.exponent = EXPONENT
        self.age = 0
        self.calls = 0

    def latest(self, feed_id: str) -> PriceReading:
        self.calls += 1
        return PriceReading(
            feed_id=self.feed_id,
            price=self.price,
            confidence=self.confidence,
            exponent=self.exponent,
            publish_time=self.clock.now() - self.age,
        )


def balance_of(store: InMemoryRegistryStore, account: str) -> int:
    with store.transaction() as tx:
        return tx.balance(account)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture
def price_feed(clock: FrozenClock) -> FakePriceFeed:
    return FakePriceFeed(clock)


@pytest.fixture
def store() -> InMemoryRegistryStore:
    """Store with every test identity funded with 10 SOL."""
    return InMemoryRegistryStore(
        balances={account: 10 * SOL for account in (AUTHORITY, PAYER, OWNER_A, OWNER_B, STRANGER)}
    )


@pytest.fixture
def registry_service(store: InMemoryRegistryStore) -> RegistryConfigService:
    return RegistryConfigService(store=store, program_id=PROGRAM_ID, min_reserve=MIN_RESERVE)


@pytest.fixture
def treasury_service(store: InMemoryRegistryStore) -> TreasuryService:
    return TreasuryService(store=store, program_id=PROGRAM_ID, min_reserve=MIN_RESERVE)


@pytest.fixture
def lifecycle(
    store: InMemoryRegistryStore, price_feed: FakePriceFeed, clock: FrozenClock
) -> DomainLifecycleService:
    return DomainLifecycleService(
        store=store,
        quotes=QuoteResolver(price_feed=price_feed, policy=QuotePolicy()),
        clock=clock,
        program_id=PROGRAM_ID,
    )


@pytest.fixture
def initialized(registry_service: RegistryConfigService) -> RegistryConfigService:
    """Registry initialized with $5.00/year and a 7-day grace period."""
    registry_service.initialize(AUTHORITY, BASE_PRICE_CENTS, GRACE_PERIOD)
    return registry_service
