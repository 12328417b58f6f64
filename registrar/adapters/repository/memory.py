"""
In-memory repository adapter - Implements RegistryStore protocol.

Process-local store for development and tests. Transactions are
serialized by a single lock and stage their writes on private copies;
the staged state replaces the committed state only when the transaction
body completes without an exception.
"""

import logging
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import replace

from registrar.domain.exceptions import InsufficientFunds
from registrar.domain.models import DomainRecord, RegistryConfig, Transfer

logger = logging.getLogger(__name__)


def _copy_record(record: DomainRecord) -> DomainRecord:
    return replace(record, addresses=list(record.addresses))


class _InMemoryTransaction:
    """Staged view of the store; nothing is shared with committed state."""

    def __init__(self, store: "InMemoryRegistryStore") -> None:
        self._store = store
        self._config = replace(store._config) if store._config is not None else None
        self._config_dirty = False
        self._domains: dict[str, DomainRecord] = {}
        self._balances: dict[str, int] = {}

    def get_config(self) -> RegistryConfig | None:
        return replace(self._config) if self._config is not None else None

    def insert_config(self, config: RegistryConfig) -> bool:
        if self._config is not None:
            return False
        self._config = replace(config)
        self._config_dirty = True
        return True

    def update_config(self, config: RegistryConfig) -> None:
        self._config = replace(config)
        self._config_dirty = True

    def get_domain(self, domain_name: str) -> DomainRecord | None:
        record = self._domains.get(domain_name) or self._store._domains.get(domain_name)
        return _copy_record(record) if record is not None else None

    def insert_domain(self, record: DomainRecord) -> bool:
        if self.get_domain(record.domain_name) is not None:
            return False
        self._domains[record.domain_name] = _copy_record(record)
        return True

    def update_domain(self, record: DomainRecord) -> None:
        self._domains[record.domain_name] = _copy_record(record)

    def balance(self, account: str) -> int:
        if account in self._balances:
            return self._balances[account]
        return self._store._balances.get(account, 0)

    def transfer(self, transfer: Transfer) -> None:
        available = self.balance(transfer.source)
        if available < transfer.amount:
            raise InsufficientFunds(
                f"Account {transfer.source} holds {available}, needs {transfer.amount}"
            )
        self._balances[transfer.source] = available - transfer.amount
        self._balances[transfer.destination] = self.balance(transfer.destination) + transfer.amount

    def commit(self) -> None:
        if self._config_dirty:
            self._store._config = self._config
        self._store._domains.update(self._domains)
        self._store._balances.update(self._balances)


class InMemoryRegistryStore:
    """
    Implements RegistryStore protocol with process-local dictionaries.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, balances: Mapping[str, int] | None = None) -> None:
        """
        Initialize an empty store.

        Args:
            balances: Opening ledger balances keyed by account
        """
        self._lock = threading.Lock()
        self._config: RegistryConfig | None = None
        self._domains: dict[str, DomainRecord] = {}
        self._balances: dict[str, int] = dict(balances or {})

    @contextmanager
    def transaction(self) -> Iterator[_InMemoryTransaction]:
        with self._lock:
            tx = _InMemoryTransaction(self)
            yield tx
            tx.commit()

    def deposit(self, account: str, amount: int) -> None:
        """Credit an account outside of any registry operation (wallet funding)."""
        with self._lock:
            self._balances[account] = self._balances.get(account, 0) + amount
        logger.debug("Deposited %s to %s", amount, account)
