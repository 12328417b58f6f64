"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from contextlib import AbstractContextManager
from typing import Protocol

from .models import DomainRecord, PriceReading, RegistryConfig, Transfer


class RegistryTransaction(Protocol):
    """
    One atomic unit of work against the registry's records and ledger.

    Records read through a transaction stay locked against concurrent
    mutation until the transaction ends. Nothing is visible to other
    transactions until the enclosing context exits normally.
    """

    def get_config(self) -> RegistryConfig | None:
        """Load and lock the configuration singleton, None if not initialized."""
        ...

    def insert_config(self, config: RegistryConfig) -> bool:
        """
        Create the configuration singleton.

        Returns:
            True if created, False if it already exists
        """
        ...

    def update_config(self, config: RegistryConfig) -> None:
        ...

    def get_domain(self, domain_name: str) -> DomainRecord | None:
        """Load and lock a domain record, None if the name was never registered."""
        ...

    def insert_domain(self, record: DomainRecord) -> bool:
        """
        Create a domain record.

        Returns:
            True if created, False if a record for the name already exists
        """
        ...

    def update_domain(self, record: DomainRecord) -> None:
        ...

    def balance(self, account: str) -> int:
        """Native balance of a ledger account (0 for unknown accounts)."""
        ...

    def transfer(self, transfer: Transfer) -> None:
        """
        Move funds between ledger accounts.

        Raises:
            InsufficientFunds: If the source balance cannot cover the amount
        """
        ...


class RegistryStore(Protocol):
    """Port interface for registry persistence."""

    def transaction(self) -> AbstractContextManager[RegistryTransaction]:
        """
        Open an atomic transaction.

        All effects commit on normal exit; any exception escaping the
        context discards every effect of the transaction.
        """
        ...


class PriceFeed(Protocol):
    """Port interface for the read-only price oracle."""

    def latest(self, feed_id: str) -> PriceReading:
        """
        Read the latest price for a feed.

        Raises:
            PriceFeedUnavailable: If the oracle cannot be read
        """
        ...


class Clock(Protocol):
    """Port interface for the execution timestamp."""

    def now(self) -> int:
        """Current unix time in seconds."""
        ...
