"""
Domain lifecycle service - Register, renew, buy back, re-bind and transfer.

Every mutation runs as one atomic store transaction: the record and the
configuration are loaded (and locked), preconditions are checked, the fee
is priced and moved from the payer to the treasury, and the record is
written. Any failure leaves both records and balances untouched.

Paid operations check their preconditions in a short read transaction,
then fetch the oracle reading with no transaction open, so no row lock is
held across the network call. The reading is validated against the
operation's timestamp inside the writing transaction, which rechecks every
precondition.

Payer and owner are distinct: the signer of a paid operation pays, while
the resulting owner may be any identity.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from .exceptions import (
    DomainAlreadyRegistered,
    DomainExpiredBeyondGracePeriod,
    DomainNotAvailableForPurchase,
    DomainNotFound,
    InvalidChainAddress,
    InvalidRecordAddress,
    InvalidRegisterYears,
    NotDomainOwner,
    TooManyAddresses,
)
from .models import (
    ChainAddress,
    DomainLimits,
    DomainRecord,
    DomainState,
    PriceReading,
    RegistryConfig,
    Transfer,
    calculate_expiry_timestamp,
    classify,
    config_address,
    domain_address,
    normalize_domain_name,
)
from .ports import Clock, RegistryStore, RegistryTransaction
from .quote import QuoteResolver
from .registry import require_config, require_external_signer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainView:
    """A domain record together with its derived state at read time."""

    record: DomainRecord
    state: DomainState
    address: str


@dataclass
class DomainLifecycleService:
    """
    Domain service for the domain record state machine.

    Orchestrates validation, pricing, payment and persistence for every
    lifecycle operation.
    """

    store: RegistryStore
    quotes: QuoteResolver
    clock: Clock
    program_id: str
    limits: DomainLimits = field(default_factory=DomainLimits)

    # Paid operations

    def register_domain(
        self,
        signer: str,
        domain_name: str,
        years: int,
        addresses: Sequence[ChainAddress],
        owner: str,
        record_address: str | None = None,
    ) -> DomainRecord:
        """
        Register a never-before-used domain name.

        Args:
            signer: Identity authorizing the call, pays the fee
            domain_name: Name to register (will be normalized)
            years: Registration period, 1..99
            addresses: Initial chain addresses
            owner: Identity that will own the domain (may differ from signer)
            record_address: Caller's expected record address, checked if given

        Raises:
            InvalidSigner: Signer is the registry's own address
            DomainAlreadyRegistered: A record for the name already exists
        """
        require_external_signer(signer, self.program_id)
        name = self._resolve_name(domain_name, record_address)
        self._validate_years(years)
        addresses = self._validate_addresses(addresses)
        now = self.clock.now()

        record = DomainRecord(
            domain_name=name,
            owner=owner,
            expiry_timestamp=calculate_expiry_timestamp(now, years),
            registration_timestamp=now,
            addresses=addresses,
        )
        with self.store.transaction() as tx:
            require_config(tx)
            if tx.get_domain(name) is not None:
                raise DomainAlreadyRegistered(f"Domain {name} is already registered")
        reading = self.quotes.read()

        with self.store.transaction() as tx:
            config = require_config(tx)
            if not tx.insert_domain(record):
                raise DomainAlreadyRegistered(f"Domain {name} is already registered")
            fee = self._charge(tx, config, reading, signer, years, now)
            config.domains_registered += 1
            tx.update_config(config)

        logger.info(
            "Domain %s registered for %s years with owner %s (payer %s, fee %s)",
            name, years, owner, signer, fee,
        )
        return record

    def buy_domain(
        self,
        signer: str,
        domain_name: str,
        years: int,
        addresses: Sequence[ChainAddress],
        owner: str,
        record_address: str | None = None,
    ) -> DomainRecord:
        """
        Take over a domain that expired beyond its grace period.

        Owner and addresses are replaced, the expiry is recomputed from now.
        The registered-domains counter is not incremented.

        Raises:
            InvalidSigner: Signer is the registry's own address
            DomainNotFound: The name was never registered
            DomainNotAvailableForPurchase: The record is not RECLAIMABLE
        """
        require_external_signer(signer, self.program_id)
        name = self._resolve_name(domain_name, record_address)
        self._validate_years(years)
        addresses = self._validate_addresses(addresses)
        now = self.clock.now()

        with self.store.transaction() as tx:
            self._require_reclaimable(tx, name, now)
        reading = self.quotes.read()

        with self.store.transaction() as tx:
            config, record = self._require_reclaimable(tx, name, now)
            fee = self._charge(tx, config, reading, signer, years, now)
            previous_owner = record.owner
            record.owner = owner
            record.registration_timestamp = now
            record.expiry_timestamp = calculate_expiry_timestamp(now, years)
            record.addresses = addresses
            tx.update_domain(record)

        logger.info(
            "Domain %s purchased for %s years, owner %s -> %s (payer %s, fee %s)",
            name, years, previous_owner, owner, signer, fee,
        )
        return record

    def renew_domain(
        self,
        signer: str,
        domain_name: str,
        years: int,
        record_address: str | None = None,
    ) -> DomainRecord:
        """
        Extend a domain's expiry by ``years``. Anyone may pay for a renewal.

        Raises:
            InvalidSigner: Signer is the registry's own address
            DomainNotFound: The name was never registered
            DomainExpiredBeyondGracePeriod: The record is RECLAIMABLE, use buy
        """
        require_external_signer(signer, self.program_id)
        name = self._resolve_name(domain_name, record_address)
        self._validate_years(years)
        now = self.clock.now()

        with self.store.transaction() as tx:
            self._require_renewable(tx, name, now)
        reading = self.quotes.read()

        with self.store.transaction() as tx:
            config, record = self._require_renewable(tx, name, now)
            fee = self._charge(tx, config, reading, signer, years, now)
            old_expiry = record.expiry_timestamp
            record.expiry_timestamp = calculate_expiry_timestamp(old_expiry, years)
            tx.update_domain(record)

        logger.info(
            "Domain %s renewed for %s years by %s (owner %s, fee %s, expiry %s -> %s)",
            name, years, signer, record.owner, fee, old_expiry, record.expiry_timestamp,
        )
        return record

    # Owner operations

    def update_addresses(
        self,
        signer: str,
        domain_name: str,
        addresses: Sequence[ChainAddress],
        record_address: str | None = None,
    ) -> DomainRecord:
        """Replace the domain's chain addresses wholesale. Owner only."""
        name = self._resolve_name(domain_name, record_address)
        addresses = self._validate_addresses(addresses)

        with self.store.transaction() as tx:
            record = self._require_domain(tx, name)
            self._require_owner(record, signer)
            record.addresses = addresses
            tx.update_domain(record)

        logger.info("Updated %s addresses for domain %s", len(addresses), name)
        return record

    def transfer_domain(
        self,
        signer: str,
        domain_name: str,
        new_owner: str,
        record_address: str | None = None,
    ) -> DomainRecord:
        """Hand the domain to ``new_owner``, keeping expiry and addresses. Owner only."""
        name = self._resolve_name(domain_name, record_address)

        with self.store.transaction() as tx:
            record = self._require_domain(tx, name)
            self._require_owner(record, signer)
            record.owner = new_owner
            tx.update_domain(record)

        logger.info("Transferred domain %s from %s to %s", name, signer, new_owner)
        return record

    # Queries

    def get_domain(self, domain_name: str) -> DomainView:
        name = normalize_domain_name(domain_name, self.limits)
        now = self.clock.now()
        with self.store.transaction() as tx:
            config = require_config(tx)
            record = self._require_domain(tx, name)
        return DomainView(
            record=record,
            state=classify(record, now, config.grace_period_seconds),
            address=domain_address(self.program_id, name),
        )

    def quote(self, years: int) -> int:
        """Native amount currently owed for ``years`` of registration."""
        self._validate_years(years)
        now = self.clock.now()
        with self.store.transaction() as tx:
            config = require_config(tx)
        return self.quotes.quote(config.base_price_usd_cents, years, now)

    # Helpers

    def _resolve_name(self, domain_name: str, record_address: str | None) -> str:
        name = normalize_domain_name(domain_name, self.limits)
        if record_address is not None and record_address != domain_address(self.program_id, name):
            raise InvalidRecordAddress(f"Record address {record_address} does not belong to {name}")
        return name

    def _validate_years(self, years: int) -> None:
        if not self.limits.min_years <= years <= self.limits.max_years:
            raise InvalidRegisterYears(
                f"Years must be in {self.limits.min_years}..{self.limits.max_years}, got {years}"
            )

    def _validate_addresses(self, addresses: Sequence[ChainAddress]) -> list[ChainAddress]:
        if len(addresses) > self.limits.max_addresses:
            raise TooManyAddresses(
                f"Too many addresses. Maximum allowed is {self.limits.max_addresses}"
            )
        for entry in addresses:
            if len(entry.address) > self.limits.max_address_length:
                raise InvalidChainAddress(
                    f"Address longer than {self.limits.max_address_length} characters"
                )
        return list(addresses)

    def _require_domain(self, tx: RegistryTransaction, name: str) -> DomainRecord:
        record = tx.get_domain(name)
        if record is None:
            raise DomainNotFound(f"Domain {name} has never been registered")
        return record

    def _require_owner(self, record: DomainRecord, signer: str) -> None:
        if signer != record.owner:
            raise NotDomainOwner()

    def _require_reclaimable(
        self, tx: RegistryTransaction, name: str, now: int
    ) -> tuple[RegistryConfig, DomainRecord]:
        config = require_config(tx)
        record = self._require_domain(tx, name)
        if classify(record, now, config.grace_period_seconds) != DomainState.RECLAIMABLE:
            raise DomainNotAvailableForPurchase()
        return config, record

    def _require_renewable(
        self, tx: RegistryTransaction, name: str, now: int
    ) -> tuple[RegistryConfig, DomainRecord]:
        config = require_config(tx)
        record = self._require_domain(tx, name)
        if classify(record, now, config.grace_period_seconds) == DomainState.RECLAIMABLE:
            raise DomainExpiredBeyondGracePeriod()
        return config, record

    def _charge(
        self,
        tx: RegistryTransaction,
        config: RegistryConfig,
        reading: PriceReading,
        payer: str,
        years: int,
        now: int,
    ) -> int:
        """Price the fee from ``reading`` and move it from the payer to the treasury."""
        fee = self.quotes.price(reading, config.base_price_usd_cents, years, now)
        tx.transfer(
            Transfer(
                source=payer,
                destination=config_address(self.program_id),
                authorizer=payer,
                amount=fee,
            )
        )
        return fee
