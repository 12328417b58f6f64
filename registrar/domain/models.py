"""
Domain models - Registry records and their derived lifecycle.

Domain Record Lifecycle (derived, never stored)
===============================================

States:
- ACTIVE: now is at or before the expiry timestamp
- GRACE: expired, but still within the configured grace period
- RECLAIMABLE: expired beyond the grace period, open to anyone via buy

Transitions:
    (uncreated) -> ACTIVE   register
    ACTIVE      -> ACTIVE   renew, transfer (owner only), update addresses
    ACTIVE      -> GRACE    time passes expiry
    GRACE       -> ACTIVE   renew (by anyone)
    GRACE       -> RECLAIMABLE  time passes expiry + grace period
    RECLAIMABLE -> ACTIVE   buy (owner and addresses replaced)

The state is computed from timestamps on every read so it can never drift
from the clock.
"""

import hashlib
from dataclasses import dataclass, field
from enum import Enum

from .exceptions import InvalidChainAddress, InvalidDomainName

SECONDS_PER_YEAR = 31_536_000  # 365 * 24 * 60 * 60

CONFIG_SEED = b"state"
DOMAIN_SEED = b"domain"


class DomainState(str, Enum):
    """Lifecycle state of an existing domain record."""

    ACTIVE = "ACTIVE"
    GRACE = "GRACE"
    RECLAIMABLE = "RECLAIMABLE"


@dataclass(frozen=True)
class DomainLimits:
    """Size ceilings for domain records and accepted registration periods."""

    max_name_length: int = 253
    max_addresses: int = 10
    max_address_length: int = 64
    min_years: int = 1
    max_years: int = 99


@dataclass(frozen=True)
class ChainAddress:
    """An address bound to a domain on a specific chain (0=Solana, 1=Ethereum, ...)."""

    chain_id: int
    address: str

    def __post_init__(self) -> None:
        if not 0 <= self.chain_id <= 255:
            raise InvalidChainAddress(f"chain_id must be in 0..255, got {self.chain_id}")
        if not self.address:
            raise InvalidChainAddress("address must not be empty")


@dataclass
class RegistryConfig:
    """Singleton administrative configuration of the registrar."""

    DISCRIMINATOR = "registry_config:v1"

    authority: str
    base_price_usd_cents: int
    grace_period_seconds: int
    domains_registered: int = 0


@dataclass
class DomainRecord:
    """Per-name record holding ownership, expiry and bound addresses."""

    DISCRIMINATOR = "domain_record:v1"

    domain_name: str
    owner: str
    expiry_timestamp: int
    registration_timestamp: int
    addresses: list[ChainAddress] = field(default_factory=list)

    def is_expired(self, now: int) -> bool:
        return now > self.expiry_timestamp

    def is_in_grace_period(self, now: int, grace_period_seconds: int) -> bool:
        return self.expiry_timestamp < now <= self.expiry_timestamp + grace_period_seconds


@dataclass(frozen=True)
class PriceReading:
    """
    A point quote read from the price oracle.

    ``price`` and ``confidence`` are fixed-point integers scaled by
    ``10 ** exponent`` (Pyth convention, exponent is usually negative).
    """

    feed_id: str
    price: int
    confidence: int
    exponent: int
    publish_time: int


@dataclass(frozen=True)
class Transfer:
    """
    Movement of native funds between two ledger accounts.

    The authorizer is recorded separately from the source so that payer and
    beneficiary can differ (register-for-another, withdraw-to-authority).
    """

    source: str
    destination: str
    authorizer: str
    amount: int

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"transfer amount must be non-negative, got {self.amount}")


def classify(record: DomainRecord, now: int, grace_period_seconds: int) -> DomainState:
    """Derive the lifecycle state of a record at time ``now``."""
    if not record.is_expired(now):
        return DomainState.ACTIVE
    if record.is_in_grace_period(now, grace_period_seconds):
        return DomainState.GRACE
    return DomainState.RECLAIMABLE


def calculate_expiry_timestamp(start: int, years: int) -> int:
    return start + SECONDS_PER_YEAR * years


def normalize_domain_name(name: str, limits: DomainLimits = DomainLimits()) -> str:
    """
    Normalize a domain name for consistent storage and lookup.

    Applies: strip whitespace + lowercase, then checks the UTF-8 length
    against the record's size ceiling.
    """
    normalized = name.strip().lower()
    if not 0 < len(normalized.encode()) <= limits.max_name_length:
        raise InvalidDomainName(
            f"Domain name must be 1..{limits.max_name_length} bytes, got {len(normalized.encode())}"
        )
    return normalized


def derive_record_address(program_id: str, *seeds: bytes) -> str:
    """
    Derive the deterministic address of a program-owned record.

    The same seeds always yield the same address, so locating a record and
    checking that it exists are the same lookup.
    """
    digest = hashlib.sha256()
    for seed in seeds:
        digest.update(len(seed).to_bytes(2, "big"))
        digest.update(seed)
    digest.update(program_id.encode())
    digest.update(b"ProgramDerivedAddress")
    return digest.hexdigest()


def config_address(program_id: str) -> str:
    """Address of the configuration singleton, which is also the fee treasury."""
    return derive_record_address(program_id, CONFIG_SEED)


def domain_address(program_id: str, domain_name: str) -> str:
    return derive_record_address(program_id, DOMAIN_SEED, domain_name.encode())
