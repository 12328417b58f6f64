"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic of the domain registrar:
the registry configuration singleton, the quote resolver, the domain
lifecycle state machine and the fee treasury. It defines its own port
interfaces for infrastructure abstraction, ensuring true hexagonal
architecture decoupling.
"""

from .exceptions import (
    AlreadyInitialized,
    DomainAlreadyRegistered,
    DomainExpiredBeyondGracePeriod,
    DomainNotAvailableForPurchase,
    DomainNotFound,
    InsufficientFunds,
    NotDomainOwner,
    NotProgramAuthority,
    PriceFeedUnreliable,
    RegistrarError,
    RegistryNotInitialized,
    StalePriceFeed,
)
from .lifecycle import DomainLifecycleService, DomainView
from .models import (
    ChainAddress,
    DomainLimits,
    DomainRecord,
    DomainState,
    PriceReading,
    RegistryConfig,
    Transfer,
    classify,
)
from .ports import Clock, PriceFeed, RegistryStore, RegistryTransaction
from .quote import QuotePolicy, QuoteResolver
from .registry import RegistryConfigService
from .treasury import TreasuryBalance, TreasuryService

__all__ = [
    "AlreadyInitialized",
    "ChainAddress",
    "Clock",
    "DomainAlreadyRegistered",
    "DomainExpiredBeyondGracePeriod",
    "DomainLifecycleService",
    "DomainLimits",
    "DomainNotAvailableForPurchase",
    "DomainNotFound",
    "DomainRecord",
    "DomainState",
    "DomainView",
    "InsufficientFunds",
    "NotDomainOwner",
    "NotProgramAuthority",
    "PriceFeed",
    "PriceFeedUnreliable",
    "PriceReading",
    "QuotePolicy",
    "QuoteResolver",
    "RegistrarError",
    "RegistryConfig",
    "RegistryConfigService",
    "RegistryNotInitialized",
    "RegistryStore",
    "RegistryTransaction",
    "StalePriceFeed",
    "Transfer",
    "TreasuryBalance",
    "TreasuryService",
    "classify",
]
