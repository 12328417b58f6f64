"""
Registry configuration service - Administrative parameters of the registrar.

The configuration is a singleton located at an address derived from a
fixed seed, so every operation can find it without a lookup table. Its
ledger account doubles as the treasury that collects registration fees.
"""

import logging
from dataclasses import dataclass

from .exceptions import (
    AlreadyInitialized,
    InvalidConfigValue,
    InvalidSigner,
    NotProgramAuthority,
    RegistryNotInitialized,
)
from .models import RegistryConfig, Transfer, config_address
from .ports import RegistryStore, RegistryTransaction

logger = logging.getLogger(__name__)


def require_config(tx: RegistryTransaction) -> RegistryConfig:
    """Load the configuration singleton or fail if the registry is uninitialized."""
    config = tx.get_config()
    if config is None:
        raise RegistryNotInitialized()
    return config


def require_external_signer(signer: str, program_id: str) -> None:
    """Reject the registry's own derived address as a signer; it holds fees but has no key."""
    if signer == config_address(program_id):
        logger.warning("Rejected call signed as the registry address %s", signer)
        raise InvalidSigner()


def _require_positive(name: str, value: int) -> None:
    if value <= 0:
        raise InvalidConfigValue(f"{name} must be positive, got {value}")


def _require_authority(config: RegistryConfig, signer: str) -> None:
    if signer != config.authority:
        logger.warning("Rejected admin call from non-authority %s", signer)
        raise NotProgramAuthority()


@dataclass
class RegistryConfigService:
    """
    Domain service for the registry configuration singleton.

    ``min_reserve`` is the balance the configuration account must always
    retain to keep existing; the initializer deposits it.
    """

    store: RegistryStore
    program_id: str
    min_reserve: int = 0

    @property
    def treasury_address(self) -> str:
        return config_address(self.program_id)

    def initialize(
        self, signer: str, base_price_usd_cents: int, grace_period_seconds: int
    ) -> RegistryConfig:
        """
        Create the configuration singleton with the signer as authority.

        Raises:
            InvalidSigner: Signer is the configuration address itself
            InvalidConfigValue: Non-positive price or grace period
            AlreadyInitialized: The singleton already exists
            InsufficientFunds: Signer cannot fund the account's minimum reserve
        """
        require_external_signer(signer, self.program_id)
        _require_positive("base_price_usd_cents", base_price_usd_cents)
        _require_positive("grace_period_seconds", grace_period_seconds)

        config = RegistryConfig(
            authority=signer,
            base_price_usd_cents=base_price_usd_cents,
            grace_period_seconds=grace_period_seconds,
            domains_registered=0,
        )
        with self.store.transaction() as tx:
            if not tx.insert_config(config):
                raise AlreadyInitialized()
            if self.min_reserve:
                tx.transfer(
                    Transfer(
                        source=signer,
                        destination=self.treasury_address,
                        authorizer=signer,
                        amount=self.min_reserve,
                    )
                )

        logger.info("Registry initialized with authority: %s", signer)
        logger.info("Base price set to: %s USD cents", base_price_usd_cents)
        logger.info("Grace period set to: %s days", grace_period_seconds // 86400)
        return config

    def get_config(self) -> RegistryConfig:
        with self.store.transaction() as tx:
            return require_config(tx)

    def update_price(self, signer: str, new_base_price_usd_cents: int) -> RegistryConfig:
        """Replace the one-year base price. Authority only."""
        _require_positive("base_price_usd_cents", new_base_price_usd_cents)
        with self.store.transaction() as tx:
            config = require_config(tx)
            _require_authority(config, signer)
            config.base_price_usd_cents = new_base_price_usd_cents
            tx.update_config(config)

        logger.info("Base price updated to: %s USD cents", new_base_price_usd_cents)
        return config

    def update_grace_period(self, signer: str, new_grace_period_seconds: int) -> RegistryConfig:
        """Replace the post-expiry grace window. Authority only."""
        _require_positive("grace_period_seconds", new_grace_period_seconds)
        with self.store.transaction() as tx:
            config = require_config(tx)
            _require_authority(config, signer)
            config.grace_period_seconds = new_grace_period_seconds
            tx.update_config(config)

        logger.info("Grace period updated to: %s seconds", new_grace_period_seconds)
        return config
