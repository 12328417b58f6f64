"""
Treasury service - Sweeps collected fees to the registry authority.

Fees accumulate implicitly: every paid operation transfers into the
configuration account. Withdrawal may be triggered by anyone, but the
funds always land on the configured authority, never on the caller.
"""

import logging
from dataclasses import dataclass

from .exceptions import InsufficientFunds
from .models import Transfer, config_address
from .ports import RegistryStore
from .registry import require_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TreasuryBalance:
    balance: int
    min_reserve: int

    @property
    def withdrawable(self) -> int:
        return max(self.balance - self.min_reserve, 0)


@dataclass
class TreasuryService:
    """Domain service for fee accounting and withdrawal."""

    store: RegistryStore
    program_id: str
    min_reserve: int = 0

    @property
    def treasury_address(self) -> str:
        return config_address(self.program_id)

    def balance(self) -> TreasuryBalance:
        with self.store.transaction() as tx:
            require_config(tx)
            balance = tx.balance(self.treasury_address)
        return TreasuryBalance(balance=balance, min_reserve=self.min_reserve)

    def withdraw_fees(self, signer: str, amount: int = 0) -> int:
        """
        Move collected fees to the authority.

        Args:
            signer: Identity triggering the sweep (any identity)
            amount: Exact amount to withdraw, 0 sweeps everything above
                the minimum reserve

        Returns:
            Amount withdrawn (0 when there is nothing to sweep)

        Raises:
            InsufficientFunds: A positive amount exceeds the withdrawable balance
        """
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")

        with self.store.transaction() as tx:
            config = require_config(tx)
            withdrawable = tx.balance(self.treasury_address) - self.min_reserve

            if amount == 0:
                if withdrawable <= 0:
                    logger.info("Nothing to withdraw (triggered by %s)", signer)
                    return 0
                amount = withdrawable
            elif amount > withdrawable:
                raise InsufficientFunds(
                    f"Requested {amount}, only {max(withdrawable, 0)} withdrawable"
                )

            tx.transfer(
                Transfer(
                    source=self.treasury_address,
                    destination=config.authority,
                    authorizer=self.program_id,
                    amount=amount,
                )
            )

        logger.info("Withdrew %s to authority %s (triggered by %s)", amount, config.authority, signer)
        return amount
