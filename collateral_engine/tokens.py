"""In-memory token collaborators.

Reference implementations of the token protocols for simulations and tests.
Balances are plain integers in base units; a transfer that would overdraw
returns ``False`` instead of raising, as the engine expects.
"""
from __future__ import annotations

import logging
from typing import Hashable

logger = logging.getLogger(__name__)


class InMemoryToken:
    """Fungible collateral token with integer balances."""

    def __init__(self, symbol: str, decimals: int = 18) -> None:
        self.symbol = symbol
        self.decimals = decimals
        self._balances: dict[Hashable, int] = {}
        self.total_supply = 0

    def balance_of(self, account: Hashable) -> int:
        return self._balances.get(account, 0)

    def credit(self, account: Hashable, amount: int) -> None:
        """Faucet for seeding balances outside the engine."""
        self._balances[account] = self.balance_of(account) + amount
        self.total_supply += amount

    def _move(self, sender: Hashable, recipient: Hashable, amount: int) -> bool:
        if amount < 0 or self.balance_of(sender) < amount:
            logger.debug(
                "%s transfer of %d from %s rejected (balance %d)",
                self.symbol, amount, sender, self.balance_of(sender),
            )
            return False
        self._balances[sender] = self.balance_of(sender) - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        return True

    async def transfer(self, sender: Hashable, recipient: Hashable, amount: int) -> bool:
        return self._move(sender, recipient, amount)

    async def transfer_from(self, sender: Hashable, recipient: Hashable, amount: int) -> bool:
        return self._move(sender, recipient, amount)


class InMemoryStableToken(InMemoryToken):
    """Stable unit; whoever holds the instance holds mint authority."""

    def __init__(self, symbol: str = "USDS", decimals: int = 18) -> None:
        super().__init__(symbol, decimals)

    async def mint(self, account: Hashable, amount: int) -> bool:
        if amount <= 0:
            return False
        self.credit(account, amount)
        return True

    async def burn(self, holder: Hashable, amount: int) -> bool:
        if amount <= 0 or self.balance_of(holder) < amount:
            return False
        self._balances[holder] = self.balance_of(holder) - amount
        self.total_supply -= amount
        return True
