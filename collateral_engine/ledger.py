"""Collateral and debt ledgers — plain keyed-amount stores, no I/O."""
from __future__ import annotations

from typing import Hashable, Iterator

from .errors import InsufficientBalanceError


def _check_amount(amount: int) -> None:
    if amount < 0:
        raise ValueError(f"Ledger amounts must be non-negative, got {amount}")


class CollateralLedger:
    """Deposited collateral per account and asset."""

    def __init__(self) -> None:
        self._balances: dict[Hashable, dict[str, int]] = {}

    def get(self, account: Hashable, asset: str) -> int:
        return self._balances.get(account, {}).get(asset, 0)

    def increase(self, account: Hashable, asset: str, amount: int) -> None:
        _check_amount(amount)
        balances = self._balances.setdefault(account, {})
        balances[asset] = balances.get(asset, 0) + amount

    def decrease(self, account: Hashable, asset: str, amount: int) -> None:
        _check_amount(amount)
        available = self.get(account, asset)
        if amount > available:
            raise InsufficientBalanceError(account, asset, amount, available)
        self._balances.setdefault(account, {})[asset] = available - amount

    def accounts(self) -> Iterator[Hashable]:
        return iter(self._balances)


class DebtLedger:
    """Minted stable units per account."""

    KEY = "debt"

    def __init__(self) -> None:
        self._balances: dict[Hashable, int] = {}

    def get(self, account: Hashable) -> int:
        return self._balances.get(account, 0)

    def increase(self, account: Hashable, amount: int) -> None:
        _check_amount(amount)
        self._balances[account] = self.get(account) + amount

    def decrease(self, account: Hashable, amount: int) -> None:
        _check_amount(amount)
        available = self.get(account)
        if amount > available:
            raise InsufficientBalanceError(account, self.KEY, amount, available)
        self._balances[account] = available - amount

    def accounts(self) -> Iterator[Hashable]:
        return iter(self._balances)

    def total(self) -> int:
        return sum(self._balances.values())
