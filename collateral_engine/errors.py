"""Engine error hierarchy.

Every error aborts the enclosing operation; the engine rolls back all ledger
mutations and transfers made before the failure and re-raises.
"""
from __future__ import annotations

from typing import Hashable


class EngineError(Exception):
    """Base class for all collateral engine failures."""


class ZeroAmountError(EngineError):
    def __init__(self, field: str = "amount") -> None:
        super().__init__(f"{field} must be greater than zero")
        self.field = field


class DisallowedAssetError(EngineError):
    def __init__(self, asset: str) -> None:
        super().__init__(f"Asset '{asset}' is not an allowed collateral")
        self.asset = asset


class TransferFailedError(EngineError):
    """A token collaborator reported failure.

    ``recipient`` is ``None`` when the failed movement was a burn.
    """

    def __init__(
        self, asset: str, sender: Hashable, recipient: Hashable | None, amount: int
    ) -> None:
        if recipient is None:
            message = f"Burning {amount} {asset} held by {sender} failed"
        else:
            message = f"Transfer of {amount} {asset} from {sender} to {recipient} failed"
        super().__init__(message)
        self.asset = asset
        self.sender = sender
        self.recipient = recipient
        self.amount = amount


class InsufficientBalanceError(EngineError):
    def __init__(self, account: Hashable, key: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient {key} balance for {account}: "
            f"requested {requested}, available {available}"
        )
        self.account = account
        self.key = key
        self.requested = requested
        self.available = available


class HealthFactorBrokenError(EngineError):
    """Raised when an operation would leave an account below the minimum."""

    def __init__(self, current_factor: int | float) -> None:
        super().__init__(f"Health factor broken: {current_factor}")
        self.current_factor = current_factor


class HealthFactorOkError(EngineError):
    def __init__(self, account: Hashable, current_factor: int | float) -> None:
        super().__init__(
            f"Account {account} is not liquidatable (health factor {current_factor})"
        )
        self.account = account
        self.current_factor = current_factor


class HealthFactorNotImprovedError(EngineError):
    def __init__(self, starting_factor: int | float, ending_factor: int | float) -> None:
        super().__init__(
            f"Liquidation did not improve health factor "
            f"({starting_factor} -> {ending_factor})"
        )
        self.starting_factor = starting_factor
        self.ending_factor = ending_factor


class MintFailedError(EngineError):
    def __init__(self, account: Hashable, amount: int) -> None:
        super().__init__(f"Minting {amount} stable units to {account} failed")
        self.account = account
        self.amount = amount


class OracleUnavailableError(EngineError):
    def __init__(self, asset: str, reason: str = "no price feed registered") -> None:
        super().__init__(f"Price for '{asset}' unavailable: {reason}")
        self.asset = asset
        self.reason = reason


class StalePriceError(EngineError):
    def __init__(self, asset: str, age_seconds: float) -> None:
        super().__init__(f"Price for '{asset}' is stale ({age_seconds:.0f}s old)")
        self.asset = asset
        self.age_seconds = age_seconds


class ConfigLengthMismatchError(EngineError):
    def __init__(self, **lengths: int) -> None:
        detail = ", ".join(f"{name}={n}" for name, n in lengths.items())
        super().__init__(f"Collateral configuration lengths differ: {detail}")
        self.lengths = lengths


class ReentrancyError(EngineError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"Reentrant call to '{operation}' rejected")
        self.operation = operation


class LiquidationTooSmallError(EngineError):
    """``debt_to_cover`` is worth less than one base unit of the seized asset."""

    def __init__(self, asset: str, debt_to_cover: int) -> None:
        super().__init__(
            f"Covering {debt_to_cover} debt seizes no {asset}; amount too small"
        )
        self.asset = asset
        self.debt_to_cover = debt_to_cover
