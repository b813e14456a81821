"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Union

from .constants import DEFAULT_ASSET_DECIMALS


@dataclass(frozen=True)
class Asset:
    """Collateral asset identity and its on-ledger precision."""

    symbol: str
    decimals: int = DEFAULT_ASSET_DECIMALS

    @property
    def scale(self) -> int:
        return 10**self.decimals


@dataclass(frozen=True)
class PriceReport:
    """Latest answer reported by a price feed.

    ``price`` is an integer carrying ``decimals`` implied decimals, so a
    $2000 answer with 8 decimals is ``200_000_000_000``.
    """

    price: int
    decimals: int
    updated_at: float


@dataclass(frozen=True)
class AccountInformation:
    total_debt: int
    collateral_value_usd: int


# ---------------------------------------------------------------------------
# Engine events, published to listeners after an operation commits
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CollateralDeposited:
    account: Hashable
    asset: str
    amount: int


@dataclass(frozen=True)
class CollateralRedeemed:
    redeemed_from: Hashable
    redeemed_to: Hashable
    asset: str
    amount: int


@dataclass(frozen=True)
class StableMinted:
    account: Hashable
    amount: int


@dataclass(frozen=True)
class StableBurned:
    on_behalf_of: Hashable
    paid_by: Hashable
    amount: int


@dataclass(frozen=True)
class PositionLiquidated:
    liquidator: Hashable
    target: Hashable
    asset: str
    debt_covered: int
    collateral_seized: int
    starting_health_factor: int | float
    ending_health_factor: int | float


EngineEvent = Union[
    CollateralDeposited,
    CollateralRedeemed,
    StableMinted,
    StableBurned,
    PositionLiquidated,
]
