"""In-process price feed with a settable answer."""
from __future__ import annotations

import time

from ..models import PriceReport


class StaticPriceFeed:
    """Feed that reports whatever price it was last given.

    Used for fixed-price assets, simulations and tests. ``update_price`` plays
    the role of a new oracle round.
    """

    def __init__(self, price: int, decimals: int = 8, updated_at: float | None = None) -> None:
        self.price = price
        self.decimals = decimals
        self.updated_at = time.time() if updated_at is None else updated_at

    def update_price(self, price: int, updated_at: float | None = None) -> None:
        self.price = price
        self.updated_at = time.time() if updated_at is None else updated_at

    async def latest_price(self) -> PriceReport:
        return PriceReport(
            price=self.price, decimals=self.decimals, updated_at=self.updated_at
        )
