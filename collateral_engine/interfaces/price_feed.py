"""Price feed protocol — one feed per collateral asset."""
from typing import Protocol

from ..models import PriceReport


class PriceFeed(Protocol):
    """Abstract interface for reading the latest reported asset price."""

    async def latest_price(self) -> PriceReport: ...
