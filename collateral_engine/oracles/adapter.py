"""Price oracle adapter — converts between asset amounts and USD values.

USD values carry ``PRECISION`` (18) decimals. Every call reads the feed again;
prices are never cached because they can move between calls.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Mapping

from ..constants import ORACLE_TIMEOUT_SECONDS, PRECISION
from ..errors import OracleUnavailableError, StalePriceError
from ..interfaces.price_feed import PriceFeed
from ..models import Asset, PriceReport

logger = logging.getLogger(__name__)

_PRECISION_DECIMALS = 18


def scale_price(report: PriceReport) -> int:
    """Rescale a reported price to ``PRECISION`` decimals."""
    if report.decimals <= _PRECISION_DECIMALS:
        return report.price * 10 ** (_PRECISION_DECIMALS - report.decimals)
    return report.price // 10 ** (report.decimals - _PRECISION_DECIMALS)


class PriceOracleAdapter:
    """Resolve per-asset feeds, check freshness and do fixed-point conversion."""

    def __init__(
        self,
        assets: Mapping[str, Asset],
        feeds: Mapping[str, PriceFeed],
        timeout_seconds: float = ORACLE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._assets = dict(assets)
        self._feeds = dict(feeds)
        self._timeout = timeout_seconds
        self._clock = clock

    def feed_for(self, symbol: str) -> PriceFeed:
        feed = self._feeds.get(symbol)
        if feed is None:
            raise OracleUnavailableError(symbol)
        return feed

    async def latest_price(self, symbol: str) -> PriceReport:
        """Read the feed for ``symbol`` and reject missing, invalid or stale answers."""
        report = await self.feed_for(symbol).latest_price()

        if report.price <= 0:
            raise OracleUnavailableError(symbol, f"invalid price {report.price}")

        age = self._clock() - report.updated_at
        if age > self._timeout:
            raise StalePriceError(symbol, age)

        logger.debug(
            "Price %s: %d (%d decimals, %.0fs old)",
            symbol, report.price, report.decimals, age,
        )
        return report

    async def usd_value(self, symbol: str, amount: int) -> int:
        """USD value (18 decimals) of ``amount`` base units of ``symbol``."""
        report = await self.latest_price(symbol)
        return scale_price(report) * amount // self._asset(symbol).scale

    async def token_amount_from_usd(self, symbol: str, usd_amount: int) -> int:
        """Base units of ``symbol`` worth ``usd_amount`` (18 decimals)."""
        report = await self.latest_price(symbol)
        price = scale_price(report)
        if price == 0:
            raise OracleUnavailableError(symbol, "price below protocol precision")
        return usd_amount * self._asset(symbol).scale // price

    def _asset(self, symbol: str) -> Asset:
        asset = self._assets.get(symbol)
        if asset is None:
            raise OracleUnavailableError(symbol)
        return asset
