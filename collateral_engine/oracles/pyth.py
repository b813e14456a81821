"""Pyth Network price feed — one Hermes feed id per collateral asset."""
from __future__ import annotations

import asyncio
import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from ..errors import OracleUnavailableError
from ..models import PriceReport

logger = logging.getLogger(__name__)


class PythPriceFeed:
    """Read the latest price for a single asset from Pyth Hermes."""

    def __init__(self, symbol: str, feed_id: str, config: PythConfig) -> None:
        self.symbol = symbol
        self.feed_id = feed_id
        self.hermes_url = config.hermes_url
        self.request_timeout = config.request_timeout

    async def latest_price(self) -> PriceReport:
        """Fetch the current price report from Pyth Network.

        Hermes answers ``price`` as an integer string and ``expo`` as a
        (normally negative) power of ten, so ``price=200000000000, expo=-8``
        is $2000 with 8 decimals.
        """
        url = f"{self.hermes_url}?ids[]={self.feed_id}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.request_timeout)
                ) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching %s price from Pyth: HTTP %s",
                            self.symbol,
                            response.status,
                        )
                        raise OracleUnavailableError(
                            self.symbol, f"HTTP {response.status}"
                        )
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
            logger.error("Error fetching %s price from Pyth: %s", self.symbol, e)
            raise OracleUnavailableError(self.symbol, str(e)) from e

        try:
            return self._parse(data)
        except (AttributeError, TypeError, ValueError) as e:
            logger.error("Malformed Pyth response for %s: %s", self.symbol, e)
            raise OracleUnavailableError(self.symbol, f"malformed response: {e}") from e

    def _parse(self, data: dict) -> PriceReport:
        for item in data.get("parsed", []):
            # Hermes echoes ids without the 0x prefix
            if item.get("id", "").lower() != self.feed_id.lower().removeprefix("0x"):
                continue

            price_data = item.get("price", {})
            price_raw = int(price_data.get("price", 0))
            expo = int(price_data.get("expo", 0))
            publish_time = float(price_data.get("publish_time", 0))

            if expo > 0:
                price_raw, decimals = price_raw * 10**expo, 0
            else:
                decimals = -expo

            logger.debug(
                "Pyth %s: %d (decimals=%d, published=%d)",
                self.symbol, price_raw, decimals, publish_time,
            )
            return PriceReport(
                price=price_raw, decimals=decimals, updated_at=publish_time
            )

        raise OracleUnavailableError(self.symbol, f"feed {self.feed_id} not in response")
