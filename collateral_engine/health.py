"""Health factor — single solvency ratio per account.

health_factor = (collateral_value_usd * liquidation_threshold%) * PRECISION / debt

A value of ``PRECISION`` means the account sits exactly at the liquidation
threshold; anything below is eligible for liquidation.
"""
from __future__ import annotations

import logging
from typing import Hashable, Sequence

from .constants import (
    HEALTH_FACTOR_INFINITE,
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD_PCT,
    PRECISION,
)
from .ledger import CollateralLedger, DebtLedger
from .models import AccountInformation
from .oracles.adapter import PriceOracleAdapter

logger = logging.getLogger(__name__)


def calculate_health_factor(
    total_debt: int,
    collateral_value_usd: int,
    liquidation_threshold_pct: int = LIQUIDATION_THRESHOLD_PCT,
) -> int | float:
    """Pure health factor from totals; infinite when there is no debt."""
    if total_debt == 0:
        return HEALTH_FACTOR_INFINITE
    adjusted = collateral_value_usd * liquidation_threshold_pct // LIQUIDATION_PRECISION
    return adjusted * PRECISION // total_debt


class HealthFactorCalculator:
    """Derive account solvency from the ledgers and the price oracle."""

    def __init__(
        self,
        collateral: CollateralLedger,
        debt: DebtLedger,
        oracle: PriceOracleAdapter,
        assets: Sequence[str],
        liquidation_threshold_pct: int = LIQUIDATION_THRESHOLD_PCT,
    ) -> None:
        self._collateral = collateral
        self._debt = debt
        self._oracle = oracle
        self._assets = tuple(assets)
        self.liquidation_threshold_pct = liquidation_threshold_pct

    async def account_collateral_value_usd(self, account: Hashable) -> int:
        total = 0
        for symbol in self._assets:
            amount = self._collateral.get(account, symbol)
            # Empty balances contribute nothing; skip the oracle read.
            if amount == 0:
                continue
            total += await self._oracle.usd_value(symbol, amount)
        return total

    async def account_information(self, account: Hashable) -> AccountInformation:
        return AccountInformation(
            total_debt=self._debt.get(account),
            collateral_value_usd=await self.account_collateral_value_usd(account),
        )

    async def health_factor(self, account: Hashable) -> int | float:
        total_debt = self._debt.get(account)
        if total_debt == 0:
            return HEALTH_FACTOR_INFINITE

        info = await self.account_information(account)
        factor = calculate_health_factor(
            info.total_debt, info.collateral_value_usd, self.liquidation_threshold_pct
        )
        logger.debug(
            "Health factor %s: collateral=$%d debt=%d factor=%s",
            account, info.collateral_value_usd, info.total_debt, factor,
        )
        return factor
