"""Unit tests for health factor calculation."""
from __future__ import annotations

import pytest

from collateral_engine.constants import HEALTH_FACTOR_INFINITE, MIN_HEALTH_FACTOR, PRECISION
from collateral_engine.health import HealthFactorCalculator, calculate_health_factor
from collateral_engine.ledger import CollateralLedger, DebtLedger
from collateral_engine.oracles import PriceOracleAdapter, StaticPriceFeed

ETHER = 10**18


class TestCalculateHealthFactor:
    def test_zero_debt_is_infinite(self) -> None:
        assert calculate_health_factor(0, 0) == HEALTH_FACTOR_INFINITE
        assert calculate_health_factor(0, 1000 * ETHER) >= MIN_HEALTH_FACTOR

    def test_exactly_at_threshold(self) -> None:
        # $20,000 collateral, 50% counted, 10,000 debt
        assert calculate_health_factor(10_000 * ETHER, 20_000 * ETHER) == PRECISION

    def test_below_threshold(self) -> None:
        assert calculate_health_factor(10_001 * ETHER, 20_000 * ETHER) < MIN_HEALTH_FACTOR

    def test_custom_threshold(self) -> None:
        assert calculate_health_factor(80 * ETHER, 100 * ETHER, 80) == PRECISION

    def test_no_collateral_with_debt(self) -> None:
        assert calculate_health_factor(1, 0) == 0


@pytest.fixture()
def ledgers() -> tuple[CollateralLedger, DebtLedger]:
    return CollateralLedger(), DebtLedger()


@pytest.fixture()
def calculator(
    ledgers: tuple[CollateralLedger, DebtLedger], oracle: PriceOracleAdapter
) -> HealthFactorCalculator:
    collateral, debt = ledgers
    return HealthFactorCalculator(collateral, debt, oracle, ["WETH", "WBTC"])


class TestHealthFactorCalculator:
    @pytest.mark.asyncio
    async def test_sums_all_assets(
        self,
        calculator: HealthFactorCalculator,
        ledgers: tuple[CollateralLedger, DebtLedger],
    ) -> None:
        collateral, _ = ledgers
        collateral.increase("alice", "WETH", 10 * ETHER)  # $20,000
        collateral.increase("alice", "WBTC", 2 * ETHER)  # $2,000
        assert await calculator.account_collateral_value_usd("alice") == 22_000 * ETHER

    @pytest.mark.asyncio
    async def test_no_debt_returns_sentinel(self, calculator: HealthFactorCalculator) -> None:
        assert await calculator.health_factor("alice") == HEALTH_FACTOR_INFINITE

    @pytest.mark.asyncio
    async def test_reports_health_factor(
        self,
        calculator: HealthFactorCalculator,
        ledgers: tuple[CollateralLedger, DebtLedger],
    ) -> None:
        collateral, debt = ledgers
        collateral.increase("alice", "WETH", 10 * ETHER)
        debt.increase("alice", 100 * ETHER)
        # $20,000 * 50% / 100 = 100
        assert await calculator.health_factor("alice") == 100 * PRECISION

    @pytest.mark.asyncio
    async def test_follows_price_moves(
        self,
        calculator: HealthFactorCalculator,
        ledgers: tuple[CollateralLedger, DebtLedger],
        eth_usd: StaticPriceFeed,
        clock: list[float],
    ) -> None:
        collateral, debt = ledgers
        collateral.increase("alice", "WETH", 10 * ETHER)
        debt.increase("alice", 100 * ETHER)
        eth_usd.update_price(18 * 10**8, updated_at=clock[0])
        # $180 * 50% / 100 = 0.9
        assert await calculator.health_factor("alice") == 9 * PRECISION // 10

    @pytest.mark.asyncio
    async def test_empty_balances_skip_oracle(
        self,
        calculator: HealthFactorCalculator,
        ledgers: tuple[CollateralLedger, DebtLedger],
        btc_usd: StaticPriceFeed,
    ) -> None:
        collateral, debt = ledgers
        collateral.increase("alice", "WETH", ETHER)
        debt.increase("alice", ETHER)
        # A broken WBTC feed does not matter while alice holds no WBTC.
        btc_usd.update_price(0, updated_at=btc_usd.updated_at)
        assert await calculator.health_factor("alice") == 1000 * PRECISION

    @pytest.mark.asyncio
    async def test_account_information(
        self,
        calculator: HealthFactorCalculator,
        ledgers: tuple[CollateralLedger, DebtLedger],
    ) -> None:
        collateral, debt = ledgers
        collateral.increase("alice", "WETH", ETHER)
        debt.increase("alice", 5 * ETHER)
        info = await calculator.account_information("alice")
        assert info.total_debt == 5 * ETHER
        assert info.collateral_value_usd == 2000 * ETHER
