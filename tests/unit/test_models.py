"""Unit tests for data models."""
from __future__ import annotations

import pytest

from collateral_engine.models import (
    AccountInformation,
    Asset,
    CollateralDeposited,
    PriceReport,
)


class TestAsset:
    def test_default_decimals(self) -> None:
        assert Asset("WETH").decimals == 18
        assert Asset("WETH").scale == 10**18

    def test_custom_decimals(self) -> None:
        assert Asset("USDC", decimals=6).scale == 10**6

    def test_frozen(self) -> None:
        a = Asset("WETH")
        with pytest.raises(AttributeError):
            a.decimals = 6  # type: ignore[misc]

    def test_equality(self) -> None:
        assert Asset("WETH") == Asset("WETH", 18)


class TestPriceReport:
    def test_frozen(self) -> None:
        r = PriceReport(price=1, decimals=8, updated_at=0.0)
        with pytest.raises(AttributeError):
            r.price = 2  # type: ignore[misc]


class TestEvents:
    def test_equality(self) -> None:
        assert CollateralDeposited("alice", "WETH", 1) == CollateralDeposited(
            account="alice", asset="WETH", amount=1
        )

    def test_account_information(self) -> None:
        info = AccountInformation(total_debt=1, collateral_value_usd=2)
        assert info.total_debt == 1
        assert info.collateral_value_usd == 2
