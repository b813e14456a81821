"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from collateral_engine.config import (
    AppConfig,
    AssetConfig,
    EngineConfig,
    FeedConfig,
    PythConfig,
)
from collateral_engine.engine import CollateralEngine
from collateral_engine.models import Asset
from collateral_engine.oracles import PriceOracleAdapter, StaticPriceFeed
from collateral_engine.tokens import InMemoryStableToken, InMemoryToken

ETHER = 10**18
NOW = 1_700_000_000.0

ETH_USD_PRICE = 2000 * 10**8
BTC_USD_PRICE = 1000 * 10**8

STARTING_BALANCE = 100 * ETHER
COLLATERAL_AMOUNT = 10 * ETHER
AMOUNT_TO_MINT = 100 * ETHER

USER = "alice"
LIQUIDATOR = "liquidator"


def to_wei(amount: int | float) -> int:
    return int(amount * ETHER)


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> list[float]:
    """Mutable clock; tests advance time with ``clock[0] += seconds``."""
    return [NOW]


@pytest.fixture()
def eth_usd() -> StaticPriceFeed:
    return StaticPriceFeed(ETH_USD_PRICE, decimals=8, updated_at=NOW)


@pytest.fixture()
def btc_usd() -> StaticPriceFeed:
    return StaticPriceFeed(BTC_USD_PRICE, decimals=8, updated_at=NOW)


@pytest.fixture()
def weth() -> InMemoryToken:
    token = InMemoryToken("WETH")
    token.credit(USER, STARTING_BALANCE)
    token.credit(LIQUIDATOR, STARTING_BALANCE)
    return token


@pytest.fixture()
def wbtc() -> InMemoryToken:
    token = InMemoryToken("WBTC")
    token.credit(USER, STARTING_BALANCE)
    return token


@pytest.fixture()
def stable() -> InMemoryStableToken:
    return InMemoryStableToken()


@pytest.fixture()
def assets() -> list[Asset]:
    return [Asset("WETH"), Asset("WBTC")]


@pytest.fixture()
def oracle(
    assets: list[Asset], eth_usd: StaticPriceFeed, btc_usd: StaticPriceFeed, clock: list[float]
) -> PriceOracleAdapter:
    return PriceOracleAdapter(
        {a.symbol: a for a in assets},
        {"WETH": eth_usd, "WBTC": btc_usd},
        clock=lambda: clock[0],
    )


@pytest.fixture()
def engine(
    assets: list[Asset],
    eth_usd: StaticPriceFeed,
    btc_usd: StaticPriceFeed,
    weth: InMemoryToken,
    wbtc: InMemoryToken,
    stable: InMemoryStableToken,
    clock: list[float],
) -> CollateralEngine:
    return CollateralEngine(
        assets,
        [eth_usd, btc_usd],
        [weth, wbtc],
        stable,
        clock=lambda: clock[0],
    )


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        engine=EngineConfig(),
        collateral=(
            AssetConfig(
                symbol="WETH",
                decimals=18,
                feed=FeedConfig(provider="pyth", feed_id="aaa111"),
            ),
            AssetConfig(
                symbol="WBTC",
                decimals=8,
                feed=FeedConfig(provider="static", price=BTC_USD_PRICE, decimals=8),
            ),
        ),
        pyth=PythConfig(hermes_url="https://hermes.example.com/v2/updates/price/latest"),
    )


SAMPLE_YAML = textwrap.dedent("""\
    engine:
      liquidation_threshold_pct: 50
      liquidation_bonus_pct: 10
      oracle_timeout_seconds: 10800
    pyth:
      hermes_url: "https://hermes.example.com"
      request_timeout: 5
    collateral:
      - symbol: WETH
        decimals: 18
        feed:
          provider: pyth
          feed_id: "aaa111"
      - symbol: WBTC
        decimals: 8
        feed:
          provider: static
          price: 100000000000
          decimals: 8
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
