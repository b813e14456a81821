"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from dotenv import load_dotenv

from .constants import (
    DEFAULT_ASSET_DECIMALS,
    LIQUIDATION_BONUS_PCT,
    LIQUIDATION_THRESHOLD_PCT,
    ORACLE_TIMEOUT_SECONDS,
)
from .models import Asset

if TYPE_CHECKING:
    from .interfaces.price_feed import PriceFeed

logger = logging.getLogger(__name__)

FEED_PROVIDERS = ("pyth", "static")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfig:
    liquidation_threshold_pct: int = LIQUIDATION_THRESHOLD_PCT
    liquidation_bonus_pct: int = LIQUIDATION_BONUS_PCT
    oracle_timeout_seconds: int = ORACLE_TIMEOUT_SECONDS


@dataclass(frozen=True)
class FeedConfig:
    provider: str = "pyth"
    feed_id: str = ""
    # Static feeds only: integer answer with ``decimals`` implied decimals.
    price: int = 0
    decimals: int = 8


@dataclass(frozen=True)
class AssetConfig:
    symbol: str = ""
    decimals: int = DEFAULT_ASSET_DECIMALS
    feed: FeedConfig = field(default_factory=FeedConfig)


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    request_timeout: int = 10


@dataclass(frozen=True)
class AppConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    collateral: tuple[AssetConfig, ...] = ()
    pyth: PythConfig = field(default_factory=PythConfig)

    def asset(self, symbol: str) -> AssetConfig:
        for asset_cfg in self.collateral:
            if asset_cfg.symbol == symbol:
                return asset_cfg
        raise KeyError(symbol)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_engine(raw: dict[str, Any]) -> EngineConfig:
    return EngineConfig(
        liquidation_threshold_pct=int(
            raw.get("liquidation_threshold_pct", LIQUIDATION_THRESHOLD_PCT)
        ),
        liquidation_bonus_pct=int(raw.get("liquidation_bonus_pct", LIQUIDATION_BONUS_PCT)),
        oracle_timeout_seconds=int(
            raw.get("oracle_timeout_seconds", ORACLE_TIMEOUT_SECONDS)
        ),
    )


def _build_collateral(raw: list[dict[str, Any]]) -> tuple[AssetConfig, ...]:
    assets: list[AssetConfig] = []
    for a in raw:
        feed = a.get("feed", {})
        assets.append(
            AssetConfig(
                symbol=str(a.get("symbol", "")),
                decimals=int(a.get("decimals", DEFAULT_ASSET_DECIMALS)),
                feed=FeedConfig(
                    provider=feed.get("provider", "pyth"),
                    feed_id=str(feed.get("feed_id", "")),
                    price=int(feed.get("price", 0)),
                    decimals=int(feed.get("decimals", 8)),
                ),
            )
        )
    return tuple(assets)


def _build_pyth(raw: dict[str, Any]) -> PythConfig:
    return PythConfig(
        hermes_url=raw.get("hermes_url") or PythConfig.hermes_url,
        request_timeout=int(raw.get("request_timeout", PythConfig.request_timeout)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate engine configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        engine=_build_engine(raw.get("engine", {})),
        collateral=_build_collateral(raw.get("collateral", [])),
        pyth=_build_pyth(raw.get("pyth", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.collateral:
        raise ValueError("At least one collateral asset must be configured")

    if not 0 < cfg.engine.liquidation_threshold_pct <= 100:
        raise ValueError("liquidation_threshold_pct must be in (0, 100]")
    if cfg.engine.liquidation_bonus_pct < 0:
        raise ValueError("liquidation_bonus_pct must not be negative")

    seen: set[str] = set()
    for asset in cfg.collateral:
        if not asset.symbol:
            raise ValueError("Collateral asset has no symbol")
        if asset.symbol in seen:
            raise ValueError(f"Collateral asset '{asset.symbol}' configured twice")
        seen.add(asset.symbol)

        if asset.feed.provider not in FEED_PROVIDERS:
            raise ValueError(
                f"Asset '{asset.symbol}' references unknown feed provider "
                f"'{asset.feed.provider}'"
            )
        if asset.feed.provider == "pyth" and not asset.feed.feed_id:
            raise ValueError(f"Asset '{asset.symbol}' has no Pyth feed_id")
        if asset.feed.provider == "static" and asset.feed.price <= 0:
            raise ValueError(f"Asset '{asset.symbol}' has no static price")


def build_assets(cfg: AppConfig) -> list[Asset]:
    return [Asset(symbol=a.symbol, decimals=a.decimals) for a in cfg.collateral]


def build_price_feeds(cfg: AppConfig) -> list[PriceFeed]:
    """Instantiate one price feed per configured asset, in configuration order."""
    # Feeds import PythConfig from this module.
    from .oracles.pyth import PythPriceFeed
    from .oracles.static import StaticPriceFeed

    feeds: list[PriceFeed] = []
    for asset in cfg.collateral:
        if asset.feed.provider == "pyth":
            feeds.append(PythPriceFeed(asset.symbol, asset.feed.feed_id, cfg.pyth))
        else:
            feeds.append(StaticPriceFeed(asset.feed.price, decimals=asset.feed.decimals))
    return feeds
