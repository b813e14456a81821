"""Collateralized issuance engine for a USD-pegged stable unit."""
from .constants import (
    LIQUIDATION_BONUS_PCT,
    LIQUIDATION_THRESHOLD_PCT,
    MIN_HEALTH_FACTOR,
    PRECISION,
)
from .engine import CollateralEngine
from .errors import (
    ConfigLengthMismatchError,
    DisallowedAssetError,
    EngineError,
    HealthFactorBrokenError,
    HealthFactorNotImprovedError,
    HealthFactorOkError,
    InsufficientBalanceError,
    LiquidationTooSmallError,
    MintFailedError,
    OracleUnavailableError,
    ReentrancyError,
    StalePriceError,
    TransferFailedError,
    ZeroAmountError,
)
from .models import AccountInformation, Asset, PriceReport

__all__ = [
    "AccountInformation",
    "Asset",
    "CollateralEngine",
    "ConfigLengthMismatchError",
    "DisallowedAssetError",
    "EngineError",
    "HealthFactorBrokenError",
    "HealthFactorNotImprovedError",
    "HealthFactorOkError",
    "InsufficientBalanceError",
    "LiquidationTooSmallError",
    "LIQUIDATION_BONUS_PCT",
    "LIQUIDATION_THRESHOLD_PCT",
    "MIN_HEALTH_FACTOR",
    "MintFailedError",
    "OracleUnavailableError",
    "PRECISION",
    "PriceReport",
    "ReentrancyError",
    "StalePriceError",
    "TransferFailedError",
    "ZeroAmountError",
]
