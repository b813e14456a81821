"""Price oracle adapter and feed implementations."""
from .adapter import PriceOracleAdapter
from .pyth import PythPriceFeed
from .static import StaticPriceFeed

__all__ = ["PriceOracleAdapter", "PythPriceFeed", "StaticPriceFeed"]
