"""Protocol constants — fixed-point precision and liquidation parameters."""

# All USD values and health factors carry 18 decimals.
PRECISION = 10**18

# Share of collateral value that counts towards solvency (200% overcollateralized).
LIQUIDATION_THRESHOLD_PCT = 50
LIQUIDATION_BONUS_PCT = 10
LIQUIDATION_PRECISION = 100

MIN_HEALTH_FACTOR = 1 * PRECISION

# Returned for accounts without debt.
HEALTH_FACTOR_INFINITE = float("inf")

ORACLE_TIMEOUT_SECONDS = 3 * 60 * 60

DEFAULT_ASSET_DECIMALS = 18
