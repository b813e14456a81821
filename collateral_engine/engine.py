"""Collateral engine — deposit, mint, redeem, burn and liquidate positions.

Each public mutating call is one atomic unit:

* calls are serialized behind a single engine-wide ``asyncio.Lock``; the
  solvency check spans every asset and the debt of an account, so finer
  locking would allow check-then-act races;
* a collaborator calling back into any mutating operation while a call is in
  flight gets ``ReentrancyError``;
* every ledger mutation and completed transfer records a compensating step;
  on any failure the steps are replayed in reverse and the error re-raised.

Events are published to listeners only after the operation commits.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, AsyncIterator, Awaitable, Callable, Hashable, Sequence

from .constants import (
    LIQUIDATION_BONUS_PCT,
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD_PCT,
    MIN_HEALTH_FACTOR,
    ORACLE_TIMEOUT_SECONDS,
    PRECISION,
)
from .errors import (
    ConfigLengthMismatchError,
    DisallowedAssetError,
    HealthFactorBrokenError,
    HealthFactorNotImprovedError,
    HealthFactorOkError,
    LiquidationTooSmallError,
    MintFailedError,
    ReentrancyError,
    TransferFailedError,
    ZeroAmountError,
)
from .health import HealthFactorCalculator, calculate_health_factor
from .interfaces.event_listener import EventListener
from .interfaces.price_feed import PriceFeed
from .interfaces.token import CollateralToken, StableToken
from .ledger import CollateralLedger, DebtLedger
from .models import (
    AccountInformation,
    Asset,
    CollateralDeposited,
    CollateralRedeemed,
    EngineEvent,
    PositionLiquidated,
    StableBurned,
    StableMinted,
)
from .oracles.adapter import PriceOracleAdapter

logger = logging.getLogger(__name__)

DEFAULT_CUSTODY = "collateral-engine"


class _Operation:
    """Undo journal and pending events of one in-flight operation."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.events: list[EngineEvent] = []
        self._undo: list[tuple[str, Callable[[], Any]]] = []

    def on_rollback(self, description: str, undo: Callable[[], Any]) -> None:
        self._undo.append((description, undo))

    def emit(self, event: EngineEvent) -> None:
        self.events.append(event)

    async def rollback(self) -> None:
        logger.warning("%s aborted, rolling back %d step(s)", self.name, len(self._undo))
        while self._undo:
            description, undo = self._undo.pop()
            try:
                result = undo()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Rollback step '%s' of %s failed", description, self.name)
        self.events.clear()


class CollateralEngine:
    """Collateralized issuance of a USD-pegged stable unit."""

    def __init__(
        self,
        assets: Sequence[Asset],
        price_feeds: Sequence[PriceFeed],
        collateral_tokens: Sequence[CollateralToken],
        stable: StableToken,
        *,
        custody: Hashable = DEFAULT_CUSTODY,
        liquidation_threshold_pct: int = LIQUIDATION_THRESHOLD_PCT,
        liquidation_bonus_pct: int = LIQUIDATION_BONUS_PCT,
        oracle_timeout_seconds: float = ORACLE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
        listeners: Sequence[EventListener] = (),
    ) -> None:
        if not len(assets) == len(price_feeds) == len(collateral_tokens):
            raise ConfigLengthMismatchError(
                assets=len(assets),
                price_feeds=len(price_feeds),
                collateral_tokens=len(collateral_tokens),
            )

        self._assets: dict[str, Asset] = {}
        for asset in assets:
            if asset.symbol in self._assets:
                raise ValueError(f"Collateral asset '{asset.symbol}' registered twice")
            self._assets[asset.symbol] = asset

        symbols = [a.symbol for a in assets]
        self._feeds: dict[str, PriceFeed] = dict(zip(symbols, price_feeds))
        self._tokens: dict[str, CollateralToken] = dict(zip(symbols, collateral_tokens))
        self._stable = stable
        self.custody = custody

        self._liquidation_bonus_pct = liquidation_bonus_pct
        self._collateral = CollateralLedger()
        self._debt = DebtLedger()
        self._oracle = PriceOracleAdapter(
            self._assets, self._feeds, timeout_seconds=oracle_timeout_seconds, clock=clock
        )
        self._health = HealthFactorCalculator(
            self._collateral,
            self._debt,
            self._oracle,
            symbols,
            liquidation_threshold_pct=liquidation_threshold_pct,
        )
        self._listeners: list[EventListener] = list(listeners)

        self._lock = asyncio.Lock()
        self._active: ContextVar[str | None] = ContextVar(
            f"collateral_engine_{id(self)}", default=None
        )

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    @staticmethod
    def _require_positive(amount: int, field: str = "amount") -> None:
        if amount <= 0:
            raise ZeroAmountError(field)

    def _require_allowed(self, symbol: str) -> None:
        if symbol not in self._assets:
            raise DisallowedAssetError(symbol)

    async def _revert_if_health_factor_is_broken(self, account: Hashable) -> None:
        factor = await self._health.health_factor(account)
        if factor < MIN_HEALTH_FACTOR:
            logger.warning("Health factor of %s broken: %s", account, factor)
            raise HealthFactorBrokenError(factor)

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncIterator[_Operation]:
        """Serialize, reject reentry, roll back on failure, publish on commit."""
        if self._active.get() is not None:
            raise ReentrancyError(name)
        marker = self._active.set(name)
        op = _Operation(name)
        try:
            async with self._lock:
                try:
                    yield op
                except BaseException:
                    await op.rollback()
                    raise
        finally:
            self._active.reset(marker)

        await self._publish(op.events)

    async def _publish(self, events: list[EngineEvent]) -> None:
        for event in events:
            for listener in self._listeners:
                try:
                    await listener.on_event(event)
                except Exception as e:
                    logger.error("Event listener failed on %s: %s", type(event).__name__, e)

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Building blocks, run inside an operation
    # ------------------------------------------------------------------

    async def _deposit(
        self, op: _Operation, caller: Hashable, symbol: str, amount: int
    ) -> None:
        self._require_positive(amount)
        self._require_allowed(symbol)
        token = self._tokens[symbol]

        self._collateral.increase(caller, symbol, amount)
        op.on_rollback(
            "collateral increase",
            lambda: self._collateral.decrease(caller, symbol, amount),
        )

        if not await token.transfer_from(caller, self.custody, amount):
            raise TransferFailedError(symbol, caller, self.custody, amount)
        op.on_rollback(
            "deposit transfer",
            lambda: self._expect(
                token.transfer(self.custody, caller, amount),
                TransferFailedError(symbol, self.custody, caller, amount),
            ),
        )

        op.emit(CollateralDeposited(account=caller, asset=symbol, amount=amount))

    async def _redeem(
        self,
        op: _Operation,
        redeemed_from: Hashable,
        redeemed_to: Hashable,
        symbol: str,
        amount: int,
    ) -> None:
        self._require_positive(amount)
        self._require_allowed(symbol)
        token = self._tokens[symbol]

        self._collateral.decrease(redeemed_from, symbol, amount)
        op.on_rollback(
            "collateral decrease",
            lambda: self._collateral.increase(redeemed_from, symbol, amount),
        )

        if not await token.transfer(self.custody, redeemed_to, amount):
            raise TransferFailedError(symbol, self.custody, redeemed_to, amount)
        op.on_rollback(
            "redeem transfer",
            lambda: self._expect(
                token.transfer_from(redeemed_to, self.custody, amount),
                TransferFailedError(symbol, redeemed_to, self.custody, amount),
            ),
        )

        op.emit(
            CollateralRedeemed(
                redeemed_from=redeemed_from,
                redeemed_to=redeemed_to,
                asset=symbol,
                amount=amount,
            )
        )

    async def _mint(self, op: _Operation, caller: Hashable, amount: int) -> None:
        self._require_positive(amount)

        self._debt.increase(caller, amount)
        op.on_rollback("debt increase", lambda: self._debt.decrease(caller, amount))

        await self._revert_if_health_factor_is_broken(caller)

        if not await self._stable.mint(caller, amount):
            raise MintFailedError(caller, amount)
        op.on_rollback(
            "mint",
            lambda: self._expect(
                self._stable.burn(caller, amount),
                TransferFailedError("stable", caller, None, amount),
            ),
        )

        op.emit(StableMinted(account=caller, amount=amount))

    async def _burn(
        self, op: _Operation, on_behalf_of: Hashable, paid_by: Hashable, amount: int
    ) -> None:
        """Reduce ``on_behalf_of``'s debt, paying with ``paid_by``'s stable units."""
        self._require_positive(amount)

        self._debt.decrease(on_behalf_of, amount)
        op.on_rollback("debt decrease", lambda: self._debt.increase(on_behalf_of, amount))

        if not await self._stable.transfer_from(paid_by, self.custody, amount):
            raise TransferFailedError("stable", paid_by, self.custody, amount)
        op.on_rollback(
            "stable pull",
            lambda: self._expect(
                self._stable.transfer(self.custody, paid_by, amount),
                TransferFailedError("stable", self.custody, paid_by, amount),
            ),
        )

        if not await self._stable.burn(self.custody, amount):
            raise TransferFailedError("stable", self.custody, None, amount)
        op.on_rollback(
            "burn",
            lambda: self._expect(
                self._stable.mint(self.custody, amount),
                MintFailedError(self.custody, amount),
            ),
        )

        op.emit(StableBurned(on_behalf_of=on_behalf_of, paid_by=paid_by, amount=amount))

    @staticmethod
    async def _expect(result: Awaitable[bool], error: Exception) -> None:
        if not await result:
            raise error

    # ------------------------------------------------------------------
    # Position operations
    # ------------------------------------------------------------------

    async def deposit_collateral(self, caller: Hashable, asset: str, amount: int) -> None:
        """Move ``amount`` of ``asset`` from ``caller`` into custody.

        Depositing never lowers a health factor, so no solvency check runs.
        """
        async with self._operation("deposit_collateral") as op:
            await self._deposit(op, caller, asset, amount)
        logger.info("Deposited %d %s for %s", amount, asset, caller)

    async def mint_stable(self, caller: Hashable, amount: int) -> None:
        """Mint ``amount`` stable units to ``caller`` against its collateral."""
        async with self._operation("mint_stable") as op:
            await self._mint(op, caller, amount)
        logger.info("Minted %d stable units for %s", amount, caller)

    async def deposit_collateral_and_mint(
        self, caller: Hashable, asset: str, collateral_amount: int, mint_amount: int
    ) -> None:
        async with self._operation("deposit_collateral_and_mint") as op:
            self._require_positive(collateral_amount, "collateral_amount")
            self._require_positive(mint_amount, "mint_amount")
            await self._deposit(op, caller, asset, collateral_amount)
            await self._mint(op, caller, mint_amount)
        logger.info(
            "Deposited %d %s and minted %d stable units for %s",
            collateral_amount, asset, mint_amount, caller,
        )

    async def redeem_collateral(self, caller: Hashable, asset: str, amount: int) -> None:
        """Return collateral to ``caller``; the final position must stay solvent.

        The solvency check runs after the transfer has been requested; a
        failing check rolls back both the transfer and the ledger decrease.
        """
        async with self._operation("redeem_collateral") as op:
            await self._redeem(op, caller, caller, asset, amount)
            await self._revert_if_health_factor_is_broken(caller)
        logger.info("Redeemed %d %s for %s", amount, asset, caller)

    async def burn_stable(self, caller: Hashable, amount: int) -> None:
        async with self._operation("burn_stable") as op:
            await self._burn(op, caller, caller, amount)
            # Burning debt cannot break solvency, checked anyway.
            await self._revert_if_health_factor_is_broken(caller)
        logger.info("Burned %d stable units for %s", amount, caller)

    async def redeem_collateral_for_stable(
        self, caller: Hashable, asset: str, collateral_amount: int, burn_amount: int
    ) -> None:
        """Burn stable units, then redeem collateral, in one atomic step."""
        async with self._operation("redeem_collateral_for_stable") as op:
            self._require_positive(collateral_amount, "collateral_amount")
            self._require_positive(burn_amount, "burn_amount")
            self._require_allowed(asset)
            await self._burn(op, caller, caller, burn_amount)
            await self._redeem(op, caller, caller, asset, collateral_amount)
            await self._revert_if_health_factor_is_broken(caller)
        logger.info(
            "Burned %d stable units and redeemed %d %s for %s",
            burn_amount, collateral_amount, asset, caller,
        )

    async def liquidate(
        self, liquidator: Hashable, target: Hashable, asset: str, debt_to_cover: int
    ) -> int:
        """Repay ``debt_to_cover`` of ``target``'s debt and seize its collateral.

        The liquidator pays with its own stable units and receives the USD
        equivalent in ``asset`` plus the liquidation bonus. Solvency is
        re-checked on ``target``, the account whose position changed.

        Returns:
            The amount of ``asset`` transferred to the liquidator.
        """
        async with self._operation("liquidate") as op:
            self._require_positive(debt_to_cover, "debt_to_cover")
            self._require_allowed(asset)

            starting = await self._health.health_factor(target)
            if starting >= MIN_HEALTH_FACTOR:
                raise HealthFactorOkError(target, starting)

            seized = await self._oracle.token_amount_from_usd(asset, debt_to_cover)
            bonus = seized * self._liquidation_bonus_pct // LIQUIDATION_PRECISION
            total_seized = seized + bonus
            if total_seized == 0:
                raise LiquidationTooSmallError(asset, debt_to_cover)

            await self._redeem(op, target, liquidator, asset, total_seized)
            await self._burn(op, target, liquidator, debt_to_cover)

            ending = await self._health.health_factor(target)
            if ending <= starting:
                raise HealthFactorNotImprovedError(starting, ending)
            await self._revert_if_health_factor_is_broken(target)

            op.emit(
                PositionLiquidated(
                    liquidator=liquidator,
                    target=target,
                    asset=asset,
                    debt_covered=debt_to_cover,
                    collateral_seized=total_seized,
                    starting_health_factor=starting,
                    ending_health_factor=ending,
                )
            )

        logger.info(
            "%s liquidated %s: covered %d debt, seized %d %s",
            liquidator, target, debt_to_cover, total_seized, asset,
        )
        return total_seized

    # ------------------------------------------------------------------
    # Read queries
    # ------------------------------------------------------------------

    async def health_factor(self, account: Hashable) -> int | float:
        return await self._health.health_factor(account)

    async def account_collateral_value_usd(self, account: Hashable) -> int:
        return await self._health.account_collateral_value_usd(account)

    async def account_information(self, account: Hashable) -> AccountInformation:
        return await self._health.account_information(account)

    async def usd_value(self, asset: str, amount: int) -> int:
        return await self._oracle.usd_value(asset, amount)

    async def token_amount_from_usd(self, asset: str, usd_amount: int) -> int:
        return await self._oracle.token_amount_from_usd(asset, usd_amount)

    def calculate_health_factor(self, total_debt: int, collateral_value_usd: int) -> int | float:
        return calculate_health_factor(
            total_debt, collateral_value_usd, self._health.liquidation_threshold_pct
        )

    def collateral_balance(self, account: Hashable, asset: str) -> int:
        return self._collateral.get(account, asset)

    def debt_of(self, account: Hashable) -> int:
        return self._debt.get(account)

    def total_debt(self) -> int:
        return self._debt.total()

    def price_feed_for(self, asset: str) -> PriceFeed:
        return self._oracle.feed_for(asset)

    def collateral_token_for(self, asset: str) -> CollateralToken:
        self._require_allowed(asset)
        return self._tokens[asset]

    @property
    def collateral_assets(self) -> tuple[Asset, ...]:
        return tuple(self._assets.values())

    @property
    def stable_token(self) -> StableToken:
        return self._stable

    @property
    def precision(self) -> int:
        return PRECISION

    @property
    def liquidation_threshold(self) -> int:
        return self._health.liquidation_threshold_pct

    @property
    def liquidation_bonus(self) -> int:
        return self._liquidation_bonus_pct

    @property
    def min_health_factor(self) -> int:
        return MIN_HEALTH_FACTOR
