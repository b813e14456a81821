"""Command-line interface for inspecting collateral prices and conversions."""
from __future__ import annotations

import argparse
import asyncio
import sys
from decimal import Decimal, InvalidOperation

from .config import AppConfig, build_assets, build_price_feeds, load_config
from .errors import EngineError
from .logging_setup import configure_logging
from .oracles import PriceOracleAdapter


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from e


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="collateral-engine",
        description="Collateralized stable-unit engine tools",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("assets", help="List configured collateral assets")
    sub.add_parser("prices", help="Read every price feed once")

    quote_parser = sub.add_parser("quote", help="USD value of a collateral amount")
    quote_parser.add_argument("symbol", help="Collateral asset symbol")
    quote_parser.add_argument("amount", type=_decimal, help="Amount in whole units")

    convert_parser = sub.add_parser("convert", help="Collateral amount for a USD value")
    convert_parser.add_argument("symbol", help="Collateral asset symbol")
    convert_parser.add_argument("usd", type=_decimal, help="USD amount")

    return parser


def to_base_units(amount: Decimal, decimals: int) -> int:
    """Convert a whole-unit decimal amount into integer base units."""
    try:
        return int(amount.scaleb(decimals).to_integral_value())
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount}") from e


def from_base_units(amount: int, decimals: int) -> Decimal:
    return Decimal(amount).scaleb(-decimals)


def build_oracle(config: AppConfig) -> PriceOracleAdapter:
    assets = build_assets(config)
    feeds = build_price_feeds(config)
    return PriceOracleAdapter(
        {a.symbol: a for a in assets},
        {a.symbol: f for a, f in zip(assets, feeds)},
        timeout_seconds=config.engine.oracle_timeout_seconds,
    )


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    oracle = build_oracle(config)

    if args.command == "assets":
        for asset in config.collateral:
            source = asset.feed.feed_id or f"static {asset.feed.price}"
            print(
                f"{asset.symbol:<8} decimals={asset.decimals:<3} "
                f"{asset.feed.provider}: {source}"
            )
    elif args.command == "prices":
        for asset in build_assets(config):
            usd = await oracle.usd_value(asset.symbol, asset.scale)
            print(f"{asset.symbol:<8} ${from_base_units(usd, 18):,.4f}")
    elif args.command == "quote":
        asset = config.asset(args.symbol)
        amount = to_base_units(args.amount, asset.decimals)
        usd = await oracle.usd_value(asset.symbol, amount)
        print(f"{args.amount} {asset.symbol} = ${from_base_units(usd, 18):,.2f}")
    elif args.command == "convert":
        asset = config.asset(args.symbol)
        usd = to_base_units(args.usd, 18)
        amount = await oracle.token_amount_from_usd(asset.symbol, usd)
        print(f"${args.usd} = {from_base_units(amount, asset.decimals)} {asset.symbol}")
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except KeyError as e:
        print(f"Unknown collateral asset: {e.args[0]}", file=sys.stderr)
        sys.exit(2)
    except EngineError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
