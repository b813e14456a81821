"""Unit tests for CLI argument parsing and commands."""
from __future__ import annotations

import argparse
from decimal import Decimal
from pathlib import Path

import pytest

from collateral_engine.cli import _run, build_parser, from_base_units, to_base_units


class TestBuildParser:
    def test_assets_command(self) -> None:
        args = build_parser().parse_args(["assets"])
        assert args.command == "assets"

    def test_quote_command(self) -> None:
        args = build_parser().parse_args(["quote", "WETH", "1.5"])
        assert args.command == "quote"
        assert args.symbol == "WETH"
        assert args.amount == Decimal("1.5")

    def test_convert_command(self) -> None:
        args = build_parser().parse_args(["convert", "WBTC", "100"])
        assert args.usd == Decimal("100")

    def test_invalid_amount_exits(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["quote", "WETH", "lots"])

    def test_config_flag(self) -> None:
        args = build_parser().parse_args(["--config", "/tmp/c.yaml", "prices"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        args = build_parser().parse_args(["--log-level", "DEBUG", "assets"])
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        args = build_parser().parse_args([])
        assert args.command is None


class TestUnits:
    def test_to_base_units(self) -> None:
        assert to_base_units(Decimal("1.5"), 18) == 15 * 10**17
        assert to_base_units(Decimal("0.01"), 8) == 10**6

    def test_from_base_units(self) -> None:
        assert from_base_units(25 * 10**7, 8) == Decimal("2.5")


def _args(config: Path, *argv: str) -> argparse.Namespace:
    return build_parser().parse_args(["--config", str(config), "--log-level", "ERROR", *argv])


class TestCommands:
    @pytest.mark.asyncio
    async def test_quote_static_asset(
        self, sample_yaml_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await _run(_args(sample_yaml_path, "quote", "WBTC", "2"))
        assert "2 WBTC = $2,000.00" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_convert_static_asset(
        self, sample_yaml_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await _run(_args(sample_yaml_path, "convert", "WBTC", "500"))
        assert "$500 = 0.50000000 WBTC" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_assets_lists_feeds(
        self, sample_yaml_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await _run(_args(sample_yaml_path, "assets"))
        out = capsys.readouterr().out
        assert "WETH" in out and "pyth: aaa111" in out
        assert "static 100000000000" in out
