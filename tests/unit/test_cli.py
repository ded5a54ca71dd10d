"""Unit tests for CLI argument parsing."""
from __future__ import annotations

import pytest

from vault_insights.cli import build_cache, build_parser
from vault_insights.config import AppConfig


class TestBuildParser:
    def test_timeline_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["timeline", "0xINVESTOR"])
        assert args.command == "timeline"
        assert args.investor == "0xINVESTOR"

    def test_vaults_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["vaults", "arbitrum", "1d"])
        assert args.command == "vaults"
        assert args.chain == "arbitrum"
        assert args.period == "1d"

    def test_vaults_rejects_unknown_period(self) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["vaults", "arbitrum", "1y"])

    def test_harvests_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args(
            ["harvests", "arbitrum", "1711201231", "--vault", "0xa", "--vault", "0xb"]
        )
        assert args.since == 1711201231
        assert args.vaults == ["0xa", "0xb"]

    def test_harvests_without_vaults(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["harvests", "arbitrum", "0"])
        assert args.vaults is None

    def test_single_vault_commands(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["vault-prices", "arbitrum", "0xv", "1h", "1711201231"])
        assert args.command == "vault-prices"
        assert (args.chain, args.vault, args.period, args.since) == (
            "arbitrum",
            "0xv",
            "1h",
            1711201231,
        )

        args = parser.parse_args(["vault-prices-range", "arbitrum", "0xv", "1w"])
        assert args.period == "1w"

        for command in ("vault-price", "vault-harvests"):
            args = parser.parse_args([command, "arbitrum", "0xv"])
            assert (args.command, args.vault) == (command, "0xv")

    def test_vault_prices_rejects_unknown_period(self) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["vault-prices-range", "arbitrum", "0xv", "1y"])

    def test_apy_command(self) -> None:
        parser = build_parser()
        assert parser.parse_args(["apy"]).chain is None
        assert parser.parse_args(["apy", "--chain", "optimism"]).chain == "optimism"

    def test_config_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--config", "/tmp/c.yaml", "timeline", "0x1"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["--log-level", "DEBUG", "timeline", "0x1"])
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args([])
        assert args.command is None


class TestBuildCache:
    def test_uses_cache_config(self, sample_app_config: AppConfig) -> None:
        store, cache = build_cache(sample_app_config)
        store.set("k", "v")
        assert cache.get("k") == "v"
        assert cache.pending("k") == 0
