"""Unit tests for data models and period helpers."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from vault_insights.models import (
    AprResult,
    BalanceDelta,
    ChainVaultApy,
    SourceDescriptor,
    VaultApr,
    decimal_str,
)
from vault_insights.periods import (
    epoch_ms,
    from_unix_time,
    get_period_seconds,
    get_unix_time,
)


class TestBalanceDelta:
    def test_merge_keeps_latest_balance_and_sums_deltas(self) -> None:
        merged = BalanceDelta(Decimal(10), Decimal(10)).merge(BalanceDelta(Decimal(4), Decimal(-6)))
        assert merged == BalanceDelta(Decimal(4), Decimal(4))

    def test_frozen(self) -> None:
        b = BalanceDelta()
        with pytest.raises(AttributeError):
            b.balance = Decimal(1)  # type: ignore[misc]


class TestSourceDescriptor:
    def test_str(self) -> None:
        assert str(SourceDescriptor(chain="arbitrum", name="clm")) == "arbitrum/clm@latest"

    def test_hashable_and_equal(self) -> None:
        a = SourceDescriptor(chain="arbitrum", name="clm", url="https://x")
        b = SourceDescriptor(chain="arbitrum", name="clm", url="https://x")
        assert a == b
        assert len({a, b}) == 1


class TestAprModels:
    def test_defaults_are_zero(self) -> None:
        assert AprResult() == AprResult(apr=Decimal(0), apy=Decimal(0))

    def test_vault_apr_to_dict(self) -> None:
        vault = VaultApr(
            vault_address="0xvault",
            price_range_min=Decimal("1500.000"),
            current_price=Decimal("2000"),
            price_range_max=Decimal("2500.5"),
            apr=Decimal("0.05"),
            apy=Decimal("0.0512"),
        )
        assert vault.to_dict() == {
            "vaultAddress": "0xvault",
            "priceRangeMin1": "1500",
            "priceOfToken0InToken1": "2000",
            "priceRangeMax1": "2500.5",
            "apr": "0.05",
            "apy": "0.0512",
        }

    def test_chain_vault_apy_has_six_decimals(self) -> None:
        row = ChainVaultApy(
            chain="optimism", vault_address="0xvault", apr=Decimal("0.12345678"), apy=Decimal(0)
        )
        assert row.to_dict() == {
            "chain": "optimism",
            "vault_address": "0xvault",
            "apr_24h": "0.123457",
            "apy_24h": "0.000000",
        }


class TestDecimalStr:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal("12.000"), "12"),
            (Decimal("0E-18"), "0"),
            (Decimal("1.5E+3"), "1500"),
            (Decimal("-0.250"), "-0.25"),
        ],
    )
    def test_plain_notation(self, value: Decimal, expected: str) -> None:
        assert decimal_str(value) == expected


class TestPeriods:
    def test_known_periods(self) -> None:
        assert get_period_seconds("1h") == 3600
        assert get_period_seconds("1d") == 86400
        assert get_period_seconds("1w") == 604800

    def test_unknown_period_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown period"):
            get_period_seconds("1y")

    def test_unix_time_round_trip(self) -> None:
        moment = from_unix_time("1711201231")
        assert moment == datetime(2024, 3, 23, 13, 40, 31, tzinfo=timezone.utc)
        assert get_unix_time(moment) == 1711201231

    def test_epoch_ms_is_exact(self) -> None:
        assert epoch_ms(from_unix_time(1711201231)) == 1711201231000
