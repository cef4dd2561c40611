# tests/test_display.py

"""Tests for price presentation helpers."""

import unittest
from unittest.mock import patch

from oumg_console.config.settings import Settings
from oumg_console.models.price_snapshot import PriceSnapshot
from oumg_console.pricing.display import (
    PLACEHOLDER,
    fmt_bps,
    fmt_datetime,
    fmt_rm,
    mint_cost,
    resolve_effective_user_buy,
)


class TestFormatting(unittest.TestCase):
    """Money, bps and timestamp formatting."""

    def test_fmt_rm(self) -> None:
        self.assertEqual(fmt_rm(1234.5), "RM 1,234.50")
        self.assertEqual(fmt_rm("517"), "RM 517.00")
        self.assertEqual(fmt_rm(1.005), "RM 1.01")

    def test_fmt_rm_placeholder(self) -> None:
        for value in (None, "", "abc", float("nan")):
            with self.subTest(value=value):
                self.assertEqual(fmt_rm(value), PLACEHOLDER)

    def test_fmt_bps(self) -> None:
        self.assertEqual(fmt_bps(116), "116 bps")
        self.assertEqual(fmt_bps(12.5), "12.5 bps")
        self.assertEqual(fmt_bps(None), PLACEHOLDER)

    def test_fmt_datetime(self) -> None:
        self.assertEqual(
            fmt_datetime("2026-03-01T12:30:00Z"), "2026-03-01 12:30",
        )
        self.assertEqual(fmt_datetime("yesterday"), "yesterday")
        self.assertEqual(fmt_datetime(""), PLACEHOLDER)
        self.assertEqual(fmt_datetime(None), PLACEHOLDER)


class TestEffectiveUserBuy(unittest.TestCase):
    """Fallback chain for the user-facing buy price."""

    def test_priority(self) -> None:
        self.assertEqual(
            resolve_effective_user_buy(
                PriceSnapshot(user_buy=510.0, buy=505.0, base=500.0),
            ),
            510.0,
        )
        self.assertEqual(
            resolve_effective_user_buy(
                PriceSnapshot(buy=505.0, base=500.0),
            ),
            505.0,
        )
        self.assertEqual(
            resolve_effective_user_buy(PriceSnapshot(base=499.0)), 499.0,
        )

    def test_fallback(self) -> None:
        self.assertEqual(
            resolve_effective_user_buy(PriceSnapshot()),
            Settings.FALLBACK_PRICE_MYR_PER_G,
        )
        self.assertEqual(resolve_effective_user_buy(None), 500.0)
        self.assertEqual(
            resolve_effective_user_buy(None, fallback=450.0), 450.0,
        )

    def test_fallback_follows_settings(self) -> None:
        with patch.object(Settings, "FALLBACK_PRICE_MYR_PER_G", 420.0):
            self.assertEqual(resolve_effective_user_buy(None), 420.0)


class TestMintCost(unittest.TestCase):
    """grams × effective user buy."""

    def test_cost(self) -> None:
        self.assertEqual(
            mint_cost(2, PriceSnapshot(user_buy=502.5)), 1005.0,
        )
        self.assertEqual(mint_cost("1.5", PriceSnapshot()), 750.0)

    def test_invalid_grams(self) -> None:
        for grams in (0, -1, "abc", None):
            with self.subTest(grams=grams):
                self.assertIsNone(
                    mint_cost(grams, PriceSnapshot(user_buy=500.0)),
                )


if __name__ == "__main__":
    unittest.main()
