# tests/test_price_history_db.py

"""Tests for the SQLite price history store."""

import json
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from oumg_console.models.price_snapshot import PriceSnapshot
from oumg_console.storage.price_history_db import PriceHistoryDB


class TestPriceHistoryDB(unittest.TestCase):
    """Tests for the PriceHistoryDB class."""

    def setUp(self) -> None:
        """Create a fresh temp DB for each test."""
        self.tmp_dir = tempfile.mkdtemp()
        self.db_path = Path(self.tmp_dir) / "test.db"
        self.db = PriceHistoryDB(db_path=self.db_path)

    def tearDown(self) -> None:
        """Close the database."""
        self.db.close()

    def _snapshot(self, user_buy: float, note: str = "") -> PriceSnapshot:
        return PriceSnapshot(
            base=user_buy - 2.5,
            buy=user_buy,
            sell=user_buy - 5.0,
            user_buy=user_buy,
            user_sell=user_buy - 5.0,
            spread_amount=5.0,
            spread_basis_points=100,
            source="manual",
            updated_at="2026-03-01T12:00:00Z",
            note=note or None,
        )

    # ── record / query ───────────────────────────────────

    def test_record_snapshots_inserts(self) -> None:
        """Snapshots with prices are stored."""
        count = self.db.record_snapshots([self._snapshot(502.5)])
        self.assertEqual(count, 1)
        self.assertEqual(self.db.count(), 1)

    def test_record_skips_empty_snapshots(self) -> None:
        """A snapshot without any price is not stored."""
        count = self.db.record_snapshots(
            [PriceSnapshot(), PriceSnapshot(spread_basis_points=50)],
        )
        self.assertEqual(count, 0)
        self.assertEqual(self.db.count(), 0)

    def test_round_trip_preserves_fields(self) -> None:
        snap = self._snapshot(502.5, note="weekly")
        self.db.record_snapshots([snap])
        self.assertEqual(self.db.get_latest(), snap)

    def test_absent_fields_stay_absent(self) -> None:
        """NULL columns come back as None, not zero."""
        snap = PriceSnapshot(base=500.0)
        self.db.record_snapshots([snap])
        latest = self.db.get_latest()
        assert latest is not None
        self.assertIsNone(latest.buy)
        self.assertIsNone(latest.spread_basis_points)

    def test_get_history_newest_first(self) -> None:
        self.db.record_snapshots(
            [self._snapshot(500.0)], recorded_at=datetime(2026, 3, 1),
        )
        self.db.record_snapshots(
            [self._snapshot(510.0)], recorded_at=datetime(2026, 3, 2),
        )
        history = self.db.get_history()
        self.assertEqual([s.user_buy for s in history], [510.0, 500.0])

    def test_get_history_paging(self) -> None:
        for i in range(5):
            self.db.record_snapshots(
                [self._snapshot(500.0 + i)],
                recorded_at=datetime(2026, 3, i + 1),
            )
        page = self.db.get_history(limit=2, offset=2)
        self.assertEqual([s.user_buy for s in page], [502.0, 501.0])

    def test_get_history_empty(self) -> None:
        self.assertEqual(self.db.get_history(), [])
        self.assertIsNone(self.db.get_latest())

    def test_trend_summary_returns_stats(self) -> None:
        """Trend summary covers min, max, avg and latest user buy."""
        for day, price in enumerate((500.0, 520.0, 510.0), start=1):
            self.db.record_snapshots(
                [self._snapshot(price)],
                recorded_at=datetime(2026, 3, day),
            )
        summary = self.db.get_trend_summary()
        assert summary is not None
        self.assertEqual(summary["min"], 500.0)
        self.assertEqual(summary["max"], 520.0)
        self.assertEqual(summary["avg"], 510.0)
        self.assertEqual(summary["count"], 3)
        self.assertEqual(summary["latest"], 510.0)

    def test_trend_average_rounds_half_up(self) -> None:
        """The average uses the same half-up rule as every price."""
        self.db.record_snapshots(
            [PriceSnapshot(user_buy=1.0), PriceSnapshot(user_buy=1.01)],
        )
        summary = self.db.get_trend_summary()
        assert summary is not None
        self.assertEqual(summary["avg"], 1.01)

    def test_trend_summary_none_when_empty(self) -> None:
        self.assertIsNone(self.db.get_trend_summary())
        self.db.record_snapshots([PriceSnapshot(base=500.0)])
        self.assertIsNone(self.db.get_trend_summary())

    # ── import_single_file ───────────────────────────────

    def _write(self, name: str, payload: object) -> Path:
        filepath = Path(self.tmp_dir) / name
        filepath.write_text(json.dumps(payload), encoding="utf-8")
        return filepath

    def test_import_list_of_records(self) -> None:
        """Raw backend rows are normalized before storage."""
        filepath = self._write("snapshots.json", [
            {"price_myr_per_g": 500, "spread_bps": 100},
            {"buy_myr_per_g": 520, "sell_myr_per_g": 515},
            "junk",
        ])
        count = self.db.import_single_file(filepath)
        self.assertEqual(count, 2)
        first = self.db.get_history()[-1]
        self.assertEqual(first.buy, 502.5)
        self.assertEqual(first.sell, 497.5)

    def test_import_wrapped_single_record(self) -> None:
        filepath = self._write(
            "current.json", {"data": {"price_myr_per_g": "517.5"}},
        )
        self.assertEqual(self.db.import_single_file(filepath), 1)
        latest = self.db.get_latest()
        assert latest is not None
        self.assertEqual(latest.base, 517.5)

    def test_import_skips_corrupt_json(self) -> None:
        filepath = Path(self.tmp_dir) / "broken.json"
        filepath.write_text("{not json", encoding="utf-8")
        self.assertEqual(self.db.import_single_file(filepath), 0)

    def test_import_missing_file(self) -> None:
        missing = Path(self.tmp_dir) / "missing.json"
        self.assertEqual(self.db.import_single_file(missing), 0)

    def test_import_unsupported_shape(self) -> None:
        filepath = self._write("number.json", 42)
        self.assertEqual(self.db.import_single_file(filepath), 0)


if __name__ == "__main__":
    unittest.main()
