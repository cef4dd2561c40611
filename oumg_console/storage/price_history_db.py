# oumg_console/storage/price_history_db.py

"""SQLite-backed store of normalized price snapshots."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from oumg_console.config.settings import Settings
from oumg_console.models.price_snapshot import PriceSnapshot
from oumg_console.pricing.normalizer import (
    normalize_many,
    normalize_price_snapshot,
    round_half_up,
)

logger = logging.getLogger("oumg_console.price_history")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS price_snapshots (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    base                REAL,
    buy                 REAL,
    sell                REAL,
    user_buy            REAL,
    user_sell           REAL,
    spread_amount       REAL,
    spread_basis_points INTEGER,
    source              TEXT,
    updated_at          TEXT,
    note                TEXT,
    recorded_at         TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_snapshots_recorded
    ON price_snapshots(recorded_at);
"""

_COLUMNS = (
    "base, buy, sell, user_buy, user_sell, spread_amount, "
    "spread_basis_points, source, updated_at, note"
)


def _row_to_snapshot(row: tuple[Any, ...]) -> PriceSnapshot:
    return PriceSnapshot(
        base=row[0],
        buy=row[1],
        sell=row[2],
        user_buy=row[3],
        user_sell=row[4],
        spread_amount=row[5],
        spread_basis_points=row[6],
        source=row[7],
        updated_at=row[8],
        note=row[9],
    )


class PriceHistoryDB:
    """Local archive of snapshots fetched from the backend."""

    def __init__(
        self, db_path: Path | None = None,
    ) -> None:
        path = db_path or Settings.PRICE_DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug("PriceHistoryDB opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Recording ────────────────────────────────────────

    def record_snapshots(
        self,
        snapshots: list[PriceSnapshot],
        recorded_at: datetime | None = None,
    ) -> int:
        """Insert each snapshot that carries at least one price.

        Returns the number of rows inserted.
        """
        ts = (recorded_at or datetime.now()).isoformat()
        count = 0
        cur = self._conn.cursor()

        for snap in snapshots:
            if snap.is_empty:
                continue
            cur.execute(
                f"INSERT INTO price_snapshots ({_COLUMNS}, recorded_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    snap.base,
                    snap.buy,
                    snap.sell,
                    snap.user_buy,
                    snap.user_sell,
                    snap.spread_amount,
                    snap.spread_basis_points,
                    snap.source,
                    snap.updated_at,
                    snap.note,
                    ts,
                ),
            )
            count += 1

        self._conn.commit()
        if count:
            logger.info("Recorded %d price snapshots at %s", count, ts)
        return count

    # ── Querying ─────────────────────────────────────────

    def get_history(
        self, limit: int | None = None, offset: int = 0,
    ) -> list[PriceSnapshot]:
        """Return one page of snapshots, newest first."""
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM price_snapshots "
            "ORDER BY recorded_at DESC, id DESC "
            "LIMIT ? OFFSET ?",
            (limit or Settings.PAGE_SIZE, max(offset, 0)),
        ).fetchall()
        return [_row_to_snapshot(r) for r in rows]

    def get_latest(self) -> PriceSnapshot | None:
        """Return the most recently recorded snapshot."""
        history = self.get_history(limit=1)
        return history[0] if history else None

    def count(self) -> int:
        row = self._conn.execute(
            "SELECT COUNT(id) FROM price_snapshots",
        ).fetchone()
        return int(row[0]) if row else 0

    def get_trend_summary(self) -> dict[str, object] | None:
        """Compute min / max / avg / latest user buy price."""
        row = self._conn.execute(
            "SELECT MIN(user_buy), MAX(user_buy), "
            "       AVG(user_buy), COUNT(user_buy) "
            "FROM price_snapshots",
        ).fetchone()
        if row is None or row[3] == 0:
            return None
        latest_row = self._conn.execute(
            "SELECT user_buy FROM price_snapshots "
            "WHERE user_buy IS NOT NULL "
            "ORDER BY recorded_at DESC, id DESC LIMIT 1",
        ).fetchone()
        return {
            "min": row[0],
            "max": row[1],
            "avg": round_half_up(row[2], 2),
            "count": row[3],
            "latest": latest_row[0] if latest_row else None,
        }

    # ── Import ───────────────────────────────────────────

    def import_single_file(
        self,
        filepath: Path,
        recorded_at: datetime | None = None,
    ) -> int:
        """Normalize and store raw price records from a JSON file.

        Accepts a list of records, a single record, or a backend
        response wrapping either under ``data``.  Returns the count.
        """
        try:
            with open(filepath, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning(
                "Failed to read %s: %s",
                filepath.name,
                exc,
            )
            return 0

        if isinstance(data, dict) and "data" in data:
            data = data["data"]

        if isinstance(data, dict):
            snapshots = [normalize_price_snapshot(data)]
        elif isinstance(data, list):
            snapshots = normalize_many(data)
        else:
            logger.warning(
                "Unsupported JSON shape in %s", filepath.name,
            )
            return 0

        return self.record_snapshots(
            snapshots, recorded_at=recorded_at,
        )
