# logam_mulia/storage/price_history_db.py

"""SQLite-backed gold price history store."""

import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from logam_mulia.config.settings import Settings
from logam_mulia.errors import PersistenceFailure
from logam_mulia.models.price_record import PriceRecord
from logam_mulia.models.price_snapshot import StoredSnapshot

logger = logging.getLogger("logam_mulia.price_history")

# Sources without a page timestamp are keyed on the empty string,
# since SQLite treats NULLs as distinct inside a UNIQUE constraint.
NO_TIMESTAMP = ""

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS gold_price_history (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    source        TEXT    NOT NULL,
    category      TEXT    NOT NULL,
    weight        REAL    NOT NULL,
    sell_price    INTEGER NOT NULL,
    buy_price     INTEGER NOT NULL DEFAULT 0,
    has_buy_price INTEGER NOT NULL DEFAULT 1,
    published_at  TEXT    NOT NULL DEFAULT '',
    observed_at   TEXT    NOT NULL,
    UNIQUE (source, category, weight, published_at)
);

CREATE INDEX IF NOT EXISTS idx_history_series_observed
    ON gold_price_history(source, category, weight, observed_at);
"""

_SELECT_COLUMNS = (
    "id, source, category, weight, sell_price, buy_price, "
    "has_buy_price, published_at, observed_at"
)


def _row_to_snapshot(row: tuple[Any, ...]) -> StoredSnapshot:
    published: str = row[7]
    return StoredSnapshot(
        id=row[0],
        source=row[1],
        category=row[2],
        weight=float(row[3]),
        sell_price=row[4],
        buy_price=row[5],
        has_buy_price=bool(row[6]),
        published_at=published or None,
        observed_at=datetime.fromisoformat(str(row[8])),
    )


def _decode_row(
    row: tuple[Any, ...], source: str, category: str,
) -> StoredSnapshot:
    try:
        return _row_to_snapshot(row)
    except (TypeError, ValueError) as exc:
        raise PersistenceFailure(
            f"Unreadable price history row {row[0]}: {exc}",
            {"source": source, "category": category},
        ) from exc


class PriceHistoryDB:
    """SQLite-backed store for gold price snapshots.

    Holds at most one row per ``(source, category, weight,
    published_at)``, so re-ingesting an unchanged page is a no-op.
    The connection is shared with worker threads; every statement runs
    under one lock.
    """

    def __init__(
        self, db_path: Path | None = None,
    ) -> None:
        """Open (and if needed create) the store.

        Raises:
            PersistenceFailure: if the file cannot be created or is not
                a usable SQLite database.
        """
        path = db_path or Settings.PRICE_DB_PATH
        self._lock = threading.Lock()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                str(path), check_same_thread=False,
            )
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceFailure(
                f"Cannot open price history at {path}: {exc}",
                {"path": str(path)},
            ) from exc
        try:
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            self._conn.close()
            raise PersistenceFailure(
                f"Cannot prepare price history at {path}: {exc}",
                {"path": str(path)},
            ) from exc
        logger.debug(
            "PriceHistoryDB opened at %s", path,
        )

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    # ── Recording ────────────────────────────────────────

    def upsert(self, records: list[PriceRecord]) -> int:
        """Insert each record unless its snapshot key is already stored.

        Returns the number of new rows.

        Raises:
            PersistenceFailure: if the write fails.
        """
        if not records:
            return 0

        count = 0
        try:
            with self._lock:
                cur = self._conn.cursor()
                for r in records:
                    cur.execute(
                        "INSERT INTO gold_price_history "
                        "(source, category, weight, sell_price, "
                        " buy_price, has_buy_price, published_at, "
                        " observed_at) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?, ?) "
                        "ON CONFLICT(source, category, weight, "
                        "            published_at) DO NOTHING",
                        (
                            r.source,
                            r.category,
                            r.weight,
                            r.sell_price,
                            r.buy_price,
                            int(r.has_buy_price),
                            r.published_at or NO_TIMESTAMP,
                            r.observed_at.isoformat(),
                        ),
                    )
                    count += cur.rowcount
                self._conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure(
                f"Failed to save {len(records)} prices: {exc}",
                {"source": records[0].source},
            ) from exc

        logger.info(
            "[%s] Saved %d new of %d price rows",
            records[0].source,
            count,
            len(records),
        )
        return count

    # ── Querying ─────────────────────────────────────────

    def query_latest_before(
        self,
        source: str,
        category: str,
        weights: list[float],
        exclude_published_at: str | None,
    ) -> dict[float, StoredSnapshot]:
        """Return the latest prior snapshot per weight.

        Rows whose ``published_at`` equals *exclude_published_at* (the
        current page's timestamp) are never returned, so an unchanged
        page is not compared against itself.  Among the rest the most
        recently observed row per weight wins.
        """
        if not weights:
            return {}

        placeholders = ", ".join("?" for _ in weights)
        params: list[object] = [
            source,
            category,
            exclude_published_at or NO_TIMESTAMP,
            *weights,
        ]
        try:
            with self._lock:
                rows = self._conn.execute(
                    f"SELECT {_SELECT_COLUMNS} "
                    "FROM gold_price_history "
                    "WHERE source = ? AND category = ? "
                    "  AND published_at != ? "
                    f"  AND weight IN ({placeholders}) "
                    "ORDER BY observed_at DESC, id DESC",
                    params,
                ).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceFailure(
                f"Failed to read previous prices: {exc}",
                {"source": source, "category": category},
            ) from exc

        latest: dict[float, StoredSnapshot] = {}
        for row in rows:
            snap = _decode_row(row, source, category)
            if snap.weight not in latest:
                latest[snap.weight] = snap
        return latest

    def get_price_history(
        self,
        source: str,
        category: str,
        weight: float,
        limit: int = 30,
    ) -> list[StoredSnapshot]:
        """Return stored snapshots for one series, newest first."""
        try:
            with self._lock:
                rows = self._conn.execute(
                    f"SELECT {_SELECT_COLUMNS} "
                    "FROM gold_price_history "
                    "WHERE source = ? AND category = ? "
                    "  AND weight = ? "
                    "ORDER BY observed_at DESC, id DESC "
                    "LIMIT ?",
                    (source, category, weight, limit),
                ).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceFailure(
                f"Failed to read price history: {exc}",
                {"source": source, "category": category},
            ) from exc
        return [_decode_row(r, source, category) for r in rows]
