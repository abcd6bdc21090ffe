# tests/test_price_history_db.py

"""Tests for the SQLite price history store."""

import sqlite3
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

from logam_mulia.errors import PersistenceFailure
from logam_mulia.models.price_record import PriceRecord
from logam_mulia.storage.price_history_db import PriceHistoryDB

T0 = datetime(2026, 1, 28, 7, 0, tzinfo=timezone.utc)


def _record(
    weight: float = 1.0,
    sell: int = 1000000,
    buy: int = 950000,
    published_at: str | None = "28 January 2026 14.02",
    observed_at: datetime = T0,
    category: str = "antam",
    source: str = "anekalogam",
    has_buy_price: bool = True,
) -> PriceRecord:
    return PriceRecord(
        source=source,
        category=category,
        weight=weight,
        sell_price=sell,
        buy_price=buy,
        published_at=published_at,
        observed_at=observed_at,
        has_buy_price=has_buy_price,
    )


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

    def _count_rows(self) -> int:
        conn = sqlite3.connect(str(self.db_path))
        try:
            row = conn.execute(
                "SELECT COUNT(*) FROM gold_price_history"
            ).fetchone()
        finally:
            conn.close()
        return int(row[0])

    # ── upsert ───────────────────────────────────────────

    def test_upsert_inserts_new_rows(self) -> None:
        """Each new snapshot key becomes one row."""
        saved = self.db.upsert([_record(1.0), _record(5.0)])
        self.assertEqual(saved, 2)
        self.assertEqual(self._count_rows(), 2)

    def test_upsert_is_idempotent(self) -> None:
        """Re-ingesting an unchanged page adds nothing."""
        self.db.upsert([_record(1.0)])
        again = self.db.upsert(
            [_record(1.0, observed_at=T0 + timedelta(hours=1))]
        )
        self.assertEqual(again, 0)
        self.assertEqual(self._count_rows(), 1)

    def test_first_write_wins(self) -> None:
        """A conflicting snapshot keeps the originally stored prices."""
        self.db.upsert([_record(1.0, sell=1000000)])
        self.db.upsert([_record(1.0, sell=1234567)])
        history = self.db.get_price_history("anekalogam", "antam", 1.0)
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].sell_price, 1000000)

    def test_new_published_at_is_new_row(self) -> None:
        """A changed page timestamp starts a new snapshot."""
        self.db.upsert([_record(1.0, published_at="a")])
        self.db.upsert([_record(1.0, published_at="b")])
        self.assertEqual(self._count_rows(), 2)

    def test_missing_timestamp_still_deduplicates(self) -> None:
        """Rows without a page timestamp share one key per series."""
        rec = _record(1.0, published_at=None, source="pegadaian",
                      category="pegadaian")
        self.db.upsert([rec])
        self.db.upsert([rec])
        self.assertEqual(self._count_rows(), 1)

        history = self.db.get_price_history("pegadaian", "pegadaian", 1.0)
        self.assertIsNone(history[0].published_at)

    def test_upsert_empty(self) -> None:
        """An empty batch is a no-op."""
        self.assertEqual(self.db.upsert([]), 0)

    def test_upsert_keeps_has_buy_price(self) -> None:
        """The buy-price flag survives a round trip through SQLite."""
        self.db.upsert([_record(1.0, buy=0, has_buy_price=False)])
        snap = self.db.get_price_history("anekalogam", "antam", 1.0)[0]
        self.assertFalse(snap.has_buy_price)
        self.assertEqual(snap.buy_price, 0)
        self.assertEqual(snap.observed_at, T0)

    def test_upsert_error_is_persistence_failure(self) -> None:
        """sqlite3 errors are wrapped in PersistenceFailure."""
        self.addCleanup(self.db._conn.close)
        self.db._conn = MagicMock()
        self.db._conn.cursor.side_effect = sqlite3.OperationalError(
            "database is locked"
        )
        with self.assertRaises(PersistenceFailure) as ctx:
            self.db.upsert([_record()])
        self.assertIn("database is locked", str(ctx.exception))

    def test_corrupt_file_is_persistence_failure(self) -> None:
        """A file that is not SQLite cannot be opened as a store."""
        bad_path = Path(self.tmp_dir) / "corrupt.db"
        bad_path.write_bytes(b"definitely not sqlite " * 64)
        with self.assertRaises(PersistenceFailure) as ctx:
            PriceHistoryDB(db_path=bad_path)
        self.assertEqual(ctx.exception.details["path"], str(bad_path))

    def test_unwritable_location_is_persistence_failure(self) -> None:
        """A DB path under a regular file cannot be created."""
        blocker = Path(self.tmp_dir) / "blocker"
        blocker.write_text("x")
        with self.assertRaises(PersistenceFailure):
            PriceHistoryDB(db_path=blocker / "prices.db")

    # ── query_latest_before ──────────────────────────────

    def test_unreadable_row_is_persistence_failure(self) -> None:
        """A row whose timestamp cannot be decoded fails the read."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute(
                "INSERT INTO gold_price_history "
                "(source, category, weight, sell_price, buy_price, "
                " published_at, observed_at) "
                "VALUES ('anekalogam', 'antam', 1.0, 1, 1, 'a', 'yesterday')"
            )
            conn.commit()
        finally:
            conn.close()

        with self.assertRaises(PersistenceFailure):
            self.db.query_latest_before("anekalogam", "antam", [1.0], "b")
        with self.assertRaises(PersistenceFailure):
            self.db.get_price_history("anekalogam", "antam", 1.0)

    def test_latest_before_excludes_current_timestamp(self) -> None:
        """Rows with the current page timestamp are never returned."""
        self.db.upsert([_record(1.0, sell=100000, published_at="a")])
        self.db.upsert([
            _record(1.0, sell=105000, published_at="b",
                    observed_at=T0 + timedelta(hours=1)),
        ])
        prior = self.db.query_latest_before(
            "anekalogam", "antam", [1.0], "b"
        )
        self.assertEqual(prior[1.0].sell_price, 100000)
        self.assertEqual(prior[1.0].published_at, "a")

    def test_latest_before_picks_most_recent(self) -> None:
        """The most recently observed different snapshot wins."""
        for i, stamp in enumerate(("a", "b", "c")):
            self.db.upsert([
                _record(1.0, sell=100000 + i, published_at=stamp,
                        observed_at=T0 + timedelta(hours=i)),
            ])
        prior = self.db.query_latest_before(
            "anekalogam", "antam", [1.0], "d"
        )
        self.assertEqual(prior[1.0].sell_price, 100002)

    def test_latest_before_filters_weights_and_category(self) -> None:
        """Only requested weights of the requested category come back."""
        self.db.upsert([
            _record(1.0, published_at="a"),
            _record(5.0, published_at="a"),
            _record(1.0, published_at="a", category="antam-old"),
        ])
        prior = self.db.query_latest_before(
            "anekalogam", "antam", [1.0], "b"
        )
        self.assertEqual(list(prior), [1.0])
        self.assertEqual(prior[1.0].category, "antam")

    def test_latest_before_without_history(self) -> None:
        """No stored rows means an empty mapping."""
        self.assertEqual(
            self.db.query_latest_before("anekalogam", "antam", [1.0], "a"),
            {},
        )
        self.assertEqual(
            self.db.query_latest_before("anekalogam", "antam", [], "a"),
            {},
        )

    def test_latest_before_untimestamped_source(self) -> None:
        """A source without timestamps never finds a distinct prior."""
        self.db.upsert([
            _record(1.0, published_at=None, source="pegadaian",
                    category="pegadaian"),
        ])
        prior = self.db.query_latest_before(
            "pegadaian", "pegadaian", [1.0], None
        )
        self.assertEqual(prior, {})

    # ── get_price_history ────────────────────────────────

    def test_history_newest_first_with_limit(self) -> None:
        """History is ordered by observation time, newest first."""
        for i in range(5):
            self.db.upsert([
                _record(1.0, sell=100000 + i, published_at=str(i),
                        observed_at=T0 + timedelta(days=i)),
            ])
        history = self.db.get_price_history(
            "anekalogam", "antam", 1.0, limit=3
        )
        self.assertEqual(
            [h.sell_price for h in history], [100004, 100003, 100002]
        )

    def test_history_unknown_series(self) -> None:
        """An unknown series has empty history."""
        self.assertEqual(
            self.db.get_price_history("anekalogam", "ubs", 1.0), []
        )


if __name__ == "__main__":
    unittest.main()
