# tests/test_category_filter.py

"""Tests for the post-normalization category filter."""

import unittest
from datetime import datetime, timezone

from logam_mulia.filters.category_filter import CategoryFilter
from logam_mulia.models.price_record import PriceRecord

NOW = datetime(2026, 1, 28, 7, 2, tzinfo=timezone.utc)


def _record(category: str, weight: float = 1.0) -> PriceRecord:
    return PriceRecord(
        source="anekalogam",
        category=category,
        weight=weight,
        sell_price=1000000,
        buy_price=950000,
        published_at="28 January 2026 14.02",
        observed_at=NOW,
    )


class TestCategoryFilter(unittest.TestCase):
    """CategoryFilter.filter_by_category behaviour."""

    def setUp(self) -> None:
        self.records = [
            _record("antam", 1.0),
            _record("antam-certicard", 1.0),
            _record("antam", 5.0),
            _record("antam-old", 10.0),
        ]

    def test_none_keeps_everything(self) -> None:
        """No category means no filtering."""
        kept, excluded = CategoryFilter.filter_by_category(
            self.records, None
        )
        self.assertEqual(kept, self.records)
        self.assertEqual(excluded, 0)

    def test_exact_match_only(self) -> None:
        """'antam' does not match 'antam-certicard' or 'antam-old'."""
        kept, excluded = CategoryFilter.filter_by_category(
            self.records, "antam"
        )
        self.assertEqual([r.weight for r in kept], [1.0, 5.0])
        self.assertEqual(excluded, 2)

    def test_unknown_category_keeps_nothing(self) -> None:
        """A category that is not present empties the view."""
        kept, excluded = CategoryFilter.filter_by_category(
            self.records, "ubs"
        )
        self.assertEqual(kept, [])
        self.assertEqual(excluded, 4)

    def test_input_not_mutated(self) -> None:
        """Filtering returns a view; the input list is untouched."""
        CategoryFilter.filter_by_category(self.records, "antam-old")
        self.assertEqual(len(self.records), 4)


if __name__ == "__main__":
    unittest.main()
