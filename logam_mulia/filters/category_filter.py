# logam_mulia/filters/category_filter.py

"""Post-normalization filtering by product category."""

import logging

from logam_mulia.models.price_record import PriceRecord

logger = logging.getLogger("logam_mulia.filters")


class CategoryFilter:
    """Narrow a normalized batch to a single category."""

    @staticmethod
    def filter_by_category(
        records: list[PriceRecord],
        category: str | None,
    ) -> tuple[list[PriceRecord], int]:
        """Keep only records whose category equals *category* exactly.

        Returns the kept records and the count of excluded ones.  A
        ``None`` category keeps everything.
        """
        if category is None:
            return records, 0

        kept = [r for r in records if r.category == category]
        excluded = len(records) - len(kept)

        if excluded:
            logger.info(
                "Filtered out %d records outside category '%s'",
                excluded,
                category,
            )

        return kept, excluded
