# logam_mulia/services/price_pipeline.py

"""Orchestrates fetch, extraction, normalization, persistence and deltas."""

import asyncio
import importlib
import logging
from datetime import datetime, timezone
from typing import Any

from logam_mulia.config.settings import Settings
from logam_mulia.errors import PersistenceFailure, UnsupportedSource
from logam_mulia.filters.category_filter import CategoryFilter
from logam_mulia.filters.price_normalizer import PriceNormalizer
from logam_mulia.models.price_record import PriceRecord, ScrapeResult
from logam_mulia.models.price_snapshot import StoredSnapshot
from logam_mulia.scrapers.base_scraper import BaseScraper
from logam_mulia.services.diff_engine import compute_deltas
from logam_mulia.storage.price_history_db import PriceHistoryDB

logger = logging.getLogger("logam_mulia.pipeline")


def load_scraper_class(dotted_path: str) -> type[Any]:
    """Dynamically import a scraper class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


def _open_default_store() -> PriceHistoryDB | None:
    try:
        return PriceHistoryDB()
    except PersistenceFailure as exc:
        logger.error(
            "Price history unavailable, running without it: %s",
            exc,
            exc_info=True,
        )
        return None


class PricePipeline:
    """Runs one source end to end and returns its canonical prices.

    Saving the run is fire-and-forget: :meth:`run` schedules the write
    as a detached task and returns without waiting for it.  A failed
    write is only reported to the log, so a storage outage means
    "no history", never "no prices".  The same holds when the store
    cannot be opened at all: the pipeline then runs without one, skips
    saves and reports zero deltas.  Call :meth:`drain` to wait for
    outstanding writes (e.g. before the process exits).
    """

    def __init__(
        self, price_db: PriceHistoryDB | None = None,
    ) -> None:
        self.settings = Settings()
        self._price_db = (
            price_db if price_db is not None else _open_default_store()
        )
        self._pending: set[asyncio.Task[int]] = set()

    # ── Private helpers ──────────────────────────────────

    def _get_scraper(self, source_id: str) -> BaseScraper:
        """Instantiate the scraper registered for *source_id*.

        Raises:
            UnsupportedSource: if the id is not registered.
        """
        source = Settings.get_source(source_id)
        if source is None:
            raise UnsupportedSource(source_id, Settings.source_ids())
        scraper_cls = load_scraper_class(source["scraper"])
        scraper: BaseScraper = scraper_cls()
        return scraper

    def _on_save_done(self, task: "asyncio.Task[int]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Price save task was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Error saving prices to history: %s",
                exc,
                exc_info=exc,
            )

    def _schedule_save(self, records: list[PriceRecord]) -> None:
        """Hand the unfiltered batch to the store without awaiting it."""
        if not records:
            return
        if self._price_db is None:
            logger.warning(
                "[%s] No price history store; %d prices not saved",
                records[0].source,
                len(records),
            )
            return
        task = asyncio.create_task(
            asyncio.to_thread(self._price_db.upsert, records)
        )
        self._pending.add(task)
        task.add_done_callback(self._on_save_done)

    def _prior_lookup(
        self,
        source: str,
        category: str,
        weights: list[float],
        exclude_published_at: str | None,
    ) -> dict[float, StoredSnapshot]:
        if self._price_db is None:
            return {}
        return self._price_db.query_latest_before(
            source, category, weights, exclude_published_at
        )

    # ── Public API ───────────────────────────────────────

    async def run(
        self,
        source_id: str,
        category: str | None = None,
        with_deltas: bool = False,
    ) -> ScrapeResult:
        """Scrape one source and return its (optionally filtered) prices.

        Raises:
            UnsupportedSource: before any network call, for unknown ids.
            FetchFailure: when the source page cannot be retrieved.
        """
        scraper = self._get_scraper(source_id)

        raw_fields, published_at = await asyncio.to_thread(scraper.scrape)

        observed_at = datetime.now(timezone.utc)
        records = PriceNormalizer.normalize(
            raw_fields, source_id, observed_at=observed_at
        )

        # Persistence always sees the full batch
        self._schedule_save(records)

        filtered, excluded = CategoryFilter.filter_by_category(
            records, category
        )
        result = ScrapeResult(
            source=source_id,
            url=scraper.url,
            published_at=published_at,
            observed_at=observed_at,
            records=filtered,
            excluded_count=excluded,
            total_before_filter=len(records),
        )

        if with_deltas:
            result.deltas = await asyncio.to_thread(
                compute_deltas, filtered, self._prior_lookup
            )

        logger.info(
            "[%s] Run complete: %d records (%d filtered out), "
            "updated %s",
            source_id,
            len(filtered),
            excluded,
            published_at,
        )
        return result

    async def drain(self) -> None:
        """Wait for every scheduled price save to settle."""
        if self._pending:
            await asyncio.gather(
                *list(self._pending), return_exceptions=True
            )

    def history(
        self,
        source_id: str,
        category: str,
        weight: float,
        limit: int | None = None,
    ) -> list[StoredSnapshot]:
        """Return the stored history of one price series, newest first.

        Raises:
            UnsupportedSource: for unknown ids.
            PersistenceFailure: when no store is available or the read
                fails.
        """
        if Settings.get_source(source_id) is None:
            raise UnsupportedSource(source_id, Settings.source_ids())
        if self._price_db is None:
            raise PersistenceFailure(
                "Price history store is unavailable",
                {"path": str(Settings.PRICE_DB_PATH)},
            )
        return self._price_db.get_price_history(
            source_id,
            category,
            weight,
            limit or self.settings.HISTORY_LIMIT,
        )

    def close(self) -> None:
        """Close the underlying price store."""
        if self._price_db is not None:
            self._price_db.close()
