# logam_mulia/scrapers/galeri24_scraper.py

"""Scraper for galeri24.co.id via its embedded Nuxt state payload."""

import json
from dataclasses import replace
from typing import Any

from bs4 import Tag

from logam_mulia.models.price_record import RawField
from logam_mulia.scrapers import graph_resolver
from logam_mulia.scrapers.base_scraper import BaseScraper


class Galeri24Scraper(BaseScraper):
    """Scraper for the Galeri 24 price page.

    The page renders prices client-side.  The server ships the state as
    a flattened ``__NUXT_DATA__`` array, which is walked with
    :mod:`graph_resolver` down ``Settings.GALERI24_PRICE_PATH`` to the
    list of price entries.  Each entry names its vendor (Antam, UBS,
    Galeri 24, ...), which becomes the record category.
    """

    PAYLOAD_SCRIPT_ID = "__NUXT_DATA__"
    ROOT_POSITION = 0

    def __init__(self) -> None:
        super().__init__("galeri24")
        self.price_path: tuple[str, ...] = (
            self.settings.GALERI24_PRICE_PATH
        )

    def _load_payload(self, document: str) -> list[Any] | None:
        """Pull the flat state array out of the page."""
        soup = self.make_soup(document)
        script = soup.find("script", id=self.PAYLOAD_SCRIPT_ID)
        if not isinstance(script, Tag) or not script.string:
            self.logger.warning(
                "[%s] No %s payload on page",
                self.source_name,
                self.PAYLOAD_SCRIPT_ID,
            )
            return None
        try:
            payload: Any = json.loads(script.string)
        except json.JSONDecodeError as exc:
            self.logger.warning(
                "[%s] Malformed state payload: %s",
                self.source_name,
                exc,
            )
            return None
        if not isinstance(payload, list):
            return None
        return payload

    @staticmethod
    def _weight_text(value: str | int | float) -> str:
        return str(value)

    @staticmethod
    def _price_text(value: str | int | float) -> str:
        if isinstance(value, float):
            return str(int(round(value)))
        return str(value)

    def _parse_entry(
        self, store: list[Any], entry: dict[str, Any],
    ) -> RawField | None:
        """Resolve one price entry; ``None`` when a price field is missing."""
        weight = graph_resolver.resolve_scalar(store, entry, "denomination")
        sell = graph_resolver.resolve_scalar(store, entry, "sellingPrice")
        buy = graph_resolver.resolve_scalar(store, entry, "buybackPrice")
        if weight is None or sell is None or buy is None:
            return None

        vendor = graph_resolver.resolve_scalar(store, entry, "vendorName")
        date = graph_resolver.resolve_scalar(store, entry, "date")
        return RawField(
            weight_text=self._weight_text(weight),
            sell_text=self._price_text(sell),
            buy_text=self._price_text(buy),
            category=graph_resolver.category_for_vendor(
                str(vendor) if vendor is not None else None
            ),
            published_at=str(date) if date is not None else None,
        )

    def extract(
        self, document: str,
    ) -> tuple[list[RawField], str | None]:
        """Extract price entries from the flattened state payload."""
        store = self._load_payload(document)
        if store is None:
            return [], None

        container = graph_resolver.walk(
            store, self.ROOT_POSITION, self.price_path
        )
        entries = graph_resolver.resolve_items(store, container)
        if not entries:
            self.logger.warning(
                "[%s] Price path %s did not lead to any entries",
                self.source_name,
                ".".join(self.price_path),
            )

        fields: list[RawField] = []
        skipped = 0
        for entry in entries:
            raw = self._parse_entry(store, entry)
            if raw is None:
                skipped += 1
                continue
            fields.append(raw)

        if skipped:
            self.logger.debug(
                "[%s] Skipped %d unresolvable entries",
                self.source_name,
                skipped,
            )

        published_at = next(
            (f.published_at for f in fields if f.published_at),
            None,
        )
        # One timestamp per batch keeps the snapshot key consistent
        fields = [replace(f, published_at=published_at) for f in fields]

        self.logger.info(
            "[%s] Extracted %d entries (updated: %s)",
            self.source_name,
            len(fields),
            published_at,
        )
        return fields, published_at
