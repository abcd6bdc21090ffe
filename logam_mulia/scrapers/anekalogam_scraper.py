# logam_mulia/scrapers/anekalogam_scraper.py

"""Scraper for anekalogam.co.id (Antam logam mulia price tables)."""

import re

from bs4 import BeautifulSoup, Tag

from logam_mulia.models.price_record import RawField
from logam_mulia.scrapers.base_scraper import BaseScraper

# e.g. "Last Updated: 28 January 2026    14.02"
_UPDATE_NOTE_RE = re.compile(
    r"(\d{1,2}\s+\w+\s+\d{4})\s*(?:.*?(\d{1,2}[.:]\d{2}))?",
    re.IGNORECASE,
)


class AnekaLogamScraper(BaseScraper):
    """Scraper for the Aneka Logam price page.

    Prices live in one or more ``table.lm-table`` tables, each inside a
    ``<section>`` whose heading names the product line (regular Antam,
    Certicard, or the old edition).  Rows are weight / sell / buy.
    """

    DEFAULT_CATEGORY = "antam"
    # Ordered (keyword, category) rules matched against the heading
    CATEGORY_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
        (("certicard", "reinvented"), "antam-certicard"),
        (("edisi lama", "old edition"), "antam-old"),
    ]

    def __init__(self) -> None:
        super().__init__("anekalogam")

    def _parse_published_at(self, soup: BeautifulSoup) -> str | None:
        """Read the page's 'last updated' note."""
        note = soup.select_one(".update-note")
        if note is None:
            return None

        match = _UPDATE_NOTE_RE.search(note.get_text())
        if match:
            date, time_part = match.group(1), match.group(2)
            return f"{date} {time_part}" if time_part else date

        strong = note.find("strong")
        text = self.clean_text(strong) if isinstance(strong, Tag) else ""
        return text or None

    @classmethod
    def classify_section(cls, heading: str) -> str:
        """Map a section heading to a product category."""
        lowered = heading.lower()
        for keywords, category in cls.CATEGORY_KEYWORDS:
            if any(kw in lowered for kw in keywords):
                return category
        return cls.DEFAULT_CATEGORY

    def _table_category(self, table: Tag) -> str:
        section = table.find_parent("section")
        if section is None:
            return self.DEFAULT_CATEGORY
        heading = section.find(["h1", "h2", "h3"])
        if not isinstance(heading, Tag):
            return self.DEFAULT_CATEGORY
        return self.classify_section(heading.get_text())

    def extract(
        self, document: str,
    ) -> tuple[list[RawField], str | None]:
        """Extract weight / sell / buy rows from every lm-table."""
        soup = self.make_soup(document)
        published_at = self._parse_published_at(soup)
        fields: list[RawField] = []

        for table in soup.select("table.lm-table"):
            category = self._table_category(table)
            for row in table.select("tbody tr"):
                cells = row.find_all("td")
                if len(cells) < 3:
                    continue
                weight_text = cells[0].get_text().strip()
                if self.parse_weight(weight_text) is None:
                    continue
                fields.append(
                    RawField(
                        weight_text=weight_text,
                        sell_text=cells[1].get_text(),
                        buy_text=cells[2].get_text(),
                        category=category,
                        published_at=published_at,
                    )
                )

        self.logger.info(
            "[%s] Extracted %d rows (updated: %s)",
            self.source_name,
            len(fields),
            published_at,
        )
        return fields, published_at
