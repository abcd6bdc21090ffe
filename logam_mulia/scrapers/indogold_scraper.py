# logam_mulia/scrapers/indogold_scraper.py

"""Scraper for indogold.id (daily gold price tables)."""

import re

from logam_mulia.models.price_record import RawField
from logam_mulia.scrapers.base_scraper import BaseScraper

_INDONESIAN_DATE_RE = re.compile(
    r"(\d{1,2}\s+(?:Januari|Februari|Maret|April|Mei|Juni|Juli|"
    r"Agustus|September|Oktober|November|Desember)\s+\d{4})",
    re.IGNORECASE,
)


class IndoGoldScraper(BaseScraper):
    """Scraper for the IndoGold daily price page.

    The page has no stable table markup, so every table row whose first
    cell reads like a weight with a unit is taken.  Two-cell rows only
    carry a sell price.
    """

    CATEGORY = "antam"

    def __init__(self) -> None:
        super().__init__("indogold")

    def extract(
        self, document: str,
    ) -> tuple[list[RawField], str | None]:
        """Extract price rows and the Indonesian-format update date."""
        soup = self.make_soup(document)
        body = soup.body or soup
        date_match = _INDONESIAN_DATE_RE.search(body.get_text(" "))
        published_at = date_match.group(1) if date_match else None
        fields: list[RawField] = []

        for table in soup.find_all("table"):
            for row in table.find_all("tr"):
                cells = row.find_all("td")
                if len(cells) < 2:
                    continue
                weight_text = cells[0].get_text().strip()
                if self.parse_weight(weight_text, require_unit=True) is None:
                    continue
                if len(cells) >= 3:
                    buy_text: str | None = cells[2].get_text()
                else:
                    buy_text = None
                fields.append(
                    RawField(
                        weight_text=weight_text,
                        sell_text=cells[1].get_text(),
                        buy_text=buy_text,
                        category=self.CATEGORY,
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
