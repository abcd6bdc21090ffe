# logam_mulia/scrapers/pegadaian_scraper.py

"""Scraper for pegadaian.co.id (sell prices only)."""

from logam_mulia.models.price_record import RawField
from logam_mulia.scrapers.base_scraper import BaseScraper


class PegadaianScraper(BaseScraper):
    """Scraper for the Pegadaian price page.

    Pegadaian publishes a sell price per weight and neither a buyback
    column nor an update timestamp.
    """

    CATEGORY = "pegadaian"

    def __init__(self) -> None:
        super().__init__("pegadaian")

    def extract(
        self, document: str,
    ) -> tuple[list[RawField], str | None]:
        soup = self.make_soup(document)
        fields: list[RawField] = []

        for table in soup.find_all("table"):
            for row in table.select("tbody tr"):
                cells = row.find_all("td")
                if len(cells) < 2:
                    continue
                weight_text = cells[0].get_text().strip()
                if self.parse_weight(weight_text, require_unit=True) is None:
                    continue
                fields.append(
                    RawField(
                        weight_text=weight_text,
                        sell_text=cells[1].get_text(),
                        buy_text=None,
                        category=self.CATEGORY,
                    )
                )

        self.logger.info(
            "[%s] Extracted %d rows", self.source_name, len(fields),
        )
        return fields, None
