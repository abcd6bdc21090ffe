# logam_mulia/models/price_record.py

"""Price data models for inter-module data flow."""

from dataclasses import dataclass, field
from datetime import datetime

DEFAULT_UNIT = "gram"


@dataclass(frozen=True)
class RawField:
    """Unparsed candidate fields for one price row, as found on the page.

    ``buy_text`` is ``None`` when the source has no buy column at all,
    which is different from a buy cell that is present but empty.
    """

    weight_text: str
    sell_text: str
    buy_text: str | None
    category: str
    published_at: str | None = None


@dataclass(frozen=True)
class PriceRecord:
    """One observed price point for a (source, category, weight) series."""

    source: str
    category: str
    weight: float
    sell_price: int
    buy_price: int
    published_at: str | None
    observed_at: datetime
    has_buy_price: bool = True
    unit: str = DEFAULT_UNIT

    def is_valid(self) -> bool:
        """A record needs a positive weight and at least one price."""
        return self.weight > 0 and (
            self.sell_price > 0 or self.buy_price > 0
        )


@dataclass(frozen=True)
class PriceWithDelta:
    """A price record annotated with its change since the prior snapshot."""

    record: PriceRecord
    sell_change: int = 0
    buy_change: int = 0


@dataclass
class ScrapeResult:
    """Container for one completed pipeline run against a source."""

    source: str
    url: str
    published_at: str | None
    observed_at: datetime
    records: list[PriceRecord] = field(
        default_factory=lambda: list[PriceRecord]()
    )
    deltas: list[PriceWithDelta] | None = None
    excluded_count: int = 0
    total_before_filter: int = 0
