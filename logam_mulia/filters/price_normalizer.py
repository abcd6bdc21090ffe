# logam_mulia/filters/price_normalizer.py

"""Raw field normalization: drop invalid rows, build canonical records."""

import logging
import re
from datetime import datetime, timezone

from logam_mulia.models.price_record import PriceRecord, RawField

logger = logging.getLogger("logam_mulia.filters")

_NUMBER_TOKEN_RE = re.compile(r"(\d[\d.,]*)\s*(gram|gr|g)?", re.IGNORECASE)
_LEADING_FLOAT_RE = re.compile(r"\d+(?:\.\d+)?")
_NON_DIGIT_RE = re.compile(r"\D")


def parse_weight(
    text: str | None, require_unit: bool = False,
) -> float | None:
    """Parse a weight token like '1 gram', '0,5 gr' or '100'.

    Returns ``None`` for text with no numeric token (header or
    decoration rows), or without a unit when *require_unit* is set.
    """
    if not text:
        return None
    match = _NUMBER_TOKEN_RE.search(text)
    if not match:
        return None
    if require_unit and not match.group(2):
        return None
    token = match.group(1).replace(",", ".", 1)
    number = _LEADING_FLOAT_RE.match(token)
    if not number:
        return None
    return float(number.group(0))


def parse_price(text: str | None) -> int:
    """Extract an integer price from text like 'Rp 1.250.000'."""
    if not text:
        return 0
    digits = _NON_DIGIT_RE.sub("", text)
    return int(digits) if digits else 0


class PriceNormalizer:
    """Convert raw extractor fields into validated price records."""

    @staticmethod
    def normalize(
        raw_fields: list[RawField],
        source: str,
        observed_at: datetime | None = None,
    ) -> list[PriceRecord]:
        """Build a :class:`PriceRecord` per usable raw row.

        Every record in the batch shares one ``observed_at`` instant.
        Rows with no positive weight, or with neither a sell nor a buy
        price, are dropped without raising.
        """
        now = observed_at or datetime.now(timezone.utc)
        records: list[PriceRecord] = []
        dropped = 0

        for raw in raw_fields:
            weight = parse_weight(raw.weight_text)
            if weight is None:
                logger.debug(
                    "[%s] Dropped row with unparseable weight %r",
                    source,
                    raw.weight_text,
                )
                dropped += 1
                continue

            record = PriceRecord(
                source=source,
                category=raw.category,
                weight=weight,
                sell_price=parse_price(raw.sell_text),
                buy_price=parse_price(raw.buy_text),
                published_at=raw.published_at,
                observed_at=now,
                has_buy_price=raw.buy_text is not None,
            )
            if not record.is_valid():
                logger.debug(
                    "[%s] Dropped invalid record "
                    "(weight=%s, sell=%d, buy=%d)",
                    source,
                    record.weight,
                    record.sell_price,
                    record.buy_price,
                )
                dropped += 1
                continue
            records.append(record)

        if dropped:
            logger.info(
                "[%s] Normalization dropped %d invalid rows",
                source,
                dropped,
            )

        return records
