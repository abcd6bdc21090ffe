# logam_mulia/services/diff_engine.py

"""Price deltas against the most recent different snapshot."""

import logging
from collections.abc import Callable

from logam_mulia.errors import PersistenceFailure
from logam_mulia.models.price_record import PriceRecord, PriceWithDelta
from logam_mulia.models.price_snapshot import StoredSnapshot

logger = logging.getLogger("logam_mulia.diff")

# (source, category, weights, exclude_published_at) -> {weight: snapshot}
PriorLookup = Callable[
    [str, str, list[float], str | None],
    dict[float, StoredSnapshot],
]


def _group_by_category(
    records: list[PriceRecord],
) -> dict[tuple[str, str], list[PriceRecord]]:
    groups: dict[tuple[str, str], list[PriceRecord]] = {}
    for record in records:
        groups.setdefault(
            (record.source, record.category), []
        ).append(record)
    return groups


def _delta(
    record: PriceRecord, prior: StoredSnapshot | None,
) -> PriceWithDelta:
    if prior is None:
        return PriceWithDelta(record=record)
    buy_change = (
        record.buy_price - prior.buy_price
        if record.has_buy_price and prior.has_buy_price
        else 0
    )
    return PriceWithDelta(
        record=record,
        sell_change=record.sell_price - prior.sell_price,
        buy_change=buy_change,
    )


def compute_deltas(
    records: list[PriceRecord],
    prior_lookup: PriorLookup,
) -> list[PriceWithDelta]:
    """Annotate each record with its change since the prior snapshot.

    Lookups are batched: one *prior_lookup* call per distinct
    ``(source, category)`` covers every weight in that category.  The
    current batch's ``published_at`` is passed as the exclusion so a
    re-scrape of an unchanged page is never compared with itself.

    A series with no prior snapshot gets zero deltas.  A lookup that
    raises :class:`PersistenceFailure` is treated as "no prior data"
    for its category.  Output order follows *records*.
    """
    priors: dict[tuple[str, str], dict[float, StoredSnapshot]] = {}

    for (source, category), group in _group_by_category(records).items():
        weights = sorted({r.weight for r in group})
        published_at = group[0].published_at
        try:
            priors[(source, category)] = prior_lookup(
                source, category, weights, published_at
            )
        except PersistenceFailure as exc:
            logger.error(
                "[%s] Previous prices unavailable for '%s': %s",
                source,
                category,
                exc,
                exc_info=True,
            )
            priors[(source, category)] = {}

    return [
        _delta(
            record,
            priors[(record.source, record.category)].get(
                record.weight
            ),
        )
        for record in records
    ]
