# logam_mulia/models/price_snapshot.py

"""Stored price snapshot model for price history tracking."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class StoredSnapshot:
    """A persisted price observation, as read back from the store."""

    id: int
    source: str
    category: str
    weight: float
    sell_price: int
    buy_price: int
    published_at: str | None
    observed_at: datetime
    has_buy_price: bool = True
