# logam_mulia/renderers/feed_renderer.py

"""Render pipeline results as a JSON envelope or an RSS 2.0 feed."""

import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from typing import Any

from logam_mulia.config.settings import Settings
from logam_mulia.models.price_record import (
    PriceRecord,
    PriceWithDelta,
    ScrapeResult,
)

logger = logging.getLogger("logam_mulia.feed")

# Source pages publish Western Indonesia Time (WIB)
WIB = timezone(timedelta(hours=7), "WIB")

_MONTHS: dict[str, int] = {
    "januari": 1, "january": 1,
    "februari": 2, "february": 2,
    "maret": 3, "march": 3,
    "april": 4,
    "mei": 5, "may": 5,
    "juni": 6, "june": 6,
    "juli": 7, "july": 7,
    "agustus": 8, "august": 8,
    "september": 9,
    "oktober": 10, "october": 10,
    "november": 11,
    "desember": 12, "december": 12,
}

# e.g. "28 January 2026 14.02" or "5 Mei 2026"
_PAGE_DATE_RE = re.compile(
    r"(\d{1,2})\s+(\w+)\s+(\d{4})(?:\s+(\d{1,2})[.:](\d{2}))?",
    re.IGNORECASE,
)
_GUID_RE = re.compile(r"[^a-zA-Z0-9]")

ATOM_NS = "http://www.w3.org/2005/Atom"
ET.register_namespace("atom", ATOM_NS)


# ── Formatting helpers ───────────────────────────────────

def format_rupiah(amount: int) -> str:
    """Format an amount as Indonesian Rupiah, e.g. ``Rp 1.250.000``."""
    if not amount:
        return "Rp 0"
    sign = "-" if amount < 0 else ""
    return f"{sign}Rp {abs(amount):,}".replace(",", ".")


def format_weight(record: PriceRecord) -> str:
    """Render a weight without a trailing ``.0``, e.g. ``0.5gram``."""
    return f"{record.weight:g}{record.unit}"


def parse_page_date(text: str | None) -> datetime | None:
    """Parse a page timestamp such as ``28 January 2026 14.02``.

    Indonesian and English month names are accepted.  A missing time
    defaults to 12:00 WIB.  ISO 8601 strings are accepted as-is.
    """
    if not text:
        return None
    match = _PAGE_DATE_RE.search(text)
    if match:
        month = _MONTHS.get(match.group(2).lower())
        if month is not None:
            try:
                return datetime(
                    int(match.group(3)),
                    month,
                    int(match.group(1)),
                    int(match.group(4)) if match.group(4) else 12,
                    int(match.group(5)) if match.group(5) else 0,
                    tzinfo=WIB,
                )
            except ValueError:
                return None
    iso = text.strip()
    # fromisoformat only accepts a "Z" suffix from Python 3.11
    if iso[-1:] in ("Z", "z"):
        iso = iso[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=WIB)


def format_rfc822(text: str | None, fallback: datetime) -> str:
    """RFC 822 date for the page timestamp, or *fallback* if unparseable."""
    parsed = parse_page_date(text) or fallback
    return format_datetime(parsed.astimezone(timezone.utc), usegmt=True)


def _arrow(change: int) -> str:
    if change > 0:
        return f" ▲ {format_rupiah(change)}"
    if change < 0:
        return f" ▼ {format_rupiah(-change)}"
    return ""


def _site_title(source: str) -> str:
    config = Settings.get_source(source)
    return config["label"] if config else source


# ── JSON envelope ────────────────────────────────────────

def _record_to_dict(
    record: PriceRecord, delta: PriceWithDelta | None = None,
) -> dict[str, Any]:
    item: dict[str, Any] = {
        "weight": record.weight,
        "unit": record.unit,
        "sell": record.sell_price,
        "buy": record.buy_price,
        "buyPublished": record.has_buy_price,
        "type": record.category,
    }
    if delta is not None:
        item["sellChange"] = delta.sell_change
        item["buyChange"] = delta.buy_change
    return item


def to_json_envelope(result: ScrapeResult) -> dict[str, Any]:
    """Build the ``{data, meta}`` envelope for a completed run."""
    if result.deltas is not None:
        data = [_record_to_dict(d.record, d) for d in result.deltas]
    else:
        data = [_record_to_dict(r) for r in result.records]
    return {
        "data": data,
        "meta": {
            "source": result.source,
            "url": result.url,
            "lastUpdated": result.published_at,
            "scrapedAt": result.observed_at.isoformat(),
        },
    }


def error_envelope(source: str, exc: BaseException) -> dict[str, Any]:
    """Well-formed, empty envelope describing a failed run."""
    config = Settings.get_source(source)
    return {
        "data": [],
        "meta": {
            "source": source,
            "url": config["url"] if config else None,
            "lastUpdated": None,
            "scrapedAt": datetime.now(timezone.utc).isoformat(),
        },
        "error": {
            "type": type(exc).__name__,
            "message": str(exc),
        },
    }


# ── RSS 2.0 ──────────────────────────────────────────────

def _price_lines(result: ScrapeResult) -> list[str]:
    rows: list[PriceWithDelta] = (
        result.deltas
        if result.deltas is not None
        else [PriceWithDelta(record=r) for r in result.records]
    )
    lines: list[str] = []
    for row in rows:
        r = row.record
        buy = (
            f"{format_rupiah(r.buy_price)} (beli){_arrow(row.buy_change)}"
            if r.has_buy_price
            else "N/A (beli)"
        )
        category = f" [{r.category}]" if r.category != r.source else ""
        lines.append(
            f"{format_weight(r)}{category}: "
            f"{format_rupiah(r.sell_price)} (jual)"
            f"{_arrow(row.sell_change)} / {buy}"
        )
    return lines


def _description_html(
    result: ScrapeResult, title: str, lines: list[str],
) -> str:
    return (
        f"<h3>Harga Emas {title}</h3>"
        f"<p><strong>Terakhir Update:</strong> "
        f"{result.published_at or 'N/A'}</p>"
        f"<p><strong>Scraped At:</strong> "
        f"{result.observed_at.isoformat()}</p>"
        "<hr/><pre>\n" + "\n".join(lines) + "\n</pre><hr/>"
        f'<p>Source: <a href="{result.url}">{result.url}</a></p>'
    )


def _channel(
    source: str, link: str, self_link: str | None,
) -> tuple[ET.Element, ET.Element]:
    title = _site_title(source)
    rss = ET.Element("rss", {"version": "2.0"})
    channel = ET.SubElement(rss, "channel")
    ET.SubElement(channel, "title").text = f"Harga Emas {title}"
    ET.SubElement(channel, "link").text = link
    ET.SubElement(channel, "description").text = (
        f"Update harga emas dari {title}"
    )
    ET.SubElement(channel, "language").text = "id"
    href = self_link or f"{Settings.FEED_BASE_URL}/prices-all/{source}/rss"
    ET.SubElement(
        channel,
        f"{{{ATOM_NS}}}link",
        {"href": href, "rel": "self", "type": "application/rss+xml"},
    )
    return rss, channel


def _serialize(rss: ET.Element) -> str:
    body = ET.tostring(rss, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body


def to_rss(result: ScrapeResult, self_link: str | None = None) -> str:
    """Render a run as an RSS 2.0 document with one item per snapshot.

    The item GUID is derived from the page timestamp, so feed readers
    only see a new item when the source publishes new prices.
    """
    title = _site_title(result.source)
    guid_base = (
        _GUID_RE.sub("-", result.published_at).lower()
        if result.published_at
        else result.observed_at.date().isoformat()
    )
    pub_date = format_rfc822(result.published_at, result.observed_at)

    one_gram = next(
        (r for r in result.records if r.weight == 1), None
    )
    summary = (
        f"1g: {format_rupiah(one_gram.sell_price)}"
        if one_gram
        else f"{len(result.records)} items"
    )

    rss, channel = _channel(result.source, result.url, self_link)
    ET.SubElement(channel, "lastBuildDate").text = pub_date

    item = ET.SubElement(channel, "item")
    ET.SubElement(item, "title").text = (
        f"Update Harga Emas {title} - "
        f"{result.published_at or 'Terbaru'} ({summary})"
    )
    ET.SubElement(item, "link").text = result.url
    ET.SubElement(item, "guid", {"isPermaLink": "false"}).text = (
        f"{result.source}-{guid_base}"
    )
    ET.SubElement(item, "pubDate").text = pub_date
    ET.SubElement(item, "description").text = _description_html(
        result, title, _price_lines(result)
    )
    logger.debug(
        "[%s] Rendered RSS with %d prices",
        result.source,
        len(result.records),
    )
    return _serialize(rss)


def error_rss(source: str, exc: BaseException) -> str:
    """Well-formed RSS document carrying a single error item."""
    config = Settings.get_source(source)
    link = config["url"] if config else Settings.FEED_BASE_URL
    now = datetime.now(timezone.utc)

    rss, channel = _channel(source, link, None)
    ET.SubElement(channel, "lastBuildDate").text = format_datetime(
        now, usegmt=True
    )
    item = ET.SubElement(channel, "item")
    ET.SubElement(item, "title").text = (
        f"Gagal mengambil harga emas {_site_title(source)}"
    )
    ET.SubElement(item, "guid", {"isPermaLink": "false"}).text = (
        f"{source}-error-{now.date().isoformat()}"
    )
    ET.SubElement(item, "pubDate").text = format_datetime(now, usegmt=True)
    ET.SubElement(item, "description").text = str(exc)
    return _serialize(rss)
