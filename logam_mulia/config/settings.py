# logam_mulia/config/settings.py

"""Central configuration for the logam_mulia price scraper."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the logam_mulia price scraper."""

    # --- Fetching (single best-effort GET, no retries) ---
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36"
    )
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,*/*;q=0.8"
        ),
        "Accept-Language": "id-ID,id;q=0.9,en-US;q=0.8,en;q=0.7",
        "User-Agent": USER_AGENT,
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    LOGS_DIR: Path = BASE_DIR / "logs"
    PRICE_DB_PATH: Path = Path(
        os.getenv(
            "LOGAM_MULIA_DB_PATH",
            str(DATA_DIR / "gold_price_history.db"),
        )
    )

    # --- Feeds ---
    FEED_BASE_URL: str = os.getenv(
        "LOGAM_MULIA_FEED_BASE_URL",
        "https://logam-mulia-api-nine.vercel.app",
    )
    HISTORY_LIMIT: int = 30             # Default rows for --history

    # --- Galeri24 (Nuxt payload field chain to the price array) ---
    GALERI24_PRICE_PATH: tuple[str, ...] = ("data", "hargaEmas", "data")

    # --- Sources (closed registry) ---
    AVAILABLE_SOURCES: list[dict[str, str]] = [
        {
            "id": "anekalogam",
            "label": "Aneka Logam",
            "url": "https://www.anekalogam.co.id/id/logam-mulia",
            "scraper": (
                "logam_mulia.scrapers.anekalogam_scraper"
                ".AnekaLogamScraper"
            ),
        },
        {
            "id": "indogold",
            "label": "IndoGold",
            "url": "https://www.indogold.id/harga-emas-hari-ini",
            "scraper": (
                "logam_mulia.scrapers.indogold_scraper"
                ".IndoGoldScraper"
            ),
        },
        {
            "id": "pegadaian",
            "label": "Pegadaian",
            "url": "https://www.pegadaian.co.id/harga",
            "scraper": (
                "logam_mulia.scrapers.pegadaian_scraper"
                ".PegadaianScraper"
            ),
        },
        {
            "id": "galeri24",
            "label": "Galeri 24",
            "url": "https://galeri24.co.id/harga-emas",
            "scraper": (
                "logam_mulia.scrapers.galeri24_scraper"
                ".Galeri24Scraper"
            ),
        },
    ]

    @classmethod
    def source_ids(cls) -> list[str]:
        """Return the registered source ids in registry order."""
        return [s["id"] for s in cls.AVAILABLE_SOURCES]

    @classmethod
    def get_source(cls, source_id: str) -> dict[str, str] | None:
        """Look up a source config by exact id match."""
        for src in cls.AVAILABLE_SOURCES:
            if src["id"] == source_id:
                return src
        return None
