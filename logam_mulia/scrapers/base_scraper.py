# logam_mulia/scrapers/base_scraper.py

"""Abstract base class for all gold price scrapers."""

import logging
import re
from abc import ABC, abstractmethod

from bs4 import BeautifulSoup, Tag
from curl_cffi import requests as curl_requests

from logam_mulia.config.settings import Settings
from logam_mulia.errors import FetchFailure
from logam_mulia.filters.price_normalizer import parse_price, parse_weight
from logam_mulia.models.price_record import RawField

_WHITESPACE_RE = re.compile(r"\s+")


class BaseScraper(ABC):
    """Abstract base class for all gold price scrapers.

    Subclasses only know how to read their own page shape; fetching,
    token parsing and the source registry lookup live here.
    """

    def __init__(self, source_name: str) -> None:
        self.source_name = source_name
        self.logger = logging.getLogger(
            f"logam_mulia.{source_name}"
        )
        self.settings = Settings()
        source = Settings.get_source(source_name) or {}
        self.url: str = source.get("url", "")
        self.label: str = source.get("label", source_name)
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._request_timeout: int = (
            self.settings.REQUEST_TIMEOUT
        )

    def fetch_document(self, url: str | None = None) -> str:
        """GET the source page once and return its body.

        Raises:
            FetchFailure: on a transport error or a non-200 status.
        """
        target = url or self.url
        headers: dict[str, str] = {
            **self.settings.DEFAULT_HEADERS,
            "Referer": self._get_homepage(),
        }
        try:
            resp = self.session.get(
                target,
                headers=headers,
                timeout=self._request_timeout,
            )
        except Exception as exc:
            self.logger.warning(
                "[%s] Request error: %s",
                self.source_name,
                exc,
                exc_info=True,
            )
            raise FetchFailure(
                self.source_name, target, exc
            ) from exc

        if resp.status_code != 200:
            self.logger.warning(
                "[%s] HTTP %d from %s",
                self.source_name,
                resp.status_code,
                target,
            )
            raise FetchFailure(
                self.source_name,
                target,
                f"HTTP {resp.status_code}",
            )

        self.logger.debug(
            "[%s] Fetched %d bytes from %s",
            self.source_name,
            len(resp.text),
            target,
        )
        return resp.text

    parse_weight = staticmethod(parse_weight)
    parse_price = staticmethod(parse_price)

    @staticmethod
    def clean_text(node: Tag | None) -> str:
        """Return the node's text with whitespace runs collapsed."""
        if node is None:
            return ""
        return _WHITESPACE_RE.sub(
            " ", node.get_text(" ")
        ).strip()

    @staticmethod
    def make_soup(document: str) -> BeautifulSoup:
        """Parse an HTML document with lxml."""
        return BeautifulSoup(document, "lxml")

    def scrape(self) -> tuple[list[RawField], str | None]:
        """Fetch this source's page and extract its raw fields."""
        return self.extract(self.fetch_document())

    def _get_homepage(self) -> str:
        """Return the site root for the Referer header."""
        match = re.match(r"^(https?://[^/]+)", self.url)
        return f"{match.group(1)}/" if match else self.url

    @abstractmethod
    def extract(
        self, document: str,
    ) -> tuple[list[RawField], str | None]:
        """Turn a raw page body into raw fields and the page timestamp."""
        ...
