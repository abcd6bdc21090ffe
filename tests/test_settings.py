# tests/test_settings.py

"""Tests for the Settings configuration class."""

import unittest
from pathlib import Path

from logam_mulia.config.settings import Settings


class TestSettings(unittest.TestCase):
    """Verify Settings constants and source registry."""

    def test_request_timeout_is_positive_int(self) -> None:
        """REQUEST_TIMEOUT must be a positive integer."""
        self.assertIsInstance(Settings.REQUEST_TIMEOUT, int)
        self.assertGreater(Settings.REQUEST_TIMEOUT, 0)

    def test_available_sources_has_four(self) -> None:
        """Registry must contain exactly the four price sources."""
        self.assertEqual(
            Settings.source_ids(),
            ["anekalogam", "indogold", "pegadaian", "galeri24"],
        )

    def test_each_source_has_required_keys(self) -> None:
        """Every source must have id, label, url and scraper keys."""
        for src in Settings.AVAILABLE_SOURCES:
            with self.subTest(src=src.get("id", "?")):
                self.assertIn("id", src)
                self.assertIn("label", src)
                self.assertTrue(src["url"].startswith("https://"))
                self.assertIn("scraper", src)

    def test_get_source_is_exact_match(self) -> None:
        """Lookup is case-sensitive and exact."""
        self.assertIsNotNone(Settings.get_source("galeri24"))
        self.assertIsNone(Settings.get_source("Galeri24"))
        self.assertIsNone(Settings.get_source("foo"))

    def test_path_constants_are_paths(self) -> None:
        """Path-typed settings are Path instances."""
        self.assertIsInstance(Settings.BASE_DIR, Path)
        self.assertIsInstance(Settings.DATA_DIR, Path)
        self.assertIsInstance(Settings.LOGS_DIR, Path)
        self.assertIsInstance(Settings.PRICE_DB_PATH, Path)

    def test_impersonate_browser_is_string(self) -> None:
        """IMPERSONATE_BROWSER must be a non-empty string."""
        self.assertIsInstance(
            Settings.IMPERSONATE_BROWSER, str
        )
        self.assertTrue(len(Settings.IMPERSONATE_BROWSER) > 0)

    def test_default_headers_has_user_agent(self) -> None:
        """DEFAULT_HEADERS must carry the browser User-Agent."""
        self.assertEqual(
            Settings.DEFAULT_HEADERS["User-Agent"], Settings.USER_AGENT
        )
        self.assertIn("Accept-Language", Settings.DEFAULT_HEADERS)


if __name__ == "__main__":
    unittest.main()
