# logam_mulia/errors.py

"""Exceptions raised by the price pipeline.

Only request-fatal conditions are exceptions.  A row or entry that fails
to parse is skipped where it is found and never reaches this module.
"""

from typing import Any


class LogamMuliaError(Exception):
    """Base exception for all logam_mulia errors."""

    def __init__(
        self, message: str, details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class UnsupportedSource(LogamMuliaError):
    """The requested source id is not in the registry."""

    def __init__(self, source: str, known: list[str]) -> None:
        message = (
            f'Site "{source}" is not supported for full price '
            f"scraping. Supported sites: {', '.join(known)}"
        )
        super().__init__(message, {"source": source, "known": known})
        self.source = source
        self.known = known

    def __str__(self) -> str:
        return self.message


class FetchFailure(LogamMuliaError):
    """The origin document could not be retrieved."""

    def __init__(
        self, source: str, url: str, cause: BaseException | str,
    ) -> None:
        message = f"[{source}] Failed to fetch {url}: {cause}"
        super().__init__(message, {"source": source, "url": url})
        self.source = source
        self.url = url
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class PersistenceFailure(LogamMuliaError):
    """The price history store could not complete a read or write."""
