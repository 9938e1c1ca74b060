"""Exception types surfaced at the service boundary.

Per-metric and per-point problems never raise: they are skipped where they
occur. Only whole-request failures (unknown ticker, SEC upstream errors)
are modelled as exceptions.
"""

from __future__ import annotations


class BottomTickError(Exception):
    """Base class for errors raised by this package."""


class TickerNotFound(BottomTickError):
    def __init__(self, ticker: str):
        self.ticker = ticker
        super().__init__(f"Ticker {ticker} not found")


class UpstreamFetchError(BottomTickError):
    """SEC returned a non-2xx response, or the request never completed."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"SEC API error: {status} {message}".strip())

    def to_dict(self) -> dict:
        return {
            "error": "Failed to update ticker list",
            "status": self.status,
            "details": self.message,
        }
