"""
Error types raised inside the capture-and-scrape pipeline.

None of these are fatal: each is recovered by the component that sees it.
"""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for monitor errors."""


class TraversalError(MonitorError):
    """A UI node was malformed or vanished while being read."""


class NetworkError(MonitorError):
    """Connect, timeout or HTTP status failure while fetching a page."""

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason
        self.status = status


class StorageError(MonitorError):
    """Writing to the capture log failed."""
