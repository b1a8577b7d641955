"""
Core data models for the browser monitor.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .interfaces import NodeHandle


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventKind(str, Enum):
    """UI event kinds delivered by the host."""
    TEXT_CHANGED = "TextChanged"
    FOCUSED = "Focused"
    WINDOW_STATE_CHANGED = "WindowStateChanged"
    WINDOW_CONTENT_CHANGED = "WindowContentChanged"


class CapturedEvent(BaseModel):
    """A single capture event handed to the router."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    package: str
    kind: EventKind
    text: Optional[str] = None
    node: Optional[NodeHandle] = None


class ActionKind(str, Enum):
    IGNORE = "Ignore"
    SEARCH_QUERY = "SearchQuery"
    URL = "Url"


class Action(BaseModel):
    """Outcome of classifying a piece of captured text."""
    model_config = ConfigDict(frozen=True)

    kind: ActionKind
    text: str = ""

    @classmethod
    def ignore(cls) -> "Action":
        return cls(kind=ActionKind.IGNORE)

    @classmethod
    def search(cls, canonical_url: str) -> "Action":
        return cls(kind=ActionKind.SEARCH_QUERY, text=canonical_url)

    @classmethod
    def url(cls, url: str) -> "Action":
        return cls(kind=ActionKind.URL, text=url)


class EntryKind(str, Enum):
    URL = "Url"
    SEARCH_QUERY = "SearchQuery"
    SCRAPE_RESULT = "ScrapeResult"
    SCRAPE_ERROR = "ScrapeError"


class ClassifiedEntry(BaseModel):
    """One record of the capture log."""
    model_config = ConfigDict(frozen=True)

    kind: EntryKind
    payload: str
    subject_url: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)

    def render(self) -> str:
        """Format the entry the way it is written to the log file."""
        stamp = self.timestamp.isoformat()
        if self.kind is EntryKind.SCRAPE_RESULT:
            return f"{stamp} | {self.kind.value} | {self.subject_url}\n{self.payload}\n\n"
        if self.kind is EntryKind.SCRAPE_ERROR:
            return f"{stamp} | {self.kind.value} | {self.subject_url} | {self.payload}\n\n"
        return f"{stamp} | {self.kind.value} | {self.payload}\n"


class ScrapeSummary(BaseModel):
    """Title and snippet extracted from a fetched page."""
    title: str
    paragraph: str

    def as_payload(self) -> str:
        return f"Title: {self.title}\nParagraph: {self.paragraph}"


class ScrapeTask(BaseModel):
    """A queued scrape; lives on the worker queue only."""
    url: str
    attempts_remaining: int
    enqueued_at: datetime = Field(default_factory=_utcnow)


class WatchdogState(BaseModel):
    """Liveness state shared by the router (writer) and the watchdog (reader)."""
    last_event_at: float = 0.0

    def touch(self, now: float) -> None:
        self.last_event_at = now
