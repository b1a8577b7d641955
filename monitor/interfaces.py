"""
Core interfaces for the browser monitor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, AsyncIterator, List, Optional

if TYPE_CHECKING:
    from .models import CapturedEvent, ClassifiedEntry


class NodeHandle(ABC):
    """Opaque handle to one node of a host UI tree.

    Handles are scoped resources: whoever acquires one (from the host, from
    ``child`` or from ``find_by_view_id``) must ``release`` it when done.
    """

    @abstractmethod
    def text(self) -> Optional[str]:
        """Text shown by this node, if any."""
        ...

    @abstractmethod
    def child_count(self) -> int:
        """Number of children the host reports for this node.

        The reported count is not guaranteed to match the children that
        can actually be fetched.
        """
        ...

    @abstractmethod
    def child(self, index: int) -> Optional["NodeHandle"]:
        """Fetch a child handle; may return None or raise for bad indices."""
        ...

    @abstractmethod
    def find_by_view_id(self, view_id: str) -> List["NodeHandle"]:
        """Find descendant nodes carrying the given element identifier."""
        ...

    def release(self) -> None:
        """Give the handle back to the host."""
        pass


class Sink(ABC):
    """Abstract base class for entry sinks."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this sink."""
        pass

    @abstractmethod
    def append(self, entry: str) -> None:
        """Durably append one formatted record. Must never raise."""
        pass

    def record(self, entry: "ClassifiedEntry") -> None:
        """Render and append a classified entry."""
        self.append(entry.render())


class EventSource(ABC):
    """Abstract base class for capture event feeds.

    Sources are what the host hands the monitor: an async stream of
    :class:`~monitor.models.CapturedEvent`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""
        pass

    @abstractmethod
    def events(self) -> AsyncIterator["CapturedEvent"]:
        """Yield capture events until the feed is exhausted."""
        pass


class Host(ABC):
    """Outbound lifecycle interface towards whatever runs the monitor."""

    @abstractmethod
    def restart_monitoring(self) -> None:
        """Fire-and-forget request to restart the monitoring session."""
        pass
