"""
Event router: filters capture events and turns them into log entries and
scrape requests.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, List, Optional

from .classifier import Classifier
from .interfaces import Sink
from .models import ActionKind, CapturedEvent, ClassifiedEntry, EntryKind, EventKind, WatchdogState
from .scraper import ScrapeWorker
from .tree import DEFAULT_MAX_DEPTH, find_address_bar, walk

logger = logging.getLogger(__name__)

__all__ = ["EventRouter", "BROWSER_PACKAGES", "ADDRESS_BAR_IDS"]


BROWSER_PACKAGES = frozenset({
    "com.android.chrome",
    "org.mozilla.firefox",
    "com.opera.browser",
    "com.brave.browser",
    "com.microsoft.emmx",
    "com.sec.android.app.sbrowser",
})

ADDRESS_BAR_IDS = (
    "com.android.chrome:id/url_bar",
    "org.mozilla.firefox:id/mozac_browser_toolbar_url_view",
    "org.mozilla.firefox:id/url_bar_title",
    "com.opera.browser:id/url_field",
    "com.brave.browser:id/url_bar",
    "com.microsoft.emmx:id/url_bar",
    "com.sec.android.app.sbrowser:id/location_bar_edit_text",
)

_TEXT_EVENTS = {EventKind.TEXT_CHANGED, EventKind.FOCUSED}
_WINDOW_EVENTS = {EventKind.WINDOW_STATE_CHANGED, EventKind.WINDOW_CONTENT_CHANGED}


class EventRouter:
    """Entry point for host events.

    ``on_event`` runs on whatever thread the host delivers on and must stay
    fast: it only classifies, appends, and hands URLs to the scrape worker.
    """

    def __init__(
        self,
        sink: Sink,
        worker: ScrapeWorker,
        state: WatchdogState,
        *,
        classifier: Optional[Classifier] = None,
        packages: Optional[Iterable[str]] = None,
        address_bar_ids: Optional[Iterable[str]] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.sink = sink
        self.worker = worker
        self.state = state
        self.classifier = classifier or Classifier()
        self.packages = frozenset(packages) if packages is not None else BROWSER_PACKAGES
        self.address_bar_ids: List[str] = list(
            address_bar_ids if address_bar_ids is not None else ADDRESS_BAR_IDS
        )
        self.max_depth = max_depth
        self._clock = clock

    def on_event(self, event: Optional[CapturedEvent]) -> None:
        self.state.touch(self._clock())

        if event is None:
            logger.debug("Received null event, skipping")
            return

        logger.debug(f"Event received from: {event.package} | Type: {event.kind.value}")
        if event.package not in self.packages:
            logger.debug(f"Ignored non-browser package: {event.package}")
            return

        try:
            if event.kind in _TEXT_EVENTS:
                self.handle_text(event.text)
            elif event.kind in _WINDOW_EVENTS:
                self._handle_window(event)
        except Exception as e:
            logger.error(f"Failed to handle {event.kind.value} event from {event.package}: {e}", exc_info=True)

    def _handle_window(self, event: CapturedEvent) -> None:
        root = event.node
        if root is None:
            logger.warning(f"Root node is null for package: {event.package}")
            return

        try:
            address = find_address_bar(root, self.address_bar_ids)
            if address and address.startswith("http"):
                self.handle_text(address)
                return

            for text in walk(root, self.max_depth):
                try:
                    self.handle_text(text)
                except Exception as e:
                    logger.error(f"Failed to handle captured text {text!r}: {e}")
        finally:
            root.release()

    def handle_text(self, text: Optional[str]) -> None:
        """Classify one captured string and act on the result."""
        action = self.classifier.classify(text)

        if action.kind is ActionKind.URL:
            self.sink.record(
                ClassifiedEntry(kind=EntryKind.URL, subject_url=action.text, payload=action.text)
            )
            # the Url entry is on disk before the scrape can be admitted
            self.worker.enqueue(action.text)
        elif action.kind is ActionKind.SEARCH_QUERY:
            self.sink.record(
                ClassifiedEntry(kind=EntryKind.SEARCH_QUERY, subject_url=action.text, payload=action.text)
            )
            logger.info(f"Captured search: {action.text}")
        else:
            logger.debug(f"Skipping non-URL data: {text!r}")
