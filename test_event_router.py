"""
Tests for event filtering and dispatch in the router.
"""

import pytest

from conftest import EXAMPLE_HTML, FakeHttp, FakeNode, chain

from monitor.classifier import Classifier
from monitor.models import CapturedEvent, EventKind, WatchdogState
from monitor.router import EventRouter
from monitor.scraper import ScrapeWorker

CHROME = "com.android.chrome"
URL_BAR = "com.android.chrome:id/url_bar"


class RecordingWorker(ScrapeWorker):
    """Worker that remembers what the log held when each URL was offered."""

    def __init__(self, sink, clock):
        super().__init__(sink, http=FakeHttp(EXAMPLE_HTML), clock=clock, interval=0)
        self.offered = []

    def enqueue(self, url):
        log = self._sink.path.read_text(encoding="utf-8") if self._sink.path.exists() else ""
        self.offered.append((url, log))
        return super().enqueue(url)


@pytest.fixture
def state():
    return WatchdogState()


@pytest.fixture
def worker(sink, clock):
    return RecordingWorker(sink, clock)


@pytest.fixture
def router(sink, worker, state, clock):
    return EventRouter(sink, worker, state, clock=clock)


def text_event(text, package=CHROME, kind=EventKind.TEXT_CHANGED):
    return CapturedEvent(package=package, kind=kind, text=text)


def window_event(node, package=CHROME, kind=EventKind.WINDOW_CONTENT_CHANGED):
    return CapturedEvent(package=package, kind=kind, node=node)


def read_log(log_path):
    return log_path.read_text(encoding="utf-8") if log_path.exists() else ""


def test_every_event_touches_watchdog(router, state, clock):
    router.on_event(None)
    assert state.last_event_at == clock.now

    clock.advance(5)
    router.on_event(text_event("https://example.com", package="com.whatsapp"))
    assert state.last_event_at == clock.now


def test_non_browser_package_ignored(router, worker, log_path):
    router.on_event(text_event("https://example.com", package="com.whatsapp"))
    assert read_log(log_path) == ""
    assert worker.offered == []


def test_text_changed_url_logged_then_enqueued(router, worker, log_path):
    router.on_event(text_event("https://example.com"))

    log = read_log(log_path)
    assert log.endswith(" | Url | https://example.com\n")
    assert len(worker.offered) == 1
    url, log_at_enqueue = worker.offered[0]
    assert url == "https://example.com"
    assert "| Url | https://example.com" in log_at_enqueue
    assert worker.pending == 1


def test_focused_event_classified(router, log_path):
    router.on_event(text_event("http://example.org", kind=EventKind.FOCUSED))
    assert "| Url | http://example.org" in read_log(log_path)


def test_search_query_logged_not_scraped(router, worker, log_path):
    router.on_event(text_event("https://www.google.com/search?q=cats&source=hp"))
    assert "| SearchQuery | https://www.google.com/search?q=cats\n" in read_log(log_path)
    assert worker.offered == []


def test_plain_text_ignored(router, log_path):
    router.on_event(text_event("hello there"))
    router.on_event(text_event(None))
    assert read_log(log_path) == ""


def test_custom_allow_list(sink, worker, state, clock, log_path):
    router = EventRouter(sink, worker, state, packages=["org.example.browser"], clock=clock)
    router.on_event(text_event("https://a.example", package=CHROME))
    router.on_event(text_event("https://b.example", package="org.example.browser"))
    log = read_log(log_path)
    assert "a.example" not in log
    assert "b.example" in log


def test_window_event_uses_address_bar_fast_path(router, worker, log_path):
    root = FakeNode(None, [
        FakeNode("Menu"),
        FakeNode("https://example.com/article", view_id=URL_BAR),
        FakeNode("https://elsewhere.example/link"),
    ])
    router.on_event(window_event(root))

    log = read_log(log_path)
    assert "| Url | https://example.com/article" in log
    assert "elsewhere" not in log
    assert root.released == 1


def test_window_event_falls_back_to_walk(router, log_path):
    root = FakeNode(None, [
        FakeNode("example.com", view_id=URL_BAR),  # not http-prefixed
        FakeNode("https://a.example/1"),
        FakeNode("Some heading", [FakeNode("https://www.google.com/search?q=dogs")]),
    ])
    router.on_event(window_event(root, kind=EventKind.WINDOW_STATE_CHANGED))

    log = read_log(log_path)
    assert "| Url | https://a.example/1" in log
    assert "| SearchQuery | https://www.google.com/search?q=dogs" in log
    assert "Some heading" not in log
    assert root.released == 1


def test_window_walk_respects_max_depth(sink, worker, state, clock, log_path):
    router = EventRouter(sink, worker, state, max_depth=3, clock=clock)
    root = chain(5, prefix="https://deep.example/level")
    router.on_event(window_event(root))
    assert read_log(log_path).count("| Url |") == 3


def test_window_event_without_node(router, log_path):
    router.on_event(window_event(None))
    assert read_log(log_path) == ""


def test_broken_tree_does_not_escape(router, log_path):
    root = FakeNode(None, [FakeNode("x", fail_text=True), FakeNode("https://ok.example")], child_count=4)
    router.on_event(window_event(root))
    assert "| Url | https://ok.example" in read_log(log_path)
    assert root.released == 1


def test_custom_classifier(sink, worker, state, clock, log_path):
    classifier = Classifier(search_marker="bing.com/search", search_engine="www.bing.com")
    router = EventRouter(sink, worker, state, classifier=classifier, clock=clock)
    router.on_event(text_event("https://www.bing.com/search?q=rust&form=QBLH"))
    assert "| SearchQuery | https://www.bing.com/search?q=rust\n" in read_log(log_path)


def test_unencodable_text_does_not_stop_siblings(router, worker, log_path):
    root = FakeNode(None, [FakeNode("https://a.example/\ud800"), FakeNode("https://b.example")])
    router.on_event(window_event(root))

    log = read_log(log_path)
    assert "| Url | https://a.example/\\ud800" in log
    assert "| Url | https://b.example" in log
    assert [url for url, _ in worker.offered][-1] == "https://b.example"


class BrokenWorker(RecordingWorker):
    def enqueue(self, url):
        if "a.example" in url:
            raise RuntimeError("queue unavailable")
        return super().enqueue(url)


def test_failing_string_does_not_stop_siblings(sink, state, clock, log_path):
    worker = BrokenWorker(sink, clock)
    router = EventRouter(sink, worker, state, clock=clock)
    root = FakeNode(None, [FakeNode("https://a.example"), FakeNode("https://b.example")])
    router.on_event(window_event(root))

    log = read_log(log_path)
    assert "| Url | https://b.example" in log
    assert [url for url, _ in worker.offered] == ["https://b.example"]
    assert root.released == 1
