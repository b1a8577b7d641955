"""
Tests for the JSON-lines event feed and dict-backed node handles.
"""

import json

import pytest

from monitor.errors import TraversalError
from monitor.models import EventKind
from monitor.sources import CHILD_COUNT_SLACK, DictNode, JsonLinesEventSource, event_from_dict
from monitor.tree import find_address_bar, walk


TREE = {
    "text": None,
    "children": [
        {"view_id": "com.android.chrome:id/url_bar", "text": "https://example.com"},
        {"text": "Welcome", "children": [{"text": "Body copy"}]},
    ],
}


def write_lines(path, records):
    with path.open("a", encoding="utf-8") as f:
        for record in records:
            f.write((record if isinstance(record, str) else json.dumps(record)) + "\n")


async def collect(source):
    return [event async for event in source.events()]


def test_dict_node_walk():
    assert list(walk(DictNode(TREE))) == ["https://example.com", "Welcome", "Body copy"]


def test_dict_node_address_bar():
    assert find_address_bar(DictNode(TREE), ["com.android.chrome:id/url_bar"]) == "https://example.com"


def test_dict_node_declared_count_quirk():
    node = DictNode({"text": "root", "child_count": 3, "children": [{"text": "only"}]})
    assert node.child_count() == 3
    with pytest.raises(IndexError):
        node.child(2)
    assert list(walk(node)) == ["root", "only"]


def test_dict_node_malformed_child():
    node = DictNode({"children": ["not a node", {"text": "fine"}]})
    with pytest.raises(TraversalError):
        node.child(0)
    assert list(walk(node)) == ["fine"]


def test_event_from_dict():
    event = event_from_dict({"package": "com.android.chrome", "kind": "WindowStateChanged", "node": TREE})
    assert event.kind is EventKind.WINDOW_STATE_CHANGED
    assert isinstance(event.node, DictNode)
    assert event.text is None


@pytest.mark.parametrize("record", [
    [],
    {"kind": "TextChanged"},
    {"package": "com.android.chrome", "kind": "Scrolled"},
    {"package": "com.android.chrome", "kind": "TextChanged", "node": "tree"},
])
def test_event_from_dict_rejects_invalid(record):
    with pytest.raises(ValueError):
        event_from_dict(record)


@pytest.mark.asyncio
async def test_file_source_skips_bad_lines(tmp_path):
    feed = tmp_path / "events.jsonl"
    write_lines(feed, [
        {"package": "com.android.chrome", "kind": "TextChanged", "text": "https://a.example"},
        "{not json",
        "",
        "# comment",
        {"package": "com.android.chrome", "kind": "Bogus"},
        {"package": "org.mozilla.firefox", "kind": "Focused", "text": "https://b.example"},
    ])

    source = JsonLinesEventSource(feed)
    events = await collect(source)
    assert [e.text for e in events] == ["https://a.example", "https://b.example"]
    assert source.skipped == 2


@pytest.mark.asyncio
async def test_file_source_resumes_from_offset(tmp_path):
    feed = tmp_path / "events.jsonl"
    write_lines(feed, [{"package": "p", "kind": "TextChanged", "text": "one"}])
    source = JsonLinesEventSource(feed)
    assert [e.text for e in await collect(source)] == ["one"]

    write_lines(feed, [{"package": "p", "kind": "TextChanged", "text": "two"}])
    assert [e.text for e in await collect(source)] == ["two"]


@pytest.mark.asyncio
async def test_missing_feed_yields_nothing(tmp_path):
    assert await collect(JsonLinesEventSource(tmp_path / "absent.jsonl")) == []


def test_dict_node_declared_count_is_bounded():
    node = DictNode({"child_count": 10**12, "children": [{"text": "only"}]})
    assert node.child_count() == 1 + CHILD_COUNT_SLACK
    assert list(walk(node)) == ["only"]


@pytest.mark.asyncio
async def test_file_source_survives_invalid_utf8(tmp_path):
    feed = tmp_path / "events.jsonl"
    feed.write_bytes(b"\xff\xfe garbage\n")
    write_lines(feed, [{"package": "com.android.chrome", "kind": "TextChanged", "text": "https://a.example"}])

    source = JsonLinesEventSource(feed)
    assert [e.text for e in await collect(source)] == ["https://a.example"]
    assert source.skipped == 1
