"""
Shared fixtures and fakes for the browser monitor tests.
"""

import asyncio
import os
import sys
from typing import List, Optional

import pytest

# Add project root to PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from monitor.errors import TraversalError
from monitor.interfaces import NodeHandle
from sinks.file_sink import AppendSink


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeNode(NodeHandle):
    """In-memory UI node that records releases and can misbehave on demand."""

    def __init__(
        self,
        text: Optional[str] = None,
        children=(),
        *,
        view_id: Optional[str] = None,
        child_count: Optional[int] = None,
        fail_text: bool = False,
    ):
        self._text = text
        self.children: List[Optional["FakeNode"]] = list(children)
        self.view_id = view_id
        self._child_count = child_count
        self.fail_text = fail_text
        self.released = 0

    def text(self) -> Optional[str]:
        if self.fail_text:
            raise TraversalError("node vanished")
        return self._text

    def child_count(self) -> int:
        if self._child_count is not None:
            return self._child_count
        return len(self.children)

    def child(self, index: int) -> Optional[NodeHandle]:
        return self.children[index]

    def find_by_view_id(self, view_id: str) -> List[NodeHandle]:
        found = []
        for node in self.iter_tree():
            if node.view_id == view_id:
                found.append(node)
        return found

    def release(self) -> None:
        self.released += 1

    def iter_tree(self):
        yield self
        for child in self.children:
            if child is not None:
                yield from child.iter_tree()


def chain(depth: int, prefix: str = "level") -> FakeNode:
    """Build *depth* nested single-child text nodes."""
    node = FakeNode(f"{prefix}-{depth}")
    for level in range(depth - 1, 0, -1):
        node = FakeNode(f"{prefix}-{level}", [node])
    return node


class FakeHttp:
    """Stand-in for HttpClient; plays back a script of results."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []
        self.closed = False

    async def get_text(self, url, *, timeout=None, headers=None):
        self.calls.append({"url": url, "timeout": timeout, "headers": headers})
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result

    async def close(self):
        self.closed = True


EXAMPLE_HTML = (
    "<html><head><title>Example</title></head>"
    "<body><h1>Example</h1><p>Hello world</p><p>Second paragraph</p></body></html>"
)


async def wait_for(predicate, timeout: float = 2.0) -> None:
    """Spin the loop until *predicate* holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "browser_data.txt"


@pytest.fixture
def sink(log_path):
    return AppendSink(log_path)
