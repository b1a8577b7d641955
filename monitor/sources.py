"""
Capture event feeds.

The monitor itself never talks to a UI toolkit; it consumes events that a
host collector serialises as JSON lines, one event per line::

    {"package": "com.android.chrome", "kind": "TextChanged", "text": "https://example.com"}
    {"package": "com.android.chrome", "kind": "WindowContentChanged",
     "node": {"text": null, "children": [{"view_id": "com.android.chrome:id/url_bar",
                                          "text": "https://example.com"}]}}

Node trees are dicts with ``text``, ``view_id``, ``children`` and an optional
``child_count`` that, like the real platform, may disagree with the children
that actually exist.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import threading
from pathlib import Path
from typing import Any, AsyncIterator, List, Mapping, Optional, Union

from .errors import TraversalError
from .interfaces import EventSource, NodeHandle
from .models import CapturedEvent

logger = logging.getLogger(__name__)

__all__ = ["DictNode", "event_from_dict", "JsonLinesEventSource"]

# how far a declared child_count may run ahead of the real children
CHILD_COUNT_SLACK = 8


class DictNode(NodeHandle):
    """:class:`NodeHandle` over a plain dict tree."""

    def __init__(self, data: Mapping[str, Any]):
        if not isinstance(data, Mapping):
            raise TraversalError(f"node must be an object, got {type(data).__name__}")
        self._data = data
        self.released = False

    def text(self) -> Optional[str]:
        value = self._data.get("text")
        return None if value is None else str(value)

    def _children(self) -> List[Any]:
        children = self._data.get("children") or []
        if not isinstance(children, list):
            raise TraversalError("children must be a list")
        return children

    def child_count(self) -> int:
        actual = len(self._children())
        declared = self._data.get("child_count")
        if declared is not None:
            # over-reporting is allowed, but only by a bounded amount
            return min(int(declared), actual + CHILD_COUNT_SLACK)
        return actual

    def child(self, index: int) -> Optional[NodeHandle]:
        children = self._children()
        if index < 0 or index >= len(children):
            raise IndexError(f"child {index} out of range ({len(children)} children)")
        raw = children[index]
        if raw is None:
            return None
        return DictNode(raw)

    def find_by_view_id(self, view_id: str) -> List[NodeHandle]:
        found: List[NodeHandle] = []
        stack = [self._data]
        while stack:
            current = stack.pop()
            if current.get("view_id") == view_id:
                found.append(DictNode(current))
            children = current.get("children") or []
            if isinstance(children, list):
                stack.extend(reversed([c for c in children if isinstance(c, Mapping)]))
        return found

    def release(self) -> None:
        self.released = True


def event_from_dict(data: Any) -> CapturedEvent:
    """Build a :class:`CapturedEvent` from a decoded JSON record."""
    if not isinstance(data, Mapping):
        raise ValueError("event must be a JSON object")

    node = data.get("node")
    if node is not None:
        if not isinstance(node, Mapping):
            raise ValueError("event node must be a JSON object")
        node = DictNode(node)

    return CapturedEvent.model_validate(
        {
            "package": data.get("package"),
            "kind": data.get("kind"),
            "text": data.get("text"),
            "node": node,
        }
    )


class JsonLinesEventSource(EventSource):
    """Read capture events from a JSON-lines file or stdin (``-``).

    In *follow* mode the file is tailed like ``tail -f``.  The read offset
    is kept on the instance, so iterating ``events()`` again after a
    restart resumes where the previous iteration stopped.  Stdin is read by
    one daemon thread per source that outlives individual iterations, so a
    restart never strands a line in an abandoned read.

    Bytes that are not valid UTF-8 are replaced rather than ending the feed.
    """

    name = "JsonLinesEventSource"

    def __init__(
        self,
        path: Union[str, Path] = "-",
        *,
        follow: bool = False,
        poll_interval: float = 0.5,
    ):
        self.path = str(path)
        self.follow = follow
        self.poll_interval = poll_interval
        self._offset = 0
        self.skipped = 0
        self._stdin_lines: Optional[asyncio.Queue] = None
        self._stdin_closed = False

    def _parse(self, line: str) -> Optional[CapturedEvent]:
        line = line.strip()
        if not line or line.startswith("#"):
            return None
        try:
            return event_from_dict(json.loads(line))
        except ValueError as e:
            self.skipped += 1
            logger.warning(f"Skipping invalid event line: {str(e).splitlines()[0]}")
            return None

    async def events(self) -> AsyncIterator[CapturedEvent]:
        if self.path == "-":
            async for event in self._read_stdin():
                yield event
        else:
            async for event in self._read_file():
                yield event

    def _start_stdin_reader(self) -> asyncio.Queue:
        if self._stdin_lines is not None:
            return self._stdin_lines

        loop = asyncio.get_running_loop()
        lines: asyncio.Queue = asyncio.Queue()
        stream = getattr(sys.stdin, "buffer", sys.stdin)

        def pump() -> None:
            while True:
                raw = stream.readline()
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8", errors="replace")
                try:
                    loop.call_soon_threadsafe(lines.put_nowait, raw)
                except RuntimeError:
                    # event loop already closed
                    return
                if not raw:
                    return

        threading.Thread(target=pump, name="stdin-event-reader", daemon=True).start()
        self._stdin_lines = lines
        return lines

    async def _read_stdin(self) -> AsyncIterator[CapturedEvent]:
        if self._stdin_closed:
            return
        lines = self._start_stdin_reader()
        while True:
            line = await lines.get()
            if not line:
                self._stdin_closed = True
                logger.info("Event feed closed (stdin EOF)")
                return
            event = self._parse(line)
            if event is not None:
                yield event

    async def _read_file(self) -> AsyncIterator[CapturedEvent]:
        path = Path(self.path)
        while not path.exists():
            if not self.follow:
                logger.error(f"Event feed not found: {path}")
                return
            await asyncio.sleep(self.poll_interval)

        with path.open("r", encoding="utf-8", errors="replace") as f:
            f.seek(self._offset)
            while True:
                line = f.readline()
                if not line:
                    if not self.follow:
                        return
                    await asyncio.sleep(self.poll_interval)
                    continue
                if self.follow and not line.endswith("\n"):
                    # the writer has not finished this line yet
                    f.seek(self._offset)
                    await asyncio.sleep(self.poll_interval)
                    continue

                self._offset = f.tell()
                event = self._parse(line)
                if event is not None:
                    yield event
