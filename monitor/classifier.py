"""
URL / search-query classification of captured text.
"""

from __future__ import annotations

import re
from typing import Optional

from .models import Action


__all__ = ["Classifier", "classify", "DEFAULT_SEARCH_MARKER", "DEFAULT_SEARCH_ENGINE"]


DEFAULT_SEARCH_MARKER = "google.com/search"
DEFAULT_SEARCH_ENGINE = "www.google.com"

# value of the q parameter, up to the next '&' or end of string
_QUERY_RE = re.compile(r"[?&]q=([^&]*)")


class Classifier:
    """Decide whether captured text is a search, a navigable URL, or noise.

    Rules, first match wins:

    1. blank text is ignored
    2. text containing ``search_marker`` is a search; it is rebuilt as
       ``https://<search_engine>/search?q=<value>``
    3. text starting with ``http`` is a URL
    4. anything else is ignored

    Surrounding whitespace is stripped before any rule runs, so a URL comes
    back exactly as captured minus leading and trailing blanks.
    """

    def __init__(
        self,
        search_marker: str = DEFAULT_SEARCH_MARKER,
        search_engine: str = DEFAULT_SEARCH_ENGINE,
    ) -> None:
        self.search_marker = search_marker
        self.search_engine = search_engine

    def classify(self, text: Optional[str]) -> Action:
        if text is None:
            return Action.ignore()
        data = text.strip()
        if not data:
            return Action.ignore()

        if self.search_marker and self.search_marker in data:
            return Action.search(self.canonical_search_url(data))

        if data.startswith("http"):
            return Action.url(data)

        return Action.ignore()

    def canonical_search_url(self, text: str) -> str:
        """Rebuild a search URL keeping only the query parameter.

        A missing ``q`` parameter yields an empty query.
        """
        match = _QUERY_RE.search(text)
        query = match.group(1) if match else ""
        return f"https://{self.search_engine}/search?q={query}"


_default = Classifier()


def classify(text: Optional[str]) -> Action:
    """Classify with the default search engine settings."""
    return _default.classify(text)
