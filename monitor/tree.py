"""
tree.py – bounded, defensive traversal of host UI node trees.

The host tree is not trusted: nodes can vanish between calls, report more
children than they actually have, or throw while being read.  Every child
handle is released as soon as its subtree has been visited so that deep
traversals do not pin host resources.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

from .errors import TraversalError
from .interfaces import NodeHandle

logger = logging.getLogger(__name__)

__all__ = ["walk", "find_address_bar", "DEFAULT_MAX_DEPTH"]

DEFAULT_MAX_DEPTH = 10


def walk(root: Optional[NodeHandle], max_depth: int = DEFAULT_MAX_DEPTH) -> Iterator[str]:
    """Yield the trimmed text of every node under *root*, pre-order.

    The root sits at depth 1 and nothing deeper than *max_depth* is
    visited.  The root handle itself is left to the caller to release.
    """
    return _walk(root, 1, max_depth)


def _walk(node: Optional[NodeHandle], depth: int, max_depth: int) -> Iterator[str]:
    if node is None or depth > max_depth:
        return

    try:
        text = node.text()
        count = node.child_count()
    except Exception as e:
        logger.warning(f"Traversal error at depth {depth}, skipping branch: {e}")
        return

    if text is not None:
        data = str(text).strip()
        if data:
            logger.debug(f"Captured node text: {data}")
            yield data

    if depth == max_depth:
        return

    for index in range(count):
        child = _child_at(node, index)
        if child is None:
            continue
        try:
            yield from _walk(child, depth + 1, max_depth)
        finally:
            _release(child)


def _child_at(node: NodeHandle, index: int) -> Optional[NodeHandle]:
    # reported child counts can run ahead of the real children
    try:
        return node.child(index)
    except (IndexError, TraversalError) as e:
        logger.debug(f"Child {index} unavailable: {e}")
        return None
    except Exception as e:
        logger.warning(f"Traversal error reading child {index}: {e}")
        return None


def _release(node: NodeHandle) -> None:
    try:
        node.release()
    except Exception as e:
        logger.debug(f"Failed to release node: {e}")


def find_address_bar(root: Optional[NodeHandle], view_ids: Iterable[str]) -> Optional[str]:
    """Return the first non-empty address-bar text found under *root*."""
    if root is None:
        return None

    for view_id in view_ids:
        try:
            matches = root.find_by_view_id(view_id)
        except Exception as e:
            logger.debug(f"Lookup of {view_id} failed: {e}")
            continue

        found: Optional[str] = None
        for match in matches:
            try:
                if found is None and match is not None:
                    text = match.text()
                    if text is not None and str(text).strip():
                        found = str(text).strip()
            except Exception as e:
                logger.debug(f"Reading {view_id} failed: {e}")
            finally:
                if match is not None:
                    _release(match)

        if found:
            logger.debug(f"Address bar {view_id}: {found}")
            return found

    return None
