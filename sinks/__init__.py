"""
Sinks - Where captured entries end up.
"""

from .file_sink import AppendSink

__all__ = ["AppendSink"]
