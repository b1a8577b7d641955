"""
Append-only file sink for the capture log.
"""

import logging
import threading
from collections import deque
from pathlib import Path
from typing import Optional, Union

from monitor.errors import StorageError
from monitor.interfaces import Sink


logger = logging.getLogger(__name__)

NO_DATA = "No data found."


class AppendSink(Sink):
    """Sink that appends UTF-8 records to a plain text log file.

    Each ``append`` opens, writes and closes the file under an internal
    lock, so records from concurrent producers never interleave.
    """

    name = "AppendSink"

    def __init__(self, path: Union[str, Path] = "browser_data.txt", **kwargs):
        self.path = Path(path)
        self._lock = threading.Lock()

    def append(self, entry: str) -> None:
        """Append a record; storage failures are logged, never raised."""
        try:
            self._write(entry)
            logger.debug(f"Wrote to file: {self.path} | Entry: {entry.strip()}")
        except StorageError as e:
            logger.error(f"Failed to write to file: {e}")

    def _write(self, entry: str) -> None:
        # unpaired surrogates from decoded feeds are escaped, not fatal
        data = entry.encode("utf-8", errors="backslashreplace")
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("ab") as f:
                    f.write(data)
            except OSError as e:
                raise StorageError(f"{self.path}: {e}") from e

    def read(self, lines: Optional[int] = None) -> str:
        """Return the accumulated log, or only its last *lines* lines."""
        if not self.path.exists():
            logger.warning(f"Log file not found: {self.path}")
            return NO_DATA

        with self._lock:
            with self.path.open("r", encoding="utf-8", errors="replace") as f:
                if lines is None:
                    return f.read()
                return "".join(deque(f, maxlen=lines))

    def clear(self) -> None:
        """Truncate the log file."""
        with self._lock:
            if self.path.exists():
                self.path.write_bytes(b"")
                logger.info(f"Cleared log file: {self.path}")
