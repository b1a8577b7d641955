"""
http.py – Async HTTP client built on *aiohttp* with per-instance default
          headers and a bounded timeout.

Failures are normalised to :class:`~monitor.errors.NetworkError`; the client
makes exactly one attempt per call and leaves retry policy to its caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Mapping, Optional

import aiohttp

from ..errors import NetworkError

logger = logging.getLogger(__name__)


class HttpClient:
    """
    Thin wrapper over *aiohttp.ClientSession* adding:

    * global & per-request headers (keeps user-agent in one place)
    * a default total timeout, overridable per request
    * one error type for connect / timeout / status failures
    * async context-manager support
    """

    def __init__(
        self,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 15.0,
        default_headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._external_session = session
        self._timeout = timeout
        self._own_session: Optional[aiohttp.ClientSession] = None
        self._default_headers: Dict[str, str] = dict(default_headers or {})

    # ---------------------------------------------- #
    # Async context-manager
    async def __aenter__(self) -> "HttpClient":  # noqa: D401
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        await self.close()

    # ---------------------------------------------- #
    # Session management
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._external_session:
            return self._external_session
        if self._own_session is None or self._own_session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            self._own_session = aiohttp.ClientSession(timeout=timeout)
        return self._own_session

    async def close(self) -> None:
        if self._own_session and not self._own_session.closed:
            await self._own_session.close()
            self._own_session = None

    # ---------------------------------------------- #
    # Internal helpers
    def _merge_headers(self, extra: Mapping[str, str] | None) -> Dict[str, str]:
        merged: Dict[str, str] = {**self._default_headers}
        if extra:
            merged.update(extra)
        return merged

    # ---------------------------------------------- #
    # Public helpers
    async def get_text(
        self,
        url: str,
        *,
        timeout: Optional[float] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> str:
        """GET *url* and return the decoded body."""
        session = await self._ensure_session()
        kwargs = {"headers": self._merge_headers(headers)}
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

        try:
            async with session.get(url, **kwargs) as resp:
                if resp.status >= 400:
                    raise NetworkError(url, f"HTTP {resp.status}", status=resp.status)
                return await resp.text(errors="replace")
        except asyncio.TimeoutError:
            logger.debug("GET %s timed out", url)
            raise NetworkError(url, "timed out") from None
        except aiohttp.ClientError as e:
            logger.debug("GET %s failed: %s", url, e)
            raise NetworkError(url, str(e).splitlines()[0] if str(e) else type(e).__name__) from e
