"""scraper – rate-limited, retrying page scrapes off the event path.

Captured URLs are admitted at most once per ``interval`` seconds and handed
to a single consumer task, so there is never more than one outbound request
in flight.  Each task gets ``max_retries`` attempts with a fixed
``retry_delay`` between them; the outcome is always exactly one
``ScrapeResult`` or ``ScrapeError`` entry, unless the worker is stopped
first, in which case nothing is written for that task.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from bs4 import BeautifulSoup

from .infra.http import HttpClient
from .interfaces import Sink
from .models import ClassifiedEntry, EntryKind, ScrapeSummary, ScrapeTask

logger = logging.getLogger(__name__)

__all__ = ["ScrapeWorker", "extract_summary", "NO_PARAGRAPH"]


DEFAULT_USER_AGENT = "Mozilla/5.0 (Android)"
NO_PARAGRAPH = "No paragraph found"


def extract_summary(html: str, snippet_length: int = 200) -> ScrapeSummary:
    """Pull the title and the first paragraph out of an HTML document."""
    soup = BeautifulSoup(html, "html.parser")

    title = soup.title.get_text(strip=True) if soup.title else ""

    tag = soup.find("p")
    if tag is not None:
        paragraph = tag.get_text(" ", strip=True)[:snippet_length]
    else:
        paragraph = NO_PARAGRAPH

    return ScrapeSummary(title=title, paragraph=paragraph)


class ScrapeWorker:
    """Single-consumer scrape queue with admission control."""

    name = "ScrapeWorker"

    # ------------------------------------------------------------------- #
    def __init__(
        self,
        sink: Sink,
        *,
        http: Optional[HttpClient] = None,
        interval: float = 10.0,
        timeout: float = 5.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        user_agent: str = DEFAULT_USER_AGENT,
        snippet_length: int = 200,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        self._sink = sink
        self._owns_http = http is None
        self._http = http or HttpClient(timeout=timeout)
        self._interval = interval
        self._timeout = timeout
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._headers = {"User-Agent": user_agent}
        self._snippet_length = snippet_length
        self._clock = clock

        self._last_scrape_at: Optional[float] = None
        self._queue: asyncio.Queue[ScrapeTask] = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------- #
    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def enqueue(self, url: str) -> bool:
        """Admit *url* for scraping unless the rate limit says otherwise."""
        now = self._clock()
        if self._last_scrape_at is not None and now - self._last_scrape_at < self._interval:
            logger.debug(f"Skipping scrape for {url}: too soon")
            return False

        # claimed before the fetch, so a slow scrape cannot queue a burst
        self._last_scrape_at = now
        self._queue.put_nowait(ScrapeTask(url=url, attempts_remaining=self._max_retries))
        logger.info(f"Queued scrape for {url}")
        return True

    async def start(self) -> None:
        if self.running:
            return
        self._consumer = asyncio.create_task(self._consume(), name="scrape-worker")
        logger.info("Scrape worker started")

    async def stop(self) -> None:
        """Cancel the in-flight task and drop everything still queued."""
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None

        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1
        if dropped:
            logger.info(f"Dropped {dropped} queued scrape(s)")

        if self._owns_http:
            await self._http.close()
        logger.info("Scrape worker stopped")

    async def join(self) -> None:
        """Wait until every queued task has been processed."""
        await self._queue.join()

    # ------------------------------------------------------------------- #
    async def _consume(self) -> None:
        while True:
            task = await self._queue.get()
            try:
                await self.process(task)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Scrape task for {task.url} aborted: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    async def process(self, task: ScrapeTask) -> None:
        """Run one task to completion; always writes exactly one entry."""
        attempt = 0
        while task.attempts_remaining > 0:
            attempt += 1
            task.attempts_remaining -= 1
            logger.debug(f"Scraping attempt {attempt} for: {task.url}")
            try:
                html = await self._http.get_text(
                    task.url, timeout=self._timeout, headers=self._headers
                )
                summary = extract_summary(html, self._snippet_length)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                reason = str(e) or type(e).__name__
                logger.error(f"Scrape failed on attempt {attempt} for {task.url}: {reason}")
                if task.attempts_remaining == 0:
                    self._sink.record(
                        ClassifiedEntry(
                            kind=EntryKind.SCRAPE_ERROR,
                            subject_url=task.url,
                            payload=reason,
                        )
                    )
                    logger.error(f"Scrape failed after {attempt} attempts: {task.url}")
                    return
                await asyncio.sleep(self._retry_delay)
                continue

            self._sink.record(
                ClassifiedEntry(
                    kind=EntryKind.SCRAPE_RESULT,
                    subject_url=task.url,
                    payload=summary.as_payload(),
                )
            )
            logger.info(f"Scrape successful for {task.url}: {summary.title!r}")
            return
