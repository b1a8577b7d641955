"""
Monitor service: wires sink, router, scrape worker and watchdog together and
drives them from an event source.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from sinks.file_sink import AppendSink

from .classifier import Classifier
from .config import MonitorConfig
from .infra.http import HttpClient
from .infra.scheduler import Scheduler
from .interfaces import EventSource, Host
from .models import WatchdogState
from .router import EventRouter
from .scraper import ScrapeWorker
from .watchdog import Watchdog

logger = logging.getLogger(__name__)


class MonitorService(Host):
    """Headless monitoring session.

    Acts as the watchdog's :class:`Host`: a restart request cancels the
    current consumption of the event source and starts a new one.
    """

    def __init__(
        self,
        config: MonitorConfig,
        *,
        http: Optional[HttpClient] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        settings = config.monitor
        scraper = config.scraper

        self.sink = AppendSink(settings.log_file)
        self.state = WatchdogState(last_event_at=clock())
        self.worker = ScrapeWorker(
            self.sink,
            http=http,
            interval=scraper.interval_seconds,
            timeout=scraper.timeout_seconds,
            max_retries=scraper.max_retries,
            retry_delay=scraper.retry_delay_seconds,
            user_agent=scraper.user_agent,
            snippet_length=scraper.snippet_length,
            clock=clock,
        )
        self.router = EventRouter(
            self.sink,
            self.worker,
            self.state,
            classifier=Classifier(settings.search_marker, settings.search_engine),
            packages=settings.packages,
            address_bar_ids=settings.address_bar_ids,
            max_depth=settings.max_depth,
            clock=clock,
        )
        self.scheduler = scheduler or Scheduler(timezone=config.watchdog.timezone)
        self.watchdog = Watchdog(
            self.state,
            self,
            self.scheduler,
            threshold=config.watchdog.interval_seconds,
            clock=clock,
        )
        self.restarts = 0
        self._restart = asyncio.Event()

    # ------------------------------------------------------------------- #
    async def __aenter__(self) -> "MonitorService":
        await self.start()
        return self

    async def __aexit__(self, *_) -> None:
        await self.stop()

    async def start(self) -> None:
        await self.worker.start()
        await self.scheduler.start()
        self.watchdog.start()
        logger.info(
            f"Monitoring {len(self.router.packages)} browser package(s), "
            f"logging to {self.sink.path}"
        )

    async def stop(self) -> None:
        self.watchdog.stop()
        await self.scheduler.stop()
        await self.worker.stop()

    # ------------------------------------------------------------------- #
    def restart_monitoring(self) -> None:
        self.restarts += 1
        logger.warning(f"Restart of monitoring session requested (#{self.restarts})")
        self._restart.set()

    async def _consume(self, source: EventSource) -> None:
        async for event in source.events():
            self.router.on_event(event)

    async def run(self, source: EventSource, stop_event: Optional[asyncio.Event] = None) -> None:
        """Feed *source* through the router until it ends or *stop_event* is set."""
        stop_event = stop_event or asyncio.Event()
        logger.info(f"Consuming events from {source.name}")

        while not stop_event.is_set():
            self._restart.clear()
            feed = asyncio.create_task(self._consume(source), name="event-feed")
            restart = asyncio.create_task(self._restart.wait())
            stop = asyncio.create_task(stop_event.wait())

            done, pending = await asyncio.wait(
                {feed, restart, stop}, return_when=asyncio.FIRST_COMPLETED
            )
            for task in pending:
                task.cancel()
            for task in pending:
                try:
                    await task
                except asyncio.CancelledError:
                    pass

            if feed in done:
                if feed.exception() is not None:
                    logger.error(f"Event feed failed: {feed.exception()}")
                else:
                    logger.info("Event feed exhausted")
                break

            if restart in done and not stop_event.is_set():
                logger.info("Restarting event feed")
