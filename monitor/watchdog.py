"""
Liveness watchdog: asks the host to restart monitoring after a silence.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from .infra.scheduler import Scheduler
from .interfaces import Host
from .models import WatchdogState

logger = logging.getLogger(__name__)

JOB_ID = "monitor_watchdog"


class Watchdog:
    """Periodic check of :class:`WatchdogState`.

    The same ``threshold`` is used as the check period and as the allowed
    silence, so a dead feed is noticed within two periods at most.
    """

    def __init__(
        self,
        state: WatchdogState,
        host: Host,
        scheduler: Optional[Scheduler] = None,
        threshold: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.state = state
        self.host = host
        self.scheduler = scheduler
        self.threshold = threshold
        self._clock = clock

    def start(self) -> None:
        if self.scheduler is None:
            raise RuntimeError("Watchdog has no scheduler to run on")
        self.state.touch(self._clock())
        self.scheduler.add_interval_job(self.check, seconds=self.threshold, job_id=JOB_ID)

    def stop(self) -> None:
        if self.scheduler is not None:
            self.scheduler.remove_job(JOB_ID)

    async def check(self) -> bool:
        """Signal a restart if no event arrived within the threshold."""
        now = self._clock()
        silence = now - self.state.last_event_at
        if silence <= self.threshold:
            logger.debug(f"Watchdog ok, last event {silence:.0f}s ago")
            return False

        logger.warning(f"No events for {silence:.0f}s, restarting monitoring session")
        try:
            self.host.restart_monitoring()
        except Exception as e:
            logger.error(f"Host failed to restart monitoring: {e}")
        # a fresh session starts its own silence window
        self.state.touch(now)
        return True
