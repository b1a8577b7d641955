"""
Main entry point for the browser monitor.

Reads capture events as JSON lines from ``EVENT_FEED`` (a file that is
tailed, or ``-`` for stdin) and runs until SIGINT/SIGTERM.
"""

import asyncio
import logging
import os
import signal
import sys

from dotenv import load_dotenv

# Add project root to PYTHONPATH so imports work when running this script directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from monitor.config import load_config
from monitor.service import MonitorService
from monitor.sources import JsonLinesEventSource


def setup_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s"
    )


async def main():
    """Run the monitor over the configured event feed until told to stop."""
    load_dotenv()
    setup_logging()
    logger = logging.getLogger(__name__)

    config = load_config()
    feed_path = os.getenv("EVENT_FEED", "-")
    source = JsonLinesEventSource(feed_path, follow=feed_path != "-")

    logger.info("Starting browser monitor...")
    logger.info(f"Event feed: {'stdin' if feed_path == '-' else feed_path}")
    logger.info(f"Capture log: {config.monitor.log_file}")

    # Setup graceful shutdown
    stop_event = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal")
        stop_event.set()

    # Register signal handlers
    for sig in (signal.SIGTERM, signal.SIGINT):
        asyncio.get_running_loop().add_signal_handler(sig, signal_handler)

    service = MonitorService(config)
    try:
        async with service:
            await service.run(source, stop_event)
            if not stop_event.is_set():
                logger.info("Waiting for queued scrapes...")
                await service.worker.join()
    except Exception as e:
        logger.error(f"Error in main loop: {e}", exc_info=True)
    finally:
        logger.info("Shutdown complete")


def run_monitor():
    """Entry point that can be called from other scripts."""
    asyncio.run(main())


if __name__ == "__main__":
    run_monitor()
