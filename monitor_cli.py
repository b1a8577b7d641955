#!/usr/bin/env python3
"""
Browser monitor CLI - Run the monitor and inspect what it has captured.

Usage: python monitor_cli.py <command> [options]

Commands:
    run [feed]      - Process a JSON-lines event feed once (default: stdin)
    show [lines]    - Show the capture log (optionally only the last N lines)
    classify <text> - Show how a piece of captured text would be classified
    clear           - Empty the capture log
"""

import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

# Add project root to PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from monitor.classifier import Classifier
from monitor.config import load_config
from monitor.models import ActionKind
from monitor.service import MonitorService
from monitor.sources import JsonLinesEventSource
from sinks.file_sink import AppendSink


class Colors:
    """ANSI color codes for terminal output."""
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    END = "\033[0m"


async def run_feed(feed_path: str) -> None:
    """Run the monitor over a finite feed and wait for its scrapes."""
    config = load_config()
    source = JsonLinesEventSource(feed_path)
    async with MonitorService(config) as service:
        await service.run(source)
        await service.worker.join()

    print(f"{Colors.GREEN}✅ Feed processed, log written to {config.monitor.log_file}{Colors.END}")
    if source.skipped:
        print(f"{Colors.YELLOW}⚠️  Skipped {source.skipped} invalid line(s){Colors.END}")


def show_log(lines=None) -> None:
    """Print the accumulated capture log."""
    config = load_config()
    sink = AppendSink(config.monitor.log_file)
    print(f"{Colors.BOLD}📜 {sink.path}{Colors.END}")
    print("=" * 60)
    print(sink.read(lines).rstrip())


def show_classification(text: str) -> None:
    config = load_config()
    classifier = Classifier(config.monitor.search_marker, config.monitor.search_engine)
    action = classifier.classify(text)

    color = {
        ActionKind.URL: Colors.GREEN,
        ActionKind.SEARCH_QUERY: Colors.CYAN,
        ActionKind.IGNORE: Colors.YELLOW,
    }[action.kind]
    print(f"{color}{action.kind.value}{Colors.END} {action.text}")


def clear_log() -> None:
    config = load_config()
    AppendSink(config.monitor.log_file).clear()
    print(f"{Colors.GREEN}✅ Capture log cleared{Colors.END}")


def main(argv=None) -> int:
    """Main CLI entry point."""
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        print(__doc__)
        return 1

    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s"
    )

    command = argv[0].lower()
    try:
        if command == "run":
            asyncio.run(run_feed(argv[1] if len(argv) > 1 else "-"))
        elif command == "show":
            show_log(int(argv[1]) if len(argv) > 1 else None)
        elif command == "classify":
            if len(argv) < 2:
                print(f"{Colors.RED}classify needs some text{Colors.END}")
                return 1
            show_classification(" ".join(argv[1:]))
        elif command == "clear":
            clear_log()
        else:
            print(f"{Colors.RED}Unknown command: {command}{Colors.END}")
            print(__doc__)
            return 1
    except KeyboardInterrupt:
        print(f"\n{Colors.YELLOW}Interrupted{Colors.END}")
    except ValueError as e:
        print(f"{Colors.RED}Error: {e}{Colors.END}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
