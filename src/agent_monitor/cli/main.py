# src/agent_monitor/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the monitor, then runs one cycle every
check_interval_minutes until SIGINT/SIGTERM (or exactly once with --once).
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from collections.abc import Sequence

from ..cli.bootstrap import create_monitor
from ..config import get_settings
from ..core.errors import FatalStartupError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)

ERROR_PAUSE_SECONDS = 30.0
EXIT_FATAL = 2


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="agent-monitor",
        description="Poll the task tracker, handle new tasks and comments, post results back.",
    )
    parser.add_argument("--once", action="store_true", help="run a single cycle and exit")
    return parser.parse_args(argv)


def run_loop(monitor, *, interval_seconds: float, stop: threading.Event, once: bool = False) -> None:
    """
    Run cycles until `stop` is set.

    A cycle that blows up is logged and followed by a short pause; only
    FatalStartupError leaves the loop.
    """
    while not stop.is_set():
        try:
            report = monitor.run_cycle()
            logger.debug("Cycle finished state=%s", report.state.value)
        except FatalStartupError:
            raise
        except Exception:
            logger.exception("Monitor loop error; pausing %.0fs", ERROR_PAUSE_SECONDS)
            if once:
                return
            stop.wait(ERROR_PAUSE_SECONDS)
            continue

        if once:
            return
        logger.info("Sleeping for %.0f seconds...", interval_seconds)
        stop.wait(interval_seconds)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.log_dir, console_level=console_level)

    logger.info("Starting %s (interval %d min)", settings.app_name, settings.check_interval_minutes)

    # Use an Event so the loop can sleep without a busy wait and wake up on signals.
    stop = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop.set()

    try:
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError):
        # Not on the main thread, or the platform lacks SIGTERM.
        logger.debug("Signal handlers not installed.", exc_info=True)

    monitor = None
    try:
        monitor = create_monitor(settings=settings)
        run_loop(monitor, interval_seconds=settings.check_interval_seconds, stop=stop, once=args.once)
    except FatalStartupError as e:
        logger.critical("Fatal startup error: %s", e)
        return EXIT_FATAL
    finally:
        if monitor is not None and monitor.state.executor is not None:
            monitor.state.executor.close()

    logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
