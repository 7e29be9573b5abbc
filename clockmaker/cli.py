#!/usr/bin/env python3
"""clockmaker command-line runner.

Loads timers declared in a YAML configuration file, starts them on the
configured scheduler and runs until interrupted or until ``--duration``
seconds have elapsed.
"""

import argparse
import asyncio
import logging
import os
import sys
import threading
from typing import Optional

from clockmaker.config_manager import ConfigManager, ConfigValidationError
from clockmaker.logging_config import configure_logging
from clockmaker.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    ThreadingScheduler,
    create_scheduler,
)
from clockmaker.timers import Timers

logger = logging.getLogger("clockmaker.cli")


def run_threaded(
    timers: Timers, scheduler: ThreadingScheduler, duration: Optional[float] = None
):
    """Run timers on a ThreadingScheduler until interrupted or ``duration`` elapses."""
    stop_event = threading.Event()

    with scheduler.lock:
        timers.start()
    logger.info(f"Started {len(timers)} timers")

    try:
        stop_event.wait(duration)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        with scheduler.lock:
            timers.stop()
        scheduler.shutdown()
        logger.info("Timers stopped")


async def run_async(timers: Timers, duration: Optional[float] = None):
    """Run timers on the running asyncio loop until cancelled or ``duration`` elapses."""
    timers.start()
    logger.info(f"Started {len(timers)} timers")

    try:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    finally:
        timers.stop()
        logger.info("Timers stopped")


def run_simulated(timers: Timers, scheduler: ManualScheduler, duration: float):
    """Run timers on a virtual clock for ``duration`` seconds, without waiting."""
    timers.start()
    ran = scheduler.advance(duration * 1000)
    timers.stop()
    logger.info(f"Simulated {duration}s, {ran} ticks dispatched")


def main(argv: Optional[list[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="clockmaker",
        description="Run timers declared in a clockmaker configuration file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  clockmaker                           # Run config.yaml until Ctrl+C
  clockmaker --config timers.yaml      # Use custom config
  clockmaker --duration 60             # Stop after one minute
        """,
    )

    parser.add_argument(
        "--config",
        "-c",
        default="config.yaml",
        help="Configuration file path (default: config.yaml)",
    )

    parser.add_argument(
        "--duration",
        "-d",
        type=float,
        help="Stop after this many seconds (required for the manual scheduler)",
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    # Handler import paths resolve against the working directory
    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())

    try:
        config = ConfigManager(args.config).load_config()
        scheduler = create_scheduler(config.scheduler)
        timers = Timers.from_config(config, scheduler)
    except (ConfigValidationError, ValueError) as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    try:
        configure_logging(config.logging)
    except OSError as e:
        logger.error(f"Failed to configure logging: {e}")
        sys.exit(1)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if isinstance(scheduler, ManualScheduler):
        if args.duration is None:
            logger.error("The manual scheduler needs --duration")
            sys.exit(1)
        run_simulated(timers, scheduler, args.duration)
    elif isinstance(scheduler, AsyncioScheduler):
        try:
            asyncio.run(run_async(timers, args.duration))
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
    else:
        run_threaded(timers, scheduler, args.duration)


if __name__ == "__main__":
    main()
