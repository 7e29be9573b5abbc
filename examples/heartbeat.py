"""
Heartbeat handlers for the sample config.yaml.

Run from the repository root with:

    clockmaker --config config.yaml --duration 10
"""

import logging
from datetime import datetime

logger = logging.getLogger(__name__)


def beat(timer):
    """Log a heartbeat tick."""
    logger.info(
        f"HEARTBEAT_TICK #{timer.get_num_ticks()} at {datetime.now().isoformat()} "
        f"(interval {timer.get_delay()}ms)"
    )


def slow_check(timer, done):
    """Asynchronous check that finishes 250ms after it starts."""
    logger.info(f"Slow check #{timer.get_num_ticks()} started")

    def _finish():
        logger.info(f"Slow check #{timer.get_num_ticks()} finished")
        done()

    timer.scheduler.call_later(250, _finish)


def flaky(timer):
    """Fail on every third tick to exercise error routing."""
    if timer.get_num_ticks() % 3 == 0:
        raise RuntimeError(f"flaky tick #{timer.get_num_ticks()} failed")


def report_error(err):
    logger.error(f"Timer handler failed: {err}")
