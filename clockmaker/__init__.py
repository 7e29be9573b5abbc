"""clockmaker: single-shot and repeating timers with pluggable schedulers.

This package provides the Timer state machine, the Timers collection, the
host scheduling primitives timers run on, and configuration and logging
helpers for running timers declared in a YAML file.
"""

from clockmaker.clockmaker_config import (
    ClockmakerConfig,
    LoggingConfig,
    SchedulerConfig,
    TimerDefinition,
    TimerOptions,
)
from clockmaker.config_manager import ConfigManager, ConfigValidationError
from clockmaker.logging_config import configure_logging
from clockmaker.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    ScheduledCall,
    Scheduler,
    ThreadingScheduler,
    create_scheduler,
    get_default_scheduler,
    set_default_scheduler,
)
from clockmaker.timer import Timer, TimerState
from clockmaker.timers import Timers, resolve_callable

__all__ = [
    "AsyncioScheduler",
    "ClockmakerConfig",
    "ConfigManager",
    "ConfigValidationError",
    "LoggingConfig",
    "ManualScheduler",
    "ScheduledCall",
    "Scheduler",
    "SchedulerConfig",
    "ThreadingScheduler",
    "Timer",
    "TimerDefinition",
    "TimerOptions",
    "TimerState",
    "Timers",
    "configure_logging",
    "create_scheduler",
    "get_default_scheduler",
    "resolve_callable",
    "set_default_scheduler",
]
