"""Manage a collection of Timer objects as a single unit."""

import importlib
import logging
from typing import Any, Callable, Iterator, Mapping, Optional, Union

from clockmaker.clockmaker_config import ClockmakerConfig, TimerOptions
from clockmaker.config_manager import ConfigValidationError
from clockmaker.scheduler import Scheduler, get_default_scheduler
from clockmaker.timer import Timer

logger = logging.getLogger(__name__)


def resolve_callable(path: str) -> Callable[..., Any]:
    """Import ``package.module:attribute`` and return the attribute.

    Dotted attributes after the colon are followed, so ``mod:Class.method``
    works too.

    Raises:
        ConfigValidationError: If the path is malformed, cannot be imported
                               or does not name a callable.
    """
    module_name, sep, attr_path = path.partition(":")
    if not sep or not module_name or not attr_path:
        raise ConfigValidationError(
            "Expected an import path of the form 'module:attribute'", path
        )

    try:
        target = importlib.import_module(module_name)
        for attr in attr_path.split("."):
            target = getattr(target, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigValidationError(f"Cannot resolve handler: {e}", path)

    if not callable(target):
        raise ConfigValidationError("Resolved object is not callable", path)
    return target


class Timers:
    """An ordered group of timers started and stopped together."""

    def __init__(self, scheduler: Optional[Scheduler] = None):
        """
        Args:
            scheduler: Scheduler used by timers created through ``create()``.
                       Defaults to the process-wide scheduler.
        """
        self._scheduler = scheduler or get_default_scheduler()
        self._timers: list[Timer] = []

    def __len__(self):
        return len(self._timers)

    def __iter__(self) -> Iterator[Timer]:
        return iter(list(self._timers))

    def create(
        self,
        handler: Callable[..., Any],
        delay: float,
        options: Union[TimerOptions, Mapping[str, Any], None] = None,
        **kwargs,
    ) -> Timer:
        """Create a new timer and add it to this collection.

        Takes the same arguments as ``Timer``.

        Returns:
            Timer: The new timer, not yet started.
        """
        timer = Timer(handler, delay, options, scheduler=self._scheduler, **kwargs)
        self._timers.append(timer)
        return timer

    def add(self, timer: Timer) -> "Timers":
        """Add an existing timer to this collection."""
        self._timers.append(timer)
        return self

    def start(self) -> "Timers":
        """Start all the timers, in the order they were added."""
        for timer in self._timers:
            timer.start()
        logger.debug(f"Started {len(self._timers)} timers")
        return self

    def stop(self) -> "Timers":
        """Stop all the timers, in the order they were added."""
        for timer in self._timers:
            timer.stop()
        logger.debug(f"Stopped {len(self._timers)} timers")
        return self

    @classmethod
    def from_config(
        cls, config: ClockmakerConfig, scheduler: Optional[Scheduler] = None
    ) -> "Timers":
        """Build a collection from the timer definitions of a configuration.

        Args:
            config: Loaded configuration.
            scheduler: Scheduler for the created timers.

        Returns:
            Timers: Collection holding one stopped timer per definition.

        Raises:
            ConfigValidationError: If a handler path cannot be resolved.
        """
        timers = cls(scheduler)
        for definition in config.timers:
            on_error = (
                resolve_callable(definition.on_error) if definition.on_error else None
            )
            timers.create(
                resolve_callable(definition.handler),
                definition.delay,
                repeat=definition.repeat,
                async_=definition.async_,
                on_error=on_error,
            )
            schedule = "every" if definition.repeat else "once after"
            logger.info(
                f"Configured timer '{definition.name}' -> {definition.handler} "
                f"({schedule} {definition.delay}ms)"
            )
        return timers
