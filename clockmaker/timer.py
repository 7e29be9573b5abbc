"""Single-shot and repeating timers.

A Timer invokes a handler after a delay, optionally repeating until stopped.
Handlers are either synchronous (the tick ends when the handler returns) or
asynchronous (the tick ends when the handler calls the completion callback
it is given). Handler errors never escape the Timer: they are passed to the
``on_error`` callback when one is configured and discarded otherwise.
"""

import logging
from enum import Enum
from numbers import Real
from typing import Any, Callable, Mapping, Optional, Union

from clockmaker.clockmaker_config import TimerOptions
from clockmaker.scheduler import ScheduledCall, Scheduler, get_default_scheduler

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    """Timer running states."""

    STOPPED = "stopped"
    STARTED = "started"


def _coerce_delay(delay) -> float:
    if isinstance(delay, bool) or not isinstance(delay, Real):
        raise TypeError(f"Timer delay must be a number, got {type(delay).__name__}")
    if delay < 0:
        logger.warning(f"Negative timer delay {delay} treated as 0")
        return 0
    return delay


class _Completion:
    """Completion callback handed to asynchronous handlers.

    Resolves its tick on the first call; later calls are ignored.
    """

    def __init__(self, timer: "Timer", tick: int):
        self._timer = timer
        self._tick = tick
        self.called = False

    def __call__(self, err: Any = None):
        if self.called:
            logger.warning(
                f"Completion callback for tick #{self._tick} of {self._timer!r} "
                "called more than once, ignoring"
            )
            return
        self.called = True
        self._timer._after_tick(err)


class Timer:
    """Invoke a handler after a delay, once or repeatedly.

    The handler receives the Timer as its argument, preceded by the context
    object when ``this_obj`` is given, and followed by a completion callback
    when the timer is asynchronous::

        handler(timer)                      # default
        handler(this_obj, timer)            # this_obj set
        handler(timer, done)                # async_=True
        handler(this_obj, timer, done)      # both

    Mutating operations return the Timer so calls can be chained::

        Timer(poll, 1000, repeat=True).set_delay(500).start()
    """

    def __init__(
        self,
        handler: Callable[..., Any],
        delay: float,
        options: Union[TimerOptions, Mapping[str, Any], None] = None,
        scheduler: Optional[Scheduler] = None,
        **kwargs,
    ):
        """Construct a new stopped timer.

        Args:
            handler: Callable invoked on each tick.
            delay: Delay in milliseconds before each tick.
            options: TimerOptions or a mapping with ``this_obj``, ``repeat``,
                     ``async``/``async_`` and ``on_error`` entries.
            scheduler: Host scheduler. Defaults to the process-wide scheduler.
            **kwargs: Individual options overriding ``options``.

        Raises:
            TypeError: If delay is not a number.
            pydantic.ValidationError: If an option is unknown or invalid.
        """
        resolved = TimerOptions.resolve(options, **kwargs)

        self._fn = handler
        self._delay = _coerce_delay(delay)
        self._fn_this = resolved.this_obj
        self._repeat = resolved.repeat
        self._async = resolved.async_
        self._on_error = resolved.on_error
        self._scheduler = scheduler or get_default_scheduler()

        self._state = TimerState.STOPPED
        self._timer_handle: Optional[ScheduledCall] = None
        self._run_count = 0
        self._in_flight = False

    def __repr__(self):
        name = getattr(self._fn, "__name__", repr(self._fn))
        return (
            f"<Timer {name} delay={self._delay} repeat={self._repeat} "
            f"async={self._async} state={self._state.value}>"
        )

    @property
    def handler(self) -> Callable[..., Any]:
        return self._fn

    @property
    def handler_context(self) -> Any:
        """The object the handler is bound to: ``this_obj`` or the handler itself."""
        return self._fn if self._fn_this is None else self._fn_this

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def _schedule_next_tick(self):
        if self._state is TimerState.STOPPED:
            return

        # the in-flight tick reschedules itself once it resolves
        if self._in_flight:
            return

        # one-shot timers stop after their first tick
        if self._run_count > 0 and not self._repeat:
            self._state = TimerState.STOPPED
            logger.debug(f"{self!r} completed after {self._run_count} tick(s)")
            return

        if self._timer_handle is not None:
            return

        self._timer_handle = self._scheduler.call_later(self._delay, self._do_tick)

    def _invoke(self, *args):
        if self._fn_this is None:
            return self._fn(self, *args)
        return self._fn(self._fn_this, self, *args)

    def _do_tick(self):
        self._timer_handle = None
        self._run_count += 1
        self._in_flight = True
        logger.debug(f"{self!r} tick #{self._run_count}")

        completion = _Completion(self, self._run_count) if self._async else None
        try:
            if completion is not None:
                self._invoke(completion)
            else:
                self._invoke()
        except Exception as err:
            if completion is None:
                self._after_tick(err)
            elif completion.called:
                # tick already resolved, report the error without rescheduling
                self._route_error(err)
            else:
                completion(err)
            return

        if completion is None:
            self._after_tick()

    def _after_tick(self, err: Any = None):
        self._in_flight = False
        if err is not None:
            self._route_error(err)
        self._schedule_next_tick()

    def _route_error(self, err: Any):
        if self._on_error is not None:
            self._on_error(err)
        else:
            logger.debug(f"{self!r} discarded handler error: {err!r}")

    def _cancel_pending(self):
        if self._timer_handle is not None:
            self._scheduler.cancel(self._timer_handle)
            self._timer_handle = None

    def start(self) -> "Timer":
        """Start the timer. Does nothing if it is already started.

        The first tick happens ``delay`` ms after this call.
        """
        if self._state is TimerState.STARTED:
            return self

        self._state = TimerState.STARTED
        self._schedule_next_tick()
        return self

    def synchronize(self) -> "Timer":
        """Re-synchronise the tick schedule so the next tick is ``delay`` ms from now."""
        self._cancel_pending()
        self._schedule_next_tick()
        return self

    def stop(self) -> "Timer":
        """Stop the timer, cancelling the pending tick if there is one."""
        self._cancel_pending()
        self._state = TimerState.STOPPED
        return self

    def set_delay(self, delay: float) -> "Timer":
        """Set the delay in milliseconds, effective from the next scheduled tick."""
        self._delay = _coerce_delay(delay)
        return self

    def get_delay(self) -> float:
        return self._delay

    def get_num_ticks(self) -> int:
        """Get the number of ticks dispatched so far."""
        return self._run_count

    def is_stopped(self) -> bool:
        return self._state is TimerState.STOPPED

    def get_stats(self) -> dict[str, Any]:
        """Get timer statistics.

        Returns:
            Dictionary with timer state, configuration and tick count
        """
        return {
            "state": self._state.value,
            "delay": self._delay,
            "tick_count": self._run_count,
            "repeat": self._repeat,
            "async": self._async,
            "pending": self._timer_handle is not None,
            "in_flight": self._in_flight,
        }
