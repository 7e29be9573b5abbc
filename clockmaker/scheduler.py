"""Host scheduling primitives for timers.

A Timer only needs two things from its environment: "run this callback once
after N milliseconds" and "cancel that". This module expresses that contract
as the ``Scheduler`` protocol and provides three hosts for it:

- ``ThreadingScheduler``: real time, one daemon thread per registration.
- ``AsyncioScheduler``: real time, on an asyncio event loop.
- ``ManualScheduler``: virtual time advanced explicitly, for tests and
  simulations.
"""

import asyncio
import heapq
import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from clockmaker.clockmaker_config import SchedulerConfig

logger = logging.getLogger(__name__)

# Upper bound on callbacks run by a single ManualScheduler.advance() call
MAX_CALLBACKS_PER_ADVANCE = 10000


@dataclass
class ScheduledCall:
    """A single pending delayed callback and its cancellation state."""

    when: float
    seq: int
    callback: Callable[[], Any]
    cancelled: bool = False
    native: Any = field(default=None, repr=False, compare=False)

    def __lt__(self, other):
        """Heap ordering: earliest due time first, then registration order."""
        if self.when != other.when:
            return self.when < other.when
        return self.seq < other.seq


@runtime_checkable
class Scheduler(Protocol):
    """Single-shot delayed callback facility used by Timer."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> ScheduledCall:
        ...

    def cancel(self, handle: ScheduledCall) -> None:
        ...


class ThreadingScheduler:
    """Runs callbacks on daemon ``threading.Timer`` threads.

    Every callback runs while holding ``lock``, so callbacks registered with
    the same scheduler never overlap. Code on other threads that drives
    timers (start/stop/synchronize) should hold the same lock.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self._seq = itertools.count()
        self._pending: dict[int, ScheduledCall] = {}

    def call_later(self, delay: float, callback: Callable[[], Any]) -> ScheduledCall:
        handle = ScheduledCall(
            when=time.monotonic() * 1000.0 + max(delay, 0),
            seq=next(self._seq),
            callback=callback,
        )

        def _fire():
            with self.lock:
                self._pending.pop(handle.seq, None)
                if handle.cancelled:
                    return
                callback()

        thread_timer = threading.Timer(max(delay, 0) / 1000.0, _fire)
        thread_timer.daemon = True
        thread_timer.name = f"clockmaker-{handle.seq}"
        handle.native = thread_timer

        with self.lock:
            self._pending[handle.seq] = handle
        thread_timer.start()
        return handle

    def cancel(self, handle: ScheduledCall) -> None:
        with self.lock:
            handle.cancelled = True
            self._pending.pop(handle.seq, None)
        if handle.native is not None:
            handle.native.cancel()

    def shutdown(self):
        """Cancel every pending callback."""
        with self.lock:
            pending = list(self._pending.values())
        for handle in pending:
            self.cancel(handle)
        logger.debug(f"ThreadingScheduler shut down, {len(pending)} callbacks cancelled")

    @property
    def pending_count(self) -> int:
        return len(self._pending)


class AsyncioScheduler:
    """Runs callbacks through ``loop.call_later`` on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """
        Args:
            loop: Event loop to register callbacks on. When omitted, the loop
                  running at registration time is used.
        """
        self._loop = loop
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> ScheduledCall:
        loop = self._loop or asyncio.get_running_loop()
        handle = ScheduledCall(
            when=loop.time() * 1000.0 + max(delay, 0),
            seq=next(self._seq),
            callback=callback,
        )

        def _fire():
            if handle.cancelled:
                return
            callback()

        handle.native = loop.call_later(max(delay, 0) / 1000.0, _fire)
        return handle

    def cancel(self, handle: ScheduledCall) -> None:
        handle.cancelled = True
        if handle.native is not None:
            handle.native.cancel()


class ManualScheduler:
    """Virtual clock in milliseconds, advanced only by ``advance()``.

    A callback is due once the clock reaches its due time. Due callbacks run
    in due-time order, ties broken by registration order, and callbacks
    registered while advancing run in the same call if they fall due.
    """

    def __init__(self, now: float = 0):
        self._now = now
        self._seq = itertools.count()
        self._queue: list[ScheduledCall] = []

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending_count(self) -> int:
        return sum(1 for call in self._queue if not call.cancelled)

    def call_later(self, delay: float, callback: Callable[[], Any]) -> ScheduledCall:
        handle = ScheduledCall(
            when=self._now + max(delay, 0), seq=next(self._seq), callback=callback
        )
        heapq.heappush(self._queue, handle)
        return handle

    def cancel(self, handle: ScheduledCall) -> None:
        handle.cancelled = True

    def advance(self, delta: float) -> int:
        """Move the clock forward by ``delta`` ms, running due callbacks.

        Returns:
            Number of callbacks run.

        Raises:
            ValueError: If delta is negative.
            RuntimeError: If more than MAX_CALLBACKS_PER_ADVANCE callbacks
                          fall due, which indicates a zero-delay loop.
        """
        if delta < 0:
            raise ValueError(f"Cannot move the clock backwards (delta={delta})")

        target = self._now + delta
        ran = 0
        while self._queue and self._queue[0].when <= target:
            if self._queue[0].cancelled:
                heapq.heappop(self._queue)
                continue
            # the due call stays queued so advancing again resumes it
            if ran >= MAX_CALLBACKS_PER_ADVANCE:
                raise RuntimeError(
                    f"Aborting after {ran} callbacks, possible infinite timer loop"
                )
            call = heapq.heappop(self._queue)
            self._now = call.when
            call.callback()
            ran += 1

        self._now = target
        return ran

    def run_pending(self) -> int:
        """Run callbacks already due without moving the clock."""
        return self.advance(0)


_default_scheduler: Optional[Scheduler] = None
_default_lock = threading.Lock()


def get_default_scheduler() -> Scheduler:
    """Return the process-wide scheduler, creating a ThreadingScheduler on first use."""
    global _default_scheduler
    with _default_lock:
        if _default_scheduler is None:
            _default_scheduler = ThreadingScheduler()
        return _default_scheduler


def set_default_scheduler(scheduler: Optional[Scheduler]):
    """Replace the process-wide scheduler. ``None`` resets to lazy creation."""
    global _default_scheduler
    with _default_lock:
        _default_scheduler = scheduler


def create_scheduler(config: SchedulerConfig) -> Scheduler:
    """Build the scheduler selected by a SchedulerConfig.

    Raises:
        ValueError: If the scheduler type is unknown.
    """
    if config.type == "threading":
        return ThreadingScheduler()
    elif config.type == "asyncio":
        return AsyncioScheduler()
    elif config.type == "manual":
        return ManualScheduler()
    raise ValueError(f"Unknown scheduler type: {config.type}")
