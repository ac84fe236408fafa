"""
Timer scheduling for the callback-driven session loop.

Every delayed or periodic action in the coach (silence debounce, question
countdown, recognizer restart, playback polling) goes through a Scheduler so
that sessions can cancel everything they own and tests can drive time by hand.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger("scheduling")


class TimerHandle(ABC):
    """A pending callback that can be cancelled."""

    @abstractmethod
    def cancel(self) -> None:
        """Cancel the callback. Safe to call more than once."""

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        """True once cancelled (or, for one-shot timers, once fired)."""


class Scheduler(ABC):
    """Single-threaded timer service."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay seconds."""

    @abstractmethod
    def time(self) -> float:
        """Current monotonic time in seconds."""

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback every interval seconds until the handle is cancelled."""
        return _RepeatingTimer(self, interval, callback)


class _RepeatingTimer(TimerHandle):
    """Re-arms a one-shot timer after every tick."""

    def __init__(self, scheduler: Scheduler, interval: float, callback: Callable[[], None]):
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._current: Optional[TimerHandle] = scheduler.call_later(interval, self._tick)

    def _tick(self) -> None:
        if self._cancelled:
            return
        self._current = self._scheduler.call_later(self._interval, self._tick)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        if self._current is not None:
            self._current.cancel()
            self._current = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class _AsyncioTimer(TimerHandle):

    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.new_event_loop()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return _AsyncioTimer(self.loop.call_later(delay, self._guarded, callback))

    def time(self) -> float:
        return self.loop.time()

    @staticmethod
    def _guarded(callback: Callable[[], None]) -> None:
        # An exception escaping a timer would only reach the loop's default handler
        try:
            callback()
        except Exception:
            logger.exception("Timer callback %r failed", callback)
