"""Tick schedulers - Drive an effect's update at a fixed rate.

Two implementations share one interface:

    IntervalScheduler - wall-clock ticks on a background thread
    ManualScheduler   - ticks fired explicitly (tests, simulations)

Both treat cancellation as a token checked before every tick, so once
``cancel()`` returns no further callback is invoked.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TickScheduler(ABC):
    """Abstract base class for tick schedulers."""

    @abstractmethod
    def start(self, callback: Callable[[], object], interval: float) -> None:
        """
        Begin invoking ``callback`` every ``interval`` seconds.

        Args:
            callback: Tick handler
            interval: Seconds between ticks
        """
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Stop ticking. No callback runs after this returns."""
        pass

    @property
    @abstractmethod
    def active(self) -> bool:
        """Whether ticks are currently scheduled."""
        pass


class IntervalScheduler(TickScheduler):
    """Fires ticks from a daemon thread at a fixed wall-clock interval."""

    def __init__(self, name: str = "autotune-tick"):
        self.name = name
        self._thread: Optional[threading.Thread] = None
        self._cancelled = threading.Event()
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive() and not self._cancelled.is_set()

    def start(self, callback: Callable[[], object], interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval}")

        with self._lock:
            if self.active:
                return
            cancelled = threading.Event()
            self._cancelled = cancelled
            self._thread = threading.Thread(
                target=self._run,
                args=(callback, interval, cancelled),
                name=self.name,
                daemon=True,
            )
            self._thread.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancelled.set()
            thread = self._thread
            self._thread = None

        # A tick that cancels its own scheduler cannot join itself; the
        # loop sees the token as soon as the tick returns.
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _run(
        self,
        callback: Callable[[], object],
        interval: float,
        cancelled: threading.Event,
    ) -> None:
        while not cancelled.wait(interval):
            try:
                callback()
            except Exception:
                logger.exception("Tick callback raised; continuing")


class ManualScheduler(TickScheduler):
    """Scheduler whose ticks are fired by calling ``advance``."""

    def __init__(self):
        self._callback: Optional[Callable[[], object]] = None
        self.interval: Optional[float] = None
        self.ticks_fired = 0

    @property
    def active(self) -> bool:
        return self._callback is not None

    def start(self, callback: Callable[[], object], interval: float) -> None:
        if self._callback is None:
            self._callback = callback
            self.interval = interval

    def cancel(self) -> None:
        self._callback = None

    def advance(self, ticks: int = 1) -> int:
        """
        Fire up to ``ticks`` ticks.

        Returns:
            Number of ticks actually fired (fewer if cancelled mid-way)
        """
        fired = 0
        for _ in range(ticks):
            callback = self._callback
            if callback is None:
                break
            callback()
            fired += 1
            self.ticks_fired += 1
        return fired
