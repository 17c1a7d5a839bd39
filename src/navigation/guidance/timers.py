# timers.py
# Cooperative single-threaded timer queue.
# The guidance engine registers its periodic work here; the owner drives the
# loop with run() / run_for(), tests drive it with a fake clock.

import heapq
import logging
import time
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...


class MonotonicClock:
    """Wall-clock implementation backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class TimerHandle:
    """Returned by TimerQueue.call_*; cancel() is safe to call repeatedly."""

    __slots__ = ["name", "interval", "callback", "due", "cancelled"]

    def __init__(self, name: str, interval: Optional[float], callback: Callable[[], None], due: float) -> None:
        self.name = name
        self.interval = interval          # None for one-shot timers
        self.callback = callback
        self.due = due
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else f"due={self.due:.2f}"
        return f"<TimerHandle {self.name} {state}>"


class TimerQueue:
    """
    Min-heap of pending timers keyed on due time.

    Usage:
        timers = TimerQueue()
        handle = timers.call_every(5.0, poll, name="position-poll")
        timers.run(until=lambda: not nav.is_active)
        handle.cancel()

    Args:
        clock: Time source; defaults to MonotonicClock().
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock = clock or MonotonicClock()
        self._heap: list = []
        self._counter = 0

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "timer") -> TimerHandle:
        handle = TimerHandle(name, None, callback, self.clock.now() + delay)
        self._push(handle)
        return handle

    def call_every(self, interval: float, callback: Callable[[], None], name: str = "timer") -> TimerHandle:
        """Fire callback every `interval` seconds, first time one interval from now."""
        if interval <= 0:
            raise ValueError(f"Timer interval must be positive, got {interval}")
        handle = TimerHandle(name, interval, callback, self.clock.now() + interval)
        self._push(handle)
        return handle

    def _push(self, handle: TimerHandle) -> None:
        self._counter += 1
        heapq.heappush(self._heap, (handle.due, self._counter, handle))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def active_count(self) -> int:
        return sum(1 for _, _, h in self._heap if not h.cancelled)

    def next_due(self) -> Optional[float]:
        self._drop_cancelled()
        return self._heap[0][0] if self._heap else None

    def _drop_cancelled(self) -> None:
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)

    # ------------------------------------------------------------------
    # Driving the loop
    # ------------------------------------------------------------------

    def run_pending(self) -> int:
        """
        Fire every timer that is due now.

        All due timers are collected first; a timer cancelled by an earlier
        callback in the same batch does not fire.

        Returns:
            Number of callbacks actually invoked.
        """
        now = self.clock.now()
        batch: List[TimerHandle] = []
        while self._heap and self._heap[0][0] <= now:
            _, _, handle = heapq.heappop(self._heap)
            if not handle.cancelled:
                batch.append(handle)

        fired = 0
        for handle in batch:
            if handle.cancelled:
                continue
            if handle.interval is not None:
                handle.due += handle.interval
                # never schedule into the past if the loop fell behind
                if handle.due <= now:
                    handle.due = now + handle.interval
                self._push(handle)
            try:
                handle.callback()
            except Exception:
                logger.exception(f"Timer '{handle.name}' callback failed.")
            fired += 1
        return fired

    def run_for(self, seconds: float) -> None:
        """Run the loop until `seconds` of clock time have passed."""
        end = self.clock.now() + seconds
        while True:
            self.run_pending()
            now = self.clock.now()
            if now >= end:
                return
            due = self.next_due()
            wake = end if due is None else min(due, end)
            self.clock.sleep(wake - now)

    def run(self, until: Optional[Callable[[], bool]] = None, idle_sleep: float = 0.1) -> None:
        """
        Run the loop until `until()` is true or no timers remain.

        Args:
            until:      Stop condition checked after every batch.
            idle_sleep: Upper bound for a single sleep so `until` is polled.
        """
        while True:
            self.run_pending()
            if until is not None and until():
                return
            due = self.next_due()
            if due is None:
                return
            self.clock.sleep(min(max(0.0, due - self.clock.now()), idle_sleep))
