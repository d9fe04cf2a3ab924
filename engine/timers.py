"""
timers.py — Repeating Timer Handles
====================================
The playback controller never touches threading directly.  It asks a
timer factory for a handle and later cancels that handle:

    handle = factory(interval_ms, callback)   # callback(handle) per tick
    handle.cancel()

The default factory runs each timer on its own daemon thread.  Tests
inject a fake factory that fires ticks by hand and counts creations /
cancellations.

Cancellation only sets a flag and never joins, so it is safe to cancel
from inside the timer's own callback or while holding a lock the
callback also wants.
"""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[["RepeatingTimer"], None]


class RepeatingTimer(threading.Thread):
    def __init__(self, interval_ms: int, callback: TickCallback):
        super().__init__(name=f"playback-timer-{interval_ms}ms", daemon=True)
        self.interval_ms = interval_ms
        self._callback = callback
        self._cancelled = threading.Event()

    def run(self) -> None:
        interval = self.interval_ms / 1000.0
        while not self._cancelled.wait(interval):
            try:
                self._callback(self)
            except Exception:
                logger.exception("playback tick failed; stopping timer")
                self._cancelled.set()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def active(self) -> bool:
        return not self._cancelled.is_set()


def thread_timer_factory(interval_ms: int, callback: TickCallback) -> RepeatingTimer:
    timer = RepeatingTimer(interval_ms, callback)
    timer.start()
    return timer


TimerFactory = Callable[[int, TickCallback], "RepeatingTimer"]
