"""
playback.py — Step Playback Controller
=======================================
The PlaybackController is the ONLY object that moves the current step.
The page's buttons, the auto-play timer and the session all go through
it; listeners (the renderer) hear about every committed change.

State machine:
    STOPPED  →  play()                    →  PLAYING
    PLAYING  →  pause()                   →  PAUSED
    PAUSED   →  play()                    →  PLAYING
    PLAYING  →  next() at the last step   →  STOPPED   (auto-stop, no loop)
    any      →  reset()                   →  STOPPED, step 0

Design decisions:
  - One owned timer handle at most.  Only _start_timer() creates one and
    only _cancel_timer() drops it; every path out of PLAYING goes through
    _halt(), which cancels the timer and stops narration.
  - A tick from a handle that is no longer ours is ignored.  Cancelling a
    thread timer cannot stop a callback that is already running, so the
    identity check is what keeps a stale tick from moving the step.
  - Narration for a new step is started before listeners re-render, and
    every speak() is preceded by stop(), whatever the Narrator backend.
  - set_speed() while PLAYING restarts the timer with the new interval.
  - Every transition holds an RLock; listeners run under it too, so two
    step changes can never interleave their renders.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from config import Config
from engine.narration import NarrationError, Narrator, NullNarrator
from engine.timers import TimerFactory, thread_timer_factory
from payload.types import AlgorithmStep

logger = logging.getLogger(__name__)

StepListener = Callable[[int], None]


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------
class PlaybackStatus(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED  = "paused"


@dataclass(frozen=True)
class PlaybackState:
    status:       PlaybackStatus
    current_step: int
    speed_ms:     int
    total_steps:  int

    @property
    def is_playing(self) -> bool:
        return self.status is PlaybackStatus.PLAYING

    @property
    def at_end(self) -> bool:
        return self.total_steps > 0 and self.current_step >= self.total_steps - 1

    def to_dict(self) -> dict:
        return {
            "status":      self.status.value,
            "currentStep": self.current_step,
            "speedMs":     self.speed_ms,
            "totalSteps":  self.total_steps,
        }


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------
class PlaybackController:
    """
    Attributes:
        status       : Current PlaybackStatus.
        current_step : Index into `steps` being shown.
        speed_ms     : Interval between auto-play ticks.
        steps        : The loaded algorithm steps.
    """

    def __init__(
        self,
        narrator: Optional[Narrator] = None,
        timer_factory: Optional[TimerFactory] = None,
        speed_ms: Optional[int] = None,
        on_step_change: Optional[StepListener] = None,
        lock: Optional[threading.RLock] = None,
    ):
        self.narrator:      Narrator            = narrator or NullNarrator()
        self.status:        PlaybackStatus      = PlaybackStatus.STOPPED
        self.current_step:  int                 = 0
        self.speed_ms:      int                 = _checked_speed(speed_ms or Config.default_speed_ms)
        self.steps:         List[AlgorithmStep] = []

        self._timer_factory = timer_factory or thread_timer_factory
        self._timer = None
        self._listeners: List[StepListener] = []
        self._disposed = False
        self._lock = lock or threading.RLock()

        if on_step_change is not None:
            self._listeners.append(on_step_change)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def load(self, steps: Sequence[AlgorithmStep]) -> None:
        """Replace the step list, stop everything and show step 0."""
        with self._lock:
            self._ensure_alive()
            self._halt(PlaybackStatus.STOPPED)
            self.steps = list(steps)
            self.current_step = 0
            self._notify(0)

    def dispose(self) -> None:
        """Cancel the timer, silence narration and refuse further work."""
        with self._lock:
            if self._disposed:
                return
            self._halt(PlaybackStatus.STOPPED)
            self._listeners.clear()
            self._disposed = True
            logger.debug("playback controller disposed")

    def add_listener(self, listener: StepListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Play / Pause
    # ------------------------------------------------------------------
    def play(self) -> None:
        with self._lock:
            self._ensure_alive()
            if not self.steps or self.status is PlaybackStatus.PLAYING:
                return
            if self.current_step >= self.last_index and not self._commit(0):
                self.status = PlaybackStatus.PAUSED
                return
            self.status = PlaybackStatus.PLAYING
            self._start_timer()

    def pause(self) -> None:
        with self._lock:
            self._ensure_alive()
            self._halt(PlaybackStatus.PAUSED if self.steps else PlaybackStatus.STOPPED)

    def toggle(self) -> None:
        with self._lock:
            if self.status is PlaybackStatus.PLAYING:
                self.pause()
            else:
                self.play()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def next(self) -> bool:
        """Advance one step.  At the last step while playing, auto-stop."""
        with self._lock:
            self._ensure_alive()
            return self._advance()

    def previous(self) -> bool:
        with self._lock:
            self._ensure_alive()
            if self.current_step <= 0:
                return False
            self._commit(self.current_step - 1)
            return True

    def goto(self, index: int) -> bool:
        """Jump to any step (the steps list).  Playback status is kept."""
        with self._lock:
            self._ensure_alive()
            index = int(index)
            if not 0 <= index < len(self.steps):
                raise ValueError(f"step {index} out of range 0..{self.last_index}")
            if index == self.current_step:
                return False
            self._commit(index)
            return True

    def reset(self) -> None:
        with self._lock:
            self._ensure_alive()
            self._halt(PlaybackStatus.STOPPED)
            if not self.steps:
                self.current_step = 0
                return
            if self.current_step == 0:
                self._narrate(0)
            else:
                self._commit(0)

    # ------------------------------------------------------------------
    # Speed
    # ------------------------------------------------------------------
    def set_speed(self, speed_ms: int) -> None:
        with self._lock:
            self._ensure_alive()
            self.speed_ms = _checked_speed(speed_ms)
            if self.status is PlaybackStatus.PLAYING:
                self._cancel_timer()
                self._start_timer()

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def last_index(self) -> int:
        return max(len(self.steps) - 1, 0)

    @property
    def current(self) -> Optional[AlgorithmStep]:
        if 0 <= self.current_step < len(self.steps):
            return self.steps[self.current_step]
        return None

    @property
    def timer_active(self) -> bool:
        return self._timer is not None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def state(self) -> PlaybackState:
        with self._lock:
            return PlaybackState(self.status, self.current_step, self.speed_ms, len(self.steps))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _advance(self) -> bool:
        if self.current_step < self.last_index:
            self._commit(self.current_step + 1)
            return True
        if self.status is PlaybackStatus.PLAYING:
            logger.debug("reached last step %d; stopping", self.current_step)
            self._halt(PlaybackStatus.STOPPED)
        return False

    def _commit(self, index: int) -> bool:
        """Narrate, then move, then tell listeners.  False if narration failed."""
        if index == self.current_step:
            return True
        spoken = self._narrate(index)
        self.current_step = index
        self._notify(index)
        return spoken

    def _narrate(self, index: int) -> bool:
        text = self.steps[index].description if 0 <= index < len(self.steps) else ""
        try:
            self.narrator.stop()
            if text:
                self.narrator.speak(text)
        except NarrationError as exc:
            logger.warning("narration failed at step %d: %s", index, exc)
            if self.status is PlaybackStatus.PLAYING:
                self._cancel_timer()
                self.status = PlaybackStatus.PAUSED
            return False
        return True

    def _notify(self, index: int) -> None:
        for listener in list(self._listeners):
            listener(index)

    def _halt(self, status: PlaybackStatus) -> None:
        self._cancel_timer()
        try:
            self.narrator.stop()
        except NarrationError as exc:
            logger.warning("could not stop narration: %s", exc)
        self.status = status

    def _start_timer(self) -> None:
        self._cancel_timer()
        self._timer = self._timer_factory(self.speed_ms, self._on_tick)
        logger.debug("timer started at %d ms", self.speed_ms)

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    def _on_tick(self, handle) -> None:
        with self._lock:
            if handle is not self._timer or self.status is not PlaybackStatus.PLAYING:
                return
            self._advance()

    def _ensure_alive(self) -> None:
        if self._disposed:
            raise RuntimeError("playback controller has been disposed")


def _checked_speed(speed_ms) -> int:
    speed = int(speed_ms)
    if speed <= 0:
        raise ValueError(f"speed must be a positive number of milliseconds, got {speed_ms!r}")
    return speed
