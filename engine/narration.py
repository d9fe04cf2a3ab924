"""
narration.py — Narration Bridge
================================
The playback controller talks to speech through two calls only:

    narrator.speak(text)   # cancels whatever is still speaking first
    narrator.stop()

Implementations:
  • BrowserNarrator – speech happens in the page.  speak() publishes an
                      Utterance to an outbox; the page polls /api/frame,
                      sees a new `seq` and hands the text to
                      window.speechSynthesis (cancel() then speak()).
                      stop() publishes an inactive utterance, which the
                      page answers with speechSynthesis.cancel().
  • NullNarrator    – logs and does nothing else.

Design decisions:
  - Only one utterance exists at a time.  The outbox holds the latest
    one; publishing a new one supersedes the previous, so the page can
    never be asked to speak two things at once.
  - A backend that cannot speak raises NarrationError from speak().  The
    controller catches it, logs it and leaves PLAYING.
"""

import logging
import threading
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class NarrationError(RuntimeError):
    """The speech backend refused or failed to speak."""


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------
class Narrator:
    def speak(self, text: str) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        self.stop()

    @property
    def speaking(self) -> bool:
        return False


class NullNarrator(Narrator):
    def speak(self, text: str) -> None:
        logger.debug("narration (silent): %s", text)

    def stop(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Browser outbox
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Utterance:
    """
    Attributes:
        seq    : Increases on every speak() and stop(); the page acts on
                 each new value exactly once.
        text   : What to say ("" after stop()).
        active : False means "cancel and stay silent".
        rate   : speechSynthesis rate.
        volume : 0 when muted.
    """
    seq:    int
    text:   str   = ""
    active: bool  = False
    rate:   float = 1.0
    volume: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BrowserNarrator(Narrator):
    def __init__(self, rate: float = 1.0):
        self.rate:      float = rate
        self.muted:     bool  = False
        self.supported: bool  = True
        self._closed:   bool  = False
        self._lock = threading.Lock()
        self._current = Utterance(seq=0)

    def speak(self, text: str) -> None:
        with self._lock:
            if self._closed:
                raise NarrationError("narrator is closed")
            if not self.supported:
                raise NarrationError("speech synthesis is not available in this browser")
            self._current = Utterance(
                seq=self._current.seq + 1,
                text=text,
                active=True,
                rate=self.rate,
                volume=0.0 if self.muted else 1.0,
            )
            logger.debug("utterance %d queued (%d chars)", self._current.seq, len(text))

    def stop(self) -> None:
        with self._lock:
            if not self._current.active:
                return
            self._current = Utterance(seq=self._current.seq + 1, rate=self.rate)

    def finished(self, seq: int) -> None:
        """The page reports the utterance `seq` ended on its own."""
        with self._lock:
            if self._current.seq == seq and self._current.active:
                self._current = Utterance(seq=seq + 1, rate=self.rate)

    def mark_unsupported(self) -> None:
        """The page has no speechSynthesis; later speak() calls fail."""
        with self._lock:
            self.supported = False
        logger.warning("browser reported speech synthesis unavailable")

    def close(self) -> None:
        self.stop()
        with self._lock:
            self._closed = True

    @property
    def speaking(self) -> bool:
        return self._current.active

    def state(self) -> Utterance:
        return self._current

    def pending(self, since: Optional[int]) -> Optional[Dict[str, Any]]:
        """The current utterance if it is newer than `since`, else None."""
        current = self._current
        if since is not None and current.seq <= since:
            return None
        return current.to_dict()
