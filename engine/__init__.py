"""
engine/
-------
Playback, narration and the per-visitor session.

    from engine import VisualizerSession, PlaybackController, BrowserNarrator
"""

from engine.narration import BrowserNarrator, NarrationError, Narrator, NullNarrator, Utterance
from engine.playback  import PlaybackController, PlaybackState, PlaybackStatus
from engine.session   import PLAYBACK_ACTIONS, VisualizerSession
from engine.timers    import RepeatingTimer, thread_timer_factory

__all__ = [
    "PlaybackController",
    "PlaybackState",
    "PlaybackStatus",
    "Narrator",
    "NullNarrator",
    "BrowserNarrator",
    "NarrationError",
    "Utterance",
    "RepeatingTimer",
    "thread_timer_factory",
    "VisualizerSession",
    "PLAYBACK_ACTIONS",
]
