"""
session.py — One Visitor's Visualizer
======================================
Wires the pieces together for a single browser:

    PlaybackController ──on_step_change──▶ SceneRenderer.render(payload, step)
            │
            └── narrator (BrowserNarrator outbox, polled by the page)

The Flask app keeps one VisualizerSession per browser and only ever
talks to it; nothing in the routes touches the controller or renderer
directly.
"""

import logging
import threading
from typing import Any, Dict, Optional

from engine.narration import BrowserNarrator, NarrationError, Narrator
from engine.playback import PlaybackController, PlaybackStatus
from engine.timers import TimerFactory
from payload.types import AlgorithmData
from ui.canvas import SceneRenderer

logger = logging.getLogger(__name__)

PLAYBACK_ACTIONS = ("play", "pause", "next", "previous", "reset", "toggle")


class VisualizerSession:
    """
    Attributes:
        data         : The loaded AlgorithmData (None before the first load).
        controller   : Step playback state machine.
        renderer     : Stateful SVG renderer (keeps the graph simulation).
        narrator     : Speech capability shared by steps and the audio script.
        audio_script : Last generated whole-algorithm narration.
        frame_seq    : Increases on every render; the page skips frames it has.
    """

    def __init__(
        self,
        narrator: Optional[Narrator] = None,
        timer_factory: Optional[TimerFactory] = None,
        renderer: Optional[SceneRenderer] = None,
        speed_ms: Optional[int] = None,
    ):
        self.data:         Optional[AlgorithmData] = None
        self.narrator:     Narrator                = narrator or BrowserNarrator()
        self.renderer:     SceneRenderer           = renderer or SceneRenderer()
        self.audio_script: Optional[str]           = None
        self.frame_seq:    int                     = 0
        self._lock = threading.RLock()
        # one lock for session and controller: timer ticks render under it
        self.controller = PlaybackController(
            narrator=self.narrator,
            timer_factory=timer_factory,
            speed_ms=speed_ms,
            on_step_change=self._on_step_change,
            lock=self._lock,
        )

    # ------------------------------------------------------------------
    # Loading & rendering
    # ------------------------------------------------------------------
    def load(self, data: AlgorithmData) -> None:
        with self._lock:
            logger.info("loading %r (%d steps)", data.name or "unnamed algorithm", len(data.steps))
            self.renderer.reset()
            self.data = data
            self.audio_script = None
            self.controller.load(data.steps)

    @property
    def loaded(self) -> bool:
        return self.data is not None

    def render(self, step: Optional[int] = None) -> str:
        """Redraw the given step (default: the current one)."""
        with self._lock:
            if self.data is None:
                return ""
            if step is None:
                step = self.controller.current_step
            svg = self.renderer.render(self.data.visualization, step)
            self.frame_seq += 1
            return svg

    def _on_step_change(self, step: int) -> None:
        self.render(step)

    def frame(self, since: Optional[int] = None) -> Dict[str, Any]:
        """Everything the page needs for one poll."""
        with self._lock:
            state = self.controller.state()
            current = self.controller.current
            scene = self.renderer.last_scene
            out: Dict[str, Any] = {
                "loaded":    self.loaded,
                "frame":     self.frame_seq,
                "svg":       self.renderer.last_svg,
                "kind":      scene.kind.value if scene else None,
                "flags":     dict(scene.flags) if scene else {},
                "playback":  state.to_dict(),
                "step":      current.to_dict() if current else None,
                "utterance": None,
            }
            if isinstance(self.narrator, BrowserNarrator):
                out["utterance"] = self.narrator.pending(since)
            return out

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------
    def playback(self, action: str) -> Dict[str, Any]:
        if action not in PLAYBACK_ACTIONS:
            raise ValueError(f"unknown playback action {action!r}")
        with self._lock:
            getattr(self.controller, action)()
            return self.controller.state().to_dict()

    def goto(self, step: int) -> Dict[str, Any]:
        with self._lock:
            self.controller.goto(step)
            return self.controller.state().to_dict()

    def set_speed(self, speed_ms: int) -> Dict[str, Any]:
        with self._lock:
            self.controller.set_speed(speed_ms)
            return self.controller.state().to_dict()

    def speech_ended(self, seq: int) -> None:
        if isinstance(self.narrator, BrowserNarrator):
            self.narrator.finished(seq)

    def speech_unsupported(self) -> None:
        """The page has no speech API: stop auto-play, keep stepping silent."""
        with self._lock:
            if isinstance(self.narrator, BrowserNarrator):
                self.narrator.mark_unsupported()
            if self.controller.status is PlaybackStatus.PLAYING:
                self.controller.pause()

    # ------------------------------------------------------------------
    # Graph interaction (re-render after every change)
    # ------------------------------------------------------------------
    def drag(self, node_id: str, x: float, y: float) -> bool:
        with self._lock:
            moved = self.renderer.drag(node_id, x, y)
            if moved:
                self.render()
            return moved

    def release(self, node_id: str) -> bool:
        with self._lock:
            released = self.renderer.release(node_id)
            if released:
                self.render()
            return released

    def pulse(self, node_id: str) -> bool:
        with self._lock:
            pulsed = self.renderer.pulse(node_id)
            if pulsed:
                self.render()
            return pulsed

    def zoom(self, k: float, x: float = 0.0, y: float = 0.0) -> Dict[str, float]:
        with self._lock:
            t = self.renderer.set_zoom(k, x, y)
            self.render()
            return {"x": t.x, "y": t.y, "k": t.k}

    # ------------------------------------------------------------------
    # Whole-algorithm audio explanation
    # ------------------------------------------------------------------
    def play_script(self, script: Optional[str] = None) -> bool:
        """Speak the audio script.  Step playback is paused first."""
        with self._lock:
            text = script if script is not None else self.audio_script
            if not text:
                return False
            self.audio_script = text
            if self.controller.status is PlaybackStatus.PLAYING:
                self.controller.pause()
            try:
                self.narrator.speak(text)
            except NarrationError as exc:
                logger.warning("audio explanation could not be spoken: %s", exc)
                return False
            return True

    def set_audio_script(self, script: str) -> None:
        with self._lock:
            self.audio_script = script

    def stop_audio(self) -> None:
        with self._lock:
            try:
                self.narrator.stop()
            except NarrationError as exc:
                logger.warning("could not stop narration: %s", exc)

    # ------------------------------------------------------------------
    # Export & teardown
    # ------------------------------------------------------------------
    def export(self) -> Dict[str, Any]:
        """JSON-able snapshot of what the visitor is looking at."""
        with self._lock:
            sim = self.renderer.simulation
            zoom = self.renderer.zoom
            return {
                "algorithm":   self.data.to_dict() if self.data else None,
                "playback":    self.controller.state().to_dict(),
                "positions":   {k: [round(x, 2), round(y, 2)]
                                for k, (x, y) in sim.positions().items()} if sim else {},
                "zoom":        {"x": zoom.x, "y": zoom.y, "k": zoom.k},
                "audioScript": self.audio_script,
            }

    def dispose(self) -> None:
        with self._lock:
            self.controller.dispose()
            self.renderer.dispose()
            self.narrator.close()
            logger.debug("session disposed")
