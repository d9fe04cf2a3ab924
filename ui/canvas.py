"""
canvas.py — SVG Scene Renderer
===============================
Two layers:

  • render_scene(scene)   – pure: SceneGraph → SVG string.
  • SceneRenderer         – the stateful front door the session uses:
                            render(payload, step) classifies the payload,
                            lays it out and serialises it.

Design decisions:
  - Every render produces a complete, fresh SVG document.  Nothing from a
    previous call is patched or appended to, so two renders of the same
    (payload, step) are identical.
  - The only state SceneRenderer keeps between calls is the graph's
    ForceSimulation (positions + drag pins), the zoom transform and a
    one-shot pulse request.  A new topology stops the old simulation.
  - Render calls are serialised with a lock: the playback timer thread
    and request threads both end up here.
"""

import logging
import threading
from html import escape
from typing import Any, List, Optional

from config import Config
from layout import GraphView, build_scene
from layout.force import ForceSimulation
from layout.scene import (
    Circle,
    Frame,
    Group,
    Line,
    Rect,
    SceneGraph,
    Text,
    Transform,
    format_number,
)
from payload.classifier import parse_structure
from payload.types import GraphData, Structure

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Visual Config
# ---------------------------------------------------------------------------
class CanvasConfig:
    bg:            str = "#f9fafb"
    font_family:   str = "'DM Sans', sans-serif"
    empty_text:    str = "No visualization available for this algorithm"
    empty_color:   str = "#9ca3af"
    pulse_lift:    int = 20
    pulse_ms:      int = 1000


CONFIG = CanvasConfig()


# ---------------------------------------------------------------------------
# Main Render Function
# ---------------------------------------------------------------------------
def render_scene(scene: SceneGraph, config: CanvasConfig = CONFIG) -> str:
    """Serialise a SceneGraph to a standalone SVG string."""
    f = scene.frame
    parts: List[str] = [
        f'<svg width="{f.width}" height="{f.height}" viewBox="0 0 {f.width} {f.height}" '
        f'xmlns="http://www.w3.org/2000/svg" class="scene scene-{scene.kind.value}" '
        f'data-kind="{scene.kind.value}" data-zoomable="{str(scene.zoomable).lower()}" '
        f'font-family="{escape(config.font_family)}">',
        f'<rect class="background" width="{f.width}" height="{f.height}" fill="{config.bg}"/>',
    ]

    if scene.markers:
        parts.append("<defs>")
        for marker_id, colour in sorted(scene.markers.items()):
            parts.append(_render_marker(marker_id, colour))
        parts.append("</defs>")

    if scene.is_empty:
        parts.append(
            f'<text class="empty-message" x="{f.width / 2}" y="{f.height / 2}" '
            f'text-anchor="middle" font-size="14" fill="{config.empty_color}">'
            f'{escape(config.empty_text)}</text>'
        )

    for element in scene.root:
        parts.append(_render_element(element, config))

    parts.append("</svg>")
    return "\n".join(parts)


def _render_element(el: Any, config: CanvasConfig) -> str:
    if isinstance(el, Group):
        return _render_group(el, config)
    if isinstance(el, Rect):
        return _render_rect(el)
    if isinstance(el, Circle):
        return _render_circle(el, config)
    if isinstance(el, Line):
        return _render_line(el)
    if isinstance(el, Text):
        return _render_text(el)
    raise TypeError(f"unknown scene element {type(el).__name__}")


def _render_group(g: Group, config: CanvasConfig) -> str:
    attrs = _attrs(**{"class": g.css_class, "transform": str(g.transform) if g.transform else None})
    inner = "\n".join(_render_element(child, config) for child in g.children)
    return f"<g{attrs}>\n{inner}\n</g>" if inner else f"<g{attrs}/>"


def _render_rect(r: Rect) -> str:
    attrs = _attrs(**{
        "class": r.css_class, "data-id": r.data_id, "data-state": r.state,
        "x": r.x, "y": r.y, "width": r.width, "height": r.height,
        "rx": r.rx or None, "ry": r.rx or None,
        "fill": r.fill, "stroke": r.stroke, "stroke-width": r.stroke_width,
        "opacity": r.opacity if r.opacity != 1.0 else None,
    })
    return f"<rect{attrs}/>"


def _render_circle(c: Circle, config: CanvasConfig) -> str:
    attrs = _attrs(**{
        "class": c.css_class, "data-id": c.data_id, "data-state": c.state,
        "cx": c.cx, "cy": c.cy, "r": c.r,
        "fill": c.fill, "stroke": c.stroke, "stroke-width": c.stroke_width,
    })
    inner = []
    if c.title:
        inner.append(f"<title>{escape(c.title)}</title>")
    if c.pulse:
        lift = config.pulse_lift
        inner.append(
            f'<animateTransform attributeName="transform" type="translate" '
            f'values="0 0;0 -{lift};0 0" dur="{config.pulse_ms}ms" begin="0s" fill="freeze"/>'
        )
    if not inner:
        return f"<circle{attrs}/>"
    return f"<circle{attrs}>{''.join(inner)}</circle>"


def _render_line(l: Line) -> str:
    attrs = _attrs(**{
        "class": l.css_class, "data-id": l.data_id,
        "x1": l.x1, "y1": l.y1, "x2": l.x2, "y2": l.y2,
        "stroke": l.stroke, "stroke-width": l.stroke_width,
        "stroke-dasharray": l.dasharray,
        "marker-end": f"url(#{l.marker_end})" if l.marker_end else None,
    })
    return f"<line{attrs}/>"


def _render_text(t: Text) -> str:
    attrs = _attrs(**{
        "class": t.css_class, "data-id": t.data_id,
        "x": t.x, "y": t.y, "dy": t.dy,
        "text-anchor": t.anchor, "font-size": f"{t.size}px",
        "font-weight": t.weight if t.weight != "normal" else None,
        "fill": t.fill,
    })
    return f"<text{attrs}>{escape(t.text)}</text>"


def _render_marker(marker_id: str, colour: str) -> str:
    """Arrowhead pointing along the line direction."""
    return (
        f'<marker id="{escape(marker_id)}" viewBox="0 -5 10 10" refX="8" refY="0" '
        f'markerWidth="6" markerHeight="6" orient="auto">'
        f'<path d="M0,-5L10,0L0,5" fill="{colour}"/></marker>'
    )


def _attrs(**values: Any) -> str:
    out = []
    for key, value in values.items():
        if value is None or value == "":
            continue
        if isinstance(value, float):
            value = format_number(value)
        out.append(f' {key}="{escape(str(value))}"')
    return "".join(out)


# ---------------------------------------------------------------------------
# SceneRenderer — payload + step → SVG, with graph physics retained
# ---------------------------------------------------------------------------
class SceneRenderer:
    """
    Attributes:
        frame      : Canvas size and margins.
        zoom       : Current pan / zoom of the graph container.
        last_scene : SceneGraph from the latest render (None before the first).
        last_svg   : SVG string from the latest render.
        renders    : Number of completed render calls.
    """

    def __init__(self, frame: Optional[Frame] = None, config: CanvasConfig = CONFIG):
        self.frame:      Frame                = frame or Frame.from_config()
        self.config:     CanvasConfig         = config
        self.zoom:       Transform            = Transform()
        self.last_scene: Optional[SceneGraph] = None
        self.last_svg:   str                  = ""
        self.renders:    int                  = 0

        self._lock = threading.RLock()
        self._simulation: Optional[ForceSimulation] = None
        self._signature = None
        self._pulse: Optional[str] = None

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def render(self, payload: Any, step: int) -> str:
        with self._lock:
            structure = parse_structure(payload)
            scene = self.scene_for(structure, step)
            svg = render_scene(scene, self.config)
            self.last_scene = scene
            self.last_svg = svg
            self.renders += 1
            return svg

    def scene_for(self, structure: Structure, step: int) -> SceneGraph:
        with self._lock:
            view = None
            if isinstance(structure, GraphData):
                view = GraphView(
                    simulation=self._simulation_for(structure),
                    zoom=self.zoom,
                    pulse=self._pulse,
                )
                self._pulse = None
            else:
                self._drop_simulation()
            return build_scene(structure, step, self.frame, view)

    @property
    def simulation(self) -> Optional[ForceSimulation]:
        return self._simulation

    def _simulation_for(self, data: GraphData) -> Optional[ForceSimulation]:
        signature = data.signature()
        sim = self._simulation
        if sim is None or sim.stopped or signature != self._signature:
            self._drop_simulation()
            if data.nodes:
                self._simulation = ForceSimulation.for_graph(data, self.frame)
                self._signature = signature
                logger.debug("new force simulation for %d nodes", len(data.nodes))
        return self._simulation

    def _drop_simulation(self) -> None:
        if self._simulation is not None:
            self._simulation.stop()
        self._simulation = None
        self._signature = None

    # ------------------------------------------------------------------
    # Graph interaction
    # ------------------------------------------------------------------
    def drag(self, node_id: str, x: float, y: float) -> bool:
        with self._lock:
            sim = self._simulation
            return sim is not None and sim.drag(node_id, x, y)

    def release(self, node_id: str) -> bool:
        with self._lock:
            sim = self._simulation
            return sim is not None and sim.release(node_id)

    def pulse(self, node_id: str) -> bool:
        """Bounce a node on the next render.  Layout is untouched."""
        with self._lock:
            sim = self._simulation
            if sim is None or node_id not in sim.nodes:
                return False
            self._pulse = node_id
            return True

    def set_zoom(self, k: float, x: float = 0.0, y: float = 0.0) -> Transform:
        with self._lock:
            k = min(max(float(k), Config.zoom_min), Config.zoom_max)
            self.zoom = Transform(float(x), float(y), k)
            return self.zoom

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Forget everything tied to the current payload."""
        with self._lock:
            self._drop_simulation()
            self._pulse = None
            self.zoom = Transform()
            self.last_scene = None
            self.last_svg = ""

    dispose = reset
