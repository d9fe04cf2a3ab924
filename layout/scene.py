"""
scene.py — Scene Graph Primitives
==================================
The hand-off format between the layout engines and the SVG renderer.

A SceneGraph is a fully-resolved picture: every element already knows
its position, colour, stroke and label.  The renderer does no layout
and no colouring decisions; it only serialises.

Design decisions:
  - One small dataclass per primitive (Rect, Circle, Line, Text,
    Group).  Groups nest; everything else is a leaf.
  - `state` is a plain string ("current", "processed", "visited", …)
    carried alongside the colour so tests and the page can reason
    about meaning without decoding hex values.
  - Arrow markers are declared once per scene in `markers` (id → colour)
    instead of being appended next to every arrow.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union

from config import Config
from payload.types import StructureKind


# ---------------------------------------------------------------------------
# Step roles — the shared colouring rule
# ---------------------------------------------------------------------------
class StepRole(Enum):
    CURRENT   = "current"     # i == step
    PROCESSED = "processed"   # i <  step
    PENDING   = "pending"     # i >  step


def step_role(index: int, step: int) -> StepRole:
    if index == step:
        return StepRole.CURRENT
    if index < step:
        return StepRole.PROCESSED
    return StepRole.PENDING


# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------
class Palette:
    role_fill: Dict[StepRole, str] = {
        StepRole.CURRENT:   "#f59e0b",   # amber
        StepRole.PROCESSED: "#10b981",   # emerald
        StepRole.PENDING:   "#3b82f6",   # blue
    }
    role_stroke: Dict[StepRole, str] = {
        StepRole.CURRENT:   "#f59e0b",
        StepRole.PROCESSED: "#1e40af",
        StepRole.PENDING:   "#1e40af",
    }
    emphasis:      str = "#8b5cf6"    # current bar outline
    bar_stroke:    str = "#1f2937"

    # graph
    graph_start:   str = "#3b82f6"
    graph_visited: str = "#10b981"
    graph_current: str = "#f59e0b"
    graph_default: str = "#6b7280"
    graph_edge:    str = "#999999"
    graph_stroke:  str = "#ffffff"

    # linked list
    arrow:         str = "#666666"
    head:          str = "#ef4444"
    tail:          str = "#8b5cf6"
    compartment:   str = "#ffffff"
    pointer_box:   str = "#f8f9fa"
    connector:     str = "#cccccc"
    circular:      str = "#f59e0b"

    # tree
    tree_fill:     str = "#3b82f6"
    tree_stroke:   str = "#1e40af"

    text:          str = "#374151"
    muted:         str = "#666666"
    light_text:    str = "#ffffff"


PALETTE = Palette()


# ---------------------------------------------------------------------------
# Frame — canvas size & margins
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Frame:
    width:  int = 600
    height: int = 400
    top:    int = 20
    right:  int = 20
    bottom: int = 40
    left:   int = 40

    @classmethod
    def from_config(cls) -> "Frame":
        return cls(
            width=Config.canvas_width,
            height=Config.canvas_height,
            top=Config.margin_top,
            right=Config.margin_right,
            bottom=Config.margin_bottom,
            left=Config.margin_left,
        )

    @property
    def inner_width(self) -> float:
        return self.width - self.left - self.right

    @property
    def inner_height(self) -> float:
        return self.height - self.top - self.bottom


@dataclass(frozen=True)
class Transform:
    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def __str__(self) -> str:
        if self.k == 1.0:
            return f"translate({format_number(self.x)},{format_number(self.y)})"
        return f"translate({format_number(self.x)},{format_number(self.y)}) scale({format_number(self.k)})"


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------
@dataclass
class Rect:
    x:            float
    y:            float
    width:        float
    height:       float
    fill:         str            = "none"
    stroke:       str            = "none"
    stroke_width: float          = 1
    rx:           float          = 0
    opacity:      float          = 1.0
    css_class:    str            = ""
    state:        Optional[str]  = None
    data_id:      Optional[str]  = None


@dataclass
class Circle:
    cx:           float
    cy:           float
    r:            float
    fill:         str            = "none"
    stroke:       str            = "none"
    stroke_width: float          = 1
    css_class:    str            = ""
    state:        Optional[str]  = None
    data_id:      Optional[str]  = None
    title:        Optional[str]  = None
    pulse:        bool           = False   # one-shot bounce animation


@dataclass
class Line:
    x1:           float
    y1:           float
    x2:           float
    y2:           float
    stroke:       str            = "#000000"
    stroke_width: float          = 1
    dasharray:    Optional[str]  = None
    marker_end:   Optional[str]  = None    # marker id
    css_class:    str            = ""
    data_id:      Optional[str]  = None


@dataclass
class Text:
    x:          float
    y:          float
    text:       str
    size:       int            = 12
    fill:       str            = "#374151"
    anchor:     str            = "middle"
    weight:     str            = "normal"
    dy:         Optional[str]  = None
    css_class:  str            = ""
    data_id:    Optional[str]  = None


@dataclass
class Group:
    css_class: str                   = ""
    transform: Optional[Transform]   = None
    children:  List["Element"]       = field(default_factory=list)

    def add(self, element: "Element") -> "Element":
        self.children.append(element)
        return element


Element = Union[Rect, Circle, Line, Text, Group]


# ---------------------------------------------------------------------------
# SceneGraph
# ---------------------------------------------------------------------------
@dataclass
class SceneGraph:
    """
    Attributes:
        kind     : Which engine produced it (NONE for the empty scene).
        frame    : Canvas size the coordinates refer to.
        root     : Top-level elements, drawn in order.
        markers  : Arrowhead definitions, {marker_id: colour}.
        flags    : Engine-specific facts ("circular", "edges", …).
        zoomable : Whether the page should attach zoom / drag handlers.
    """

    kind:     StructureKind
    frame:    Frame
    root:     List[Element]       = field(default_factory=list)
    markers:  Dict[str, str]      = field(default_factory=dict)
    flags:    Dict[str, Any]      = field(default_factory=dict)
    zoomable: bool                = False

    @classmethod
    def empty(cls, frame: Optional[Frame] = None,
              kind: StructureKind = StructureKind.NONE) -> "SceneGraph":
        return cls(kind=kind, frame=frame or Frame.from_config())

    def add(self, element: Element) -> Element:
        self.root.append(element)
        return element

    def walk(self) -> Iterator[Element]:
        """Depth-first over every element, groups included."""
        stack = list(reversed(self.root))
        while stack:
            el = stack.pop()
            yield el
            if isinstance(el, Group):
                stack.extend(reversed(el.children))

    def find(self, css_class: str) -> List[Element]:
        return [el for el in self.walk() if el.css_class == css_class]

    def element_count(self) -> int:
        return sum(1 for el in self.walk() if not isinstance(el, Group))

    @property
    def is_empty(self) -> bool:
        return not self.root


def format_number(value: float) -> str:
    """Compact number formatting for SVG attributes."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")
