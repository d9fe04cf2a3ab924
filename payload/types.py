"""
types.py — Algorithm Data & Visualization Payload
===================================================
Everything the translator hands us, and everything the classifier turns
it into.

Two layers live here:

  1. The LOOSE layer — `AlgorithmData`, `AlgorithmStep`,
     `VisualizationPayload`.  These mirror the JSON the language model
     returns and tolerate missing / mistyped fields.  `payload.data` is
     kept exactly as received (an untyped blob).

  2. The CLOSED layer — `ArrayData`, `GraphData`, `LinkedListData`,
     `TreeData`, `Unrenderable`.  Produced once by
     `payload.classifier.parse_structure()`; the layout engines only
     ever see one of these.

Design decisions:
  - Every closed variant is a frozen dataclass.  Layout engines are
    pure readers; nothing downstream mutates a payload.
  - `AlgorithmStep.index` is the step number the generator claimed.
    It is advisory only; position in `AlgorithmData.steps` is what
    playback navigates by.
  - `StructureKind.NONE` is a real member so "nothing to draw" flows
    through the same code paths as everything else.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


# ---------------------------------------------------------------------------
# Structure kinds — the four drawable shapes plus "nothing"
# ---------------------------------------------------------------------------
class StructureKind(Enum):
    ARRAY       = "array"
    GRAPH       = "graph"
    LINKED_LIST = "linkedlist"
    TREE        = "tree"
    NONE        = "none"       # unclassifiable, renders an empty scene

    @classmethod
    def from_tag(cls, tag: Any) -> Optional["StructureKind"]:
        """Map a declared type tag to a kind; None for missing / unknown tags."""
        if not isinstance(tag, str):
            return None
        key = tag.strip().lower().replace("_", "").replace("-", "").replace(" ", "")
        for kind in cls:
            if kind is not cls.NONE and kind.value == key:
                return kind
        return None


# ---------------------------------------------------------------------------
# Loose layer
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AlgorithmStep:
    """
    Attributes:
        index       : Step number as claimed by the generator (advisory).
        description : One-line summary; this is what gets narrated.
        code        : Pseudocode snippet for the step.
        explanation : Longer "why" text for the steps panel.
    """

    index:       int = 0
    description: str = ""
    code:        str = ""
    explanation: str = ""

    @classmethod
    def from_dict(cls, raw: Any, position: int = 0) -> "AlgorithmStep":
        if not isinstance(raw, dict):
            return cls(index=position, description=_text(raw))
        index = raw.get("step", raw.get("index", position))
        try:
            index = int(index)
        except (TypeError, ValueError):
            index = position
        return cls(
            index=max(index, 0),
            description=_text(raw.get("description")),
            code=_text(raw.get("code")),
            explanation=_text(raw.get("explanation")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step":        self.index,
            "description": self.description,
            "code":        self.code,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class VisualizationPayload:
    """
    Attributes:
        kind    : Declared type tag ("array", "graph", …) or None.  Advisory.
        data    : The raw structure blob, untouched.
        visited : Optional graph-level list of visited node ids.
        current : Optional graph-level id of the current node.
    """

    kind:    Optional[str] = None
    data:    Any           = None
    visited: Tuple[str, ...] = ()
    current: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Any) -> "VisualizationPayload":
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, dict):
            return cls(kind=None, data=raw)
        kind = raw.get("type", raw.get("kind"))
        visited = raw.get("visited") or ()
        if not isinstance(visited, (list, tuple)):
            visited = ()
        current = raw.get("current")
        return cls(
            kind=kind if isinstance(kind, str) else None,
            data=raw.get("data"),
            visited=tuple(str(v) for v in visited),
            current=str(current) if current is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.kind, "data": self.data}
        if self.visited:
            out["visited"] = list(self.visited)
        if self.current is not None:
            out["current"] = self.current
        return out


@dataclass(frozen=True)
class AlgorithmData:
    name:             str                        = ""
    description:      str                        = ""
    steps:            Tuple[AlgorithmStep, ...]  = ()
    pseudocode:       str                        = ""
    time_complexity:  str                        = ""
    space_complexity: str                        = ""
    visualization:    VisualizationPayload       = field(default_factory=VisualizationPayload)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "AlgorithmData":
        """Build from the translator's JSON.  Missing fields default."""
        if not isinstance(raw, dict):
            raise ValueError("algorithm data must be a JSON object")
        steps_raw = raw.get("steps") or []
        if not isinstance(steps_raw, list):
            steps_raw = []
        return cls(
            name=_text(raw.get("name")),
            description=_text(raw.get("description")),
            steps=tuple(AlgorithmStep.from_dict(s, i) for i, s in enumerate(steps_raw)),
            pseudocode=_text(raw.get("pseudocode")),
            time_complexity=_text(raw.get("timeComplexity")),
            space_complexity=_text(raw.get("spaceComplexity")),
            visualization=VisualizationPayload.from_dict(raw.get("visualizationData")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name":              self.name,
            "description":       self.description,
            "steps":             [s.to_dict() for s in self.steps],
            "pseudocode":        self.pseudocode,
            "timeComplexity":    self.time_complexity,
            "spaceComplexity":   self.space_complexity,
            "visualizationData": self.visualization.to_dict(),
        }


# ---------------------------------------------------------------------------
# Closed layer — what the layout engines consume
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ArrayData:
    values: Tuple[float, ...] = ()


@dataclass(frozen=True)
class TreeData:
    values: Tuple[float, ...] = ()   # flat, level order


@dataclass(frozen=True)
class GraphNode:
    id:        str
    visited:   bool            = False
    current:   bool            = False
    neighbors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str


@dataclass(frozen=True)
class GraphData:
    """
    Attributes:
        nodes      : Declared nodes in declaration order.
        edges      : Only edges whose endpoints are both declared nodes.
        sequential : True when built from the node-list form.
        dropped    : Number of neighbour references that named unknown nodes.
    """

    nodes:      Tuple[GraphNode, ...] = ()
    edges:      Tuple[GraphEdge, ...] = ()
    sequential: bool                  = False
    dropped:    int                   = 0

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def signature(self) -> Tuple[Tuple[str, ...], Tuple[Tuple[str, str], ...]]:
        """Identity of the topology — used to decide if physics state can be kept."""
        return (
            tuple(self.node_ids()),
            tuple((e.source, e.target) for e in self.edges),
        )


@dataclass(frozen=True)
class ListNode:
    id:    str
    value: Any


@dataclass(frozen=True)
class ListConnection:
    source: str
    target: str


@dataclass(frozen=True)
class LinkedListData:
    nodes:       Tuple[ListNode, ...]       = ()
    connections: Tuple[ListConnection, ...] = ()
    head:        Optional[str]              = None
    tail:        Optional[str]              = None
    algorithm:   Optional[str]              = None   # meta.algorithm, caption only

    @property
    def is_circular(self) -> bool:
        """A declared connection runs from the tail back to the head."""
        if self.head is None or self.tail is None:
            return False
        return any(
            c.source == self.tail and c.target == self.head
            for c in self.connections
        )


@dataclass(frozen=True)
class Unrenderable:
    reason: str = ""


Structure = Union[ArrayData, GraphData, LinkedListData, TreeData, Unrenderable]


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------
def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
