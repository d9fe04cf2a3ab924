"""
graph.py — Force-Directed Graph Layout
=======================================
(GraphData, step, view) → SceneGraph of edges, node circles and labels
inside one zoomable container group.

Colouring:
    step == 0          → every node in the neutral "start" colour
    node.visited       → green
    node.current       → amber, thick amber outline
    otherwise          → grey

Positions come from a ForceSimulation.  The caller may hand one in via
`GraphView` so node positions (and any drag pins) survive re-renders;
without one a fresh simulation is seeded and settled, which keeps this
function pure.
"""

from dataclasses import dataclass, field
from typing import Optional

from layout.force import ForceSimulation
from layout.scene import (
    PALETTE,
    Circle,
    Frame,
    Group,
    Line,
    SceneGraph,
    Text,
    Transform,
)
from payload.types import GraphData, GraphNode, StructureKind

NODE_RADIUS = 20


@dataclass
class GraphView:
    """
    Attributes:
        simulation : Persistent physics state for this topology (optional).
        zoom       : Pan / zoom transform applied to the container group.
        pulse      : Node id to bounce once on this render (click feedback).
    """

    simulation: Optional[ForceSimulation] = None
    zoom:       Transform                 = field(default_factory=Transform)
    pulse:      Optional[str]             = None


def layout_graph(
    data: GraphData,
    step: int,
    frame: Optional[Frame] = None,
    view: Optional[GraphView] = None,
) -> SceneGraph:
    frame = frame or Frame.from_config()
    view = view or GraphView()
    if not data.nodes:
        return SceneGraph.empty(frame, kind=StructureKind.GRAPH)

    sim = view.simulation
    if sim is None:
        sim = ForceSimulation.for_graph(data, frame)
    sim.run()
    pos = sim.positions()

    scene = SceneGraph(kind=StructureKind.GRAPH, frame=frame, zoomable=True)
    container = scene.add(Group(css_class="graph-container-group", transform=view.zoom))

    links = container.add(Group(css_class="links"))
    for edge in data.edges:
        x1, y1 = pos[edge.source]
        x2, y2 = pos[edge.target]
        links.add(Line(
            x1, y1, x2, y2,
            stroke=PALETTE.graph_edge, stroke_width=2,
            css_class="link", data_id=f"{edge.source}->{edge.target}",
        ))

    circles = container.add(Group(css_class="nodes"))
    labels = container.add(Group(css_class="labels"))
    for node in data.nodes:
        x, y = pos[node.id]
        state, fill = node_colour(node, step)
        circles.add(Circle(
            cx=x, cy=y, r=NODE_RADIUS,
            fill=fill,
            stroke=PALETTE.graph_current if node.current else PALETTE.graph_stroke,
            stroke_width=6 if node.current else 3,
            css_class="node",
            state=state,
            data_id=node.id,
            title=_tooltip(node),
            pulse=node.id == view.pulse,
        ))
        labels.add(Text(
            x=x, y=y, text=node.id, dy="5", fill=PALETTE.light_text,
            weight="bold", css_class="node-label", data_id=node.id,
        ))

    container.add(Text(
        x=10, y=20, anchor="start", fill=PALETTE.text, css_class="step-info",
        text=f"Step {step + 1} | Nodes: {len(data.nodes)} | Edges: {len(data.edges)}",
    ))

    scene.flags.update(nodes=len(data.nodes), edges=len(data.edges), ticks=sim.ticks)
    return scene


def node_colour(node: GraphNode, step: int):
    """(state name, fill) for a node at this step."""
    if step == 0:
        return "start", PALETTE.graph_start
    if node.visited:
        return "visited", PALETTE.graph_visited
    if node.current:
        return "current", PALETTE.graph_current
    return "default", PALETTE.graph_default


def _tooltip(node: GraphNode) -> str:
    neighbours = ", ".join(node.neighbors) if node.neighbors else "None"
    visited = "Yes" if node.visited else "No"
    return f"{node.id}\nVisited: {visited}\nNeighbors: {neighbours}"
