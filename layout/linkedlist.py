"""
linkedlist.py — Linked List Layout
===================================
(LinkedListData, step) → SceneGraph with:

  • one two-compartment box per node (Data | Next), left to right
  • an arrow per declared connection, pointer compartment → left edge
    of the successor
  • HEAD marker (with down arrow) above the head node, TAIL marker below
    the tail node
  • a "Circular" indicator when a connection runs tail → head
  • an "Array Representation" strip underneath, one cell per node in
    list order, coloured with the same step rule and tied to its node
    by a faint dashed connector

Box colouring follows the position in `nodes`, not the connections.
"""

from typing import Dict, Optional, Tuple

from layout.array import format_value
from layout.scene import (
    PALETTE,
    Frame,
    Group,
    Line,
    Rect,
    SceneGraph,
    StepRole,
    Text,
    Transform,
    step_role,
)
from payload.types import LinkedListData, StructureKind

BOX_HALF_W = 35
BOX_HALF_H = 25

CELL_W = 50
CELL_H = 30
CELL_SPACING = 60
STRIP_OFFSET = 80
BASE_ADDRESS = 1000
WORD_SIZE = 8

ARROW_MARKER = "arrowhead"
HEAD_MARKER = "head-arrow"


def layout_linked_list(data: LinkedListData, step: int, frame: Optional[Frame] = None) -> SceneGraph:
    frame = frame or Frame.from_config()
    scene = SceneGraph(kind=StructureKind.LINKED_LIST, frame=frame)
    scene.flags["circular"] = data.is_circular
    if not data.nodes:
        return scene

    inner_w = frame.inner_width
    inner_h = frame.inner_height
    g = scene.add(Group(css_class="linkedlist", transform=Transform(frame.left, frame.top)))

    spacing = inner_w / (len(data.nodes) + 1)
    y = inner_h / 2
    positions: Dict[str, Tuple[float, float]] = {}
    for i, node in enumerate(data.nodes):
        # first declaration wins when ids repeat
        positions.setdefault(node.id, ((i + 1) * spacing, y))

    # -- node boxes --
    boxes = g.add(Group(css_class="nodes"))
    for i, node in enumerate(data.nodes):
        role = step_role(i, step)
        x = (i + 1) * spacing
        box = boxes.add(Group(css_class="linkedlist-node", transform=Transform(x, y)))
        box.add(Rect(
            x=-BOX_HALF_W, y=-BOX_HALF_H, width=2 * BOX_HALF_W, height=2 * BOX_HALF_H, rx=8,
            fill=PALETTE.role_fill[role],
            stroke=PALETTE.role_stroke[role],
            stroke_width=4 if role is StepRole.CURRENT else 2,
            opacity=0.9,
            css_class="node-box",
            state=role.value,
            data_id=node.id,
        ))
        box.add(Rect(x=-30, y=-20, width=40, height=30, rx=4, fill=PALETTE.compartment,
                     stroke=PALETTE.muted, css_class="data-box"))
        box.add(Rect(x=15, y=-20, width=30, height=30, rx=4, fill=PALETTE.pointer_box,
                     stroke=PALETTE.muted, css_class="pointer-box"))
        box.add(Text(x=-10, y=-8, text="Data", size=8, fill=PALETTE.muted,
                     weight="bold", css_class="data-label"))
        box.add(Text(x=-10, y=5, text=format_value(node.value), size=14, fill="#333333",
                     weight="bold", css_class="node-value"))
        box.add(Text(x=30, y=-8, text="Next", size=8, fill=PALETTE.muted,
                     weight="bold", css_class="next-label"))
        box.add(Text(x=30, y=5, text=node.id, size=10, fill="#333333",
                     css_class="node-id"))

    # -- connection arrows --
    arrows = g.add(Group(css_class="arrows"))
    for conn in data.connections:
        start = positions.get(conn.source)
        end = positions.get(conn.target)
        if start is None or end is None:
            continue
        arrows.add(Line(
            start[0] + 30, start[1], end[0] - BOX_HALF_W, end[1],
            stroke=PALETTE.arrow, stroke_width=2, marker_end=ARROW_MARKER,
            css_class="linkedlist-arrow", data_id=f"{conn.source}->{conn.target}",
        ))
    if arrows.children:
        scene.markers[ARROW_MARKER] = PALETTE.arrow

    # -- head / tail markers --
    head = positions.get(data.head) if data.head is not None else None
    if head is not None:
        hx, hy = head
        g.add(Text(x=hx, y=hy - 40, text="HEAD", fill=PALETTE.head,
                   weight="bold", css_class="head-pointer"))
        g.add(Line(hx, hy - 30, hx, hy - 20, stroke=PALETTE.head, stroke_width=2,
                   marker_end=HEAD_MARKER, css_class="head-arrow"))
        scene.markers[HEAD_MARKER] = PALETTE.head
    tail = positions.get(data.tail) if data.tail is not None else None
    if tail is not None:
        tx, ty = tail
        g.add(Text(x=tx, y=ty + 50, text="TAIL", fill=PALETTE.tail,
                   weight="bold", css_class="tail-pointer"))

    _array_strip(g, data, step, inner_w, inner_h, spacing)

    algorithm = data.algorithm or "Linked List"
    g.add(Text(
        x=10, y=20, anchor="start", fill=PALETTE.text, css_class="step-info",
        text=f"Step {step + 1} | {algorithm} | Nodes: {len(data.nodes)}",
    ))
    if data.is_circular:
        g.add(Text(
            x=inner_w - 10, y=20, anchor="end", fill=PALETTE.circular,
            weight="bold", css_class="circular-indicator", text="↻ Circular",
        ))
    return scene


def memory_address(index: int) -> str:
    """Simulated storage address shown under each array cell."""
    return f"0x{BASE_ADDRESS + index * WORD_SIZE:X}"


def _array_strip(g: Group, data: LinkedListData, step: int,
                 inner_w: float, inner_h: float, spacing: float) -> None:
    top = inner_h / 2 + STRIP_OFFSET
    strip = g.add(Group(css_class="array-representation"))
    strip.add(Text(x=inner_w / 2, y=top - 20, text="Array Representation", size=14,
                   fill=PALETTE.text, weight="bold", css_class="array-title"))

    for i, node in enumerate(data.nodes):
        role = step_role(i, step)
        cell_x = (i + 1) * CELL_SPACING - CELL_W / 2
        strip.add(Rect(
            x=cell_x, y=top, width=CELL_W, height=CELL_H, rx=4,
            fill=PALETTE.role_fill[role],
            stroke=PALETTE.role_stroke[role],
            stroke_width=3 if role is StepRole.CURRENT else 2,
            css_class="array-box", state=role.value, data_id=node.id,
        ))
        strip.add(Text(x=cell_x + CELL_W / 2, y=top - 5, text=f"[{i}]", size=10,
                       fill=PALETTE.muted, css_class="array-index"))
        strip.add(Text(x=cell_x + CELL_W / 2, y=top + CELL_H / 2 + 3,
                       text=format_value(node.value), fill=PALETTE.light_text,
                       weight="bold", css_class="array-value"))
        strip.add(Text(x=cell_x + CELL_W / 2, y=top + CELL_H + 15, text=memory_address(i),
                       size=8, fill=PALETTE.muted, css_class="memory-address"))
        strip.add(Line(
            (i + 1) * spacing, inner_h / 2 + BOX_HALF_H,
            (i + 1) * CELL_SPACING, top + CELL_H / 2,
            stroke=PALETTE.connector, stroke_width=1, dasharray="3,3",
            css_class="connection-line",
        ))
