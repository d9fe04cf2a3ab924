"""
tree.py — Tree Row Layout
==========================
Minimal placeholder: the level-order values drawn as one row of circles.
Parent / child edges are not reconstructed and the step index does not
change colours; it is accepted only so every engine has the same call
shape.
"""

from typing import Optional

from layout.array import format_value
from layout.scene import PALETTE, Circle, Frame, Group, SceneGraph, Text, Transform
from payload.types import StructureKind, TreeData


def layout_tree(data: TreeData, step: int, frame: Optional[Frame] = None) -> SceneGraph:
    frame = frame or Frame.from_config()
    scene = SceneGraph(kind=StructureKind.TREE, frame=frame)
    if not data.values:
        return scene

    g = scene.add(Group(css_class="tree", transform=Transform(frame.left, frame.top)))
    spacing = frame.inner_width / (len(data.values) + 1)
    y = frame.inner_height / 2
    for i, value in enumerate(data.values):
        x = (i + 1) * spacing
        g.add(Circle(cx=x, cy=y, r=20, fill=PALETTE.tree_fill, stroke=PALETTE.tree_stroke,
                     stroke_width=2, css_class="tree-node", data_id=str(i)))
        g.add(Text(x=x, y=y, dy=".35em", text=format_value(value), fill=PALETTE.light_text,
                   css_class="tree-label"))
    return scene
