"""
layout/
-------
Layout engines: closed structure + step → SceneGraph.

    from layout import build_scene, GraphView, SceneGraph

LAYOUTS maps each StructureKind to its engine.  Adding a structure is:
write the engine, add one entry here.
"""

import logging
from typing import Callable, Dict, Optional

from layout.array import layout_array
from layout.force import ForceSimulation, SimNode
from layout.graph import GraphView, layout_graph
from layout.linkedlist import layout_linked_list
from layout.scene import (
    PALETTE,
    Circle,
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
from layout.tree import layout_tree
from payload.classifier import kind_of
from payload.types import Structure, StructureKind

logger = logging.getLogger(__name__)

LAYOUTS: Dict[StructureKind, Callable[..., SceneGraph]] = {
    StructureKind.ARRAY:       layout_array,
    StructureKind.LINKED_LIST: layout_linked_list,
    StructureKind.TREE:        layout_tree,
}


def build_scene(
    structure: Structure,
    step: int,
    frame: Optional[Frame] = None,
    graph_view: Optional[GraphView] = None,
) -> SceneGraph:
    """Dispatch to the engine for this structure; unrenderable → empty scene."""
    kind = kind_of(structure)
    if kind is StructureKind.GRAPH:
        return layout_graph(structure, step, frame, graph_view)
    engine = LAYOUTS.get(kind)
    if engine is None:
        logger.debug("nothing to lay out for %r", structure)
        return SceneGraph.empty(frame)
    return engine(structure, step, frame)


__all__ = [
    "build_scene",  "LAYOUTS",       "GraphView",
    "layout_array", "layout_graph",  "layout_linked_list", "layout_tree",
    "ForceSimulation", "SimNode",
    "SceneGraph",   "Frame",         "Transform", "StepRole", "step_role", "PALETTE",
    "Rect",         "Circle",        "Line",      "Text",     "Group",
]
