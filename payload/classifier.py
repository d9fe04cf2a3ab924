"""
classifier.py — Structure Classifier & Validating Parse
========================================================
Turns an untrusted `VisualizationPayload` into exactly one closed
structure variant.

Rule order (first match wins):
    1. Known tag (array / graph / tree / linkedlist) is used directly,
       except for the graph ↔ linkedlist ambiguity: a mapping with a
       `nodes` key is always a linked list, and a `linkedlist` tag on
       anything else is re-derived from shape.
    2. No / unknown tag, mapping with a `nodes` key  → LINKED_LIST
    3. No / unknown tag, ordered sequence           → ARRAY
    4. Anything else                                → NONE

Nothing in this module raises for a bad payload.  Problems become an
`Unrenderable` carrying a reason string, and get logged.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from payload.types import (
    ArrayData,
    GraphData,
    GraphEdge,
    GraphNode,
    LinkedListData,
    ListConnection,
    ListNode,
    Structure,
    StructureKind,
    TreeData,
    Unrenderable,
    VisualizationPayload,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
def classify(payload: Any) -> StructureKind:
    payload = VisualizationPayload.from_dict(payload)
    data = payload.data
    declared = StructureKind.from_tag(payload.kind)

    if declared is StructureKind.GRAPH and _has_nodes_key(data):
        logger.debug("graph tag on a nodes/connections blob, treating as linked list")
        return StructureKind.LINKED_LIST
    if declared is StructureKind.LINKED_LIST and not _has_nodes_key(data):
        logger.debug("linkedlist tag without a nodes key, re-deriving from shape")
        declared = None
    if declared is not None:
        return declared

    if payload.kind is not None:
        logger.info("unrecognised visualization type %r, auto-detecting", payload.kind)
    if _has_nodes_key(data):
        return StructureKind.LINKED_LIST
    if isinstance(data, (list, tuple)):
        return StructureKind.ARRAY
    return StructureKind.NONE


def parse_structure(payload: Any) -> Structure:
    """Classify, then build the closed variant for that kind."""
    payload = VisualizationPayload.from_dict(payload)
    kind = classify(payload)
    parser = _PARSERS.get(kind)
    if parser is None:
        return Unrenderable("no drawable structure in payload")
    structure = parser(payload)
    if isinstance(structure, Unrenderable):
        logger.warning("payload classified as %s but unrenderable: %s",
                       kind.value, structure.reason)
    return structure


def kind_of(structure: Structure) -> StructureKind:
    """Which kind a closed variant belongs to."""
    for kind, cls in _VARIANTS.items():
        if isinstance(structure, cls):
            return kind
    return StructureKind.NONE


# ---------------------------------------------------------------------------
# Per-kind parsers
# ---------------------------------------------------------------------------
def _parse_array(payload: VisualizationPayload) -> Structure:
    values = _numbers(payload.data)
    if values is None:
        return Unrenderable("array data must be a sequence of numbers")
    return ArrayData(values=values)


def _parse_tree(payload: VisualizationPayload) -> Structure:
    values = _numbers(payload.data)
    if values is None:
        return Unrenderable("tree data must be a flat level-order sequence of numbers")
    return TreeData(values=values)


def _parse_graph(payload: VisualizationPayload) -> Structure:
    data = payload.data
    visited = set(payload.visited)
    current = payload.current

    if isinstance(data, (list, tuple)):
        return _graph_from_sequence(data, visited, current)
    if isinstance(data, dict):
        return _graph_from_adjacency(data, visited, current)
    return Unrenderable("graph data must be a node list or an adjacency mapping")


def _graph_from_sequence(items, visited, current) -> GraphData:
    """Node-list form: edges join consecutive entries."""
    order: List[str] = []
    flags: Dict[str, Tuple[bool, bool]] = {}
    for item in items:
        if isinstance(item, dict):
            if item.get("id") is None:
                continue
            nid = str(item["id"])
            flags[nid] = (bool(item.get("visited")), bool(item.get("current")))
        elif item is None:
            continue
        else:
            nid = str(item)
        order.append(nid)

    seen: List[str] = []
    for nid in order:
        if nid not in seen:
            seen.append(nid)

    edges = [
        GraphEdge(source=a, target=b)
        for a, b in zip(order, order[1:])
    ]
    neighbours: Dict[str, List[str]] = {nid: [] for nid in seen}
    for e in edges:
        neighbours[e.source].append(e.target)

    nodes = tuple(
        GraphNode(
            id=nid,
            visited=flags.get(nid, (False, False))[0] or nid in visited,
            current=flags.get(nid, (False, False))[1] or nid == current,
            neighbors=tuple(neighbours[nid]),
        )
        for nid in seen
    )
    return GraphData(nodes=nodes, edges=tuple(edges), sequential=True)


def _graph_from_adjacency(mapping: Dict[Any, Any], visited, current) -> GraphData:
    """
    Adjacency form.  A value is either a neighbour list or an object
    `{"neighbors": [...], "visited": bool, "current": bool}`.
    Neighbours are matched against declared ids as strings; unknown
    neighbours are dropped.
    """
    declared = [str(k) for k in mapping.keys()]
    declared_set = set(declared)

    nodes: List[GraphNode] = []
    edges: List[GraphEdge] = []
    dropped = 0
    for key, value in mapping.items():
        nid = str(key)
        is_visited = nid in visited
        is_current = nid == current
        if isinstance(value, dict):
            is_visited = is_visited or bool(value.get("visited"))
            is_current = is_current or bool(value.get("current"))
            value = value.get("neighbors", value.get("neighbours", []))
        if not isinstance(value, (list, tuple)):
            value = []

        kept: List[str] = []
        for nb in value:
            nb_id = str(nb)
            if nb_id not in declared_set:
                dropped += 1
                continue
            kept.append(nb_id)
            edges.append(GraphEdge(source=nid, target=nb_id))
        nodes.append(GraphNode(
            id=nid,
            visited=is_visited,
            current=is_current,
            neighbors=tuple(kept),
        ))

    if dropped:
        logger.debug("dropped %d edge(s) to undeclared nodes", dropped)
    return GraphData(nodes=tuple(nodes), edges=tuple(edges), dropped=dropped)


def _parse_linked_list(payload: VisualizationPayload) -> Structure:
    data = payload.data
    if not isinstance(data, dict) or not isinstance(data.get("nodes"), (list, tuple)):
        return Unrenderable("linked list data must contain a nodes list")

    nodes: List[ListNode] = []
    for i, raw in enumerate(data["nodes"]):
        if isinstance(raw, dict):
            nid = raw.get("id")
            nodes.append(ListNode(
                id=str(nid) if nid is not None else f"node{i + 1}",
                value=raw.get("value", ""),
            ))
        else:
            nodes.append(ListNode(id=f"node{i + 1}", value=raw))

    connections: List[ListConnection] = []
    raw_conns = data.get("connections") or []
    if isinstance(raw_conns, (list, tuple)):
        for c in raw_conns:
            if not isinstance(c, dict) or c.get("from") is None or c.get("to") is None:
                continue
            connections.append(ListConnection(source=str(c["from"]), target=str(c["to"])))

    meta = data.get("meta") if isinstance(data.get("meta"), dict) else {}
    head = data.get("head")
    tail = data.get("tail")
    return LinkedListData(
        nodes=tuple(nodes),
        connections=tuple(connections),
        head=str(head) if head is not None else None,
        tail=str(tail) if tail is not None else None,
        algorithm=meta.get("algorithm") if isinstance(meta.get("algorithm"), str) else None,
    )


_PARSERS = {
    StructureKind.ARRAY:       _parse_array,
    StructureKind.GRAPH:       _parse_graph,
    StructureKind.LINKED_LIST: _parse_linked_list,
    StructureKind.TREE:        _parse_tree,
}

_VARIANTS = {
    StructureKind.ARRAY:       ArrayData,
    StructureKind.GRAPH:       GraphData,
    StructureKind.LINKED_LIST: LinkedListData,
    StructureKind.TREE:        TreeData,
}


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------
def _has_nodes_key(data: Any) -> bool:
    return isinstance(data, dict) and "nodes" in data


def _numbers(data: Any) -> Optional[Tuple[float, ...]]:
    if not isinstance(data, (list, tuple)):
        return None
    out = []
    for item in data:
        num = _as_number(item)
        if num is None:
            return None
        out.append(num)
    return tuple(out)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            num = float(value.strip())
        except ValueError:
            return None
        if not math.isfinite(num):
            return None
        return int(num) if num.is_integer() else num
    return None
