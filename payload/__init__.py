"""
payload/
--------
Data layer.  Public API:

    from payload import AlgorithmData, AlgorithmStep, VisualizationPayload
    from payload import classify, parse_structure, StructureKind
"""

from payload.types import (
    AlgorithmData,
    AlgorithmStep,
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
from payload.classifier import classify, parse_structure, kind_of

__all__ = [
    "AlgorithmData",  "AlgorithmStep",  "VisualizationPayload",
    "ArrayData",      "GraphData",      "GraphNode",  "GraphEdge",
    "LinkedListData", "ListNode",       "ListConnection",
    "TreeData",       "Unrenderable",   "Structure",  "StructureKind",
    "classify",       "parse_structure", "kind_of",
]
