"""Graph module: nodes, the acyclic Graph container and Kahn's sort.

The Graph rejects any insertion that would leave it unsortable, so a
successfully built Graph always has a valid topological order.
"""

from dagguard.graph.dag import CycleDetectedError, DanglingReferenceError, Graph, GraphError
from dagguard.graph.node import Node
from dagguard.graph.toposort import SortOutcome, TopologicalSort, kahn_sort
from dagguard.graph.validator import GraphValidator, ValidationReport

__all__ = [
    "CycleDetectedError",
    "DanglingReferenceError",
    "Graph",
    "GraphError",
    "GraphValidator",
    "Node",
    "SortOutcome",
    "TopologicalSort",
    "ValidationReport",
    "kahn_sort",
]
