"""dagguard: a directed acyclic graph container that refuses cycles."""

from dagguard.config import DagguardConfig, GraphSettings, LoggingSettings
from dagguard.graph import (
    CycleDetectedError,
    DanglingReferenceError,
    Graph,
    GraphError,
    GraphValidator,
    Node,
    SortOutcome,
    TopologicalSort,
    ValidationReport,
    kahn_sort,
)

__version__ = "0.1.0"

__all__ = [
    "CycleDetectedError",
    "DagguardConfig",
    "DanglingReferenceError",
    "Graph",
    "GraphError",
    "GraphSettings",
    "GraphValidator",
    "LoggingSettings",
    "Node",
    "SortOutcome",
    "TopologicalSort",
    "ValidationReport",
    "kahn_sort",
]
