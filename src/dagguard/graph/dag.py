"""Acyclic graph container with transactional insertion.

This module provides the Graph class, an ordered mapping from unsigned 32-bit
identifiers to Nodes that refuses any insertion which would make the graph
unsortable. Every insertion is validated by a trial topological sort on a
copy of the mapping and committed only if that sort succeeds.
"""

from collections.abc import Iterable, Iterator
from typing import Generic, TypeVar

from dagguard.config import GraphSettings
from dagguard.graph.node import Node
from dagguard.graph.toposort import kahn_sort
from dagguard.log_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

MAX_NODE_ID = 2**32 - 1


class GraphError(Exception):
    """Base class for errors raised by graph mutations."""

    def __init__(self, message: str):
        """Initialize the exception with a descriptive message.

        Args:
            message: Description of the error
        """
        super().__init__(message)
        self.message = message


class CycleDetectedError(GraphError):
    """Raised when inserting a node would leave the graph unsortable.

    This covers genuine cycles (including self-dependencies and cycles
    reintroduced by overwriting a node) and, unless strict references are
    enabled, predecessors that name a node which does not exist.

    Attributes:
        node_id: Identifier of the rejected node
        blocked: Identifiers that could not be ordered in the candidate graph
    """

    def __init__(self, node_id: int, blocked: Iterable[int]):
        self.node_id = node_id
        self.blocked = list(blocked)
        blocked_str = ", ".join(str(b) for b in self.blocked)
        super().__init__(
            f"Cycle detected while adding node {node_id}: "
            f"unable to order nodes [{blocked_str}]",
        )


class DanglingReferenceError(GraphError):
    """Raised in strict mode when a node lists predecessors that do not exist.

    Attributes:
        node_id: Identifier of the rejected node
        missing: Referenced identifiers absent from the graph, ascending
    """

    def __init__(self, node_id: int, missing: Iterable[int]):
        self.node_id = node_id
        self.missing = sorted(set(missing))
        missing_str = ", ".join(str(m) for m in self.missing)
        super().__init__(
            f"Node {node_id} references undefined predecessors: [{missing_str}]",
        )


def _check_node_id(node_id: int, what: str = "Node id") -> None:
    if isinstance(node_id, bool) or not isinstance(node_id, int):
        msg = f"{what} must be an int, got {type(node_id).__name__}"
        raise ValueError(msg)
    if not 0 <= node_id <= MAX_NODE_ID:
        msg = f"{what} {node_id} is outside the unsigned 32-bit range"
        raise ValueError(msg)


class Graph(Generic[T]):
    """Directed acyclic graph of values keyed by integer identifiers.

    Nodes are iterated in ascending identifier order regardless of insertion
    order; this order also decides sort tie-breaks between independent nodes.

    Thread-safety:
        This class is NOT thread-safe. Mutations should come from a single
        owner; protect concurrent access with external synchronization
        (e.g., threading.Lock).

    Example:
        >>> graph = Graph()
        >>> graph.add_node(1, Node([], "fetch"))
        >>> graph.add_node(2, Node([1], "build"))
        >>> graph.sort()
        [1, 2]
        >>> graph.add_node(1, Node([2], "fetch"))  # Raises CycleDetectedError
    """

    def __init__(self, settings: GraphSettings | None = None):
        """Initialize an empty graph.

        Args:
            settings: Graph behaviour settings; defaults to GraphSettings()
        """
        self.settings = settings if settings is not None else GraphSettings()
        self._nodes: dict[int, Node[T]] = {}

    def add_node(self, node_id: int, node: Node[T]) -> Node[T] | None:
        """Insert or replace a node, rejecting the change if it creates a cycle.

        The candidate mapping is built and sorted on a copy; the live graph is
        only touched once that sort has succeeded.

        Args:
            node_id: Identifier of the node to insert or replace
            node: The node to store

        Returns:
            The node previously stored under node_id, or None

        Raises:
            CycleDetectedError: If the candidate graph cannot be sorted
            DanglingReferenceError: If strict references are enabled and the
                node names predecessors absent from the graph
            ValueError: If an identifier is not an unsigned 32-bit int
        """
        _check_node_id(node_id)
        for source in node.sources:
            _check_node_id(source, "Source id")

        candidate = dict(self._nodes)
        previous = candidate.get(node_id)
        candidate[node_id] = node

        if self.settings.strict_references:
            missing = [source for source in node.sources if source not in candidate]
            if missing:
                raise DanglingReferenceError(node_id, missing)

        outcome = kahn_sort({key: value.sources for key, value in candidate.items()})
        if not outcome.is_complete:
            raise CycleDetectedError(node_id, outcome.blocked)

        self._nodes[node_id] = node

        logger.debug(
            "node_added",
            node_id=node_id,
            sources=list(node.sources),
            replaced=previous is not None,
            node_count=len(self._nodes),
        )

        return previous

    def in_degree(self, node_id: int) -> int | None:
        """Return the number of predecessors recorded for node_id, or None."""
        node = self._nodes.get(node_id)
        if node is None:
            return None
        return node.sources_len()

    def sort(self) -> list[int] | None:
        """Return the node ids in a valid topological order.

        Returns:
            The ordering, or None if some node can never be ordered (a cycle
            or a predecessor that does not exist)
        """
        outcome = kahn_sort(self.sources_map())
        if not outcome.is_complete:
            return None
        return outcome.order

    def get(self, node_id: int) -> Node[T] | None:
        """Return the node stored under node_id, or None."""
        return self._nodes.get(node_id)

    def items(self) -> list[tuple[int, Node[T]]]:
        """Return (id, node) pairs in ascending id order."""
        return sorted(self._nodes.items())

    def sources_map(self) -> dict[int, tuple[int, ...]]:
        """Return a fresh id -> sources mapping in ascending id order."""
        return {node_id: node.sources for node_id, node in self.items()}

    def copy(self) -> "Graph[T]":
        """Create an independent graph holding the same nodes and settings.

        Nodes are immutable, so they are shared rather than duplicated.
        """
        new_graph: Graph[T] = Graph(self.settings)
        new_graph._nodes = dict(self._nodes)
        return new_graph

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._nodes))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return self._nodes == other._nodes

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Graph(nodes={len(self._nodes)})"
