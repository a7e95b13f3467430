"""Graph node record.

A node never references other nodes directly. Its edges are the identifiers
of its predecessors ("sources"), resolved through the owning Graph.
"""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Node(Generic[T]):
    """A unit of the graph: predecessor identifiers plus an opaque value.

    Attributes:
        sources: Identifiers of the nodes that must precede this one. Order is
            preserved; duplicates are allowed but discouraged.
        value: Arbitrary payload, never interpreted by the graph

    Example:
        >>> node = Node([1, 2], value="compile")
        >>> node.sources
        (1, 2)
        >>> node.sources_len()
        2
    """

    sources: tuple[int, ...] = field(default=())
    value: T | None = None

    def __post_init__(self) -> None:
        # Store an immutable snapshot so callers cannot edit a committed node
        object.__setattr__(self, "sources", tuple(self.sources))

    def sources_len(self) -> int:
        """Return the number of recorded predecessors, duplicates included."""
        return len(self.sources)
