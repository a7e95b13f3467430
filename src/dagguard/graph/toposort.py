"""Topological sorting with Kahn's algorithm.

The sort operates on a plain ``id -> sources`` mapping so it can be shared by
the public ``Graph.sort`` query and the trial sort that guards insertion. It
never mutates its input: the remaining-predecessor bookkeeping lives in
locals built for each call.

Tie-breaks among independent nodes follow ascending identifier order, which
makes the output deterministic for a fixed input.
"""

from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from dagguard.log_config import get_logger

logger = get_logger(__name__)


@runtime_checkable
class TopologicalSort(Protocol):
    """Anything that can produce a topological order of its node ids."""

    def sort(self) -> list[int] | None:
        """Return a valid order, or None if the graph cannot be ordered."""
        ...


@dataclass
class SortOutcome:
    """Result of a single run of Kahn's algorithm.

    Attributes:
        order: Identifiers in emission order
        blocked: Identifiers that never reached zero remaining predecessors,
            in ascending order. Empty iff the sort is complete.
    """

    order: list[int] = field(default_factory=list)
    blocked: list[int] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """True when every node was emitted."""
        return not self.blocked


def kahn_sort(sources: Mapping[int, Sequence[int]]) -> SortOutcome:
    """Sort a graph given as a mapping from node id to predecessor ids.

    Nodes whose predecessor list is empty seed a FIFO queue in ascending id
    order. Each popped node is emitted and satisfies every occurrence of
    itself in the predecessor lists of its dependents. A dependent is enqueued
    once, the moment its last predecessor is satisfied. Predecessors that name
    no node in the mapping are never satisfied, which leaves their dependents
    blocked just like a cycle does.

    Duplicate predecessors are deliberately counted once: ``{1: [], 2: [1, 1]}``
    sorts to ``[1, 2]``. Removing a single occurrence per emitted predecessor
    would leave node 2 blocked forever even though the graph has no cycle.

    Args:
        sources: Mapping from node id to the ids that must precede it

    Returns:
        SortOutcome with the emitted order and any blocked ids

    Example:
        >>> kahn_sort({1: [], 2: [1], 3: [1], 4: [2, 3]}).order
        [1, 2, 3, 4]
        >>> kahn_sort({1: [2], 2: [1]}).blocked
        [1, 2]
    """
    node_ids = sorted(sources)

    # Remaining distinct predecessors per node, and the reverse edges.
    remaining: dict[int, int] = {}
    successors: dict[int, list[int]] = {node_id: [] for node_id in node_ids}
    for node_id in node_ids:
        distinct = set(sources[node_id])
        remaining[node_id] = len(distinct)
        for predecessor in distinct:
            if predecessor in successors:
                successors[predecessor].append(node_id)

    queue = deque(node_id for node_id in node_ids if remaining[node_id] == 0)
    seen: set[int] = set(queue)
    order: list[int] = []

    while queue:
        current = queue.popleft()
        order.append(current)

        # successors lists are built in ascending id order
        for dependent in successors[current]:
            remaining[dependent] -= 1
            if remaining[dependent] == 0 and dependent not in seen:
                seen.add(dependent)
                queue.append(dependent)

    blocked = [node_id for node_id in node_ids if node_id not in seen]

    if blocked:
        logger.debug(
            "topological_sort_blocked",
            node_count=len(node_ids),
            emitted_count=len(order),
            blocked=blocked,
        )
    else:
        logger.debug("topological_sort_complete", node_count=len(node_ids))

    return SortOutcome(order=order, blocked=blocked)
