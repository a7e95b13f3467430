"""Graph diagnostics with cycle path reporting.

``Graph.sort`` and ``add_node`` only say *that* a graph cannot be ordered.
This module explains *why*: which cycles exist, which predecessors are
undefined, which nodes are stuck behind one of those without being on a cycle,
and which nodes list the same predecessor more than once. It works on plain
``id -> sources`` mappings so a batch can be checked before it is loaded into
a Graph.
"""

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field

from dagguard.graph.dag import Graph
from dagguard.graph.toposort import kahn_sort
from dagguard.log_config import get_logger

logger = get_logger(__name__)

SourcesMapping = Mapping[int, Sequence[int]]


@dataclass
class ValidationReport:
    """Report containing validation results for a graph.

    Attributes:
        is_valid: Whether the graph can be topologically sorted
        errors: List of error messages (critical issues)
        warnings: List of warning messages (potential issues)
        cycles: Detected cycles; each id depends on the next, and the first
            id is repeated at the end
        missing_refs: Ids referenced as predecessors but not defined
        blocked_nodes: Ids that cannot be ordered without being on a cycle
        duplicate_sources: Node id -> predecessor ids listed more than once
    """

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cycles: list[list[int]] = field(default_factory=list)
    missing_refs: set[int] = field(default_factory=set)
    blocked_nodes: set[int] = field(default_factory=set)
    duplicate_sources: dict[int, list[int]] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        """Add an error message and mark validation as failed."""
        self.errors.append(message)
        self.is_valid = False
        logger.debug("validation_error", message=message)

    def add_warning(self, message: str) -> None:
        """Add a warning message without failing validation."""
        self.warnings.append(message)
        logger.debug("validation_warning", message=message)

    def summary(self) -> str:
        """Generate a human-readable summary of the validation report."""
        lines = [
            f"Validation Status: {'PASS' if self.is_valid else 'FAIL'}",
            f"Errors: {len(self.errors)}",
            f"Warnings: {len(self.warnings)}",
            f"Cycles: {len(self.cycles)}",
            f"Missing References: {len(self.missing_refs)}",
            f"Blocked Nodes: {len(self.blocked_nodes)}",
        ]

        if self.errors:
            lines.append("\nErrors:")
            lines.extend(f"  - {error}" for error in self.errors)

        if self.warnings:
            lines.append("\nWarnings:")
            lines.extend(f"  - {warning}" for warning in self.warnings)

        if self.cycles:
            lines.append("\nCycles Detected:")
            for i, cycle in enumerate(self.cycles, 1):
                lines.append(f"  {i}. {_join_ids(cycle, ' -> ')}")

        if self.missing_refs:
            lines.append(f"\nMissing References: {_join_ids(sorted(self.missing_refs))}")

        if self.blocked_nodes:
            lines.append(f"\nBlocked Nodes: {_join_ids(sorted(self.blocked_nodes))}")

        return "\n".join(lines)


def _join_ids(ids: Sequence[int], sep: str = ", ") -> str:
    return sep.join(str(node_id) for node_id in ids)


class GraphValidator:
    """Validator for graphs with detailed error reporting.

    Checks performed:
    - Cycle detection with complete path information
    - Undefined predecessor references
    - Nodes blocked behind cycles or undefined predecessors
    - Duplicate predecessor entries
    """

    def validate(self, graph: Graph | SourcesMapping) -> ValidationReport:
        """Validate a graph and generate a detailed report.

        Args:
            graph: A Graph, or a mapping from node id to predecessor ids

        Returns:
            ValidationReport containing all validation results
        """
        sources = _as_sources(graph)
        logger.debug("starting_graph_validation", node_count=len(sources))

        report = ValidationReport()

        cycles = self._detect_cycles(sources)
        if cycles:
            report.cycles = cycles
            for cycle in cycles:
                report.add_error(f"Cycle detected: {_join_ids(cycle, ' -> ')}")

        missing = self._check_missing_refs(sources)
        if missing:
            report.missing_refs = missing
            report.add_error(
                f"Predecessors referenced but not defined: {_join_ids(sorted(missing))}",
            )

        outcome = kahn_sort(sources)
        on_cycle = {node_id for cycle in cycles for node_id in cycle}
        blocked = set(outcome.blocked) - on_cycle
        if blocked:
            report.blocked_nodes = blocked
            report.add_error(
                "Nodes blocked behind a cycle or undefined predecessor: "
                f"{_join_ids(sorted(blocked))}",
            )

        duplicates = self._check_duplicate_sources(sources)
        if duplicates:
            report.duplicate_sources = duplicates
            for node_id, repeated in duplicates.items():
                report.add_warning(
                    f"Node {node_id} lists predecessors more than once: {_join_ids(repeated)}",
                )

        logger.debug(
            "graph_validation_complete",
            is_valid=report.is_valid,
            error_count=len(report.errors),
            warning_count=len(report.warnings),
        )

        return report

    def _detect_cycles(self, sources: SourcesMapping) -> list[list[int]]:
        """Detect cycles using an iterative DFS along predecessor edges.

        Each back edge found yields one cycle, so overlapping cycles sharing a
        back edge are reported once.

        Args:
            sources: Mapping from node id to predecessor ids

        Returns:
            List of cycles, each a list of ids closing on its first id
        """
        visited: set[int] = set()
        on_stack: set[int] = set()
        cycles: list[list[int]] = []

        for root in sorted(sources):
            if root in visited:
                continue

            path: list[int] = [root]
            stack: list[Iterator[int]] = [iter(_distinct(sources[root]))]
            visited.add(root)
            on_stack.add(root)

            while stack:
                dep = next(stack[-1], None)
                if dep is None:
                    stack.pop()
                    on_stack.discard(path.pop())
                    continue

                if dep in on_stack:
                    start = path.index(dep)
                    cycles.append([*path[start:], dep])
                elif dep not in visited and dep in sources:
                    visited.add(dep)
                    on_stack.add(dep)
                    path.append(dep)
                    stack.append(iter(_distinct(sources[dep])))

        return cycles

    def _check_missing_refs(self, sources: SourcesMapping) -> set[int]:
        """Return ids referenced as predecessors but not defined as nodes."""
        referenced: set[int] = set()
        for deps in sources.values():
            referenced.update(deps)

        missing = referenced - set(sources)

        if missing:
            logger.debug("missing_references_found", count=len(missing), ids=sorted(missing))

        return missing

    def _check_duplicate_sources(self, sources: SourcesMapping) -> dict[int, list[int]]:
        """Return node id -> predecessors that appear more than once in its list."""
        duplicates: dict[int, list[int]] = {}
        for node_id in sorted(sources):
            seen: set[int] = set()
            repeated: list[int] = []
            for dep in sources[node_id]:
                if dep in seen and dep not in repeated:
                    repeated.append(dep)
                seen.add(dep)
            if repeated:
                duplicates[node_id] = repeated
        return duplicates

    def generate_visualization(
        self,
        graph: Graph | SourcesMapping,
        output_format: str = "mermaid",
    ) -> str:
        """Generate a visual representation of the graph.

        Edges point from predecessor to dependent.

        Args:
            graph: A Graph, or a mapping from node id to predecessor ids
            output_format: Output format ('mermaid' or 'dot')

        Returns:
            String representation of the graph in the requested format

        Raises:
            ValueError: If an unsupported format is requested
        """
        output_format = output_format.lower().strip()
        sources = _as_sources(graph)

        if output_format == "mermaid":
            return self._generate_mermaid(sources)
        if output_format == "dot":
            return self._generate_graphviz(sources)
        error_msg = f"Unsupported format: {output_format}. Use 'mermaid' or 'dot'."
        raise ValueError(error_msg)

    def _generate_mermaid(self, sources: SourcesMapping) -> str:
        lines = ["graph TD"]

        if not sources:
            lines.append("    Empty[Empty Graph]")
            return "\n".join(lines)

        lines.extend(f"    n{node_id}[{node_id}]" for node_id in sorted(sources))

        for node_id in sorted(sources):
            lines.extend(f"    n{dep} --> n{node_id}" for dep in _distinct(sources[node_id]))

        return "\n".join(lines)

    def _generate_graphviz(self, sources: SourcesMapping) -> str:
        lines = [
            "digraph Graph {",
            "    rankdir=LR;",
            "    node [shape=box, style=rounded];",
        ]

        if not sources:
            lines.append('    Empty [label="Empty Graph"];')
        else:
            lines.extend(f"    {node_id};" for node_id in sorted(sources))
            for node_id in sorted(sources):
                lines.extend(f"    {dep} -> {node_id};" for dep in _distinct(sources[node_id]))

        lines.append("}")
        return "\n".join(lines)


def _distinct(ids: Sequence[int]) -> list[int]:
    """Return ids without repeats, keeping first-seen order."""
    return list(dict.fromkeys(ids))


def _as_sources(graph: Graph | SourcesMapping) -> dict[int, Sequence[int]]:
    if isinstance(graph, Graph):
        return graph.sources_map()
    return dict(graph)
