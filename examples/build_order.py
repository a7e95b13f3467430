"""Build-order demonstration.

Builds a small graph of build steps, prints a valid execution order, shows a
rejected cycle-creating edit, and prints a diagnostic report for a raw
mapping that could never be loaded.
"""

from dagguard import CycleDetectedError, Graph, GraphValidator, Node
from dagguard.log_config import configure_logging, get_logger


def main() -> None:
    """Run the demonstration."""
    configure_logging(level="DEBUG", json_logs=False)
    logger = get_logger(__name__)

    graph: Graph[str] = Graph()
    graph.add_node(1, Node([], "fetch sources"))
    graph.add_node(2, Node([1], "compile"))
    graph.add_node(3, Node([1], "generate docs"))
    graph.add_node(4, Node([2, 3], "package"))

    order = graph.sort() or []
    logger.info("build_order", steps=[graph.get(node_id).value for node_id in order])

    try:
        graph.add_node(1, Node([4], "fetch sources"))
    except CycleDetectedError as e:
        logger.info("edit_rejected", node_id=e.node_id, blocked=e.blocked)

    report = GraphValidator().validate({1: [3], 2: [1], 3: [2], 5: [99]})
    print(report.summary())
    print(GraphValidator().generate_visualization(graph))


if __name__ == "__main__":
    main()
