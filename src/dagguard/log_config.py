"""Structured logging for the dagguard package.

Every module logger is a structlog BoundLogger wrapped around the standard
library logger of the same name, so records land in the ``dagguard`` logger
hierarchy. That hierarchy carries a ``NullHandler`` and no level of its own:
until the host application configures logging, graph events such as
``node_added`` or ``topological_sort_blocked`` are dropped silently.

``configure_logging`` opts in. It sets the level of the ``dagguard`` logger,
attaches one stream handler to it, and installs the structlog processor chain
(JSON or console rendering). Host loggers outside ``dagguard`` are left alone.

Example:
    >>> from dagguard.log_config import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_logs=False)
    >>> logger = get_logger("dagguard.example")
    >>> logger.info("graph_loaded", node_count=12)
"""

import logging
import sys
from typing import Any, TextIO

import structlog

PACKAGE_LOGGER = "dagguard"
HANDLER_NAME = "dagguard-stream"

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())


def _parse_level(level: str) -> int:
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        msg = f"Invalid log level: {level}"
        raise ValueError(msg)
    return numeric_level


def _build_processors(json_logs: bool) -> list[Any]:
    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        )
    return processors


def configure_logging(
    level: str = "INFO",
    json_logs: bool = True,
    stream: TextIO | None = None,
) -> None:
    """Route dagguard events to a stream at the given level.

    Calling this again replaces the handler installed by the previous call
    rather than adding a second one.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL), any case
        json_logs: Render one JSON object per line; otherwise key=value text
        stream: Destination for rendered events, sys.stdout by default

    Raises:
        ValueError: If an invalid log level is provided
    """
    numeric_level = _parse_level(level)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(numeric_level)
    for handler in list(package_logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)

    structlog.configure(
        processors=_build_processors(json_logs),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the stdlib logger ``name``.

    Modules pass ``__name__``, which puts them under the ``dagguard``
    hierarchy and its NullHandler.
    """
    return structlog.wrap_logger(
        logging.getLogger(name or PACKAGE_LOGGER),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def bind_context(**kwargs: Any) -> None:
    """Bind context variables to every subsequent log event.

    Example:
        >>> bind_context(graph="build-plan")
        >>> logger.debug("node_added", node_id=3)  # Will include graph
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific context variables from the logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
