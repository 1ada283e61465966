"""
Logging setup for agents using the signal bus.

Everything logs through structlog on top of the stdlib ``logging`` root
handler. An agent process calls ``configure_logging`` (or
``configure_from_params`` with the loaded config) once at startup; bus
handles then log emits, consumption and store failures with the agent name
bound, and status changes go through ``log_signal_transition`` so they can be
filtered as an audit trail.
"""
import logging
import sys
from typing import IO, Any, Optional

import structlog
from structlog.types import FilteringBoundLogger

from ..config.defaults import LoggingParams


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    stream: Optional[IO[str]] = None,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: Render one JSON object per line instead of console output
        include_timestamp: Add a UTC ISO8601 ``timestamp`` key
        include_caller: Add filename and line number of the log call
        stream: Output stream (default stdout)
        extra_processors: Processors inserted just before rendering

    Raises:
        ValueError: If ``level`` is not a known level name
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level}")

    # force: agents may reconfigure after loading their own config
    logging.basicConfig(
        level=log_level,
        stream=stream or sys.stdout,
        format="%(message)s",
        force=True
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream is None))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_params(params: LoggingParams, **kwargs: Any) -> None:
    """Configure logging from the ``logging`` section of a loaded config."""
    configure_logging(
        level=params.level,
        format_json=params.format_json,
        include_timestamp=params.include_timestamp,
        **kwargs
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)


def get_bus_logger(name: str, agent: str) -> FilteringBoundLogger:
    """
    Get a logger bound to one agent's signal bus.

    Every event carries ``subsystem="signal_bus"`` and the owning agent, so a
    shared log stream from several agents can be split per agent.
    """
    return get_logger(name).bind(
        subsystem="signal_bus",
        agent=agent
    )


def log_signal_transition(
    logger: FilteringBoundLogger,
    signal_ids: list[str],
    from_status: str,
    to_status: str,
    actor: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Record a batch of signals changing status.

    Args:
        logger: Logger to emit on (normally the bus logger)
        signal_ids: Ids that actually changed status
        from_status: Status before the change
        to_status: Status after the change
        actor: Agent that consumed or dismissed the signals
        context: Extra fields attached under ``context``
    """
    bound_logger = logger.bind(
        signal_ids=signal_ids,
        count=len(signal_ids),
        from_status=from_status,
        to_status=to_status,
        actor=actor,
        audit_trail=True
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Signal status transition")
