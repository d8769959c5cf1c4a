"""Structured logging configuration for streamclient.

All modules obtain their logger through :func:`get_logger` and emit
snake_case events with key/value context, e.g.::

    logger.debug("payload_reader_selected", reader="bytes", size=12)

:func:`setup_logging` wires structlog and the stdlib ``logging`` module to the
same renderer so that library users see a single consistent stream.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import FilteringBoundLogger, Processor


_NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "h2")


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def setup_logging(
    json_logs: bool = False,
    log_level_name: str = "INFO",
    *,
    stream: Any = None,
) -> None:
    """Configure structlog and stdlib logging.

    Args:
        json_logs: Render events as JSON lines instead of the console format
        log_level_name: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Output stream, defaults to stderr
    """
    level = getattr(logging, log_level_name.upper(), logging.INFO)
    shared = _shared_processors()

    renderer: Processor
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
        shared.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # Transport internals are only interesting when debugging the transport itself
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Get a structlog logger bound to ``name`` (typically ``__name__``)."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
