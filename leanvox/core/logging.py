"""
Structured logging for the Leanvox client.

Client events (retries, timeouts, job progress) are emitted through structlog
onto the standard ``leanvox`` logger. Only warnings are shown by default; call
:func:`setup_logging` or set ``LEANVOX_LOG_LEVEL`` to see more.
"""

import logging
import os
import sys
from typing import Optional

import structlog
from structlog.types import Processor

LOGGER_NAME = "leanvox"
LOG_LEVEL_ENV = "LEANVOX_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def _configure_structlog() -> None:
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=False),
        structlog.processors.format_exc_info,
    ]

    if sys.stderr.isatty():
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True, sort_keys=False)]
    else:
        processors = shared_processors + [structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _level(name: str) -> int:
    level = getattr(logging, name.upper(), None)
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(log_level: Optional[str] = None) -> None:
    """
    Set the level of the ``leanvox`` logger and make its events visible.

    If neither the ``leanvox`` logger nor the root logger has a handler, a
    stderr handler is attached so that events below WARNING are printed.
    Applications that configure logging themselves keep their own handlers.

    Args:
        log_level: Minimum level to emit (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to ``LEANVOX_LOG_LEVEL``, then WARNING.

    Examples:
        >>> from leanvox import setup_logging
        >>> setup_logging("INFO")  # show request_retry and job events
    """
    _configure_structlog()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_level(log_level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL))

    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)


def get_logger(name: str, request_id: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a structured logger, optionally bound to a client request id.

    :param name: Logger name (typically the module name)
    :type name: str
    :param request_id: Optional request ID to include in all logs
    :type request_id: str, optional
    :return: Configured structlog logger
    :rtype: structlog.BoundLogger
    """
    logger = structlog.get_logger(name)

    if request_id:
        logger = logger.bind(request_id=request_id)

    return logger  # type: ignore[no-any-return]


_configure_structlog()
if os.environ.get(LOG_LEVEL_ENV):
    setup_logging()
