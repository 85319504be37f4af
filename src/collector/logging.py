"""Structured logging for collection runs using structlog.

Progress lines (source started, page N fetched, warnings, final summary) go
to stderr so a run can be watched from a terminal. Set json_output for
unattended runs where the lines are shipped somewhere else.

Use get_logger() everywhere instead of print(). While a source is being
collected, source_context() binds its key so every line the adapter emits
names the source without threading it through each call.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

# Chatty third-party loggers kept below the run's own level
_QUIET_LOGGERS = ("urllib3", "charset_normalizer")


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog processors and the renderer for this run.

    Args:
        json_output: Emit one JSON object per line instead of console text.
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # requests/urllib3 log through stdlib logging
    logging.basicConfig(format="%(name)s: %(message)s", stream=sys.stderr, level=numeric_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance bound with the module name.

    Args:
        name: Logger name (typically __name__ from calling module).

    Returns:
        Configured structlog logger.
    """
    return structlog.get_logger(name)


@contextmanager
def source_context(**values: str) -> Iterator[None]:
    """Bind key/values (e.g. source="oakville") to every log line in the block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield
