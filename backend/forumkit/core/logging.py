"""structlog configuration shared by scripts and embedding applications."""

import logging
import sys

import structlog

from forumkit.config import settings


def configure_logging(debug: bool | None = None, json_logs: bool | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        debug: Log at DEBUG instead of INFO (defaults to settings.DEBUG)
        json_logs: Render JSON lines instead of console output
            (defaults to settings.LOG_JSON)
    """
    debug = settings.DEBUG if debug is None else debug
    json_logs = settings.LOG_JSON if json_logs is None else json_logs
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
