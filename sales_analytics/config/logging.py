"""
Logging Configuration for Supermarket Sales Analytics

Structured logging on top of the stdlib root logger. Library modules only
call ``structlog.get_logger(__name__)``; hosts (scripts, flows) call
``configure_logging`` once and may bind run-wide context such as the source
being processed.
"""

import logging
import sys
from typing import Any, Dict, List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import ProcessorFormatter, add_log_level

from sales_analytics.config.settings import get_settings

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("prefect", "httpx", "httpcore", "urllib3", "asyncio")


def add_app_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Stamp every event with the application name and environment"""
    settings = get_settings()
    event_dict.setdefault("app", settings.app_name)
    event_dict.setdefault("env", settings.app_env)
    return event_dict


def _build_renderer(log_format: str):
    if log_format == "json":
        return JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure structured logging.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        log_format: Override output format, "json" or "text"
    """
    settings = get_settings()
    level = (log_level or settings.monitoring.log_level).upper()
    fmt = (log_format or settings.monitoring.log_format).lower()
    numeric_level = getattr(logging, level, logging.INFO)

    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        add_app_context,
        TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ProcessorFormatter(processor=_build_renderer(fmt), foreign_pre_chain=shared_processors)
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)

    # Keep dependency chatter out of report runs unless debugging
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING)

    structlog.get_logger(__name__).debug("Logging configured", level=level, format=fmt)


def bind_run_context(**values: Any) -> None:
    """Attach key/values (source, flow run, ...) to every subsequent event"""
    structlog.contextvars.bind_contextvars(**values)


def clear_run_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str):
    """Get a logger instance with the given name."""
    return structlog.get_logger(name)
