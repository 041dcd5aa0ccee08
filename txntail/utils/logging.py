"""
Structured logging infrastructure using structlog.

Diagnostics go to stderr by default; stdout is reserved for the rendered
transaction history so that it can be piped or redirected cleanly.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("console", "json")


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["app"] = "txntail"
    return event_dict


def configure_logging(
    log_level: str = "WARNING",
    log_format: str = "console",
    log_output: str = "stderr",
) -> None:
    """
    Configure structured logging for the tailer.
    
    Args:
        log_level: One of LOG_LEVELS, case-insensitive
        log_format: One of LOG_FORMATS
        log_output: Output destination (stdout or stderr)
    
    Raises:
        ValueError: If the level or format is not recognised
    """
    level = str(log_level).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {log_level!r} (expected one of {', '.join(LOG_LEVELS)})")
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {log_format!r} (expected one of {', '.join(LOG_FORMATS)})")
    
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout if log_output == "stdout" else sys.stderr,
        level=getattr(logging, level),
        force=True,
    )
    
    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
