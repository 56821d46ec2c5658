"""
Logging configuration and utilities for Meeting Reporter.
"""

import logging
import structlog
from typing import Any
import sys


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure structured logging for Meeting Reporter.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Whether to render log lines as JSON
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name

    Returns:
        Configured bound logger
    """
    return structlog.get_logger(name)


class LoggerMixin:
    """
    Mixin that gives collaborators a logger named after their class.
    """

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        if not hasattr(self, '_logger'):
            self._logger = get_logger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        return self._logger

    def log_operation_start(self, operation: str, **context: Any) -> None:
        self.logger.info("Operation started", operation=operation, **context)

    def log_operation_success(self, operation: str, duration_ms: int, **context: Any) -> None:
        self.logger.info(
            "Operation completed successfully",
            operation=operation,
            duration_ms=duration_ms,
            **context
        )

    def log_operation_error(self, operation: str, error: Exception, **context: Any) -> None:
        self.logger.error(
            "Operation failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            **context
        )
