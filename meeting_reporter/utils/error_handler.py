"""
Centralized error handling with retry logic and error classification.
"""

import asyncio
import inspect
import logging
import random
import uuid
from typing import Callable, Any, Dict, Optional, Type, Tuple, List

from ..models.errors import (
    ErrorDetails, ErrorResponse, ErrorCategory, ErrorSeverity,
    MeetingReporterError
)


class RetryConfig:
    """Configuration for retry logic."""

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        backoff_factor: float = 2.0,
        jitter: bool = True
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.jitter = jitter

    def delay_for(self, attempt: int) -> float:
        """Backoff delay before retrying after the given zero-based attempt."""
        delay = min(self.base_delay * (self.backoff_factor ** attempt), self.max_delay)
        if self.jitter:
            delay *= (0.5 + random.random() * 0.5)
        return delay


class ErrorHandler:
    """Centralized error handling for collaborators and the HTTP surface."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.error_stats: Dict[str, Dict[str, int]] = {}

    async def with_retry(
        self,
        operation: Callable,
        retry_config: Optional[RetryConfig] = None,
        error_types: Tuple[Type[Exception], ...] = (Exception,),
        context: Optional[Dict[str, Any]] = None,
        give_up_on: Tuple[Type[Exception], ...] = ()
    ) -> Any:
        """
        Execute an operation, retrying the listed error types with backoff.

        Args:
            operation: Zero-argument callable, sync or async
            retry_config: Retry policy, defaults to ``RetryConfig()``
            error_types: Exceptions that trigger a retry; others propagate at once
            context: Extra fields attached to the final error log
            give_up_on: Subclasses of ``error_types`` that are never retried

        Returns:
            Whatever the operation returns
        """
        config = retry_config or RetryConfig()
        context = context or {}

        for attempt in range(config.max_retries + 1):
            try:
                result = operation()
                if inspect.isawaitable(result):
                    result = await result
                return result
            except error_types as e:
                if isinstance(e, give_up_on) or attempt == config.max_retries:
                    self._log_error(self._create_error_details(e, context, retry_count=attempt))
                    raise

                delay = config.delay_for(attempt)
                self.logger.warning(
                    f"Operation failed (attempt {attempt + 1}/{config.max_retries + 1}). "
                    f"Retrying in {delay:.2f}s. Error: {str(e)}"
                )
                await asyncio.sleep(delay)

    def describe(
        self,
        error: Exception,
        agent_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> ErrorResponse:
        """
        Classify an exception into a standardized, logged error response.

        Args:
            error: The exception to describe
            agent_name: Agent that raised it, if any
            context: Extra fields recorded with the error

        Returns:
            ErrorResponse with details and suggested recovery actions
        """
        error_details = self._create_error_details(error, dict(context or {}), agent_name=agent_name)
        self._log_error(error_details)
        self._update_error_stats(agent_name or "system", error_details.category.value)

        return ErrorResponse(
            error=error_details,
            suggested_actions=self._get_recovery_strategies(error_details)
        )

    def _create_error_details(
        self,
        error: Exception,
        context: Dict[str, Any],
        agent_name: Optional[str] = None,
        retry_count: int = 0
    ) -> ErrorDetails:
        if isinstance(error, MeetingReporterError):
            category = error.category
            severity = error.severity
            message = error.message
            context = {**error.context, **context}
        else:
            category = self._classify_error(error)
            severity = self._determine_severity(category)
            message = str(error) or type(error).__name__

        return ErrorDetails(
            error_id=str(uuid.uuid4()),
            category=category,
            severity=severity,
            message=message,
            details=f"{type(error).__name__}: {str(error)}",
            context={k: v for k, v in context.items() if v is not None},
            agent_name=agent_name,
            retry_count=retry_count,
            recoverable=self._is_recoverable(category)
        )

    def _classify_error(self, error: Exception) -> ErrorCategory:
        """Classify a foreign exception by its type name."""
        error_type = type(error).__name__.lower()

        if any(keyword in error_type for keyword in ["network", "connect", "timeout", "http"]):
            return ErrorCategory.NETWORK
        elif any(keyword in error_type for keyword in ["validation", "value", "type"]):
            return ErrorCategory.VALIDATION
        elif any(keyword in error_type for keyword in ["api", "request", "response"]):
            return ErrorCategory.EXTERNAL_API
        else:
            return ErrorCategory.SYSTEM

    def _determine_severity(self, category: ErrorCategory) -> ErrorSeverity:
        if category == ErrorCategory.VALIDATION:
            return ErrorSeverity.HIGH
        elif category in [ErrorCategory.NETWORK, ErrorCategory.EXTERNAL_API]:
            return ErrorSeverity.MEDIUM
        else:
            return ErrorSeverity.LOW

    def _is_recoverable(self, category: ErrorCategory) -> bool:
        return category not in (ErrorCategory.VALIDATION, ErrorCategory.CONFIGURATION)

    def _get_recovery_strategies(self, error_details: ErrorDetails) -> List[str]:
        strategies = []

        if error_details.category == ErrorCategory.NETWORK:
            strategies.extend([
                "Check network connectivity",
                "Retry the request"
            ])
        elif error_details.category == ErrorCategory.EXTERNAL_API:
            strategies.extend([
                "Check the calendar access token and its permissions",
                "Verify API rate limits"
            ])
        elif error_details.category == ErrorCategory.MODEL:
            strategies.extend([
                "Check LLM_BASE_URL, LLM_MODEL and LLM_API_KEY",
                "Generate the report without AI analysis"
            ])
        elif error_details.category == ErrorCategory.VALIDATION:
            strategies.extend([
                "Validate input data format",
                "Check that the end date is not before the start date"
            ])
        elif error_details.category == ErrorCategory.CONFIGURATION:
            strategies.append("Review the agent wiring and configuration")

        return strategies

    def _log_error(self, error_details: ErrorDetails):
        log_message = (
            f"Error {error_details.error_id}: {error_details.message} "
            f"[{error_details.category.value}/{error_details.severity.value}]"
        )

        if error_details.agent_name:
            log_message += f" Agent: {error_details.agent_name}"

        if error_details.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(log_message)
        elif error_details.severity == ErrorSeverity.HIGH:
            self.logger.error(log_message)
        elif error_details.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)

    def _update_error_stats(self, source: str, category: str):
        source_stats = self.error_stats.setdefault(source, {})
        source_stats[category] = source_stats.get(category, 0) + 1

    def get_error_stats(self) -> Dict[str, Dict[str, int]]:
        """Get current error statistics."""
        return {source: dict(stats) for source, stats in self.error_stats.items()}

    def reset_error_stats(self):
        """Reset error statistics."""
        self.error_stats.clear()


# Global error handler instance
error_handler = ErrorHandler()
