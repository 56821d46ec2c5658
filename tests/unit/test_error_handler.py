"""
Unit tests for error handling and retry logic.
"""

import pytest

from meeting_reporter.models.errors import (
    CalendarAccessError, ErrorCategory, ErrorSeverity, ExternalAPIError, ModelTransportError,
    NetworkError, ValidationError
)
from meeting_reporter.utils.error_handler import ErrorHandler, RetryConfig

NO_WAIT = RetryConfig(max_retries=2, base_delay=0, jitter=False)


class TestRetryConfig:
    def test_exponential_backoff_is_capped(self):
        config = RetryConfig(base_delay=1.0, backoff_factor=2.0, max_delay=5.0, jitter=False)

        assert [config.delay_for(attempt) for attempt in range(4)] == [1.0, 2.0, 4.0, 5.0]

    def test_jitter_stays_within_half_to_full_delay(self):
        config = RetryConfig(base_delay=2.0, jitter=True)

        for _ in range(20):
            assert 1.0 <= config.delay_for(0) <= 2.0


class TestWithRetry:
    """Test cases for ErrorHandler.with_retry."""

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self):
        handler = ErrorHandler()
        attempts = []

        async def operation():
            attempts.append(1)
            if len(attempts) < 3:
                raise NetworkError("flaky")
            return "ok"

        assert await handler.with_retry(operation, NO_WAIT, error_types=(NetworkError,)) == "ok"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_raises_after_last_attempt(self):
        handler = ErrorHandler()
        attempts = []

        def operation():
            attempts.append(1)
            raise NetworkError("down")

        with pytest.raises(NetworkError):
            await handler.with_retry(operation, NO_WAIT, error_types=(NetworkError,))

        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self):
        handler = ErrorHandler()
        attempts = []

        async def operation():
            attempts.append(1)
            raise KeyError("bug")

        with pytest.raises(KeyError):
            await handler.with_retry(operation, NO_WAIT, error_types=(NetworkError,))

        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_give_up_on_subclass(self):
        handler = ErrorHandler()
        attempts = []

        async def operation():
            attempts.append(1)
            raise CalendarAccessError("denied", status_code=403)

        with pytest.raises(CalendarAccessError):
            await handler.with_retry(
                operation, NO_WAIT, error_types=(ExternalAPIError,), give_up_on=(CalendarAccessError,)
            )

        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_lambda_returning_coroutine(self):
        handler = ErrorHandler()

        async def fetch(value):
            return value

        assert await handler.with_retry(lambda: fetch(7), NO_WAIT) == 7


class TestDescribe:
    """Test cases for ErrorHandler.describe."""

    def test_domain_error(self):
        handler = ErrorHandler()

        response = handler.describe(ModelTransportError("LLM API error: 502 - bad gateway", status_code=502),
                                    agent_name="AnalysisAgent")

        assert response.success is False
        assert response.error.category == ErrorCategory.MODEL
        assert response.error.severity == ErrorSeverity.HIGH
        assert response.error.context["status_code"] == 502
        assert response.error.agent_name == "AnalysisAgent"
        assert "Generate the report without AI analysis" in response.suggested_actions
        assert handler.get_error_stats() == {"AnalysisAgent": {"model": 1}}

    def test_validation_error_is_not_recoverable(self):
        response = ErrorHandler().describe(ValidationError("end_date must not be before start_date"))

        assert response.error.recoverable is False
        assert response.error.category == ErrorCategory.VALIDATION

    def test_foreign_error_is_classified_by_type(self):
        response = ErrorHandler().describe(ConnectionError("refused"))

        assert response.error.category == ErrorCategory.NETWORK
        assert response.error.severity == ErrorSeverity.MEDIUM

    def test_stats_reset(self):
        handler = ErrorHandler()
        handler.describe(RuntimeError("x"))
        handler.describe(RuntimeError("y"))

        assert handler.get_error_stats() == {"system": {"system": 2}}
        handler.reset_error_stats()
        assert handler.get_error_stats() == {}
