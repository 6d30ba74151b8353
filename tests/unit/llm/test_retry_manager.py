"""Unit tests for the retry manager and circuit breaker."""

import pytest
from jsonlocalizer.core.llm.exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMRateLimitError,
    LLMResponseError,
    RetryExhaustedError,
)
from jsonlocalizer.core.llm.retry_manager import (
    CircuitBreaker,
    RetryConfig,
    RetryManager,
    RetryStrategy,
)

IMMEDIATE = RetryConfig(max_attempts=3, initial_delay=0.0, jitter=0.0, strategy=RetryStrategy.IMMEDIATE)


def make_manager(**kwargs):
    """Retry manager that never sleeps."""
    kwargs.setdefault("default_config", IMMEDIATE)
    kwargs.setdefault("custom_configs", {LLMConnectionError: IMMEDIATE, LLMRateLimitError: IMMEDIATE})
    return RetryManager(**kwargs)


class FlakyCall:
    """Async callable failing with the given errors before succeeding."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self, *args, **kwargs):
        self.calls += 1
        self.last_args = (args, kwargs)
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestExecuteWithRetry:
    """Test RetryManager.execute_with_retry."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        call = FlakyCall([])
        result = await make_manager().execute_with_retry(call, "prompt", timeout=5)

        assert result == "ok"
        assert call.calls == 1
        assert call.last_args == (("prompt",), {"timeout": 5})

    @pytest.mark.asyncio
    async def test_recovers_after_connection_errors(self):
        call = FlakyCall([LLMConnectionError("down"), LLMConnectionError("down")])
        result = await make_manager().execute_with_retry(call)

        assert result == "ok"
        assert call.calls == 3

    @pytest.mark.asyncio
    async def test_exhausted(self):
        """The last error is kept as the cause once attempts run out."""
        call = FlakyCall([LLMConnectionError("down")] * 3)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await make_manager().execute_with_retry(call)

        assert call.calls == 3
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.original_error, LLMConnectionError)
        assert not exc_info.value.recoverable

    @pytest.mark.asyncio
    async def test_response_error_passes_through(self):
        """Malformed responses are not retried and keep their type."""
        call = FlakyCall([LLMResponseError("not json")])

        with pytest.raises(LLMResponseError):
            await make_manager().execute_with_retry(call)
        assert call.calls == 1

    @pytest.mark.asyncio
    async def test_authentication_error_not_retried(self):
        call = FlakyCall([LLMAuthenticationError("bad key")])

        with pytest.raises(LLMAuthenticationError):
            await make_manager().execute_with_retry(call)
        assert call.calls == 1

    @pytest.mark.asyncio
    async def test_plain_exception_uses_default_config(self):
        call = FlakyCall([RuntimeError("boom")] * 3)

        with pytest.raises(RetryExhaustedError):
            await make_manager().execute_with_retry(call)
        assert call.calls == 3

    @pytest.mark.asyncio
    async def test_on_retry_callback(self):
        seen = []
        call = FlakyCall([LLMConnectionError("down")])
        await make_manager().execute_with_retry(call, on_retry=lambda error, attempt: seen.append(attempt))

        assert seen == [1]

    @pytest.mark.asyncio
    async def test_on_retry_callback_error_ignored(self):
        def broken(error, attempt):
            raise RuntimeError("callback bug")

        call = FlakyCall([LLMConnectionError("down")])
        assert await make_manager().execute_with_retry(call, on_retry=broken) == "ok"


class TestCircuitBreaker:
    """Test CircuitBreaker and its use by the manager."""

    def test_opens_after_threshold(self):
        breaker = CircuitBreaker(failure_threshold=2, timeout=60)
        breaker.record_failure()
        assert breaker.state == "closed"
        breaker.record_failure()

        assert breaker.state == "open"
        assert not breaker.can_attempt()

    def test_half_open_after_timeout(self):
        breaker = CircuitBreaker(failure_threshold=1, timeout=0, success_threshold=1)
        breaker.record_failure()

        assert breaker.can_attempt()
        assert breaker.state == "half_open"
        breaker.record_success()
        assert breaker.state == "closed"

    def test_reset(self):
        breaker = CircuitBreaker(failure_threshold=1)
        breaker.record_failure()
        breaker.reset()
        assert breaker.state == "closed"
        assert breaker.can_attempt()

    @pytest.mark.asyncio
    async def test_open_circuit_fails_fast(self):
        """Once open, calls are blocked without reaching the provider."""
        manager = make_manager(circuit_breaker=CircuitBreaker(failure_threshold=1, timeout=60))
        failing = FlakyCall([LLMConnectionError("down")] * 3)
        with pytest.raises(RetryExhaustedError):
            await manager.execute_with_retry(failing)
        assert manager.get_circuit_state() == "open"

        blocked = FlakyCall([])
        with pytest.raises(RetryExhaustedError, match="Circuit breaker is open"):
            await manager.execute_with_retry(blocked)
        assert blocked.calls == 0

        manager.reset()
        assert await manager.execute_with_retry(blocked) == "ok"

    def test_disabled(self):
        manager = RetryManager(enable_circuit_breaker=False)
        assert manager.get_circuit_state() is None


class TestCalculateDelay:
    """Test backoff arithmetic."""

    def test_exponential(self):
        config = RetryConfig(initial_delay=1.0, backoff_factor=2.0, max_delay=60.0, jitter=0.0)
        manager = RetryManager(enable_circuit_breaker=False)

        assert [manager._calculate_delay(n, config) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]

    def test_capped(self):
        config = RetryConfig(initial_delay=10.0, backoff_factor=10.0, max_delay=30.0, jitter=0.0)
        manager = RetryManager(enable_circuit_breaker=False)

        assert manager._calculate_delay(3, config) == 30.0

    def test_linear(self):
        config = RetryConfig(initial_delay=2.0, jitter=0.0, strategy=RetryStrategy.LINEAR)
        manager = RetryManager(enable_circuit_breaker=False)

        assert manager._calculate_delay(3, config) == 6.0

    def test_retry_after_honored(self):
        """A server-provided Retry-After longer than the backoff wins."""
        config = RetryConfig(initial_delay=1.0, max_delay=120.0, jitter=0.0)
        manager = RetryManager(enable_circuit_breaker=False)
        error = LLMRateLimitError("slow down", retry_after=15)

        assert manager._calculate_delay(1, config, error) == 15.0

    def test_jitter_bounded(self):
        config = RetryConfig(initial_delay=1.0, jitter=0.5)
        manager = RetryManager(enable_circuit_breaker=False)

        delay = manager._calculate_delay(1, config)
        assert 1.0 <= delay <= 1.5

    def test_none_strategy_no_delay(self):
        config = RetryConfig(strategy=RetryStrategy.NONE)
        assert RetryManager(enable_circuit_breaker=False)._calculate_delay(1, config) == 0.0
