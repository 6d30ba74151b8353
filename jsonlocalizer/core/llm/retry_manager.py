"""
Retry policy for calls to an LLM provider.

Only transport problems are retried here: connection failures, timeouts,
HTTP errors and rate limits, with exponential backoff and jitter. Errors
whose config says ``RetryStrategy.NONE`` (an unusable answer, rejected
credentials) go straight back to the caller with their own type, because
the chunk executor handles a malformed answer differently from an outage.

A circuit breaker shared by every chunk of a run stops hammering a
provider that keeps failing.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from jsonlocalizer.config import MAX_TRANSLATION_ATTEMPTS, RETRY_DELAY_SECONDS
from jsonlocalizer.core.exceptions import TranslationError
from .exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
    RetryExhaustedError,
)

logger = logging.getLogger(__name__)


class RetryStrategy(Enum):
    EXPONENTIAL = "exponential"
    LINEAR = "linear"
    IMMEDIATE = "immediate"  # retry without waiting
    NONE = "none"  # re-raise on first failure


@dataclass
class RetryConfig:
    """How one kind of error is retried.

    Attributes:
        max_attempts: Attempts including the first one
        initial_delay: Wait before the first retry, in seconds
        max_delay: Upper bound of any wait (before jitter)
        backoff_factor: Growth of the wait for exponential backoff
        jitter: Random extra wait, as a fraction of the wait (0.0-1.0)
        strategy: Backoff shape
    """
    max_attempts: int = MAX_TRANSLATION_ATTEMPTS
    initial_delay: float = float(RETRY_DELAY_SECONDS)
    max_delay: float = 60.0
    backoff_factor: float = 2.0
    jitter: float = 0.1
    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL

    def delay_for(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        if self.strategy in (RetryStrategy.IMMEDIATE, RetryStrategy.NONE):
            return 0.0
        if self.strategy == RetryStrategy.LINEAR:
            delay = self.initial_delay * attempt
        else:
            delay = self.initial_delay * self.backoff_factor ** (attempt - 1)
        # a server asking for a longer pause wins over the backoff
        delay = min(max(delay, retry_after or 0.0), self.max_delay)
        if self.jitter > 0:
            delay += delay * self.jitter * random.random()
        return delay


_NO_RETRY = RetryConfig(max_attempts=1, strategy=RetryStrategy.NONE)

# Looked up by walking the error's MRO, so subclasses inherit their parent's entry
DEFAULT_RETRY_CONFIGS: Dict[Type[Exception], RetryConfig] = {
    LLMResponseError: _NO_RETRY,
    LLMAuthenticationError: _NO_RETRY,
    LLMConnectionError: RetryConfig(max_delay=30.0),
    LLMRateLimitError: RetryConfig(initial_delay=10.0, max_delay=120.0),
    LLMError: RetryConfig(initial_delay=1.0),
}


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Fails fast after repeated provider failures.

    ``failure_threshold`` exhausted operations open the circuit. After
    ``timeout`` seconds one trial request is let through (half-open);
    ``success_threshold`` successes in that state close it again.
    """

    def __init__(self, failure_threshold: int = 5, timeout: float = 60.0, success_threshold: int = 2):
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self.success_threshold = success_threshold
        self.reset()

    def reset(self):
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._successes = 0
        self._opened_at: Optional[float] = None

    @property
    def state(self) -> str:
        return self._state.value

    def can_attempt(self) -> bool:
        if self._state is CircuitState.OPEN:
            if time.monotonic() - self._opened_at < self.timeout:
                return False
            logger.info("Circuit breaker half-open, letting a trial request through")
            self._state = CircuitState.HALF_OPEN
            self._successes = 0
        return True

    def record_success(self):
        if self._state is CircuitState.HALF_OPEN:
            self._successes += 1
            if self._successes >= self.success_threshold:
                logger.info("Circuit breaker closed")
                self.reset()
        elif self._failures:
            self._failures -= 1

    def record_failure(self):
        self._failures += 1
        self._opened_at = time.monotonic()
        if self._state is CircuitState.HALF_OPEN or self._failures >= self.failure_threshold:
            if self._state is not CircuitState.OPEN:
                logger.warning(f"Circuit breaker opened after {self._failures} failures")
            self._state = CircuitState.OPEN
            self._successes = 0


class RetryManager:
    """Runs provider calls under the retry policy.

    One manager is shared by all chunks of a run so that its circuit breaker
    sees every failure against the provider.

    Args:
        default_config: Policy for errors without an entry in the table
        custom_configs: Per-error-type overrides, merged over the defaults
        enable_circuit_breaker: Use a circuit breaker at all
        circuit_breaker: Pre-built breaker (e.g. with a lower threshold)
    """

    def __init__(
        self,
        default_config: Optional[RetryConfig] = None,
        custom_configs: Optional[Dict[Type[Exception], RetryConfig]] = None,
        enable_circuit_breaker: bool = True,
        circuit_breaker: Optional[CircuitBreaker] = None
    ):
        self.default_config = default_config or RetryConfig()
        self.configs = {**DEFAULT_RETRY_CONFIGS, **(custom_configs or {})}
        self._breaker = (circuit_breaker or CircuitBreaker()) if enable_circuit_breaker else None

    def _get_config(self, error: Exception) -> RetryConfig:
        for error_type in type(error).__mro__:
            if error_type in self.configs:
                return self.configs[error_type]
        return self.default_config

    def _calculate_delay(self, attempt: int, config: RetryConfig, error: Optional[Exception] = None) -> float:
        return config.delay_for(attempt, getattr(error, 'retry_after', None))

    async def execute_with_retry(
        self,
        func: Callable[..., Awaitable[Any]],
        *args,
        operation_id: Optional[str] = None,
        on_retry: Optional[Callable[[Exception, int], None]] = None,
        **kwargs
    ) -> Any:
        """
        Await ``func(*args, **kwargs)``, retrying on transport errors.

        Args:
            func: Coroutine function to call
            operation_id: Label used in log messages
            on_retry: Called with (error, attempt) before each retry

        Raises:
            RetryExhaustedError: Attempts used up, or the circuit is open
            Exception: Errors that must not be retried, unchanged
        """
        label = operation_id or getattr(func, '__name__', 'operation')
        attempt = 0
        last_error: Optional[Exception] = None

        while True:
            attempt += 1
            if self._breaker and not self._breaker.can_attempt():
                logger.error(f"{label}: circuit breaker open, not calling the provider")
                raise RetryExhaustedError(
                    "Circuit breaker is open, operation blocked",
                    original_error=last_error,
                    attempts=attempt - 1
                )

            try:
                result = await func(*args, **kwargs)
            except Exception as error:
                last_error = error
                config = self._get_config(error)
                fatal = isinstance(error, TranslationError) and not error.recoverable

                if config.strategy is RetryStrategy.NONE or fatal:
                    if fatal and self._breaker:
                        self._breaker.record_failure()
                    logger.debug(f"{label}: {type(error).__name__} is not retried")
                    raise

                if attempt >= config.max_attempts:
                    if self._breaker:
                        self._breaker.record_failure()
                    logger.error(f"{label}: giving up after {attempt} attempts: {error}")
                    raise RetryExhaustedError(
                        f"Maximum retry attempts ({config.max_attempts}) exceeded",
                        original_error=error,
                        attempts=attempt
                    ) from error

                delay = self._calculate_delay(attempt, config, error)
                logger.warning(
                    f"{label}: attempt {attempt}/{config.max_attempts} failed "
                    f"({type(error).__name__}: {error}), retrying in {delay:.2f}s"
                )
                if on_retry:
                    try:
                        on_retry(error, attempt)
                    except Exception as callback_error:
                        logger.warning(f"on_retry callback failed: {callback_error}")
                if delay > 0:
                    await asyncio.sleep(delay)
                continue

            if self._breaker:
                self._breaker.record_success()
            if attempt > 1:
                logger.info(f"{label}: succeeded on attempt {attempt}")
            return result

    def reset(self):
        """Close the circuit breaker and forget its failures."""
        if self._breaker:
            self._breaker.reset()

    def get_circuit_state(self) -> Optional[str]:
        return self._breaker.state if self._breaker else None
