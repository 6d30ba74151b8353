"""
Errors raised by the LLM layer.

Transport failures (connection, HTTP status, rate limit) are retried by the
retry manager. An answer that cannot be turned into a numbered map raises
``LLMResponseError``, which the chunk executor answers with one
repair-hint retry.
"""

from typing import Any, Dict, Optional

from jsonlocalizer.core.exceptions import TranslationError


class LLMError(TranslationError):
    """Any failure of the translation capability."""
    pass


class LLMConnectionError(LLMError):
    """Provider unreachable, timed out or answering with an HTTP error."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=True)


class LLMRateLimitError(LLMError):
    """HTTP 429. ``retry_after`` holds the server's requested pause, if any."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        details = dict(context or {})
        if retry_after is not None:
            details['retry_after'] = retry_after
        super().__init__(message, details, recoverable=True)
        self.retry_after = retry_after


class LLMAuthenticationError(LLMError):
    """Credentials rejected (HTTP 401/403). Retrying cannot help."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=False)


class LLMResponseError(LLMError):
    """The model answered, but not with a usable JSON object."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=True)


class RetryExhaustedError(TranslationError):
    """The retry manager gave up on a call.

    Attributes:
        original_error: Last error seen, None when the circuit was already open
        attempts: Calls made before giving up
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        attempts: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        details = dict(context or {})
        if original_error is not None:
            details['original_error'] = str(original_error)
            details['original_error_type'] = type(original_error).__name__
        if attempts is not None:
            details['attempts'] = attempts
        super().__init__(message, details, recoverable=False)
        self.original_error = original_error
        self.attempts = attempts
