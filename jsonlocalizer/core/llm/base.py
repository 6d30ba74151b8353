"""
Provider abstraction for the LLM layer.

A provider turns one (system prompt, user prompt) pair into one
``LLMResponse`` and reports every failure as an ``LLMError``; it does not
retry. Retrying is the retry manager's job.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from jsonlocalizer.config import REQUEST_TIMEOUT
from .exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
)


@dataclass
class LLMResponse:
    """Raw model output plus token accounting."""
    content: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    was_truncated: bool = False  # stopped on the output/context length limit

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


def _retry_after_seconds(response: httpx.Response) -> Optional[float]:
    value = response.headers.get('retry-after')
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        # HTTP-date form, fall back to the configured backoff
        return None


def map_http_error(error: httpx.HTTPError, provider_name: str) -> LLMError:
    """
    Convert an httpx error into the LLM error taxonomy.

    401/403 become authentication errors, 429 a rate-limit error (with the
    server's Retry-After when present), everything else a connection error.
    """
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        body = error.response.text[:500]
        context = {'status': status, 'provider': provider_name}
        if status in (401, 403):
            return LLMAuthenticationError(f"{provider_name} rejected credentials: {body}", context)
        if status == 429:
            return LLMRateLimitError(
                f"{provider_name} rate limit exceeded",
                _retry_after_seconds(error.response),
                context
            )
        return LLMConnectionError(f"{provider_name} HTTP {status}: {body}", context)
    if isinstance(error, httpx.TimeoutException):
        return LLMConnectionError(f"{provider_name} request timed out: {error}", {'provider': provider_name})
    return LLMConnectionError(f"{provider_name} request failed: {error}", {'provider': provider_name})


class LLMProvider(ABC):
    """
    Base class of the HTTP providers.

    The ``httpx.AsyncClient`` is created lazily and reused across requests,
    so concurrent chunks share one connection pool. Use the provider as an
    async context manager, or call ``close()``, to release it.

    Args:
        model: Model name as the server knows it
        client: Pre-built HTTP client (tests pass one with a mock transport)
    """

    name = "llm"

    def __init__(self, model: str, client: Optional[httpx.AsyncClient] = None):
        self.model = model
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                timeout=httpx.Timeout(REQUEST_TIMEOUT)
            )
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @abstractmethod
    async def generate(self, prompt: str, timeout: int = REQUEST_TIMEOUT,
                       system_prompt: Optional[str] = None) -> LLMResponse:
        """
        Send one prompt pair and return the model's answer.

        Raises:
            LLMError: On transport failure or an unusable response body
        """
