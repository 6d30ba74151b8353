"""
LLM layer: providers, retry policy and the numbered-map translator.

Modules:
    - base: LLMProvider abstract base and LLMResponse
    - providers: Ollama and OpenAI-compatible implementations
    - factory: create_llm_provider
    - retry_manager: backoff and circuit breaker
    - json_translator: LLMJsonTranslator, the translation capability
"""

from .base import LLMProvider, LLMResponse
from .factory import create_llm_provider
from .json_translator import LLMJsonTranslator
from .retry_manager import RetryConfig, RetryManager, RetryStrategy

__all__ = [
    'LLMProvider',
    'LLMResponse',
    'create_llm_provider',
    'LLMJsonTranslator',
    'RetryConfig',
    'RetryManager',
    'RetryStrategy',
]
