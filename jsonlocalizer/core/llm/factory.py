"""
Provider factory.
"""

from jsonlocalizer.config import API_ENDPOINT, DEFAULT_MODEL, OLLAMA_NUM_CTX, OPENAI_API_KEY
from .base import LLMProvider
from .providers.ollama import OllamaProvider
from .providers.openai import OpenAICompatibleProvider

OPENAI_DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"


def create_llm_provider(provider_type: str = "ollama", **kwargs) -> LLMProvider:
    """Factory function to create LLM providers"""
    provider = (provider_type or "ollama").lower()
    model = kwargs.get("model") or DEFAULT_MODEL

    if provider == "ollama":
        return OllamaProvider(
            api_endpoint=kwargs.get("api_endpoint") or API_ENDPOINT,
            model=model,
            context_window=kwargs.get("context_window") or OLLAMA_NUM_CTX,
            client=kwargs.get("client")
        )
    elif provider == "openai":
        return OpenAICompatibleProvider(
            api_endpoint=kwargs.get("api_endpoint") or OPENAI_DEFAULT_ENDPOINT,
            model=model,
            api_key=kwargs.get("api_key") or OPENAI_API_KEY or None,
            json_mode=kwargs.get("json_mode", False),
            client=kwargs.get("client")
        )
    else:
        raise ValueError(f"Unknown provider type: {provider_type}")
