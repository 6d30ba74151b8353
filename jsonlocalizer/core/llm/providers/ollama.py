"""
Ollama provider.

Talks to a local Ollama server through /api/chat, non-streaming and with
``format: "json"`` so the model answers with a bare JSON object.
"""

import json
import logging
from typing import Optional

import httpx

from ..base import LLMProvider, LLMResponse, map_http_error
from ..exceptions import LLMResponseError

from jsonlocalizer.config import (
    API_ENDPOINT,
    DEFAULT_MODEL,
    OLLAMA_NUM_CTX,
    REQUEST_TIMEOUT,
)

logger = logging.getLogger(__name__)


class OllamaProvider(LLMProvider):
    """
    Args:
        api_endpoint: Chat URL; a legacy ``/api/generate`` URL is rewritten
        model: Model tag, e.g. ``qwen3:14b``
        context_window: ``num_ctx`` requested for each call
        json_mode: Ask Ollama to constrain the output to JSON
        client: Optional pre-built HTTP client
    """

    name = "ollama"

    def __init__(self, api_endpoint: str = API_ENDPOINT, model: str = DEFAULT_MODEL,
                 context_window: int = OLLAMA_NUM_CTX, json_mode: bool = True,
                 client: Optional[httpx.AsyncClient] = None):
        super().__init__(model, client)
        self.api_endpoint = api_endpoint.replace('/api/generate', '/api/chat')
        self.context_window = context_window
        self.json_mode = json_mode

    def _build_payload(self, prompt: str, system_prompt: Optional[str]) -> dict:
        messages = [{"role": "system", "content": system_prompt}] if system_prompt else []
        messages.append({"role": "user", "content": prompt})
        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            # thinking models would spend the context window on reasoning
            "think": False,
            "options": {"num_ctx": self.context_window},
        }
        if self.json_mode:
            payload["format"] = "json"
        return payload

    async def generate(self, prompt: str, timeout: int = REQUEST_TIMEOUT,
                       system_prompt: Optional[str] = None) -> LLMResponse:
        client = await self._get_client()
        try:
            response = await client.post(
                self.api_endpoint,
                json=self._build_payload(prompt, system_prompt),
                timeout=timeout
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise map_http_error(e, "Ollama") from e

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise LLMResponseError(f"Ollama returned a non-JSON body: {e}") from e

        prompt_tokens = body.get("prompt_eval_count", 0)
        completion_tokens = body.get("eval_count", 0)
        was_truncated = body.get("done_reason") == "length"
        if was_truncated:
            logger.warning(
                f"Ollama stopped on the length limit ({prompt_tokens}+{completion_tokens} tokens, "
                f"num_ctx={self.context_window}); consider a smaller MAX_JSON_CHARS"
            )

        return LLMResponse(
            content=(body.get("message") or {}).get("content", ""),
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            was_truncated=was_truncated
        )
