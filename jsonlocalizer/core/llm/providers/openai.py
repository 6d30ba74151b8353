"""
Chat-completions provider for OpenAI and servers speaking the same API
(llama.cpp server, LM Studio, vLLM...).
"""

import json
from typing import Optional

import httpx

from ..base import LLMProvider, LLMResponse, map_http_error
from ..exceptions import LLMResponseError

from jsonlocalizer.config import REQUEST_TIMEOUT


class OpenAICompatibleProvider(LLMProvider):
    """
    POSTs to a ``/v1/chat/completions`` endpoint.

    Args:
        api_endpoint: Full chat-completions URL
        model: Model name
        api_key: Sent as a Bearer token when given (local servers need none)
        json_mode: Request ``response_format={"type": "json_object"}``;
            leave off for servers that reject the field
        client: Optional pre-built HTTP client
    """

    name = "openai"

    def __init__(self, api_endpoint: str, model: str, api_key: Optional[str] = None,
                 json_mode: bool = False, client: Optional[httpx.AsyncClient] = None):
        super().__init__(model, client)
        self.api_endpoint = api_endpoint
        self.api_key = api_key
        self.json_mode = json_mode

    def _build_payload(self, prompt: str, system_prompt: Optional[str]) -> dict:
        messages = [{"role": "system", "content": system_prompt}] if system_prompt else []
        messages.append({"role": "user", "content": prompt})
        payload = {"model": self.model, "messages": messages, "stream": False}
        if self.json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def generate(self, prompt: str, timeout: int = REQUEST_TIMEOUT,
                       system_prompt: Optional[str] = None) -> LLMResponse:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        client = await self._get_client()
        try:
            response = await client.post(
                self.api_endpoint,
                json=self._build_payload(prompt, system_prompt),
                headers=headers,
                timeout=timeout
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise map_http_error(e, "OpenAI-compatible API") from e

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise LLMResponseError(f"OpenAI-compatible API returned a non-JSON body: {e}") from e

        choice = (body.get("choices") or [{}])[0]
        usage = body.get("usage") or {}
        return LLMResponse(
            content=(choice.get("message") or {}).get("content") or "",
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            was_truncated=choice.get("finish_reason") == "length"
        )
