"""
Numbered-map translation over an LLM provider.

``LLMJsonTranslator`` is the translation capability used by the document
localizer: it receives ``{"0": text, "1": text, ...}`` and returns a map
with the same keys holding the translated texts.
"""

import logging
from typing import Dict, Optional

from jsonlocalizer.config import REQUEST_TIMEOUT
from .base import LLMProvider
from .exceptions import LLMResponseError
from .prompts import generate_json_translation_prompt
from .retry_manager import RetryManager
from .utils.extraction import JsonObjectExtractor

logger = logging.getLogger(__name__)


class LLMJsonTranslator:
    """
    Translation capability backed by an LLM provider.

    Transport errors are retried by the retry manager. Output that is not a
    JSON object raises ``LLMResponseError`` immediately; missing keys are
    left for the caller to detect.

    Args:
        provider: The LLM provider
        retry_manager: Retry policy (a default one is created if omitted)
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        provider: LLMProvider,
        retry_manager: Optional[RetryManager] = None,
        timeout: int = REQUEST_TIMEOUT
    ):
        self.provider = provider
        self.retry_manager = retry_manager or RetryManager()
        self.timeout = timeout
        self._extractor = JsonObjectExtractor()

    async def translate(
        self,
        source_language: str,
        target_language: str,
        topic: Optional[str],
        request_map: Dict[str, str],
        context_hints: Optional[Dict[str, str]] = None,
        repair_hint: Optional[str] = None
    ) -> Dict[str, str]:
        if not request_map:
            return {}

        prompt = generate_json_translation_prompt(
            request_map,
            source_language=source_language,
            target_language=target_language,
            topic=topic,
            context_hints=context_hints,
            repair_hint=repair_hint
        )

        response = await self.retry_manager.execute_with_retry(
            self.provider.generate,
            prompt.user,
            timeout=self.timeout,
            system_prompt=prompt.system,
            operation_id=f"{self.provider.name}:{len(request_map)} strings"
        )
        if response is None or not response.content:
            raise LLMResponseError("Empty response from LLM")
        if response.was_truncated:
            logger.warning(f"LLM output was truncated after {response.completion_tokens} tokens")

        parsed = self._extractor.extract(response.content)
        if parsed is None:
            raise LLMResponseError(
                "Response was not a JSON object",
                context={'preview': response.content[:200]}
            )

        result: Dict[str, str] = {}
        for key, value in parsed.items():
            if value is None:
                continue
            # Models sometimes answer numbers or booleans for numeric-looking text
            result[str(key)] = value if isinstance(value, str) else str(value)

        extra = set(result) - set(request_map)
        if extra:
            logger.debug(f"Ignoring unexpected keys in LLM output: {sorted(extra)}")
            for key in extra:
                del result[key]
        return result

    async def close(self):
        await self.provider.close()
