"""
JSON object extraction from LLM responses.

Models asked for "only a JSON object" still wrap it in markdown fences,
prefix it with a sentence, or emit a <think> block first. This module finds
the object anyway.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r'```(?:json|JSON)?\s*(.*?)```', re.DOTALL)


class JsonObjectExtractor:
    """
    Extracts the first JSON object from a raw LLM response.

    Handles:
        - Removal of <think>...</think> blocks (and an orphan </think>)
        - Markdown code fences
        - Prose before or after the object

    Example:
        >>> extractor = JsonObjectExtractor()
        >>> extractor.extract('<think>hmm</think>Sure! {"0": "Bonjour"}')
        {'0': 'Bonjour'}
    """

    def __init__(self):
        self._decoder = json.JSONDecoder()

    def extract(self, response: str) -> Optional[Dict[str, Any]]:
        """
        Extract a JSON object from the response.

        Args:
            response: Raw LLM response text

        Returns:
            The decoded object, or None if no JSON object could be found
        """
        if not response:
            return None

        text = self._remove_think_blocks(response.strip()).strip()

        # Whole response is the object (the usual case with JSON mode)
        parsed = self._try_load(text)
        if isinstance(parsed, dict):
            return parsed

        for fenced in _FENCE_RE.findall(text):
            parsed = self._try_load(fenced.strip())
            if isinstance(parsed, dict):
                return parsed

        found = self._scan_for_object(text)
        if found is not None:
            logger.debug("JSON object found inside surrounding text")
        return found

    def _try_load(self, text: str) -> Any:
        try:
            return json.loads(text)
        except ValueError:
            return None

    def _scan_for_object(self, text: str) -> Optional[Dict[str, Any]]:
        """Decode from each '{' in turn and return the first complete object."""
        pos = text.find('{')
        while pos != -1:
            try:
                parsed, _ = self._decoder.raw_decode(text, pos)
            except ValueError:
                parsed = None
            if isinstance(parsed, dict):
                return parsed
            pos = text.find('{', pos + 1)
        return None

    def _remove_think_blocks(self, response: str) -> str:
        """
        Remove all <think>...</think> blocks from response.

        These blocks contain the model's reasoning and may themselves
        contain braces, so they go before any search.
        """
        # Case 1: Complete <think>...</think> blocks
        response = re.sub(r'<think>.*?</think>', '', response, flags=re.DOTALL | re.IGNORECASE)

        # Case 2: Orphan closing tag </think> (when the opening tag was truncated)
        before_orphan_removal = response
        response = re.sub(r'^.*?</think>\s*', '', response, flags=re.DOTALL | re.IGNORECASE)

        if before_orphan_removal != response:
            removed_length = len(before_orphan_removal) - len(response)
            logger.debug(f"Orphan </think> detected - removed {removed_length} characters from beginning")

        return response
