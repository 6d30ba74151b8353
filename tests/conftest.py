"""
Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and provides sample documents
and fake translation capabilities shared by the test modules.
"""

import asyncio
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from jsonlocalizer.core.llm.exceptions import LLMConnectionError


class RecordingTranslator:
    """Fake translation capability.

    Applies ``transform`` to every value and records each request so tests
    can inspect what was sent.

    Args:
        transform: Function applied to each source value (identity by default)
        fail_when: Predicate on the request map; when true the call raises
        delay: Optional function request_map -> seconds to sleep before answering
    """

    def __init__(
        self,
        transform: Optional[Callable[[str], str]] = None,
        fail_when: Optional[Callable[[Dict[str, str]], bool]] = None,
        delay: Optional[Callable[[Dict[str, str]], float]] = None
    ):
        self.transform = transform or (lambda value: value)
        self.fail_when = fail_when
        self.delay = delay
        self.calls: List[dict] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def sent_values(self) -> List[str]:
        """Every value sent, across all calls, in call order."""
        return [value for call in self.calls for value in call["request_map"].values()]

    async def translate(self, source_language, target_language, topic, request_map,
                        context_hints=None, repair_hint=None):
        self.calls.append({
            "source_language": source_language,
            "target_language": target_language,
            "topic": topic,
            "request_map": dict(request_map),
            "context_hints": context_hints,
            "repair_hint": repair_hint,
        })
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Always yield once so that chunks of a batch overlap
            await asyncio.sleep(self.delay(request_map) if self.delay else 0)
            if self.fail_when and self.fail_when(request_map):
                raise LLMConnectionError("provider unreachable")
            return {key: self.transform(value) for key, value in request_map.items()}
        finally:
            self.in_flight -= 1

    async def close(self):
        pass


class ScriptedTranslator:
    """Fake capability answering with a fixed sequence of responses.

    Each item is either a dict (returned as is) or an exception (raised).
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls: List[dict] = []

    async def translate(self, source_language, target_language, topic, request_map,
                        context_hints=None, repair_hint=None):
        self.calls.append({"request_map": dict(request_map), "repair_hint": repair_hint})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def dictionary(mapping: Dict[str, str]) -> Callable[[str], str]:
    """Transform translating known values and echoing the others."""
    return lambda value: mapping.get(value, value)


@pytest.fixture
def identity_translator():
    """Translation capability returning every value unchanged."""
    return RecordingTranslator()


@pytest.fixture
def prefix_translator():
    """Translation capability prefixing every value with 'FR:'."""
    return RecordingTranslator(transform=lambda value: f"FR:{value}")


@pytest.fixture
def make_translator():
    """Factory for configurable recording translators."""
    return RecordingTranslator


@pytest.fixture
def scripted_translator():
    """Factory for scripted translators."""
    return ScriptedTranslator


@pytest.fixture
def dictionary_transform():
    return dictionary


@pytest.fixture
def sample_html():
    """Sample HTML for testing."""
    return "<p>Hello <b>World</b></p>"


@pytest.fixture
def sample_document():
    """A realistic document mixing plain text, markup, placeholders and protected keys."""
    return {
        "id": "phishing-101",
        "scene_type": "inbox",
        "title": "Spot the phishing email",
        "difficulty": "easy",
        "emails": [
            {
                "id": "mail-1",
                "sender": "it-support@example.com",
                "subject": "Password expires today",
                "content": "<p>Hello <b>{name}</b>, your password expires in %d days.</p>",
                "headers": ["X-Mailer: Outlook"],
                "isPhishing": True,
                "attachments": [],
            },
            {
                "id": "mail-2",
                "sender": "hr@example.com",
                "subject": "Holiday schedule",
                "content": "Read the schedule at https://intranet.example.com/holidays",
                "isPhishing": False,
                "score": 0.25,
            },
        ],
        "explanation": "Check the sender address before clicking.",
        "iconName": "mail",
        "tags": ["security", "email"],
        "empty": "",
        "count": "{count}",
    }
