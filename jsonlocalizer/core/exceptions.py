"""
Base error shared by the localization engine and the LLM layer.

Recoverable errors are absorbed at chunk level, where the chunk keeps its
source text. Non-recoverable ones end the run.
"""

from typing import Any, Dict, Optional


class TranslationError(Exception):
    """Base exception of the package.

    Attributes:
        message: Human-readable error message
        context: Details such as chunk index, HTTP status or attempt count
        recoverable: True when losing one chunk to this error is acceptable
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None, recoverable: bool = False):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})
        self.recoverable = recoverable

    def __str__(self) -> str:
        text = f"{type(self).__name__}: {self.message}"
        if not self.context:
            return text
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{text} (context: {details})"
