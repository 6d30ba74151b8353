"""Unit tests for the exception hierarchy."""

from jsonlocalizer.core.exceptions import TranslationError
from jsonlocalizer.core.llm.exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    RetryExhaustedError,
)
from jsonlocalizer.core.localization.exceptions import (
    ChunkTranslationError,
    LocalizationError,
    MissingKeyError,
)


class TestTranslationError:
    """Test the base error."""

    def test_str_without_context(self):
        assert str(TranslationError("boom")) == "TranslationError: boom"

    def test_str_with_context(self):
        error = TranslationError("boom", context={"chunk_index": 2})
        assert str(error) == "TranslationError: boom (context: chunk_index=2)"

    def test_context_copied(self):
        context = {"a": 1}
        error = TranslationError("boom", context=context)
        error.context["b"] = 2
        assert context == {"a": 1}


class TestHierarchy:
    """Recoverability of each error type."""

    def test_llm_errors(self):
        assert isinstance(LLMConnectionError("x"), LLMError)
        assert LLMConnectionError("x").recoverable
        assert not LLMAuthenticationError("x").recoverable

    def test_rate_limit_keeps_retry_after(self):
        error = LLMRateLimitError("slow down", retry_after=3.0)
        assert error.retry_after == 3.0
        assert error.context["retry_after"] == 3.0

    def test_retry_exhausted_records_cause(self):
        cause = LLMConnectionError("down")
        error = RetryExhaustedError("gave up", original_error=cause, attempts=3)

        assert error.context["original_error_type"] == "LLMConnectionError"
        assert error.context["attempts"] == 3
        assert not error.recoverable

    def test_chunk_errors(self):
        missing = MissingKeyError(0, ["1", "4"])
        assert isinstance(missing, LocalizationError)
        assert missing.message == "Missing keys 1, 4 in translation output"

        failed = ChunkTranslationError(1, missing)
        assert failed.message.startswith("Chunk 2 translation failed")
        assert failed.context["chunk_index"] == 1
