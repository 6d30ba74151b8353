"""
Custom exceptions for the document localization pipeline.

Chunk-level errors are recoverable: the executor falls back to source text
for the affected chunk. A binding mismatch is not.
"""

from typing import Any, Dict, List, Optional

from jsonlocalizer.core.exceptions import TranslationError


class LocalizationError(TranslationError):
    """Base exception for all document localization errors."""
    pass


class BindingMismatchError(LocalizationError):
    """Raised when the translated values do not line up with the extracted leaves.

    Attributes:
        expected_count: Number of extracted leaves
        actual_count: Number of translated values received
    """

    def __init__(self, expected_count: int, actual_count: int):
        super().__init__(
            f"Mismatch: extracted {expected_count} strings but got {actual_count} translations",
            context={'expected': expected_count, 'actual': actual_count},
            recoverable=False
        )
        self.expected_count = expected_count
        self.actual_count = actual_count


class MissingKeyError(LocalizationError):
    """Raised when a response lacks keys that were sent for translation.

    Attributes:
        chunk_index: Zero-based index of the chunk
        missing_keys: Keys of the request map absent from the response
    """

    def __init__(self, chunk_index: int, missing_keys: List[str]):
        super().__init__(
            f"Missing keys {', '.join(missing_keys)} in translation output",
            context={'chunk_index': chunk_index},
            recoverable=True
        )
        self.chunk_index = chunk_index
        self.missing_keys = list(missing_keys)


class ChunkTranslationError(LocalizationError):
    """Raised when a chunk could not be translated after its retry.

    Attributes:
        chunk_index: Zero-based index of the chunk
        original_error: The last underlying error
    """

    def __init__(
        self,
        chunk_index: int,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = dict(context or {})
        ctx['chunk_index'] = chunk_index
        super().__init__(
            f"Chunk {chunk_index + 1} translation failed: {original_error}",
            context=ctx,
            recoverable=True
        )
        self.chunk_index = chunk_index
        self.original_error = original_error
