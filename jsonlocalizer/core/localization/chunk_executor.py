"""
Chunk translation with bounded parallelism.

Chunks are processed in batches: batches run one after another, the chunks
of a batch run concurrently and the batch completes only when every chunk
has settled. A failing chunk falls back to its source values and never
affects its siblings.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from jsonlocalizer.config import BATCH_SIZE
from jsonlocalizer.core.llm.exceptions import LLMResponseError
from .events import (
    Event,
    EventBus,
    create_chunk_failed_event,
    create_chunk_retry_event,
    create_chunk_started_event,
    create_chunk_translated_event,
    create_fallback_event,
    create_validation_issue_event,
)
from .exceptions import ChunkTranslationError, MissingKeyError
from .interfaces import ITranslationCapability
from .invariant_validator import (
    InvariantValidator,
    correct_edge_whitespace,
    is_trivial_value,
)
from .models import Chunk, ChunkOutcome, TranslationIssue

logger = logging.getLogger(__name__)

# Errors worth one more attempt with a description of the defect
REPAIRABLE_ERRORS = (MissingKeyError, LLMResponseError, ValueError)

# First attempt plus one retry carrying a repair hint
MAX_CHUNK_ATTEMPTS = 2


def build_repair_hint(error: Exception, expected_keys: Sequence[str]) -> str:
    """Describe what was wrong with a response so the next attempt can fix it."""
    expected = f'a JSON object with exactly the keys "0".."{len(expected_keys) - 1}"'
    if isinstance(error, MissingKeyError):
        return (
            f"Your previous answer was missing the keys {', '.join(error.missing_keys)}. "
            f"Return {expected}, one translated value per key."
        )
    return f"Your previous answer could not be used ({getattr(error, 'message', error)}). Return only {expected}."


class ChunkExecutor:
    """Sends chunks to the translation capability and validates the answers.

    Args:
        translator: The external translation capability
        source_language: Language of the document
        target_language: Language to translate into
        topic: Optional topic/style hint
        validator: Structural checks applied to each translated leaf
        batch_size: Maximum number of chunks in flight
        event_bus: Optional event bus for observability
    """

    def __init__(
        self,
        translator: ITranslationCapability,
        source_language: str,
        target_language: str,
        topic: Optional[str] = None,
        validator: Optional[InvariantValidator] = None,
        batch_size: int = BATCH_SIZE,
        event_bus: Optional[EventBus] = None
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.translator = translator
        self.source_language = source_language
        self.target_language = target_language
        self.topic = topic
        self.validator = validator or InvariantValidator()
        self.batch_size = batch_size
        self.event_bus = event_bus

    def _emit(self, event: Event) -> None:
        if self.event_bus:
            self.event_bus.publish(event)

    def _fallback(self, chunk: Chunk, cause: Exception, attempts: int, total_chunks: int) -> ChunkOutcome:
        error = ChunkTranslationError(chunk.index, cause, context={"attempts": attempts})
        logger.warning(
            f"Chunk {chunk.number}/{total_chunks} translation failed after {attempts} attempt(s), "
            f"using originals: {cause}"
        )
        self._emit(create_chunk_failed_event(chunk.index, error.message, attempts))
        self._emit(create_fallback_event(chunk.index, error.message))
        return ChunkOutcome(
            chunk_index=chunk.index,
            values=[leaf.source_value for leaf in chunk.leaves],
            failed=True,
            error=error.message,
            attempts=attempts
        )

    async def _request(
        self,
        chunk: Chunk,
        request_map: Dict[str, str],
        context_hints: Dict[str, str],
        repair_hint: Optional[str]
    ) -> Dict[str, str]:
        response = await self.translator.translate(
            self.source_language,
            self.target_language,
            self.topic,
            request_map,
            context_hints=context_hints,
            repair_hint=repair_hint
        )
        if not isinstance(response, dict):
            raise LLMResponseError(f"Expected object, got {type(response).__name__}")

        missing = [key for key in request_map if response.get(key) is None]
        if missing:
            raise MissingKeyError(chunk.index, missing)
        return response

    async def translate_chunk(self, chunk: Chunk, total_chunks: int = 1) -> ChunkOutcome:
        """
        Translate one chunk. Never raises for translation problems.

        Trivial leaves (blank, a lone placeholder, only markup tokens) are
        not sent and keep their source value.

        Returns:
            ChunkOutcome with one value per leaf of the chunk
        """
        trivial_mask = [is_trivial_value(leaf.source_value) for leaf in chunk.leaves]

        # Request keys are re-numbered over the non-trivial leaves
        positions = [i for i, trivial in enumerate(trivial_mask) if not trivial]
        request_map = {str(k): chunk.leaves[i].source_value for k, i in enumerate(positions)}
        context_hints = {str(k): chunk.leaves[i].context.value for k, i in enumerate(positions)}

        if not request_map:
            logger.debug(f"Chunk {chunk.number}/{total_chunks} has only trivial values, skipping request")
            return ChunkOutcome(chunk_index=chunk.index, values=[leaf.source_value for leaf in chunk.leaves])

        self._emit(create_chunk_started_event(chunk.index, len(request_map)))

        repair_hint = None
        response = None
        attempt = 0
        while response is None:
            attempt += 1
            logger.debug(
                f"Translating chunk {chunk.number}/{total_chunks} ({len(request_map)} strings)"
                + (f" - retry {attempt}/{MAX_CHUNK_ATTEMPTS}" if attempt > 1 else "")
            )
            try:
                response = await self._request(chunk, request_map, context_hints, repair_hint)
            except REPAIRABLE_ERRORS as e:
                if attempt >= MAX_CHUNK_ATTEMPTS:
                    return self._fallback(chunk, e, attempt, total_chunks)
                repair_hint = build_repair_hint(e, list(request_map))
                logger.info(f"Chunk {chunk.number}/{total_chunks} answer rejected, retrying: {e}")
                self._emit(create_chunk_retry_event(chunk.index, attempt, str(e)))
            except Exception as e:
                return self._fallback(chunk, e, attempt, total_chunks)

        values: List[str] = [leaf.source_value for leaf in chunk.leaves]
        issues: List[TranslationIssue] = []
        for key, i in enumerate(positions):
            leaf = chunk.leaves[i]
            translated = response[str(key)]
            if not isinstance(translated, str):
                translated = str(translated)

            leaf_issues = self.validator.validate(
                leaf.source_value, translated, chunk.index, i, leaf.markup_map
            )
            for issue in leaf_issues:
                self._emit(create_validation_issue_event(chunk.index, i, issue.kind.value))
            issues.extend(leaf_issues)

            values[i] = correct_edge_whitespace(leaf.source_value, translated)

        logger.debug(f"Chunk {chunk.number}/{total_chunks} done ({len(values)} strings, {len(issues)} issues)")
        self._emit(create_chunk_translated_event(chunk.index, total_chunks, True, attempt - 1))
        return ChunkOutcome(chunk_index=chunk.index, values=values, issues=issues, attempts=attempt)

    async def execute(self, chunks: Sequence[Chunk]) -> List[ChunkOutcome]:
        """
        Translate all chunks, ``batch_size`` at a time.

        Returns:
            One outcome per chunk, in chunk order regardless of completion order
        """
        total = len(chunks)
        outcomes: List[ChunkOutcome] = []
        for start in range(0, total, self.batch_size):
            batch = chunks[start:start + self.batch_size]
            logger.debug(
                f"Processing batch {start // self.batch_size + 1}/"
                f"{(total + self.batch_size - 1) // self.batch_size} ({len(batch)} chunks in parallel)"
            )
            results = await asyncio.gather(
                *(self.translate_chunk(chunk, total) for chunk in batch),
                return_exceptions=True
            )
            for chunk, result in zip(batch, results):
                if isinstance(result, ChunkOutcome):
                    outcomes.append(result)
                elif isinstance(result, Exception):
                    outcomes.append(self._fallback(chunk, result, 0, total))
                else:
                    raise result
        return outcomes
