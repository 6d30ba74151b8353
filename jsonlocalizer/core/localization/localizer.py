"""
Document localization orchestrator.

Runs the full flow for one document:

    extract -> plan chunks -> translate batches -> bind

and converts the outcome into a ``LocalizationResult``. Chunk-level problems
never raise out of here; only a count mismatch between extracted and
translated values, or a total outage of the translation capability, turns
into ``success=False``.
"""

import logging
import time
from typing import Optional

from jsonlocalizer.config import LocalizationConfig
from .chunk_executor import ChunkExecutor
from .chunk_planner import plan_chunks
from .events import Event, EventBus, EventType
from .exceptions import BindingMismatchError
from .interfaces import ITranslationCapability
from .invariant_validator import InvariantValidator
from .models import LocalizationResult, Value
from .tag_preservation import MarkupProtector
from .tree_binder import bind_translations, flatten_outcomes
from .tree_extractor import ProtectedKeySet, TreeExtractor

logger = logging.getLogger(__name__)


class DocumentLocalizer:
    """
    Translates every eligible string of a JSON document.

    Args:
        translator: External translation capability
        config: Per-invocation settings (languages, chunk budget, batch size...)
        event_bus: Optional event bus for progress tracking
        protector: Markup protector (defaults to lxml-based repair)
        validator: Invariant validator (defaults to the built-in pattern set)

    Example:
        >>> localizer = DocumentLocalizer(LLMJsonTranslator(provider), LocalizationConfig(target_language="German"))
        >>> result = await localizer.localize({"title": "Hello"})
        >>> result.data
        {'title': 'Hallo'}
    """

    def __init__(
        self,
        translator: ITranslationCapability,
        config: Optional[LocalizationConfig] = None,
        event_bus: Optional[EventBus] = None,
        protector: Optional[MarkupProtector] = None,
        validator: Optional[InvariantValidator] = None
    ):
        self.translator = translator
        self.config = config or LocalizationConfig()
        self.event_bus = event_bus
        self.protector = protector or MarkupProtector()
        self.validator = validator or InvariantValidator(
            strict_placeholder_order=self.config.strict_placeholder_order
        )
        self.extractor = TreeExtractor(ProtectedKeySet(self.config.protected_keys), self.protector)

    def _emit(self, event_type: EventType, **data) -> None:
        if self.event_bus:
            self.event_bus.publish(Event(type=event_type, data=data, source="localizer"))

    async def localize(self, document: Value) -> LocalizationResult:
        """
        Localize a document.

        Args:
            document: Any JSON-compatible value. Never mutated.

        Returns:
            LocalizationResult with the localized document in ``data``
        """
        start_time = time.time()
        config = self.config

        logger.debug(f"Localization settings: {config.to_dict()}")
        leaves = self.extractor.extract(document)
        if not leaves:
            logger.info("No translatable strings found, returning document unchanged")
            return LocalizationResult(success=True, data=document)

        chunks = plan_chunks(
            leaves,
            max_json_chars=config.max_json_chars,
            initial_size=config.initial_chunk_size,
            min_size=config.min_chunk_size,
            reduction_factor=config.size_reduction_factor
        )
        logger.info(
            f"Localizing {len(leaves)} strings to {config.target_language} "
            f"in {len(chunks)} chunks (batch size {config.batch_size})"
        )
        self._emit(
            EventType.TRANSLATION_STARTED,
            total_strings=len(leaves),
            total_chunks=len(chunks),
            target_language=config.target_language
        )

        executor = ChunkExecutor(
            self.translator,
            config.source_language,
            config.target_language,
            topic=config.topic,
            validator=self.validator,
            batch_size=config.batch_size,
            event_bus=self.event_bus
        )
        outcomes = await executor.execute(chunks)

        translated = flatten_outcomes(outcomes)
        issues = [issue for outcome in outcomes for issue in outcome.issues]
        failed_chunks = [outcome.chunk_index for outcome in outcomes if outcome.failed]

        try:
            data = bind_translations(document, leaves, translated, self.protector)
        except BindingMismatchError as e:
            self._emit(EventType.TRANSLATION_FAILED, error=e.message)
            return LocalizationResult(
                success=False,
                data=None,
                issues=issues,
                error=e.message,
                failed_chunks=failed_chunks
            )

        # Chunks made only of trivial values never reach the capability
        sent = [outcome for outcome in outcomes if outcome.failed or outcome.attempts > 0]
        if sent and all(outcome.failed for outcome in sent):
            error = f"Translation failed for all {len(sent)} chunks: {sent[0].error}"
            logger.error(error)
            self._emit(EventType.TRANSLATION_FAILED, error=error)
            return LocalizationResult(
                success=False,
                data=data,
                issues=issues,
                error=error,
                failed_chunks=failed_chunks
            )

        elapsed = time.time() - start_time
        logger.info(
            f"Localization finished in {elapsed:.1f}s: {len(chunks) - len(failed_chunks)}/{len(chunks)} "
            f"chunks translated, {len(issues)} soft issues"
        )
        self._emit(
            EventType.TRANSLATION_COMPLETED,
            total_chunks=len(chunks),
            failed_chunks=failed_chunks,
            issues=len(issues),
            elapsed=elapsed
        )
        return LocalizationResult(success=True, data=data, issues=issues, failed_chunks=failed_chunks)


async def localize_document(
    document: Value,
    translator: ITranslationCapability,
    config: Optional[LocalizationConfig] = None,
    event_bus: Optional[EventBus] = None
) -> LocalizationResult:
    """Convenience wrapper around ``DocumentLocalizer.localize``."""
    return await DocumentLocalizer(translator, config, event_bus).localize(document)
