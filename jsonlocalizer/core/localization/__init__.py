"""
JSON document localization module

Translates every eligible string of an arbitrary JSON document while
preserving its structure, markup, placeholders, URLs and email addresses.

Main entry point:
    localize_document() - Localize a document with a translation capability

Components:
    - tree_extractor: Translatable leaf collection and protected keys
    - tag_preservation: HTML tag tokenization around translation
    - html_repair: Best-effort markup balance repair (lxml)
    - chunk_planner: Size-bounded chunking of the leaf list
    - chunk_executor: Batched, fault-tolerant chunk translation
    - invariant_validator: Placeholder/URL/email parity checks
    - tree_binder: Writes translations back into a copy of the document
"""

from .localizer import DocumentLocalizer, localize_document
from .tree_extractor import ProtectedKeySet, TreeExtractor, extract_leaves
from .tag_preservation import MarkupProtector
from .html_repair import repair_html
from .chunk_planner import plan_chunks, compute_chunk_size
from .chunk_executor import ChunkExecutor
from .invariant_validator import InvariantValidator, PatternSet
from .tree_binder import bind_translations, same_shape
from .events import Event, EventBus, EventType
from .models import (
    Chunk,
    ContextTag,
    ExtractedLeaf,
    LocalizationResult,
    MismatchKind,
    TranslationIssue,
)

__all__ = [
    # Main entry points
    'DocumentLocalizer',
    'localize_document',

    # Components
    'ProtectedKeySet',
    'TreeExtractor',
    'extract_leaves',
    'MarkupProtector',
    'repair_html',
    'plan_chunks',
    'compute_chunk_size',
    'ChunkExecutor',
    'InvariantValidator',
    'PatternSet',
    'bind_translations',
    'same_shape',

    # Events
    'Event',
    'EventBus',
    'EventType',

    # Models
    'Chunk',
    'ContextTag',
    'ExtractedLeaf',
    'LocalizationResult',
    'MismatchKind',
    'TranslationIssue',
]
