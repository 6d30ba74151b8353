"""
Leaf extraction from arbitrary JSON documents.

Walks a document depth-first (sequences by index, mappings in insertion
order) and collects every string leaf that may be translated, together with
its address so the translation can be written back to the same place.
"""

import logging
import re
from typing import Iterable, List, Optional

from jsonlocalizer.config import ALWAYS_PROTECTED_KEYS, BUILTIN_PROTECTED_KEYS
from .html_repair import looks_like_markup
from .models import Address, ContextTag, ExtractedLeaf, Value
from .tag_preservation import MarkupProtector

logger = logging.getLogger(__name__)


class ProtectedKeySet:
    """Leaf names whose values are never translated.

    A name is protected when it equals one of the built-in names
    (case-insensitive) or contains one of the caller's keys as a
    case-insensitive substring.

    Args:
        keys: Caller-supplied protected keys (substring match)
        builtin: Exact-match names, defaults to identifiers, URLs, icons
            and enum-like tags
    """

    def __init__(
        self,
        keys: Optional[Iterable[str]] = None,
        builtin: Iterable[str] = BUILTIN_PROTECTED_KEYS
    ):
        self.keys = [k.lower() for k in (keys or []) if k]
        for key in ALWAYS_PROTECTED_KEYS:
            if key.lower() not in self.keys:
                self.keys.append(key.lower())
        self._exact = re.compile(
            r'^(?:' + '|'.join(re.escape(name) for name in builtin) + r')$',
            re.IGNORECASE
        ) if builtin else None

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        if self._exact is not None and self._exact.match(name):
            return True
        lowered = name.lower()
        return any(key in lowered for key in self.keys)

    def extend(self, keys: Iterable[str]) -> 'ProtectedKeySet':
        """Add caller keys and return self for chaining."""
        for key in keys:
            if key and key.lower() not in self.keys:
                self.keys.append(key.lower())
        return self


def leaf_name(address: Address) -> Optional[str]:
    """The nearest mapping key of an address.

    Strings inside a list (``tags[2]``) are named after the list's key.
    Returns None for a bare string document or a top-level list.
    """
    for segment in reversed(address):
        if isinstance(segment, str):
            return segment
    return None


def classify_context(name: Optional[str]) -> ContextTag:
    """Derive a style hint from a leaf name."""
    if not name:
        return ContextTag.TEXT
    lowered = name.lower()
    if 'title' in lowered:
        return ContextTag.TITLE
    if 'subject' in lowered:
        return ContextTag.EMAIL_SUBJECT
    if 'description' in lowered:
        return ContextTag.DESCRIPTION
    if 'content' in lowered:
        return ContextTag.CONTENT
    if 'message' in lowered:
        return ContextTag.MESSAGE
    if 'explanation' in lowered:
        return ContextTag.EXPLANATION
    return ContextTag.TEXT


class TreeExtractor:
    """Collects translatable leaves from a document.

    Pure with respect to the document: nothing is mutated.
    """

    def __init__(
        self,
        protected_keys: Optional[ProtectedKeySet] = None,
        protector: Optional[MarkupProtector] = None
    ):
        self.protected_keys = protected_keys or ProtectedKeySet()
        self.protector = protector or MarkupProtector()

    def extract(self, tree: Value) -> List[ExtractedLeaf]:
        leaves: List[ExtractedLeaf] = []
        self._visit(tree, (), leaves)
        markup_count = sum(1 for leaf in leaves if leaf.has_markup)
        logger.debug(f"Extracted {len(leaves)} strings ({markup_count} with markup protection)")
        return leaves

    def _visit(self, node: Value, address: Address, leaves: List[ExtractedLeaf]) -> None:
        if isinstance(node, str):
            self._visit_string(node, address, leaves)
        elif isinstance(node, list):
            for index, item in enumerate(node):
                self._visit(item, address + (index,), leaves)
        elif isinstance(node, dict):
            for key, item in node.items():
                self._visit(item, address + (key,), leaves)
        # numbers, booleans and null pass through untouched

    def _visit_string(self, value: str, address: Address, leaves: List[ExtractedLeaf]) -> None:
        name = leaf_name(address)
        if name is not None and name in self.protected_keys:
            return

        context = classify_context(name)
        if looks_like_markup(value):
            repaired = self.protector.repair(value)
            protected, markup_map = self.protector.protect(repaired)
            leaves.append(ExtractedLeaf(
                address=address,
                source_value=protected,
                context=context,
                markup_map=markup_map or None
            ))
        else:
            leaves.append(ExtractedLeaf(address=address, source_value=value, context=context))


def extract_leaves(
    tree: Value,
    protected_keys: Optional[ProtectedKeySet] = None,
    protector: Optional[MarkupProtector] = None
) -> List[ExtractedLeaf]:
    """Extract every translatable string leaf of ``tree`` in traversal order."""
    return TreeExtractor(protected_keys, protector).extract(tree)
