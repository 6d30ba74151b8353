"""
Structural checks between a source value and its translation.

Each check is a pure function over two strings. Mismatches become soft
``TranslationIssue`` records; they never stop the pipeline. Detection
patterns live in a ``PatternSet`` so locale-specific variants can be
swapped in without touching the executor.

Placeholder policy:
    - simple placeholders (``%s``, ``%d``, ``{name}``, ``{{name}}``) are
      compared as an ordered sequence, or as a multiset when
      ``strict_order`` is turned off
    - ICU plural/select blocks are compared as a set of signatures
      (argument, keyword and selector names). Branch text is translatable
      and is not compared.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Tuple

from jsonlocalizer.config import MARKUP_TOKEN_PATTERN
from .models import MismatchKind, TranslationIssue
from .tag_preservation import MarkupProtector

MARKUP_TOKEN_RE = re.compile(MARKUP_TOKEN_PATTERN)
SIMPLE_PLACEHOLDER_RE = re.compile(r'%[sd]|\{\{\s*[\w.-]+\s*\}\}|\{[\w.-]+\}')
TRIVIAL_PLACEHOLDER_RE = re.compile(r'\{\{[\w.-]+\}\}|%[sd]|\{[\w.-]+\}')
ICU_HEAD_RE = re.compile(r'\{\s*([\w.-]+)\s*,\s*(plural|selectordinal|select)\s*,', re.IGNORECASE)
ICU_SELECTOR_RE = re.compile(r'(=?[\w.-]+)\s*\{')
URL_RE = re.compile(r'\bhttps?://[^\s<>"\']+', re.IGNORECASE)
EMAIL_RE = re.compile(r'\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b', re.IGNORECASE)


@dataclass
class PatternSet:
    """Detection patterns used by the validator."""
    simple_placeholder: Pattern = SIMPLE_PLACEHOLDER_RE
    trivial_placeholder: Pattern = TRIVIAL_PLACEHOLDER_RE
    icu_head: Pattern = ICU_HEAD_RE
    url: Pattern = URL_RE
    email: Pattern = EMAIL_RE


DEFAULT_PATTERNS = PatternSet()


def _matching_brace(text: str, open_pos: int) -> int:
    """Position of the brace closing the one at ``open_pos``, or -1."""
    depth = 0
    for pos in range(open_pos, len(text)):
        char = text[pos]
        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return pos
    return -1


def find_icu_blocks(text: str, patterns: PatternSet = DEFAULT_PATTERNS) -> List[Tuple[int, int]]:
    """Spans ``(start, end)`` of top-level ICU plural/select blocks."""
    spans = []
    pos = 0
    while True:
        match = patterns.icu_head.search(text, pos)
        if not match:
            break
        end = _matching_brace(text, match.start())
        if end < 0:
            # unbalanced, treat the rest of the string as the block
            end = len(text) - 1
        spans.append((match.start(), end + 1))
        pos = end + 1
    return spans


def icu_signature(block: str, patterns: PatternSet = DEFAULT_PATTERNS) -> str:
    """Normalized signature of an ICU block: ``{count, plural: one|other}``."""
    head = patterns.icu_head.match(block)
    if not head:
        return block
    selectors = []
    pos = head.end()
    while pos < len(block):
        selector = ICU_SELECTOR_RE.match(block, pos)
        if not selector:
            pos += 1
            continue
        selectors.append(selector.group(1))
        close = _matching_brace(block, selector.end() - 1)
        if close < 0:
            break
        pos = close + 1
    return f"{{{head.group(1)}, {head.group(2).lower()}: {'|'.join(sorted(selectors))}}}"


def collect_placeholders(text: str, patterns: PatternSet = DEFAULT_PATTERNS) -> Tuple[List[str], List[str]]:
    """
    Collect placeholders of a string.

    Returns:
        Tuple of (simple_placeholders_in_order, icu_signatures)
    """
    spans = find_icu_blocks(text, patterns)
    icu = [icu_signature(text[start:end], patterns) for start, end in spans]

    outside = []
    last = 0
    for start, end in spans:
        outside.append(text[last:start])
        last = end
    outside.append(text[last:])
    simple = patterns.simple_placeholder.findall("\x00".join(outside))
    return simple, icu


def placeholders_equal(
    source: str,
    translated: str,
    strict_order: bool = True,
    patterns: PatternSet = DEFAULT_PATTERNS
) -> bool:
    src_simple, src_icu = collect_placeholders(source, patterns)
    tgt_simple, tgt_icu = collect_placeholders(translated, patterns)
    if set(src_icu) != set(tgt_icu):
        return False
    if strict_order:
        return src_simple == tgt_simple
    return sorted(src_simple) == sorted(tgt_simple)


def strings_equal_set(a: List[str], b: List[str]) -> bool:
    """Case-insensitive set equality."""
    return {x.lower() for x in a} == {x.lower() for x in b}


def _split_markup_tokens(text: str) -> str:
    """Replace markup tokens by a space so a link inside a tag is a separate word."""
    return MARKUP_TOKEN_RE.sub(' ', text)


def urls_equal(source: str, translated: str, patterns: PatternSet = DEFAULT_PATTERNS) -> bool:
    return strings_equal_set(
        patterns.url.findall(_split_markup_tokens(source)),
        patterns.url.findall(_split_markup_tokens(translated))
    )


def emails_equal(source: str, translated: str, patterns: PatternSet = DEFAULT_PATTERNS) -> bool:
    return strings_equal_set(
        patterns.email.findall(_split_markup_tokens(source)),
        patterns.email.findall(_split_markup_tokens(translated))
    )


def markup_tokens_equal(source: str, translated: str) -> bool:
    """Every markup token of the source appears in the translation exactly as often."""
    return sorted(MarkupProtector.find_tokens(source)) == sorted(MarkupProtector.find_tokens(translated))


def edge_whitespace(text: str) -> Tuple[str, str]:
    """Leading and trailing whitespace runs of a string."""
    stripped = text.strip()
    if not stripped:
        return text, ""
    lead = text[:len(text) - len(text.lstrip())]
    tail = text[len(text.rstrip()):]
    return lead, tail


def correct_edge_whitespace(source: str, translated: str) -> str:
    """
    Re-wrap a translation with the source's edge whitespace when they differ.

    Example:
        >>> correct_edge_whitespace("  Hello  ", "Bonjour")
        '  Bonjour  '
    """
    src_lead, src_tail = edge_whitespace(source)
    tgt_lead, tgt_tail = edge_whitespace(translated)
    if len(src_lead) != len(tgt_lead) or len(src_tail) != len(tgt_tail):
        return src_lead + translated.strip() + src_tail
    return translated


def is_trivial_value(text: str, patterns: PatternSet = DEFAULT_PATTERNS) -> bool:
    """
    True for values that need no translation: blank strings, a lone
    placeholder, or nothing but markup tokens.
    """
    trimmed = text.strip()
    if trimmed == "":
        return True
    if patterns.trivial_placeholder.fullmatch(trimmed):
        return True
    without_tokens = MARKUP_TOKEN_RE.sub('', trimmed)
    return without_tokens.strip() == ""


@dataclass
class InvariantValidator:
    """Compares a source value with its translation on every axis.

    Attributes:
        patterns: Detection patterns
        strict_placeholder_order: Compare simple placeholders in order (off: as a multiset)
    """
    patterns: PatternSet = field(default_factory=PatternSet)
    strict_placeholder_order: bool = True

    def validate(
        self,
        source: str,
        translated: str,
        chunk_index: int,
        leaf_index: int,
        markup_map: Optional[Dict[int, str]] = None
    ) -> List[TranslationIssue]:
        issues = []

        def record(kind: MismatchKind):
            issues.append(TranslationIssue(chunk_index=chunk_index, leaf_index=leaf_index, kind=kind))

        if not placeholders_equal(source, translated, self.strict_placeholder_order, self.patterns):
            record(MismatchKind.PLACEHOLDER)
        if not urls_equal(source, translated, self.patterns):
            record(MismatchKind.URL)
        if not emails_equal(source, translated, self.patterns):
            record(MismatchKind.EMAIL)
        if markup_map and not markup_tokens_equal(source, translated):
            record(MismatchKind.MARKUP_TOKEN)
        return issues
