"""
Markup preservation for document localization

HTML tags inside a string value are replaced by positional tokens
(``__TAG0__``, ``__TAG1__``...) before the value is sent to the LLM, and
put back once the translation returns. The LLM therefore never sees, and
cannot damage, the markup itself.
"""
import re
from typing import Dict, List, Optional, Tuple

from jsonlocalizer.config import (
    MARKUP_TOKEN_PATTERN,
    create_markup_token,
)
from .html_repair import repair_html
from .interfaces import IMarkupRepair

TAG_PATTERN = re.compile(r'<[^>]+>')
"""Any HTML/XML tag (opening, closing, self-closing or comment)"""

_TOKEN_RE = re.compile(MARKUP_TOKEN_PATTERN)


class MarkupProtector:
    """
    Replaces HTML tags with tokens and restores them afterwards

    ``<p>Hello <b>World</b></p>`` becomes ``__TAG0__Hello __TAG1__World__TAG2____TAG3__``
    with the map ``{0: '<p>', 1: '<b>', 2: '</b>', 3: '</p>'}``.

    Args:
        repair: Markup-repair function applied after restoration. Must be
            idempotent and must not raise.
    """

    def __init__(self, repair: Optional[IMarkupRepair] = None):
        self.repair = repair or repair_html

    def protect(self, text: str) -> Tuple[str, Dict[int, str]]:
        """
        Replace every tag with a token, left to right

        Args:
            text: Text containing HTML tags

        Returns:
            Tuple of (protected_text, markup_map)

        Example:
            >>> MarkupProtector().protect("<em>Hello</em> world")
            ('__TAG0__Hello__TAG1__ world', {0: '<em>', 1: '</em>'})
        """
        markup_map: Dict[int, str] = {}

        def replace_tag(match: re.Match) -> str:
            index = len(markup_map)
            markup_map[index] = match.group(0)
            return create_markup_token(index)

        protected_text = TAG_PATTERN.sub(replace_tag, text)
        return protected_text, markup_map

    def restore_tags(self, text: str, markup_map: Dict[int, str]) -> str:
        """
        Put the original tags back in place of their tokens

        Tokens missing from ``text`` are skipped.

        Args:
            text: Text with tokens
            markup_map: Token index -> original tag

        Returns:
            Text with tags restored (no repair applied)
        """
        restored_text = text
        for index in sorted(markup_map, reverse=True):
            token = create_markup_token(index)
            if token in restored_text:
                restored_text = restored_text.replace(token, markup_map[index])
        return restored_text

    def restore(self, text: str, markup_map: Dict[int, str]) -> str:
        """
        Restore tags, then repair the result

        The LLM may have produced malformed markup around the tokens, so the
        repair function runs once more on the restored text.
        """
        if not markup_map:
            return text
        return self.repair(self.restore_tags(text, markup_map))

    @staticmethod
    def find_tokens(text: str) -> List[int]:
        """Indices of all markup tokens present in ``text``, in order of appearance."""
        return [int(m) for m in _TOKEN_RE.findall(text)]

    @staticmethod
    def missing_tokens(text: str, markup_map: Dict[int, str]) -> List[int]:
        """Indices from ``markup_map`` whose token does not appear in ``text``."""
        return [index for index in markup_map if create_markup_token(index) not in text]
