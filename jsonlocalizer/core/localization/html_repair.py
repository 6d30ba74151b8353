"""Best-effort HTML balance repair.

Unclosed tags are closed and stray closing tags dropped by letting lxml's
HTML parser rebuild the fragment and serializing it again. When the parser
keeps the same sequence of tags the input was already balanced, and it is
returned byte for byte so entities like ``&nbsp;`` are not decoded. The
function is idempotent and never raises: on parser failure the input is
returned as is.
"""

import logging
import re

from lxml import etree
from lxml import html as lxml_html

logger = logging.getLogger(__name__)

_LEADING_WS = re.compile(r'^\s*')
_TRAILING_WS = re.compile(r'\s*$')
_TAG_NAME = re.compile(r'<(/?)([A-Za-z][\w:-]*)')


def looks_like_markup(text: str) -> bool:
    """True if the string contains both ``<`` and ``>``."""
    return '<' in text and '>' in text


def _tag_sequence(html: str) -> list:
    return [(close, name.lower()) for close, name in _TAG_NAME.findall(html)]


def _serialize_fragments(fragments) -> str:
    parts = []
    for fragment in fragments:
        if isinstance(fragment, str):
            parts.append(fragment)
        else:
            # tostring() includes the element tail
            parts.append(lxml_html.tostring(fragment, encoding='unicode', method='html'))
    return "".join(parts)


def repair_html(html: str) -> str:
    """
    Repair an HTML fragment by auto-closing unclosed tags.

    Leading and trailing whitespace are kept exactly, since the parser
    drops them.

    Args:
        html: The HTML string to repair

    Returns:
        Repaired HTML, or the original string if it holds no markup or
        cannot be parsed

    Example:
        >>> repair_html("<p>Hello <b>World</p>")
        '<p>Hello <b>World</b></p>'
    """
    if not html or not isinstance(html, str):
        return html

    if not looks_like_markup(html):
        return html

    lead = _LEADING_WS.match(html).group(0)
    body = html[len(lead):]
    tail = _TRAILING_WS.search(body).group(0)
    core = body[:len(body) - len(tail)] if tail else body

    try:
        fragments = lxml_html.fragments_fromstring(core)
    except (etree.ParserError, etree.ParseError, ValueError) as e:
        logger.warning(f"Failed to repair HTML, returning original ({len(html)} chars): {e}")
        return html

    repaired = _serialize_fragments(fragments)
    if _tag_sequence(repaired) == _tag_sequence(core):
        return html
    return lead + repaired + tail
