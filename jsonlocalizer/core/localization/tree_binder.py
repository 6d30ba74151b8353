"""
Write translated values back into a document.

The binder works on a deep copy of the original document; the input is
never mutated. Addresses come from extraction, so every one of them exists
in the copy and no structure is ever created.
"""

import copy
import logging
from typing import List, Optional, Sequence

from .exceptions import BindingMismatchError
from .models import ExtractedLeaf, Value, format_address
from .tag_preservation import MarkupProtector

logger = logging.getLogger(__name__)


def bind_translations(
    tree: Value,
    leaves: Sequence[ExtractedLeaf],
    translated: Sequence[str],
    protector: Optional[MarkupProtector] = None
) -> Value:
    """
    Build the localized document.

    Args:
        tree: The original document
        leaves: Extracted leaves, in extraction order
        translated: One value per leaf, aligned with ``leaves``
        protector: Used to restore markup on leaves that carried some

    Returns:
        A deep copy of ``tree`` with the translated values in place

    Raises:
        BindingMismatchError: If ``leaves`` and ``translated`` differ in length
    """
    if len(leaves) != len(translated):
        logger.error(f"Mismatch: extracted {len(leaves)} strings but got {len(translated)} translations")
        raise BindingMismatchError(len(leaves), len(translated))

    protector = protector or MarkupProtector()
    result = copy.deepcopy(tree)

    for leaf, value in zip(leaves, translated):
        if leaf.markup_map:
            missing = protector.missing_tokens(value, leaf.markup_map)
            if missing:
                logger.debug(
                    f"{format_address(leaf.address)}: markup tokens {missing} lost in translation"
                )
            value = protector.restore(value, leaf.markup_map)

        if not leaf.address:
            # the whole document is a single string
            result = value
            continue

        parent = result
        for segment in leaf.address[:-1]:
            parent = parent[segment]
        parent[leaf.address[-1]] = value

    return result


def same_shape(a: Value, b: Value) -> bool:
    """
    True when two documents differ at most in their string leaves.

    Mappings must have the same keys in the same order, sequences the same
    length, and every non-string leaf must be equal (and of the same type).
    """
    if isinstance(a, str) or isinstance(b, str):
        return isinstance(a, str) and isinstance(b, str)
    if isinstance(a, dict):
        if not isinstance(b, dict) or list(a) != list(b):
            return False
        return all(same_shape(a[key], b[key]) for key in a)
    if isinstance(a, list):
        if not isinstance(b, list) or len(a) != len(b):
            return False
        return all(same_shape(x, y) for x, y in zip(a, b))
    return type(a) is type(b) and a == b


def flatten_outcomes(outcomes) -> List[str]:
    """Concatenate chunk outcome values in chunk order."""
    values: List[str] = []
    for outcome in sorted(outcomes, key=lambda o: o.chunk_index):
        values.extend(outcome.values)
    return values
