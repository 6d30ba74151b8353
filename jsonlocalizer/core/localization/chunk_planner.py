"""
Chunk planning for batched translation requests.

The chunk size is computed once from a representative prefix of the leaf
list: start from the initial size and shrink until the serialized numbered
map of the prefix fits the character budget or the minimum size is reached.
The whole list is then sliced with that size.
"""

import json
import logging
import math
from typing import Dict, List, Sequence

from jsonlocalizer.config import (
    INITIAL_CHUNK_SIZE,
    MAX_JSON_CHARS,
    MIN_CHUNK_SIZE,
    SIZE_REDUCTION_FACTOR,
)
from .models import Chunk, ExtractedLeaf

logger = logging.getLogger(__name__)


def numbered_map(leaves: Sequence[ExtractedLeaf]) -> Dict[str, str]:
    """Zero-indexed mapping ``{"0": value, "1": value, ...}``."""
    return {str(i): leaf.source_value for i, leaf in enumerate(leaves)}


def serialized_size(leaves: Sequence[ExtractedLeaf]) -> int:
    """Length of the compact JSON encoding of the leaves' numbered map."""
    return len(json.dumps(numbered_map(leaves), ensure_ascii=False, separators=(',', ':')))


def compute_chunk_size(
    leaves: Sequence[ExtractedLeaf],
    max_json_chars: int = MAX_JSON_CHARS,
    initial_size: int = INITIAL_CHUNK_SIZE,
    min_size: int = MIN_CHUNK_SIZE,
    reduction_factor: float = SIZE_REDUCTION_FACTOR
) -> int:
    """
    Find a chunk size whose sample fits the budget.

    Args:
        leaves: Extracted leaves in order
        max_json_chars: Budget for one serialized chunk
        initial_size: Size to start from
        min_size: Size never gone below
        reduction_factor: Multiplier applied on each shrink (0 < f < 1)

    Returns:
        The chunk size (between min_size and initial_size)
    """
    min_size = max(1, min_size)
    size = max(min_size, initial_size)
    sample_size = serialized_size(leaves[:size])
    while sample_size > max_json_chars and size > min_size:
        # always shrink by at least one
        size = max(min_size, min(size - 1, math.floor(size * reduction_factor)))
        sample_size = serialized_size(leaves[:size])

    if sample_size > max_json_chars:
        logger.warning(
            f"Chunk sample still exceeds budget at minimum size {size} "
            f"({sample_size} > {max_json_chars} chars)"
        )
    return size


def plan_chunks(
    leaves: Sequence[ExtractedLeaf],
    max_json_chars: int = MAX_JSON_CHARS,
    initial_size: int = INITIAL_CHUNK_SIZE,
    min_size: int = MIN_CHUNK_SIZE,
    reduction_factor: float = SIZE_REDUCTION_FACTOR
) -> List[Chunk]:
    """
    Partition the leaves into consecutive chunks.

    Concatenating the returned chunks in order yields ``leaves`` exactly.
    The last chunk may be shorter than the others.
    """
    if not leaves:
        return []

    size = compute_chunk_size(leaves, max_json_chars, initial_size, min_size, reduction_factor)
    chunks = [
        Chunk(index=i, start=start, leaves=list(leaves[start:start + size]))
        for i, start in enumerate(range(0, len(leaves), size))
    ]
    logger.debug(f"Split {len(leaves)} strings into {len(chunks)} chunks (size {size})")
    return chunks
