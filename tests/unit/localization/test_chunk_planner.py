"""Unit tests for chunk planning."""

import pytest
from jsonlocalizer.core.localization.chunk_planner import (
    compute_chunk_size,
    numbered_map,
    plan_chunks,
    serialized_size,
)
from jsonlocalizer.core.localization.models import ExtractedLeaf


def make_leaves(count, value="x"):
    return [ExtractedLeaf(address=("items", i), source_value=value) for i in range(count)]


class TestNumberedMap:
    """Test request map serialization."""

    def test_numbered_map(self):
        leaves = [ExtractedLeaf(("a",), "Hello"), ExtractedLeaf(("b",), "World")]
        assert numbered_map(leaves) == {"0": "Hello", "1": "World"}

    def test_serialized_size_is_compact(self):
        leaves = [ExtractedLeaf(("a",), "é")]
        # {"0":"é"} with non-ASCII kept as is
        assert serialized_size(leaves) == len('{"0":"é"}')


class TestComputeChunkSize:
    """Test chunk size search."""

    def test_under_budget_keeps_initial(self):
        assert compute_chunk_size(make_leaves(5), max_json_chars=12000, initial_size=40, min_size=8) == 40

    def test_shrinks_until_fit(self):
        """Size is multiplied by the factor until the sample fits."""
        leaves = make_leaves(100, "x" * 100)
        size = compute_chunk_size(leaves, max_json_chars=1000, initial_size=40, min_size=2, reduction_factor=0.5)

        assert size == 5
        assert serialized_size(leaves[:size]) <= 1000

    def test_stops_at_minimum(self):
        """Oversized leaves never push the size below the minimum."""
        leaves = make_leaves(100, "x" * 5000)
        size = compute_chunk_size(leaves, max_json_chars=1000, initial_size=40, min_size=8, reduction_factor=0.75)

        assert size == 8

    def test_zero_minimum_clamped_to_one(self):
        """A minimum of zero behaves like one instead of producing empty chunks."""
        leaves = make_leaves(3, "x" * 5000)
        assert compute_chunk_size(leaves, max_json_chars=1000, initial_size=4, min_size=0) == 1

    def test_non_shrinking_factor_terminates(self):
        leaves = make_leaves(10, "x" * 5000)
        size = compute_chunk_size(leaves, max_json_chars=1000, initial_size=4, min_size=2, reduction_factor=1.0)
        assert size == 2


class TestPlanChunks:
    """Test chunk partitioning."""

    def test_empty(self):
        assert plan_chunks([]) == []

    def test_under_budget_single_chunk(self):
        """A leaf list under budget fits in exactly one chunk."""
        leaves = make_leaves(5)
        chunks = plan_chunks(leaves)

        assert len(chunks) == 1
        assert chunks[0].leaves == leaves

    def test_over_budget_splits_within_budget(self):
        """An oversized list gives several chunks, each within budget."""
        leaves = make_leaves(100, "x" * 100)
        chunks = plan_chunks(leaves, max_json_chars=1000, initial_size=40, min_size=2, reduction_factor=0.5)

        assert len(chunks) >= 2
        for chunk in chunks:
            assert serialized_size(chunk.leaves) <= 1000

    def test_concatenation_reproduces_leaves(self):
        """Chunks in order cover every leaf exactly once."""
        leaves = make_leaves(23, "abc")
        chunks = plan_chunks(leaves, max_json_chars=12000, initial_size=5, min_size=1)

        assert [leaf for chunk in chunks for leaf in chunk.leaves] == leaves
        assert [chunk.index for chunk in chunks] == list(range(len(chunks)))
        assert [chunk.start for chunk in chunks] == [0, 5, 10, 15, 20]

    def test_last_chunk_shorter(self):
        chunks = plan_chunks(make_leaves(10), initial_size=4, min_size=1)
        assert [len(chunk) for chunk in chunks] == [4, 4, 2]

    def test_fewer_leaves_than_minimum(self):
        """Below the minimum size, one chunk holds everything."""
        leaves = make_leaves(3, "x" * 5000)
        chunks = plan_chunks(leaves, max_json_chars=1000, initial_size=40, min_size=8)

        assert len(chunks) == 1
        assert len(chunks[0]) == 3

    def test_zero_minimum_covers_every_leaf(self):
        leaves = make_leaves(3, "x" * 5000)
        chunks = plan_chunks(leaves, max_json_chars=1000, initial_size=4, min_size=0)

        assert [len(chunk) for chunk in chunks] == [1, 1, 1]
        assert [leaf for chunk in chunks for leaf in chunk.leaves] == leaves

    def test_chunk_number(self):
        chunks = plan_chunks(make_leaves(4), initial_size=2, min_size=1)
        assert [chunk.number for chunk in chunks] == [1, 2]
