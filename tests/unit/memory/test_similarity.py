"""
Unit tests for agent_memory/memory/similarity.py

Tests cosine similarity edge cases and linear-scan ranking.
"""

import pytest

from agent_memory.memory.base import DimensionMismatchError
from agent_memory.memory.similarity import LinearScanIndex, cosine_similarity
from tests.fixtures import make_entry


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_identical_vectors(self):
        """Test a vector is fully similar to itself."""
        assert cosine_similarity([0.3, -1.2, 4.0], [0.3, -1.2, 4.0]) == pytest.approx(1.0)

    def test_magnitude_insensitive(self):
        """Test scaling a vector does not change similarity."""
        assert cosine_similarity([1.0, 2.0], [10.0, 20.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        """Test orthogonal vectors score zero."""
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_opposite_vectors(self):
        """Test opposite vectors score -1."""
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_zero_vector(self):
        """Test zero vector is dissimilar to everything."""
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
        assert cosine_similarity([1.0, 1.0], [0.0, 0.0]) == 0.0

    def test_two_zero_vectors(self):
        """Test two zero vectors score zero, not one."""
        assert cosine_similarity([0.0, 0.0], [0.0, 0.0]) == 0.0

    def test_empty_vectors(self):
        """Test empty vectors score zero."""
        assert cosine_similarity([], []) == 0.0

    def test_length_mismatch_truncates(self):
        """Test only the overlapping range is compared by default."""
        assert cosine_similarity([1.0, 0.0, 5.0], [1.0, 0.0]) == pytest.approx(1.0)

    def test_length_mismatch_strict(self):
        """Test strict mode raises on length mismatch."""
        with pytest.raises(DimensionMismatchError) as exc_info:
            cosine_similarity([1.0, 0.0, 5.0], [1.0, 0.0], strict=True)

        assert exc_info.value.query_dim == 3
        assert exc_info.value.entry_dim == 2
        assert isinstance(exc_info.value, ValueError)


class TestLinearScanIndex:
    """Tests for LinearScanIndex."""

    def test_ranks_by_similarity(self):
        """Test the closer entry ranks first."""
        apple = make_entry(id="a", text="Apple", embedding=[1.0, 0.0])
        banana = make_entry(id="b", text="Banana", embedding=[0.0, 1.0])

        results = LinearScanIndex().rank([0.8, 0.2], [banana, apple], limit=5)

        assert [r.entry.text for r in results] == ["Apple", "Banana"]
        assert results[0].similarity > results[1].similarity

    def test_ties_keep_insertion_order(self):
        """Test equal scores preserve input order."""
        entries = [
            make_entry(id=str(i), text=f"t{i}", embedding=[1.0, 1.0])
            for i in range(4)
        ]

        results = LinearScanIndex().rank([2.0, 2.0], entries, limit=4)

        assert [r.entry.id for r in results] == ["0", "1", "2", "3"]

    def test_limit(self, sample_entries):
        """Test limit caps the number of results."""
        results = LinearScanIndex().rank([1.0, 0.0], sample_entries, limit=2)

        assert len(results) == 2
        # [3, 1] is the most aligned with [1, 0]
        assert results[0].entry.text == "Memory chunk number 2"

    def test_limit_larger_than_store(self, sample_entries):
        """Test asking for more than exists returns everything."""
        assert len(LinearScanIndex().rank([1.0, 0.0], sample_entries, limit=10)) == 3

    def test_empty_entries(self):
        """Test empty store gives no results."""
        assert LinearScanIndex().rank([1.0, 0.0], [], limit=5) == []

    def test_empty_query(self, sample_entries):
        """Test empty query vector gives no results."""
        assert LinearScanIndex().rank([], sample_entries, limit=5) == []

    def test_zero_limit(self, sample_entries):
        """Test a non-positive limit gives no results."""
        assert LinearScanIndex().rank([1.0, 0.0], sample_entries, limit=0) == []

    def test_mismatch_permissive(self, caplog):
        """Test mismatched dimensions are compared and warned about once."""
        entries = [
            make_entry(id="a", embedding=[1.0, 0.0, 0.0]),
            make_entry(id="b", embedding=[0.0, 1.0, 0.0]),
        ]
        index = LinearScanIndex()

        with caplog.at_level("WARNING", logger="agent_memory.memory.similarity"):
            results = index.rank([1.0, 0.0], entries, limit=5)
            index.rank([1.0, 0.0], entries, limit=5)

        assert results[0].entry.id == "a"
        assert len([r for r in caplog.records if "mismatch" in r.getMessage()]) == 1

    def test_mismatch_strict(self):
        """Test strict index raises on mismatched dimensions."""
        entries = [make_entry(embedding=[1.0, 0.0, 0.0])]

        with pytest.raises(DimensionMismatchError):
            LinearScanIndex(strict_dimensions=True).rank([1.0, 0.0], entries, limit=5)

    def test_zero_norm_entry_scores_zero(self):
        """Test an all-zero stored embedding ranks with similarity 0."""
        entries = [
            make_entry(id="zero", embedding=[0.0, 0.0]),
            make_entry(id="same", embedding=[2.0, 0.0]),
        ]

        results = LinearScanIndex().rank([1.0, 0.0], entries, limit=5)

        assert [r.entry.id for r in results] == ["same", "zero"]
        assert results[1].similarity == 0.0

    def test_zero_query_scores_everything_zero(self, sample_entries):
        """Test an all-zero query keeps insertion order with zero scores."""
        results = LinearScanIndex().rank([0.0, 0.0], sample_entries, limit=5)

        assert [r.entry.id for r in results] == [e.id for e in sample_entries]
        assert all(r.similarity == 0.0 for r in results)

    def test_similarities_are_plain_floats(self, sample_entries):
        """Test scores are Python floats so results serialize cleanly."""
        results = LinearScanIndex().rank([1.0, 0.0], sample_entries, limit=5)

        assert all(type(r.similarity) is float for r in results)

    def test_mixed_dimensions_ranked_with_matching_ones(self):
        """Test entries of a different length are ranked alongside the rest."""
        entries = [
            make_entry(id="short", embedding=[0.0, 1.0]),
            make_entry(id="full", embedding=[1.0, 0.0, 0.0]),
            make_entry(id="long", embedding=[1.0, 1.0, 0.0, 9.0]),
        ]

        results = LinearScanIndex().rank([1.0, 0.0, 0.0], entries, limit=5)

        assert [r.entry.id for r in results] == ["full", "long", "short"]
        assert results[1].similarity == pytest.approx(2 ** -0.5)
