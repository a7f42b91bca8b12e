"""
Tests for ranking.py - ranking bids by match rate.
"""

import pytest

from bidmatch import ranking
from bidmatch.errors import FormatError, NotFoundError
from bidmatch.profile import BidProfile, LayerWeights
from bidmatch.ranking import CalculateBidMatchRateUseCase
from bidmatch.repositories import InMemoryBidRepository
from bidmatch.weights import LayerWeightTable

from conftest import bid


@pytest.fixture
def bids():
    return InMemoryBidRepository([
        bid("b1", frontend=[("react", 1.0)]),
        bid("b2", frontend=[("react", 1.0)]),
        bid("b3", frontend=[("react", 0.5), ("vue", 1.0)]),
        bid("b4", frontend=[("angular", 1.0)]),
        BidProfile("legacy", "old co", "Developer", ("react", "node")),
    ])


class TestCalculateBidMatchRate:
    """Test ranking of candidate bids."""

    def test_ranks_descending_and_stable(self, bids):
        """Results should sort by rate, ties in store order."""
        results = CalculateBidMatchRateUseCase(bids).execute("b1")

        assert [r["bidId"] for r in results] == ["b2", "b3", "b4"]
        assert [r["matchRate"] for r in results] == [1.0, 1.0, 0.0]

    def test_excludes_query_and_legacy(self, bids):
        """Query bid and legacy bids should not be ranked."""
        ids = [r["bidId"] for r in CalculateBidMatchRateUseCase(bids).execute("b1")]
        assert "b1" not in ids
        assert "legacy" not in ids

    def test_partial_match_order(self):
        """Better partial matches should rank first."""
        repo = InMemoryBidRepository([
            bid("q", backend=[("python", 1.0), ("django", 1.0)]),
            bid("low", backend=[("go", 1.0)]),
            bid("half", backend=[("python", 1.0)]),
            bid("full", backend=[("python", 0.2), ("django", 0.3)]),
        ])
        results = CalculateBidMatchRateUseCase(repo).execute("q")

        assert [r["bidId"] for r in results] == ["full", "half", "low"]
        assert results[1]["matchRate"] == pytest.approx(0.5)
        assert results[1]["matchRatePercentage"] == pytest.approx(50.0)

    def test_result_shape(self, bids):
        """Each result should carry bid fields and a breakdown."""
        result = CalculateBidMatchRateUseCase(bids).execute("b1")[2]

        assert set(result) == {"bidId", "company", "role", "matchRate", "matchRatePercentage", "layerBreakdown"}
        assert result["company"] == "acme"
        assert result["layerBreakdown"]["frontend"]["missingSkills"] == ["react"]

    def test_uses_query_role_weights(self):
        """Layer weights should come from the query bid's role."""
        repo = InMemoryBidRepository([
            bid("q", role="Senior Backend Engineer", frontend=[("react", 1.0)], backend=[("go", 1.0)]),
            bid("c", frontend=[("react", 1.0)]),
        ])
        table = LayerWeightTable({"Backend Engineer": LayerWeights(frontend=0.2, backend=0.8)})

        results = CalculateBidMatchRateUseCase(repo, weight_table=table).execute("q")

        assert results[0]["matchRate"] == pytest.approx(0.2)
        assert results[0]["layerBreakdown"]["backend"]["layerWeight"] == 0.8

    def test_query_not_found(self, bids):
        """Unknown query id should raise NotFoundError."""
        with pytest.raises(NotFoundError) as exc:
            CalculateBidMatchRateUseCase(bids).execute("nope")
        assert str(exc.value) == "Bid not found: nope"

    def test_legacy_query_rejected(self, bids):
        """Legacy query bid should raise FormatError."""
        with pytest.raises(FormatError) as exc:
            CalculateBidMatchRateUseCase(bids).execute("legacy")
        assert "LayerSkills format" in str(exc.value)

    def test_no_candidates(self):
        """A store with only the query should give no results."""
        repo = InMemoryBidRepository([bid("only", frontend=[("react", 1.0)])])
        assert CalculateBidMatchRateUseCase(repo).execute("only") == []

    def test_counts_metric(self, bids):
        """Each ranking should bump the match_calculations metric."""
        before = ranking.logger.get_metrics()["match_calculations"]
        CalculateBidMatchRateUseCase(bids).execute("b1")
        assert ranking.logger.get_metrics()["match_calculations"] == before + 3
