from typing import Any, Dict, List, Optional

from .errors import FormatError, NotFoundError
from .logger import get_logger
from .matching import WeightedMatchRateCalculator
from .normalize import TECH_LAYERS
from .weights import LayerWeightTable

logger = get_logger()


class CalculateBidMatchRateUseCase:
    """Rank every other bid by how well it covers a query bid's skills."""

    def __init__(
        self,
        bid_repository,
        calculator: Optional[WeightedMatchRateCalculator] = None,
        weight_table: Optional[LayerWeightTable] = None,
    ):
        self.bid_repository = bid_repository
        self.calculator = calculator or WeightedMatchRateCalculator()
        self.weight_table = weight_table or LayerWeightTable()

    def execute(self, query_bid_id: str) -> List[Dict[str, Any]]:
        """
        Args:
            query_bid_id: Bid whose skill profile is the query

        Returns:
            One result per eligible candidate, highest matchRate first; ties
            keep the store's order

        Raises:
            NotFoundError: Query bid does not exist
            FormatError: Query bid uses the legacy flat skill list
        """
        query = self.bid_repository.find_by_id(query_bid_id)
        if query is None:
            raise NotFoundError(f"Bid not found: {query_bid_id}")
        if not query.is_layer_skills_format():
            raise FormatError("Query bid must use LayerSkills format for match rate calculation")

        layer_weights = self.weight_table.for_role(query.role)
        candidates = [
            bid for bid in self.bid_repository.find_all()
            if bid.id != query_bid_id and bid.is_layer_skills_format()
        ]

        results = []
        for bid in candidates:
            match = self.calculator.calculate(query.layer_skills, bid.layer_skills, layer_weights)
            results.append({
                "bidId": bid.id,
                "company": bid.company,
                "role": bid.role,
                "matchRate": match.overall_match_rate,
                "matchRatePercentage": match.overall_match_rate * 100,
                "layerBreakdown": {
                    layer: match.layer_breakdown[layer].to_json() for layer in TECH_LAYERS
                },
            })

        # list.sort is stable, so equal rates keep fetch order
        results.sort(key=lambda r: r["matchRate"], reverse=True)

        logger.record_match_calculation(len(results))
        logger.info(
            "Calculated bid match rates",
            bid_id=query_bid_id,
            candidates=len(results),
            top=results[0]["bidId"] if results else None,
        )
        return results
