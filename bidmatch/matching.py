"""
Weighted multi-layer match rate calculation.

All functions here are deterministic and side-effect free: the same query,
candidate and layer weights always produce the same MatchResult.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .normalize import TECH_LAYERS, normalize_skill_name
from .profile import LayerSkills, LayerWeights, SkillWeight


@dataclass(frozen=True)
class LayerMatchResult:
    score: float
    matching_skills: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    layer_weight: float = 0.0

    def to_json(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "matchingSkills": list(self.matching_skills),
            "missingSkills": list(self.missing_skills),
            "layerWeight": self.layer_weight,
        }


@dataclass(frozen=True)
class MatchResult:
    overall_match_rate: float
    layer_breakdown: Dict[str, LayerMatchResult]

    def to_json(self) -> Dict[str, Any]:
        return {
            "overallMatchRate": self.overall_match_rate,
            "layerBreakdown": {
                layer: self.layer_breakdown[layer].to_json() for layer in TECH_LAYERS
            },
        }


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _query_skill_weights(skills: Tuple[SkillWeight, ...]) -> Dict[str, Tuple[str, float]]:
    """Normalized name -> (original name, weight); first occurrence wins."""
    result: Dict[str, Tuple[str, float]] = {}
    for sw in skills:
        key = normalize_skill_name(sw.skill)
        if key not in result:
            result[key] = (sw.skill, sw.weight)
    return result


def calculate_layer_score(
    query_skills: Tuple[SkillWeight, ...],
    candidate_skills: Tuple[SkillWeight, ...],
) -> Tuple[float, List[str], List[str], bool]:
    """
    Score one layer.

    Formula: sum of query weights over matching skills divided by the sum of
    query weights over all query skills in the layer.

    Returns:
        (score, matching skill names, missing skill names, contributes)
        where contributes is False when the query has no weight in the layer
    """
    query = _query_skill_weights(query_skills)
    candidate_names = {normalize_skill_name(sw.skill) for sw in candidate_skills}

    matching: List[str] = []
    missing: List[str] = []
    matched_weight = 0.0
    total_weight = 0.0
    for key, (name, weight) in query.items():
        total_weight += weight
        if key in candidate_names:
            matching.append(name)
            matched_weight += weight
        else:
            missing.append(name)

    if total_weight <= 0:
        return 0.0, matching, missing, False
    return _clamp(matched_weight / total_weight), matching, missing, True


class WeightedMatchRateCalculator:
    """
    Scores a query skill profile against a candidate profile.

    Per layer the score is the weighted share of the query's skills found in
    the candidate. The overall rate is the average of contributing layer
    scores weighted by the role's layer weights, renormalized over the
    contributing layers only.
    """

    def calculate(
        self,
        query: LayerSkills,
        candidate: LayerSkills,
        layer_weights: LayerWeights,
    ) -> MatchResult:
        breakdown: Dict[str, LayerMatchResult] = {}
        weighted_sum = 0.0
        used_weight = 0.0

        for layer in TECH_LAYERS:
            layer_weight = layer_weights.for_layer(layer)
            score, matching, missing, contributes = calculate_layer_score(
                query.for_layer(layer), candidate.for_layer(layer)
            )
            breakdown[layer] = LayerMatchResult(score, matching, missing, layer_weight)

            if contributes:
                weighted_sum += score * layer_weight
                used_weight += layer_weight

        overall = weighted_sum / used_weight if used_weight > 0 else 0.0
        return MatchResult(_clamp(overall), breakdown)
