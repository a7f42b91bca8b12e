"""
Skill profiles attached to bids.

A profile is either layer-skills format (six ordered buckets of weighted
skills) or the legacy flat list of skill strings. Only the former takes part
in weighted matching.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .errors import FormatError, ValidationError
from .normalize import TECH_LAYERS, normalize_skill_name
from .schema import validate_bid, validate_layer_skills, validate_layer_weights


@dataclass(frozen=True)
class SkillWeight:
    skill: str
    weight: float

    def to_json(self) -> Dict[str, Any]:
        return {"skill": self.skill, "weight": self.weight}


@dataclass(frozen=True)
class LayerSkills:
    frontend: Tuple[SkillWeight, ...] = ()
    backend: Tuple[SkillWeight, ...] = ()
    database: Tuple[SkillWeight, ...] = ()
    cloud: Tuple[SkillWeight, ...] = ()
    devops: Tuple[SkillWeight, ...] = ()
    others: Tuple[SkillWeight, ...] = ()

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "LayerSkills":
        errors = validate_layer_skills(data)
        if errors:
            raise ValidationError("; ".join(errors))
        return cls(**{
            layer: tuple(SkillWeight(e["skill"], float(e["weight"])) for e in data.get(layer, []))
            for layer in TECH_LAYERS
        })

    def for_layer(self, layer: str) -> Tuple[SkillWeight, ...]:
        return getattr(self, layer)

    def layers(self) -> Iterator[Tuple[str, Tuple[SkillWeight, ...]]]:
        for layer in TECH_LAYERS:
            yield layer, getattr(self, layer)

    def to_json(self) -> Dict[str, List[Dict[str, Any]]]:
        return {layer: [sw.to_json() for sw in skills] for layer, skills in self.layers()}


@dataclass(frozen=True)
class LayerWeights:
    """Relative importance of each layer. Values in [0, 1]; no sum constraint."""

    frontend: float = 0.0
    backend: float = 0.0
    database: float = 0.0
    cloud: float = 0.0
    devops: float = 0.0
    others: float = 0.0

    @classmethod
    def uniform(cls) -> "LayerWeights":
        share = 1.0 / len(TECH_LAYERS)
        return cls(**{layer: share for layer in TECH_LAYERS})

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "LayerWeights":
        errors = validate_layer_weights(data)
        if errors:
            raise ValidationError("; ".join(errors))
        return cls(**{layer: float(data.get(layer, 0.0)) for layer in TECH_LAYERS})

    def for_layer(self, layer: str) -> float:
        return getattr(self, layer)

    def to_json(self) -> Dict[str, float]:
        return {layer: getattr(self, layer) for layer in TECH_LAYERS}


@dataclass(frozen=True)
class BidProfile:
    id: str
    company: str
    role: str
    main_stacks: Union[LayerSkills, Tuple[str, ...]] = field(default_factory=tuple)

    def is_layer_skills_format(self) -> bool:
        return isinstance(self.main_stacks, LayerSkills)

    @property
    def layer_skills(self) -> LayerSkills:
        if not self.is_layer_skills_format():
            raise FormatError(f"Bid {self.id} does not use LayerSkills format")
        return self.main_stacks

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "BidProfile":
        errors = validate_bid(data)
        if errors:
            raise ValidationError("; ".join(errors))
        stacks = data["mainStacks"]
        if isinstance(stacks, list):
            main_stacks: Union[LayerSkills, Tuple[str, ...]] = tuple(stacks)
        else:
            main_stacks = LayerSkills.from_json(stacks)
        return cls(data["id"], data["company"], data["role"], main_stacks)

    def to_json(self) -> Dict[str, Any]:
        if self.is_layer_skills_format():
            stacks: Any = self.main_stacks.to_json()
        else:
            stacks = list(self.main_stacks)
        return {"id": self.id, "company": self.company, "role": self.role, "mainStacks": stacks}


def canonicalize_layer_skills(layer_skills: LayerSkills, dictionary) -> Tuple[LayerSkills, List[str]]:
    """
    Rewrite every skill name to its canonical form.

    Names unknown to the dictionary are kept in normalized form and reported.
    When several names collapse onto the same canonical within a layer, the
    first occurrence's weight is kept.

    Args:
        layer_skills: Profile to rewrite
        dictionary: SkillDictionary used for resolution

    Returns:
        (canonical profile, unknown skill names in first-seen order)
    """
    unknown: List[str] = []
    rewritten: Dict[str, Tuple[SkillWeight, ...]] = {}

    for layer, skills in layer_skills.layers():
        seen: Dict[str, SkillWeight] = {}
        for sw in skills:
            canonical: Optional[str] = dictionary.map_to_canonical(sw.skill)
            if canonical is None:
                canonical = normalize_skill_name(sw.skill)
                if canonical not in unknown:
                    unknown.append(canonical)
            if canonical not in seen:
                seen[canonical] = SkillWeight(canonical, sw.weight)
        rewritten[layer] = tuple(seen.values())

    return LayerSkills(**rewritten), unknown
