"""
Canonical skill dictionary.

A SkillDictionary is one versioned snapshot of canonical skills and the
variation aliases that resolve to them. Instances are assembled through the
mutating methods and then frozen; a new version is always a new instance
(see with_incremented_version).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .errors import ConflictError, NotFoundError, ValidationError
from .normalize import (
    TECH_LAYERS,
    format_timestamp,
    format_version,
    is_valid_layer,
    normalize_skill_name,
    parse_timestamp,
    parse_version,
    utc_now,
    validate_version,
)

MAX_SKILL_NAME_LENGTH = 100

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class CanonicalSkill:
    name: str
    category: str
    created_at: datetime

    def to_json(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "category": self.category,
            "createdAt": format_timestamp(self.created_at),
        }


class SkillDictionary:
    """
    Versioned set of canonical skills plus a variation -> canonical map.

    Invariants:
        - version matches YYYY.N
        - every variation target is a canonical skill
        - no variation equals a canonical name
    """

    def __init__(
        self,
        version: str,
        skills: Dict[str, CanonicalSkill],
        variations: Dict[str, str],
        created_at: datetime,
        clock: Optional[Clock] = None,
    ):
        validate_version(version)
        self._version = version
        self._skills = skills
        self._variations = variations
        self._created_at = created_at
        self._clock = clock or utc_now
        self._frozen = False

    # Construction

    @classmethod
    def create(cls, version: str, clock: Optional[Clock] = None) -> "SkillDictionary":
        """Create a new empty dictionary at the given version."""
        clock = clock or utc_now
        return cls(version, {}, {}, clock(), clock=clock)

    @classmethod
    def from_json(cls, doc: Dict[str, Any], clock: Optional[Clock] = None) -> "SkillDictionary":
        """
        Rebuild a dictionary from its serialized form.

        Args:
            doc: Document shaped like to_json() output
            clock: Optional time source used for later version bumps

        Raises:
            FormatError: Bad version string or timestamp
            ValidationError: Bad skill name or unknown category
            NotFoundError: Variation pointing at a missing canonical skill
            ConflictError: Variation shadowing a canonical name
        """
        version = doc.get("version")
        validate_version(version)

        skills: Dict[str, CanonicalSkill] = {}
        for entry in doc.get("skills", []):
            name = _checked_skill_name(entry.get("name"))
            category = _checked_category(entry.get("category"))
            skills[name] = CanonicalSkill(name, category, parse_timestamp(entry.get("createdAt")))

        variations: Dict[str, str] = {}
        for entry in doc.get("variations", []):
            variation = normalize_skill_name(entry.get("variation") or "")
            canonical = normalize_skill_name(entry.get("canonical") or "")
            if not variation:
                raise ValidationError("Variation name cannot be empty")
            if canonical not in skills:
                raise NotFoundError(
                    f"Variation '{variation}' references unknown canonical skill '{canonical}'"
                )
            if variation in skills:
                raise ConflictError(f"Variation '{variation}' conflicts with existing canonical skill")
            variations[variation] = canonical

        return cls(version, skills, variations, parse_timestamp(doc.get("createdAt")), clock=clock)

    # Properties

    @property
    def version(self) -> str:
        return self._version

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "SkillDictionary":
        """Forbid further mutation. Returns self for chaining."""
        self._frozen = True
        return self

    def __len__(self) -> int:
        return len(self._skills)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SkillDictionary):
            return NotImplemented
        return (
            self._version == other._version
            and self._skills == other._skills
            and self._variations == other._variations
            and self._created_at == other._created_at
        )

    def __repr__(self) -> str:
        return (
            f"SkillDictionary(version={self._version!r}, skills={len(self._skills)}, "
            f"variations={len(self._variations)})"
        )

    # Mutation

    def add_canonical_skill(
        self,
        name: str,
        category: str,
        created_at: Optional[datetime] = None,
    ) -> CanonicalSkill:
        self._ensure_mutable()
        normalized = _checked_skill_name(name)
        category = _checked_category(category)
        if normalized in self._skills:
            raise ConflictError(f"Canonical skill '{normalized}' already exists")
        if normalized in self._variations:
            raise ConflictError(
                f"Canonical skill '{normalized}' conflicts with an existing variation "
                f"of '{self._variations[normalized]}'"
            )

        skill = CanonicalSkill(normalized, category, created_at or self._clock())
        self._skills[normalized] = skill
        return skill

    def add_skill_variation(self, variation: str, canonical_name: str) -> None:
        self._ensure_mutable()
        normalized_variation = normalize_skill_name(variation)
        normalized_canonical = normalize_skill_name(canonical_name)

        if not normalized_variation:
            raise ValidationError("Variation name cannot be empty")
        if not normalized_canonical:
            raise ValidationError("Canonical name cannot be empty")
        if normalized_canonical not in self._skills:
            raise NotFoundError(f"Canonical skill '{normalized_canonical}' does not exist")
        if normalized_variation in self._skills:
            raise ConflictError(
                f"Variation '{normalized_variation}' conflicts with existing canonical skill"
            )

        self._variations[normalized_variation] = normalized_canonical

    def remove_canonical_skill(self, name: str) -> List[str]:
        """
        Remove a canonical skill and every variation pointing at it.

        Returns:
            The removed variation strings
        """
        self._ensure_mutable()
        normalized = normalize_skill_name(name)
        if normalized not in self._skills:
            raise NotFoundError(f"Canonical skill '{normalized}' does not exist")

        del self._skills[normalized]
        removed = [v for v, c in self._variations.items() if c == normalized]
        for variation in removed:
            del self._variations[variation]
        return removed

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise ConflictError(f"Dictionary version {self._version} is frozen")

    # Lookup

    def get_canonical_skill(self, name: str) -> Optional[CanonicalSkill]:
        return self._skills.get(normalize_skill_name(name))

    def map_to_canonical(self, name: str) -> Optional[str]:
        normalized = normalize_skill_name(name)
        if normalized in self._skills:
            return normalized
        return self._variations.get(normalized)

    def has_skill(self, name: str) -> bool:
        normalized = normalize_skill_name(name)
        return normalized in self._skills or normalized in self._variations

    def get_all_skills(self) -> List[CanonicalSkill]:
        return list(self._skills.values())

    def get_skills_by_category(self, category: str) -> List[CanonicalSkill]:
        return [s for s in self._skills.values() if s.category == category]

    def get_variations_for(self, canonical_name: str) -> List[str]:
        normalized = normalize_skill_name(canonical_name)
        return [v for v, c in self._variations.items() if c == normalized]

    def get_variation_map(self) -> Dict[str, str]:
        return dict(self._variations)

    # Versioning

    def increment_version(self, clock: Optional[Clock] = None) -> str:
        """
        Compute the next version string without changing this dictionary.

        A calendar year later than the dictionary's year resets to {year}.1,
        otherwise the numeric suffix is incremented. An explicit clock
        overrides the one the dictionary was built with.
        """
        year, n = parse_version(self._version)
        current_year = (clock or self._clock)().year
        if current_year > year:
            return format_version(current_year, 1)
        return format_version(year, n + 1)

    def with_incremented_version(self, clock: Optional[Clock] = None) -> "SkillDictionary":
        # CanonicalSkill is frozen, so copying the maps is a deep copy
        clock = clock or self._clock
        return SkillDictionary(
            self.increment_version(clock),
            dict(self._skills),
            dict(self._variations),
            clock(),
            clock=clock,
        )

    # Serialization

    def to_json(self) -> Dict[str, Any]:
        return {
            "version": self._version,
            "skills": [skill.to_json() for skill in self._skills.values()],
            "variations": [
                {"variation": variation, "canonical": canonical}
                for variation, canonical in self._variations.items()
            ],
            "createdAt": format_timestamp(self._created_at),
        }


def _checked_skill_name(name: Any) -> str:
    if not isinstance(name, str):
        raise ValidationError("Skill name must be a string")
    normalized = normalize_skill_name(name)
    if not normalized:
        raise ValidationError("Skill name cannot be empty")
    if len(normalized) > MAX_SKILL_NAME_LENGTH:
        raise ValidationError(f"Skill name cannot exceed {MAX_SKILL_NAME_LENGTH} characters")
    return normalized


def _checked_category(category: Any) -> str:
    if not isinstance(category, str) or not is_valid_layer(category):
        raise ValidationError(
            f"Invalid skill category: {category!r}. Expected one of: {', '.join(TECH_LAYERS)}"
        )
    return category
