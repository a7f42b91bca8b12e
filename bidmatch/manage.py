"""
Versioned editing of the skill dictionary.

Every change loads the current dictionary, derives the next version from
it, applies the change and saves the result as the new current version.
Domain errors propagate to the caller.
"""

from typing import Any, Dict, List, Optional

from .dictionary import CanonicalSkill, SkillDictionary
from .errors import NotFoundError
from .logger import get_logger
from .normalize import normalize_skill_name

logger = get_logger()


class ManageSkillDictionaryUseCase:
    def __init__(self, dictionary_repository):
        self.dictionary_repository = dictionary_repository

    def _current(self) -> SkillDictionary:
        dictionary = self.dictionary_repository.get_current()
        if dictionary is None:
            raise NotFoundError("No dictionary found")
        return dictionary

    def _commit(self, dictionary: SkillDictionary, message: str) -> Dict[str, Any]:
        self.dictionary_repository.save(dictionary.freeze())
        logger.info(message, version=dictionary.version)
        return {"success": True, "message": message, "dictionaryVersion": dictionary.version}

    def add_canonical_skill(self, name: str, category: str) -> Dict[str, Any]:
        updated = self._current().with_incremented_version()
        skill = updated.add_canonical_skill(name, category)
        return self._commit(updated, f"Canonical skill '{skill.name}' added successfully")

    def add_skill_variation(self, variation: str, canonical_name: str) -> Dict[str, Any]:
        updated = self._current().with_incremented_version()
        updated.add_skill_variation(variation, canonical_name)
        canonical = updated.map_to_canonical(variation)
        return self._commit(
            updated,
            f"Variation '{normalize_skill_name(variation)}' added for canonical skill '{canonical}'",
        )

    def remove_canonical_skill(self, name: str) -> Dict[str, Any]:
        updated = self._current().with_incremented_version()
        removed = updated.remove_canonical_skill(name)
        return self._commit(
            updated,
            f"Canonical skill '{normalize_skill_name(name)}' removed along with {len(removed)} variations",
        )

    def get_skills_by_category(self, category: str) -> List[CanonicalSkill]:
        return self._current().get_skills_by_category(category)

    def get_variations(self, canonical_name: str) -> Dict[str, Any]:
        dictionary = self._current()
        return {
            "canonicalName": normalize_skill_name(canonical_name),
            "variations": dictionary.get_variations_for(canonical_name),
        }

    def lookup(self, name: str) -> Optional[Dict[str, Any]]:
        """Resolve a raw skill name to its canonical form, or None."""
        dictionary = self._current()
        canonical = dictionary.map_to_canonical(name)
        if canonical is None:
            return None
        skill = dictionary.get_canonical_skill(canonical)
        return {
            "input": name,
            "canonical": canonical,
            "category": skill.category,
            "isVariation": canonical != normalize_skill_name(name),
            "version": dictionary.version,
        }
