"""
Dictionary import, export and merge.

Both use cases return plain response dicts and never raise: every failure
becomes {"success": False, "message": ...} so callers at the edge (CLI,
HTTP) need no exception handling.
"""

from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from .dictionary import Clock, SkillDictionary
from .errors import BidMatchError
from .logger import get_logger
from .normalize import parse_version
from .schema import validate_dictionary_json

logger = get_logger()

IMPORT_MODES = ("replace", "merge")

# Store failures are reported like domain failures
_HANDLED_ERRORS = (BidMatchError, SQLAlchemyError, OSError)


def check_version_conflict(current_version: str, imported_version: str) -> Optional[str]:
    """
    Strict monotonic-increase policy.

    Returns:
        Error message if the imported version is not newer, else None
    """
    current_year, current_n = parse_version(current_version)
    imported_year, imported_n = parse_version(imported_version)

    if imported_year < current_year:
        return (
            f"Version conflict: Cannot import older version {imported_version} over current "
            f"version {current_version}. Use allowVersionDowngrade option to override."
        )
    if imported_year == current_year and imported_n <= current_n:
        return (
            f"Version conflict: Cannot import version {imported_version} as current version "
            f"{current_version} is equal or newer. Use allowVersionDowngrade option to override."
        )
    return None


def merge_dictionaries(
    base: SkillDictionary,
    imported: SkillDictionary,
    clock: Optional[Clock] = None,
) -> Tuple[SkillDictionary, int]:
    """
    Merge an imported dictionary into a base one.

    The result is a new instance at the base's next version, bumped with
    clock when given, else with the base's own clock. Imported skills
    are added; a category mismatch is a conflict resolved in favour of the
    imported category. Imported variations are added when their canonical
    exists in the result; a variation already mapping elsewhere is counted
    as a conflict and left untouched.

    Returns:
        (merged dictionary, number of conflicts)
    """
    merged = base.with_incremented_version(clock)
    conflicts = 0

    for skill in imported.get_all_skills():
        existing = merged.get_canonical_skill(skill.name)
        if existing is None:
            if merged.map_to_canonical(skill.name) is not None:
                # Imported canonical is a variation in the base; keep the base mapping
                logger.warning(
                    "Merge conflict: imported skill shadows a variation",
                    skill=skill.name,
                    variation_of=merged.map_to_canonical(skill.name),
                )
                conflicts += 1
                continue
            merged.add_canonical_skill(skill.name, skill.category, created_at=skill.created_at)
        elif existing.category != skill.category:
            kept_variations = merged.remove_canonical_skill(skill.name)
            merged.add_canonical_skill(skill.name, skill.category)
            for variation in kept_variations:
                merged.add_skill_variation(variation, skill.name)
            logger.debug(
                "Merge conflict: category overwritten",
                skill=skill.name,
                old=existing.category,
                new=skill.category,
            )
            conflicts += 1

    for variation, canonical in imported.get_variation_map().items():
        if merged.get_canonical_skill(canonical) is None:
            continue
        existing_canonical = merged.map_to_canonical(variation)
        if existing_canonical is None:
            merged.add_skill_variation(variation, canonical)
        elif existing_canonical != canonical:
            # Ambiguous: neither side is applied
            logger.warning(
                "Merge conflict: variation left unresolved",
                variation=variation,
                current=existing_canonical,
                imported=canonical,
            )
            conflicts += 1

    return merged, conflicts


class ExportDictionaryUseCase:
    def __init__(self, dictionary_repository):
        self.dictionary_repository = dictionary_repository

    def execute(self, version: Optional[str] = None) -> Dict[str, Any]:
        try:
            if version:
                dictionary = self.dictionary_repository.get_version(version)
            else:
                dictionary = self.dictionary_repository.get_current()

            if dictionary is None:
                message = f"Dictionary version '{version}' not found" if version else "No dictionary found"
                logger.warning("Export failed", version=version, reason=message)
                return {"success": False, "data": {}, "message": message}

            data = dictionary.to_json()
            logger.record_export()
            logger.info("Exported dictionary", version=data["version"], skills=len(data["skills"]))
            return {
                "success": True,
                "data": data,
                "message": (
                    f"Successfully exported dictionary version {data['version']} with "
                    f"{len(data['skills'])} skills and {len(data['variations'])} variations"
                ),
            }
        except _HANDLED_ERRORS as e:
            logger.error("Export failed", version=version, error=str(e))
            return {"success": False, "data": {}, "message": str(e)}


class ImportDictionaryUseCase:
    def __init__(self, dictionary_repository, clock: Optional[Clock] = None):
        self.dictionary_repository = dictionary_repository
        self.clock = clock

    def execute(
        self,
        data: Dict[str, Any],
        mode: str = "replace",
        allow_version_downgrade: bool = False,
    ) -> Dict[str, Any]:
        """
        Import a serialized dictionary.

        Args:
            data: Dictionary document (see SkillDictionary.to_json)
            mode: "replace" installs the document as-is; "merge" folds it
                into the current dictionary under a new version
            allow_version_downgrade: Skip the monotonic version check

        Returns:
            {"success", "message", "importedVersion"?, "conflictsResolved"?}
        """
        logger.record_import_attempt(mode)

        if mode not in IMPORT_MODES:
            return self._fail(mode, "ValidationError", f"Invalid import mode: '{mode}'. Expected replace or merge")

        errors = validate_dictionary_json(data)
        if errors:
            return self._fail(mode, "ValidationError", f"Invalid dictionary JSON: {errors[0]}")

        try:
            imported = SkillDictionary.from_json(data, clock=self.clock)
            current = self.dictionary_repository.get_current()

            if current is not None and not allow_version_downgrade:
                conflict = check_version_conflict(current.version, imported.version)
                if conflict:
                    return self._fail(mode, "ConflictError", conflict)

            if mode == "replace":
                return self._replace(imported)
            return self._merge(imported, current)
        except _HANDLED_ERRORS as e:
            return self._fail(mode, type(e).__name__, str(e))

    def _replace(self, imported: SkillDictionary) -> Dict[str, Any]:
        self.dictionary_repository.save(imported.freeze())
        logger.record_import_success("replace")
        logger.info("Imported dictionary", mode="replace", version=imported.version)
        return {
            "success": True,
            "message": f"Successfully imported dictionary version {imported.version} in replace mode",
            "importedVersion": imported.version,
        }

    def _merge(self, imported: SkillDictionary, current: Optional[SkillDictionary]) -> Dict[str, Any]:
        if current is None:
            self.dictionary_repository.save(imported.freeze())
            logger.record_import_success("merge")
            logger.info("Imported dictionary", mode="merge", version=imported.version, merged=False)
            return {
                "success": True,
                "message": (
                    f"Successfully imported dictionary version {imported.version} "
                    "(no existing dictionary to merge)"
                ),
                "importedVersion": imported.version,
                "conflictsResolved": 0,
            }

        merged, conflicts = merge_dictionaries(current, imported, clock=self.clock)
        self.dictionary_repository.save(merged.freeze())
        logger.record_import_success("merge", conflicts)
        logger.info(
            "Merged dictionary",
            base=current.version,
            imported=imported.version,
            version=merged.version,
            conflicts=conflicts,
        )
        return {
            "success": True,
            "message": (
                f"Successfully merged dictionaries. New version: {merged.version}. "
                f"Conflicts resolved: {conflicts}"
            ),
            "importedVersion": merged.version,
            "conflictsResolved": conflicts,
        }

    def _fail(self, mode: str, error_type: str, message: str) -> Dict[str, Any]:
        logger.record_import_failure(mode, error_type)
        logger.warning("Import failed", mode=mode, reason=message)
        return {"success": False, "message": message}
