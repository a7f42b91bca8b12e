from typing import Any, Dict, List

from .normalize import TECH_LAYERS, is_valid_layer

DICTIONARY_FIELDS = ["version", "skills", "variations", "createdAt"]
SKILL_FIELDS = ["name", "category", "createdAt"]
VARIATION_FIELDS = ["variation", "canonical"]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_weight(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and 0 <= v <= 1


def validate_dictionary_json(data: Any) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Structural checks only; version format and cross references are left
    to SkillDictionary.from_json.
    """
    if not isinstance(data, dict):
        return ["Dictionary document must be a JSON object"]

    errors: List[str] = []

    if not _is_non_empty_str(data.get("version")):
        errors.append("Missing required field: version")
    if not isinstance(data.get("skills"), list):
        errors.append("Missing or invalid field: skills (must be array)")
    if not isinstance(data.get("variations"), list):
        errors.append("Missing or invalid field: variations (must be array)")
    if not _is_non_empty_str(data.get("createdAt")):
        errors.append("Missing required field: createdAt")
    if errors:
        return errors

    for skill in data["skills"]:
        if not isinstance(skill, dict) or not all(_is_non_empty_str(skill.get(f)) for f in SKILL_FIELDS):
            errors.append("Invalid skill structure: missing required fields (name, category, createdAt)")
            break
        if not is_valid_layer(skill["category"]):
            errors.append(
                f"Invalid skill structure: unknown category '{skill['category']}' "
                f"for skill '{skill['name']}'"
            )
            break

    for variation in data["variations"]:
        if not isinstance(variation, dict) or not all(
            _is_non_empty_str(variation.get(f)) for f in VARIATION_FIELDS
        ):
            errors.append("Invalid variation structure: missing required fields (variation, canonical)")
            break

    return errors


def validate_layer_skills(data: Any) -> List[str]:
    """Check a layer-skills profile: six layer keys, each a list of {skill, weight}."""
    if not isinstance(data, dict):
        return ["Layer skills must be a JSON object keyed by layer"]

    errors: List[str] = []
    for key in data:
        if not is_valid_layer(key):
            errors.append(f"Unknown layer: {key}")
    for layer in TECH_LAYERS:
        entries = data.get(layer, [])
        if not isinstance(entries, list):
            errors.append(f"Layer '{layer}' must be a list")
            continue
        for entry in entries:
            if not isinstance(entry, dict) or not _is_non_empty_str(entry.get("skill")):
                errors.append(f"Layer '{layer}' entries must have a non-empty 'skill'")
            elif not _is_weight(entry.get("weight")):
                errors.append(
                    f"Weight for skill '{entry['skill']}' in layer '{layer}' must be a number in [0, 1]"
                )
    return errors


def validate_layer_weights(data: Any) -> List[str]:
    if not isinstance(data, dict):
        return ["Layer weights must be a JSON object keyed by layer"]

    errors: List[str] = []
    for key in data:
        if not is_valid_layer(key):
            errors.append(f"Unknown layer: {key}")
    for layer in TECH_LAYERS:
        if layer in data and not _is_weight(data[layer]):
            errors.append(f"Weight for layer '{layer}' must be a number in [0, 1]")
    return errors


def validate_bid(data: Any) -> List[str]:
    """Check a bid record: id, company, role and mainStacks in either format."""
    if not isinstance(data, dict):
        return ["Bid must be a JSON object"]

    errors: List[str] = []
    for f in ("id", "company", "role"):
        if f not in data:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    stacks = data.get("mainStacks")
    if stacks is None:
        errors.append("Missing required field: mainStacks")
    elif isinstance(stacks, list):
        if not all(isinstance(s, str) for s in stacks):
            errors.append("Legacy mainStacks must be a list of strings")
    else:
        errors.extend(validate_layer_skills(stacks))
    return errors
