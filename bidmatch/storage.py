import json
from pathlib import Path
from typing import Any, Dict, List

from .errors import FormatError, NotFoundError


def load_json_file(path: Path) -> Any:
    if not path.exists():
        raise NotFoundError(f"File not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise FormatError(f"Invalid JSON in {path}: {e}") from e


def save_json_file(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def diff_dict(old: Dict[str, Any], new: Dict[str, Any]) -> Dict[str, Any]:
    """Added keys, removed keys, and keys whose value changed."""
    added = sorted(k for k in new if k not in old)
    removed = sorted(k for k in old if k not in new)
    changed = {
        k: {"old": old[k], "new": new[k]}
        for k in sorted(old.keys() & new.keys())
        if old[k] != new[k]
    }
    return {"added": added, "removed": removed, "changed": changed}


def diff_dictionaries(old_doc: Dict[str, Any], new_doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Compare two serialized dictionaries.

    Skills are compared by name (value: category); variations by variation
    string (value: canonical target). Timestamps are ignored.
    """
    def skills(doc: Dict[str, Any]) -> Dict[str, str]:
        return {s["name"]: s["category"] for s in doc.get("skills", [])}

    def variations(doc: Dict[str, Any]) -> Dict[str, str]:
        return {v["variation"]: v["canonical"] for v in doc.get("variations", [])}

    return {
        "from": old_doc.get("version"),
        "to": new_doc.get("version"),
        "skills": diff_dict(skills(old_doc), skills(new_doc)),
        "variations": diff_dict(variations(old_doc), variations(new_doc)),
    }


def is_empty_diff(diff: Dict[str, Any]) -> bool:
    sections: List[Dict[str, Any]] = [diff["skills"], diff["variations"]]
    return not any(s["added"] or s["removed"] or s["changed"] for s in sections)
