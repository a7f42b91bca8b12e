"""
Role-dependent layer weights.

The table is configuration data: a JSON document mapping role titles to
layer weights, plus an optional default for roles it does not know.
"""

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import FormatError, NotFoundError, ValidationError
from .logger import get_logger
from .normalize import normalize_role
from .profile import LayerWeights

logger = get_logger()


class LayerWeightTable:
    """Lookup of LayerWeights by job role/title."""

    def __init__(
        self,
        roles: Optional[Mapping[str, LayerWeights]] = None,
        default: Optional[LayerWeights] = None,
    ):
        self._roles: Dict[str, LayerWeights] = {
            normalize_role(title): weights for title, weights in (roles or {}).items()
        }
        self.default = default or LayerWeights.uniform()

    def __len__(self) -> int:
        return len(self._roles)

    def __contains__(self, role: str) -> bool:
        return normalize_role(role) in self._roles

    def for_role(self, role: str) -> LayerWeights:
        """
        Resolve the weights for a role.

        Tries an exact (normalized) title match, then the longest known title
        the role ends with, so prefixes like a seniority level fall through
        to the base title. Unknown roles get the default weights.
        """
        normalized = normalize_role(role or "")
        if normalized in self._roles:
            return self._roles[normalized]

        best: Optional[str] = None
        for title in self._roles:
            if normalized.endswith(" " + title) and (best is None or len(title) > len(best)):
                best = title
        if best is not None:
            return self._roles[best]

        logger.debug("No layer weights configured for role, using default", role=role)
        return self.default

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "LayerWeightTable":
        if not isinstance(data, dict):
            raise FormatError("Role weight table must be a JSON object")
        roles_data = data.get("roles", {})
        if not isinstance(roles_data, dict):
            raise FormatError("Field 'roles' must be an object mapping role titles to layer weights")

        roles = {}
        for title, weights in roles_data.items():
            try:
                roles[title] = LayerWeights.from_json(weights)
            except ValidationError as e:
                raise ValidationError(f"Role '{title}': {e}") from e

        default = LayerWeights.from_json(data["default"]) if "default" in data else None
        return cls(roles, default)

    @classmethod
    def from_file(cls, path: Path) -> "LayerWeightTable":
        if not path.exists():
            raise NotFoundError(f"Role weight file not found: {path}")
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise FormatError(f"Role weight file is not valid JSON: {path}") from e
        table = cls.from_json(data)
        logger.info("Loaded role weight table", path=str(path), roles=len(table))
        return table

    def to_json(self) -> Dict[str, Any]:
        return {
            "default": self.default.to_json(),
            "roles": {title: weights.to_json() for title, weights in self._roles.items()},
        }
