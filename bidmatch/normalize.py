import re
from datetime import datetime, timezone
from typing import Tuple

from .errors import FormatError

VERSION_PATTERN = re.compile(r"[0-9]{4}\.[0-9]+")

# Fixed layer order; serialization and breakdowns follow it
TECH_LAYERS = ("frontend", "backend", "database", "cloud", "devops", "others")


def normalize_text(s: str) -> str:
    return " ".join(s.strip().lower().split())


def normalize_skill_name(name: str) -> str:
    # Internal whitespace is significant in skill names ("material ui")
    return name.strip().lower()


def normalize_role(role: str) -> str:
    return normalize_text(role)


def validate_version(version: str) -> None:
    if not isinstance(version, str) or not VERSION_PATTERN.fullmatch(version):
        raise FormatError(
            f"Invalid dictionary version format: '{version}'. "
            "Expected format: YYYY.N (e.g., 2024.1)"
        )


def parse_version(version: str) -> Tuple[int, int]:
    validate_version(version)
    year, n = version.split(".")
    return int(year), int(n)


def format_version(year: int, n: int) -> str:
    return f"{year}.{n}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    if isinstance(value, datetime):
        dt = value
    else:
        if not isinstance(value, str) or not value.strip():
            raise FormatError(f"Invalid timestamp: {value!r}")
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise FormatError(f"Invalid timestamp: {value!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def is_valid_layer(layer: str) -> bool:
    return layer in TECH_LAYERS
