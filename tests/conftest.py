"""
Pytest configuration and shared fixtures.
"""

import pytest
from datetime import datetime, timezone
from typing import Any, Dict

from bidmatch.dictionary import SkillDictionary
from bidmatch.profile import BidProfile, LayerSkills, SkillWeight


class FakeClock:
    """Settable time source for version bumps."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def layer_skills(**layers) -> LayerSkills:
    """Build LayerSkills from keyword lists of (skill, weight) pairs."""
    return LayerSkills(**{
        layer: tuple(SkillWeight(skill, weight) for skill, weight in pairs)
        for layer, pairs in layers.items()
    })


def bid(bid_id: str, role: str = "Software Engineer", company: str = "acme", **layers) -> BidProfile:
    return BidProfile(bid_id, company, role, layer_skills(**layers))


@pytest.fixture
def clock_2024() -> FakeClock:
    return FakeClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def sample_dictionary_doc() -> Dict[str, Any]:
    """Serialized dictionary with two skills and three variations."""
    return {
        "version": "2024.1",
        "skills": [
            {"name": "react", "category": "frontend", "createdAt": "2024-01-01T00:00:00Z"},
            {"name": "postgresql", "category": "database", "createdAt": "2024-01-01T00:00:00Z"},
        ],
        "variations": [
            {"variation": "reactjs", "canonical": "react"},
            {"variation": "react.js", "canonical": "react"},
            {"variation": "postgres", "canonical": "postgresql"},
        ],
        "createdAt": "2024-01-01T00:00:00Z",
    }


@pytest.fixture
def sample_dictionary(sample_dictionary_doc, clock_2024) -> SkillDictionary:
    return SkillDictionary.from_json(sample_dictionary_doc, clock=clock_2024)


@pytest.fixture
def layer_bid_json() -> Dict[str, Any]:
    return {
        "id": "b1",
        "company": "acme",
        "role": "Backend Engineer",
        "mainStacks": {
            "frontend": [],
            "backend": [{"skill": "python", "weight": 1.0}, {"skill": "django", "weight": 0.5}],
            "database": [{"skill": "postgresql", "weight": 0.8}],
            "cloud": [],
            "devops": [],
            "others": [],
        },
    }
