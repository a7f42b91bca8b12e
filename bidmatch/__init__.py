"""Skill dictionary versioning and weighted bid matching."""

__version__ = "0.1.0"
