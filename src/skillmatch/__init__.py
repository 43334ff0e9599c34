"""Skill-based employee to activity matching engine."""

__version__ = "0.1.0"
