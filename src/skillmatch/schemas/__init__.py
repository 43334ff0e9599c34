"""Pydantic schema definitions for engine inputs."""

from __future__ import annotations

from .activity import ActivityProfile, DateRange
from .config import (
    AppConfig,
    ConstraintConfiguration,
    WeightConfiguration,
    load_config,
)
from .employee import ActivityHistoryEntry, EmployeeProfile
from .skills import EmployeeSkillRecord, SkillDelta, SkillLevel, SkillRequirement

__all__ = [
    "ActivityHistoryEntry",
    "ActivityProfile",
    "AppConfig",
    "ConstraintConfiguration",
    "DateRange",
    "EmployeeProfile",
    "EmployeeSkillRecord",
    "SkillDelta",
    "SkillLevel",
    "SkillRequirement",
    "WeightConfiguration",
    "load_config",
]
