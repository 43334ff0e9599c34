"""Skill level scale and skill records."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SkillLevel(str, Enum):
    """Ordinal proficiency scale."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXPERT = "EXPERT"

    @property
    def ordinal(self) -> int:
        return _ORDINALS[self]

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "SkillLevel":
        bounded = min(max(int(ordinal), 1), len(_ORDINALS))
        for level, value in _ORDINALS.items():
            if value == bounded:
                return level
        raise ValueError(f"No skill level for ordinal {ordinal!r}")  # pragma: no cover


_ORDINALS: dict[SkillLevel, int] = {
    SkillLevel.LOW: 1,
    SkillLevel.MEDIUM: 2,
    SkillLevel.HIGH: 3,
    SkillLevel.EXPERT: 4,
}


def coerce_level(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().upper()
    return value


class SkillRequirement(BaseModel):
    """Skill demanded by an activity."""

    skill_id: str
    required_level: SkillLevel
    weight: float = Field(default=1.0, ge=0.0, le=1.0)
    mandatory: bool = False
    min_score: float | None = Field(default=None, ge=0.0, le=100.0)

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    @field_validator("required_level", mode="before")
    @classmethod
    def normalize_level(cls, value: Any) -> Any:
        return coerce_level(value)


class EmployeeSkillRecord(BaseModel):
    """Skill held by an employee."""

    skill_id: str
    level: SkillLevel
    score: float = Field(default=0.0, ge=0.0, le=100.0)
    years_of_experience: float | None = Field(default=None, ge=0.0)
    certification_count: int = Field(default=0, ge=0)
    verified: bool = False

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, value: Any) -> Any:
        return coerce_level(value)


class SkillDelta(BaseModel):
    """One recorded change of a skill score."""

    previous_score: float = Field(ge=0.0, le=100.0)
    new_score: float = Field(ge=0.0, le=100.0)
    skill_id: str | None = None
    recorded_at: str | None = None

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    @property
    def delta(self) -> float:
        return self.new_score - self.previous_score
