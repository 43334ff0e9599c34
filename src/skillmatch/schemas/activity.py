from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .skills import SkillLevel, SkillRequirement, coerce_level


class DateRange(BaseModel):
    """Inclusive date range; an empty end means open-ended."""

    start: str
    end: str | None = None

    model_config = ConfigDict(extra="forbid")


class ActivityProfile(BaseModel):
    """Training, mission, certification, audit or project to staff."""

    id: str
    type: str = ""
    title: str | None = None
    required_skills: list[SkillRequirement] = Field(default_factory=list)
    target_level: SkillLevel = SkillLevel.MEDIUM
    available_seats: int = Field(default=0, ge=0)
    filled_seats: int = Field(default=0, ge=0)
    date_range: DateRange | None = None

    model_config = ConfigDict(extra="allow")

    @field_validator("target_level", mode="before")
    @classmethod
    def normalize_level(cls, value: Any) -> Any:
        return coerce_level(value)

    @field_validator("required_skills")
    @classmethod
    def unique_requirements(cls, requirements: list[SkillRequirement]) -> list[SkillRequirement]:
        seen: set[str] = set()
        for requirement in requirements:
            if requirement.skill_id in seen:
                raise ValueError(f"duplicate skill requirement: {requirement.skill_id}")
            seen.add(requirement.skill_id)
        return requirements

    @model_validator(mode="after")
    def check_seats(self) -> "ActivityProfile":
        if self.filled_seats > self.available_seats:
            raise ValueError("filled_seats cannot exceed available_seats")
        return self

    @property
    def remaining_seats(self) -> int:
        return self.available_seats - self.filled_seats
