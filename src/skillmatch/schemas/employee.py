from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .skills import EmployeeSkillRecord, SkillDelta

HistoryStatus = Literal["completed", "committed", "in_progress", "cancelled"]


class ActivityHistoryEntry(BaseModel):
    """Past or committed participation in an activity."""

    activity_id: str
    activity_type: str = ""
    start: str | None = None
    end: str | None = None
    status: HistoryStatus = "completed"

    model_config = ConfigDict(extra="forbid")


class EmployeeProfile(BaseModel):
    """Employee snapshot supplied by the directory collaborator."""

    id: str
    department: str | None = None
    skills: list[EmployeeSkillRecord] = Field(default_factory=list)
    years_of_experience: float = Field(default=0.0, ge=0.0)
    recent_skill_deltas: list[SkillDelta] = Field(default_factory=list)
    activity_history: list[ActivityHistoryEntry] = Field(default_factory=list)
    last_activity_date: str | None = None

    name: str | None = None
    matricule: str | None = None
    hire_date: str | None = None
    is_active: bool = True

    model_config = ConfigDict(extra="allow", allow_inf_nan=False)

    @field_validator("skills")
    @classmethod
    def unique_skills(cls, skills: list[EmployeeSkillRecord]) -> list[EmployeeSkillRecord]:
        seen: set[str] = set()
        for record in skills:
            if record.skill_id in seen:
                raise ValueError(f"duplicate skill record: {record.skill_id}")
            seen.add(record.skill_id)
        return skills

    def skill(self, skill_id: str) -> EmployeeSkillRecord | None:
        for record in self.skills:
            if record.skill_id == skill_id:
                return record
        return None

    @property
    def skill_ids(self) -> frozenset[str]:
        return frozenset(record.skill_id for record in self.skills)
