"""Ephemeral computation outputs shared by the engine components."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Literal

import pendulum

from ..dates import parse_date
from ..schemas import EmployeeProfile, SkillLevel

Severity = Literal["hard", "soft"]
MatchStatus = Literal["exceeds", "meets", "below", "missing"]

MISSING_MANDATORY_SKILL = "MISSING_MANDATORY_SKILL"
UNAVAILABLE = "UNAVAILABLE"
DEPARTMENT_LIMIT = "DEPARTMENT_LIMIT"
SEAT_LIMIT = "SEAT_LIMIT"
INVALID_RECORD = "INVALID_RECORD"
INACTIVE = "INACTIVE"


@dataclass(slots=True, frozen=True)
class ScoreBreakdown:
    """Sub-scores and composite score, each within [0, 100]."""

    skill_score: float = 0.0
    experience_score: float = 0.0
    progression_score: float = 0.0
    context_score: float = 0.0
    total_score: float = 0.0


@dataclass(slots=True, frozen=True)
class SkillMatch:
    """How one employee skill compares to one requirement."""

    skill_id: str
    required_level: SkillLevel
    employee_level: SkillLevel | None
    weight: float
    mandatory: bool
    level_score: float
    status: MatchStatus
    employee_score: float | None = None
    min_score: float | None = None

    @property
    def below_min_score(self) -> bool:
        return (
            self.min_score is not None
            and self.employee_score is not None
            and self.employee_score < self.min_score
        )


@dataclass(slots=True, frozen=True)
class Violation:
    """Constraint outcome attached to a candidate."""

    code: str
    severity: Severity
    detail: str = ""

    @property
    def hard(self) -> bool:
        return self.severity == "hard"


@dataclass(slots=True, frozen=True)
class Candidate:
    """One (employee, activity) pairing flowing through the engine."""

    employee_id: str
    activity_id: str
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)
    employee: EmployeeProfile | None = None
    skill_matches: tuple[SkillMatch, ...] = ()
    violations: tuple[Violation, ...] = ()
    eligible: bool = True
    rank: int | None = None
    strategy_score: float | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def score(self) -> float:
        """Ordering score: the strategy score when set, else the composite."""
        if self.strategy_score is not None:
            return self.strategy_score
        return self.breakdown.total_score

    @property
    def violation_codes(self) -> list[str]:
        return [violation.code for violation in self.violations]

    @property
    def has_soft_violation(self) -> bool:
        return any(not violation.hard for violation in self.violations)

    @property
    def last_activity_date(self) -> pendulum.DateTime | None:
        if self.employee is None:
            return None
        return parse_date(self.employee.last_activity_date)

    @property
    def department(self) -> str | None:
        return self.employee.department if self.employee is not None else None

    def with_violations(self, violations: list[Violation]) -> "Candidate":
        merged = list(self.violations)
        for violation in violations:
            if violation not in merged:
                merged.append(violation)
        eligible = self.eligible and not any(v.hard for v in merged)
        return replace(self, violations=tuple(merged), eligible=eligible)

    def with_strategy_score(self, score: float) -> "Candidate":
        return replace(self, strategy_score=score)

    def with_rank(self, rank: int | None) -> "Candidate":
        return replace(self, rank=rank)
