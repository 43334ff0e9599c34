"""Composite scoring of one employee against one activity."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

import pendulum
from rapidfuzz import fuzz

from ..dates import parse_date, years_between
from ..errors import CandidateInputError, ValidationError
from ..schemas import (
    ActivityHistoryEntry,
    ActivityProfile,
    EmployeeProfile,
    SkillDelta,
    SkillLevel,
    WeightConfiguration,
)
from .models import ScoreBreakdown, SkillMatch

UNDER_LEVEL_CREDIT = 0.7
NEUTRAL_PROGRESSION = 50.0
CONTEXT_SCORES: dict[int, float] = {0: 100.0, 1: 80.0, 2: 50.0}
FAR_CONTEXT_SCORE = 20.0


@dataclass
class ScoringConfig:
    """Tunables that are not part of the weight configuration."""

    max_skill_deltas: int = 5
    activity_type_similarity: float = 85.0
    years_multiplier: float = 5.0
    years_cap: float = 50.0
    relevant_multiplier: float = 10.0
    relevant_cap: float = 50.0
    progression_multiplier: float = 2.0


@dataclass(slots=True)
class ScoreResult:
    """Breakdown plus the evidence used to explain it."""

    breakdown: ScoreBreakdown
    skill_matches: list[SkillMatch] = field(default_factory=list)
    missing_mandatory: list[str] = field(default_factory=list)
    overall_level: SkillLevel = SkillLevel.LOW
    relevant_years: float = 0.0

    @property
    def disqualified(self) -> bool:
        return bool(self.missing_mandatory)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    if not math.isfinite(value):
        raise ValidationError(f"Score must be finite, got {value!r}")
    return min(max(value, low), high)


def level_score(employee_level: SkillLevel, required_level: SkillLevel) -> float:
    if employee_level.ordinal >= required_level.ordinal:
        return 1.0
    return (employee_level.ordinal / required_level.ordinal) * UNDER_LEVEL_CREDIT


def context_score(target_level: SkillLevel, employee_level: SkillLevel) -> float:
    distance = abs(target_level.ordinal - employee_level.ordinal)
    return CONTEXT_SCORES.get(distance, FAR_CONTEXT_SCORE)


def overall_level(employee: EmployeeProfile) -> SkillLevel:
    """Highest level the employee holds; ``LOW`` when nothing is recorded."""
    if not employee.skills:
        return SkillLevel.LOW
    return max((record.level for record in employee.skills), key=lambda level: level.ordinal)


class ScoreCalculator:
    """Pure scorer producing a :class:`ScoreBreakdown` per employee."""

    def __init__(
        self,
        *,
        config: ScoringConfig | None = None,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._config = config or ScoringConfig()
        self._now_provider = now_provider or pendulum.now

    def calculate_score(
        self,
        employee: EmployeeProfile,
        activity: ActivityProfile,
        weights: WeightConfiguration,
    ) -> ScoreBreakdown:
        return self.evaluate(employee, activity, weights).breakdown

    def evaluate(
        self,
        employee: EmployeeProfile,
        activity: ActivityProfile,
        weights: WeightConfiguration,
    ) -> ScoreResult:
        weights.ensure_valid()

        try:
            skill_matches, missing_mandatory, skill_value = self._skill_score(employee, activity)
            relevant_years = self.relevant_experience_years(employee, activity.type)
            experience_value = self._experience_score(
                self.experience_years(employee, activity), relevant_years
            )
            progression_value = self._progression_score(employee.recent_skill_deltas)
            level = overall_level(employee)
            context_value = context_score(activity.target_level, level)

            total = clamp(
                skill_value * weights.skill
                + experience_value * weights.experience
                + progression_value * weights.progression
                + context_value * weights.context
            )
        except ValidationError as exc:
            raise CandidateInputError(employee.id, str(exc)) from exc
        if missing_mandatory:
            total = 0.0

        breakdown = ScoreBreakdown(
            skill_score=skill_value,
            experience_score=experience_value,
            progression_score=progression_value,
            context_score=context_value,
            total_score=total,
        )
        return ScoreResult(
            breakdown=breakdown,
            skill_matches=skill_matches,
            missing_mandatory=missing_mandatory,
            overall_level=level,
            relevant_years=relevant_years,
        )

    def _skill_score(
        self,
        employee: EmployeeProfile,
        activity: ActivityProfile,
    ) -> tuple[list[SkillMatch], list[str], float]:
        matches: list[SkillMatch] = []
        missing_mandatory: list[str] = []
        weighted_sum = 0.0
        total_weight = 0.0

        for requirement in activity.required_skills:
            record = employee.skill(requirement.skill_id)
            if record is None:
                if requirement.mandatory:
                    missing_mandatory.append(requirement.skill_id)
                matches.append(
                    SkillMatch(
                        skill_id=requirement.skill_id,
                        required_level=requirement.required_level,
                        employee_level=None,
                        weight=requirement.weight,
                        mandatory=requirement.mandatory,
                        level_score=0.0,
                        status="missing",
                        min_score=requirement.min_score,
                    )
                )
                continue

            value = level_score(record.level, requirement.required_level)
            if record.level.ordinal > requirement.required_level.ordinal:
                status = "exceeds"
            elif record.level.ordinal == requirement.required_level.ordinal:
                status = "meets"
            else:
                status = "below"
            matches.append(
                SkillMatch(
                    skill_id=requirement.skill_id,
                    required_level=requirement.required_level,
                    employee_level=record.level,
                    weight=requirement.weight,
                    mandatory=requirement.mandatory,
                    level_score=value,
                    status=status,
                    employee_score=record.score,
                    min_score=requirement.min_score,
                )
            )
            weighted_sum += value * requirement.weight
            total_weight += requirement.weight

        if total_weight <= 0.0:
            return matches, missing_mandatory, 0.0
        return matches, missing_mandatory, clamp(100.0 * weighted_sum / total_weight)

    def _experience_score(self, years: float, relevant_years: float) -> float:
        cfg = self._config
        base = min(years * cfg.years_multiplier, cfg.years_cap)
        bonus = min(relevant_years * cfg.relevant_multiplier, cfg.relevant_cap)
        return clamp(base + bonus)

    def _progression_score(self, deltas: Sequence[SkillDelta]) -> float:
        if not deltas:
            return NEUTRAL_PROGRESSION
        window = list(deltas)[-self._config.max_skill_deltas:]
        average = sum(item.delta for item in window) / len(window)
        return clamp(NEUTRAL_PROGRESSION + average * self._config.progression_multiplier)

    def experience_years(self, employee: EmployeeProfile, activity: ActivityProfile) -> float:
        """Declared years, or tenure since ``hire_date`` when none were declared."""
        if "years_of_experience" in employee.model_fields_set:
            return employee.years_of_experience
        hired = parse_date(employee.hire_date)
        if hired is None:
            return employee.years_of_experience
        reference = None
        if activity.date_range is not None:
            reference = parse_date(activity.date_range.start)
        return years_between(hired, reference or self._now_provider())

    def relevant_experience_years(self, employee: EmployeeProfile, activity_type: str) -> float:
        """Years spent in past activities of the same type."""
        if not activity_type:
            return 0.0
        total = 0.0
        for entry in self._matching_history(employee.activity_history, activity_type):
            start = parse_date(entry.start)
            end = parse_date(entry.end)
            if start is None or end is None:
                continue
            total += years_between(start, end)
        return total

    def _matching_history(
        self,
        history: Iterable[ActivityHistoryEntry],
        activity_type: str,
    ) -> Iterable[ActivityHistoryEntry]:
        target = activity_type.strip().lower()
        for entry in history:
            if entry.status != "completed" or not entry.activity_type:
                continue
            candidate_type = entry.activity_type.strip().lower()
            if candidate_type == target:
                yield entry
            elif fuzz.token_set_ratio(candidate_type, target) >= self._config.activity_type_similarity:
                yield entry
