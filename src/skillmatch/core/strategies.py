"""Candidate ordering policies."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from functools import reduce
from typing import Any, Callable, Sequence

import pendulum
import structlog

from ..dates import parse_date
from ..errors import ConfigurationError
from ..schemas import ActivityProfile, EmployeeProfile
from .models import Candidate
from .scoring import clamp, overall_level
from .tiebreak import TieBreaker


class OptimizationStrategy(str, Enum):
    UPSKILLING = "upskilling"
    EXPERTISE = "expertise"
    BALANCED = "balanced"
    DIVERSITY = "diversity"

    @classmethod
    def parse(cls, value: "str | OptimizationStrategy") -> "OptimizationStrategy":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for strategy in cls:
            if strategy.value == normalized:
                return strategy
        known = ", ".join(strategy.value for strategy in cls)
        raise ConfigurationError(f"Unknown strategy {value!r}; expected one of: {known}")


@dataclass
class StrategyParams:
    """Strategy-specific parameters."""

    expert_fraction: float = 0.3
    seats: int | None = None
    engagement_window_days: int = 365
    as_of: str | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.expert_fraction <= 1.0:
            raise ConfigurationError("expert_fraction must be within [0, 1]")
        if self.seats is not None and self.seats < 0:
            raise ConfigurationError("seats must be non-negative")

    @classmethod
    def from_mapping(cls, raw: "StrategyParams | dict[str, Any] | None") -> "StrategyParams":
        if isinstance(raw, cls):
            return raw
        if not raw:
            return cls()
        try:
            return cls(**raw)
        except TypeError as exc:
            raise ConfigurationError(f"Invalid strategy parameters: {exc}") from exc


# Upskilling gap curve: peak at one level of shortfall.
GAP_BASE = 40.0
GAP_RISE = 60.0
GAP_DECAY = 35.0
ENGAGEMENT_PER_ACTIVITY = 25.0
CERTIFICATION_POINTS = 20.0
EXPERIENCE_SPREAD_YEARS = 10.0


def gap_score(employee: EmployeeProfile, activity: ActivityProfile) -> float:
    """Reward moderate shortfalls against the required levels."""
    requirements = activity.required_skills
    if requirements:
        shortfalls = []
        for requirement in requirements:
            record = employee.skill(requirement.skill_id)
            held = record.level.ordinal if record is not None else 0
            shortfalls.append(max(requirement.required_level.ordinal - held, 0))
        gap = sum(shortfalls) / len(shortfalls)
    else:
        gap = max(activity.target_level.ordinal - overall_level(employee).ordinal, 0)
    if gap <= 1.0:
        return clamp(GAP_BASE + GAP_RISE * gap)
    return clamp(100.0 - GAP_DECAY * (gap - 1.0))


def engagement_score(
    employee: EmployeeProfile,
    reference: pendulum.DateTime,
    window_days: int,
) -> float:
    window_start = reference.subtract(days=window_days)
    count = 0
    for entry in employee.activity_history:
        if entry.status == "cancelled":
            continue
        ended = parse_date(entry.end) or parse_date(entry.start)
        if ended is not None and window_start <= ended <= reference:
            count += 1
    return clamp(count * ENGAGEMENT_PER_ACTIVITY)


def skill_level_score(employee: EmployeeProfile, activity: ActivityProfile) -> float:
    if not activity.required_skills:
        return overall_level(employee).ordinal / 4 * 100.0
    total = 0.0
    for requirement in activity.required_skills:
        record = employee.skill(requirement.skill_id)
        if record is not None:
            total += record.level.ordinal / 4 * 100.0
    return total / len(activity.required_skills)


def certification_score(employee: EmployeeProfile, activity: ActivityProfile) -> float:
    required = {requirement.skill_id for requirement in activity.required_skills}
    certifications = sum(
        record.certification_count
        for record in employee.skills
        if not required or record.skill_id in required
    )
    return clamp(certifications * CERTIFICATION_POINTS)


@dataclass(frozen=True)
class DiversitySelection:
    """Running state of the greedy diversity fold."""

    selected: tuple[Candidate, ...] = ()
    remaining: tuple[Candidate, ...] = ()


def diversity_components(candidate: Candidate, selected: Sequence[Candidate]) -> dict[str, float]:
    employee = candidate.employee
    if not selected or employee is None:
        return {"skill": 100.0, "department": 100.0, "experience": 100.0}

    covered: set[str] = set()
    for chosen in selected:
        if chosen.employee is not None:
            covered.update(chosen.employee.skill_ids)
    skills = employee.skill_ids
    skill_part = 100.0 * len(skills - covered) / len(skills) if skills else 0.0

    same_department = sum(
        1 for chosen in selected if chosen.department == employee.department
    )
    department_part = 100.0 * (1.0 - same_department / len(selected))

    selected_years = [
        chosen.employee.years_of_experience for chosen in selected if chosen.employee is not None
    ]
    mean_years = sum(selected_years) / len(selected_years) if selected_years else 0.0
    spread = abs(employee.years_of_experience - mean_years) / EXPERIENCE_SPREAD_YEARS
    experience_part = 100.0 * min(spread, 1.0)

    return {"skill": skill_part, "department": department_part, "experience": experience_part}


def diversity_score(candidate: Candidate, selected: Sequence[Candidate]) -> float:
    parts = diversity_components(candidate, selected)
    return parts["skill"] * 0.4 + parts["department"] * 0.3 + parts["experience"] * 0.3


class StrategyEngine:
    """Dispatch ordering policies by :class:`OptimizationStrategy`."""

    def __init__(
        self,
        *,
        tie_breaker: TieBreaker | None = None,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._tie_breaker = tie_breaker or TieBreaker()
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)
        self._handlers: dict[
            OptimizationStrategy,
            Callable[[Sequence[Candidate], ActivityProfile, StrategyParams], list[Candidate]],
        ] = {
            OptimizationStrategy.UPSKILLING: self._upskilling,
            OptimizationStrategy.EXPERTISE: self._expertise,
            OptimizationStrategy.BALANCED: self._balanced,
            OptimizationStrategy.DIVERSITY: self._diversity,
        }

    def optimize(
        self,
        candidates: Sequence[Candidate],
        activity: ActivityProfile,
        strategy: str | OptimizationStrategy,
        params: StrategyParams | dict[str, Any] | None = None,
    ) -> list[Candidate]:
        selected_strategy = OptimizationStrategy.parse(strategy)
        params = StrategyParams.from_mapping(params)
        ordered = self._handlers[selected_strategy](list(candidates), activity, params)
        self._logger.debug(
            "strategy.ordered",
            strategy=selected_strategy.value,
            activity_id=activity.id,
            candidates=len(ordered),
        )
        return ordered

    def upskilling_score(
        self,
        candidate: Candidate,
        activity: ActivityProfile,
        params: StrategyParams,
    ) -> float:
        if candidate.employee is None:
            return 0.0
        reference = self._reference_date(activity, params)
        return (
            gap_score(candidate.employee, activity) * 0.4
            + candidate.breakdown.progression_score * 0.4
            + engagement_score(candidate.employee, reference, params.engagement_window_days) * 0.2
        )

    @staticmethod
    def expertise_score(candidate: Candidate, activity: ActivityProfile) -> float:
        if candidate.employee is None:
            return 0.0
        return (
            skill_level_score(candidate.employee, activity) * 0.5
            + candidate.breakdown.experience_score * 0.3
            + certification_score(candidate.employee, activity) * 0.2
        )

    def _upskilling(
        self,
        candidates: Sequence[Candidate],
        activity: ActivityProfile,
        params: StrategyParams,
    ) -> list[Candidate]:
        scored = [
            candidate.with_strategy_score(self.upskilling_score(candidate, activity, params))
            for candidate in candidates
        ]
        return self._tie_breaker.break_ties(scored)

    def _expertise(
        self,
        candidates: Sequence[Candidate],
        activity: ActivityProfile,
        params: StrategyParams,
    ) -> list[Candidate]:
        scored = [
            candidate.with_strategy_score(self.expertise_score(candidate, activity))
            for candidate in candidates
        ]
        return self._tie_breaker.break_ties(scored)

    def _balanced(
        self,
        candidates: Sequence[Candidate],
        activity: ActivityProfile,
        params: StrategyParams,
    ) -> list[Candidate]:
        by_expertise = self._expertise(candidates, activity, params)
        expert_count = min(math.ceil(len(by_expertise) * params.expert_fraction), len(by_expertise))
        experts = by_expertise[:expert_count]
        expert_ids = {candidate.employee_id for candidate in experts}
        # Experts never appear again in the developer pool.
        developer_pool = [
            candidate for candidate in candidates if candidate.employee_id not in expert_ids
        ]
        developers = self._upskilling(developer_pool, activity, params)
        return [
            replace(candidate, details={**candidate.details, "pool": "expert"})
            for candidate in experts
        ] + [
            replace(candidate, details={**candidate.details, "pool": "developer"})
            for candidate in developers
        ]

    def _diversity(
        self,
        candidates: Sequence[Candidate],
        activity: ActivityProfile,
        params: StrategyParams,
    ) -> list[Candidate]:
        limit = params.seats if params.seats is not None else max(activity.remaining_seats, 0)
        # Composite order doubles as the tie order for equal diversity scores.
        initial = DiversitySelection(
            remaining=tuple(
                self._tie_breaker.break_ties(
                    candidates,
                    score=lambda candidate: candidate.breakdown.total_score,
                )
            )
        )
        final = reduce(self._diversity_step, range(min(limit, len(candidates))), initial)
        return list(final.selected) + [
            candidate.with_strategy_score(diversity_score(candidate, final.selected))
            for candidate in final.remaining
        ]

    def _diversity_step(self, state: DiversitySelection, _: int) -> DiversitySelection:
        best_index = 0
        best_score = -math.inf
        for index, candidate in enumerate(state.remaining):
            score = diversity_score(candidate, state.selected)
            if score >= best_score + self._tie_breaker.epsilon:
                best_index, best_score = index, score
        pick = state.remaining[best_index].with_strategy_score(best_score)
        return DiversitySelection(
            selected=state.selected + (pick,),
            remaining=state.remaining[:best_index] + state.remaining[best_index + 1:],
        )

    def _reference_date(self, activity: ActivityProfile, params: StrategyParams) -> pendulum.DateTime:
        if activity.date_range is not None:
            start = parse_date(activity.date_range.start)
            if start is not None:
                return start
        return parse_date(params.as_of) or self._now_provider()
