"""Hard and soft eligibility constraints."""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence, runtime_checkable

from ..dates import parse_date, ranges_overlap
from ..schemas import ActivityProfile, ConstraintConfiguration
from .models import (
    DEPARTMENT_LIMIT,
    INACTIVE,
    MISSING_MANDATORY_SKILL,
    SEAT_LIMIT,
    UNAVAILABLE,
    Candidate,
    Violation,
)
from .tiebreak import TieBreaker


@runtime_checkable
class Constraint(Protocol):
    """Independent predicate producing violations keyed by employee id."""

    code: str
    hard: bool

    def evaluate(
        self,
        candidates: Sequence[Candidate],
        activity: ActivityProfile,
    ) -> dict[str, Violation]:
        """Return the violation for every failing candidate."""


class MandatorySkillConstraint:
    """Re-check that every mandatory skill is held."""

    code = MISSING_MANDATORY_SKILL
    hard = True

    def evaluate(
        self,
        candidates: Sequence[Candidate],
        activity: ActivityProfile,
    ) -> dict[str, Violation]:
        mandatory = [req.skill_id for req in activity.required_skills if req.mandatory]
        failures: dict[str, Violation] = {}
        if not mandatory:
            return failures
        for candidate in candidates:
            if candidate.employee is None:
                continue
            held = candidate.employee.skill_ids
            missing = [skill_id for skill_id in mandatory if skill_id not in held]
            if missing:
                failures[candidate.employee_id] = Violation(
                    code=self.code,
                    severity="hard",
                    detail=", ".join(missing),
                )
        return failures


class ActiveEmployeeConstraint:
    """Fail employees whose directory record is deactivated."""

    code = INACTIVE
    hard = True

    def evaluate(
        self,
        candidates: Sequence[Candidate],
        activity: ActivityProfile,
    ) -> dict[str, Violation]:
        return {
            candidate.employee_id: Violation(code=self.code, severity="hard", detail="deactivated")
            for candidate in candidates
            if candidate.employee is not None and not candidate.employee.is_active
        }


class AvailabilityConstraint:
    """Fail employees already committed during the activity dates."""

    code = UNAVAILABLE
    hard = True

    def evaluate(
        self,
        candidates: Sequence[Candidate],
        activity: ActivityProfile,
    ) -> dict[str, Violation]:
        failures: dict[str, Violation] = {}
        if activity.date_range is None:
            return failures
        target_start = parse_date(activity.date_range.start)
        if target_start is None:
            return failures
        target = (target_start, parse_date(activity.date_range.end))

        for candidate in candidates:
            if candidate.employee is None:
                continue
            for entry in candidate.employee.activity_history:
                if entry.status == "cancelled" or entry.activity_id == activity.id:
                    continue
                start = parse_date(entry.start)
                if start is None:
                    continue
                if ranges_overlap((start, parse_date(entry.end)), target):
                    failures[candidate.employee_id] = Violation(
                        code=self.code,
                        severity="hard",
                        detail=entry.activity_id,
                    )
                    break
        return failures


class DepartmentLimitConstraint:
    """Soft cap on how many employees of one department rank first."""

    code = DEPARTMENT_LIMIT
    hard = False

    def __init__(self, limit: int, *, tie_breaker: TieBreaker | None = None) -> None:
        self._limit = limit
        self._tie_breaker = tie_breaker or TieBreaker()

    def evaluate(
        self,
        candidates: Sequence[Candidate],
        activity: ActivityProfile,
    ) -> dict[str, Violation]:
        failures: dict[str, Violation] = {}
        counts: dict[str, int] = {}
        ordered = self._tie_breaker.break_ties(
            candidates,
            score=lambda candidate: candidate.breakdown.total_score,
        )
        for candidate in ordered:
            department = candidate.department
            if department is None:
                continue
            counts[department] = counts.get(department, 0) + 1
            if counts[department] > self._limit:
                failures[candidate.employee_id] = Violation(
                    code=self.code,
                    severity="soft",
                    detail=department,
                )
        return failures


class SeatConstraint:
    """Selection never exceeds the remaining seats."""

    code = SEAT_LIMIT
    hard = True

    def select(
        self,
        ordered: Sequence[Candidate],
        activity: ActivityProfile,
    ) -> tuple[list[Candidate], list[Candidate]]:
        capacity = max(activity.remaining_seats, 0)
        selected = list(ordered[:capacity])
        overflow = [
            candidate.with_violations(
                [Violation(code=self.code, severity="soft", detail=f"{capacity} seats")]
            )
            for candidate in ordered[capacity:]
        ]
        return selected, overflow


class ConstraintEvaluator:
    """Run every configured constraint and annotate candidates."""

    def __init__(self, *, tie_breaker: TieBreaker | None = None) -> None:
        self._tie_breaker = tie_breaker or TieBreaker()
        self._seats = SeatConstraint()

    def build_constraints(self, config: ConstraintConfiguration) -> list[Constraint]:
        constraints: list[Constraint] = []
        if config.check_active:
            constraints.append(ActiveEmployeeConstraint())
        if config.check_mandatory:
            constraints.append(MandatorySkillConstraint())
        if config.check_availability:
            constraints.append(AvailabilityConstraint())
        if config.department_limit is not None:
            constraints.append(
                DepartmentLimitConstraint(config.department_limit, tie_breaker=self._tie_breaker)
            )
        return constraints

    def annotate(
        self,
        candidates: Iterable[Candidate],
        activity: ActivityProfile,
        config: ConstraintConfiguration | None = None,
    ) -> list[Candidate]:
        """Return every candidate with its violations and eligibility set."""
        config = config or ConstraintConfiguration()
        annotated = list(candidates)
        for constraint in self.build_constraints(config):
            # Soft constraints only rank among candidates that are still eligible.
            pool = annotated if constraint.hard else [c for c in annotated if c.eligible]
            failures = constraint.evaluate(pool, activity)
            if not failures:
                continue
            annotated = [
                candidate.with_violations([failures[candidate.employee_id]])
                if candidate.employee_id in failures
                else candidate
                for candidate in annotated
            ]
        return annotated

    def apply_constraints(
        self,
        candidates: Iterable[Candidate],
        activity: ActivityProfile,
        config: ConstraintConfiguration | None = None,
    ) -> tuple[list[Candidate], dict[str, list[Violation]]]:
        annotated = self.annotate(candidates, activity, config)
        eligible = [candidate for candidate in annotated if candidate.eligible]
        violations = {
            candidate.employee_id: list(candidate.violations)
            for candidate in annotated
            if candidate.violations
        }
        return eligible, violations

    def select_seats(
        self,
        ordered: Sequence[Candidate],
        activity: ActivityProfile,
    ) -> tuple[list[Candidate], list[Candidate]]:
        return self._seats.select(ordered, activity)
