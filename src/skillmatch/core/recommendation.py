"""Assemble scoring, constraints, strategies and seats into recommendations."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping, Sequence, Union

import structlog
from pydantic import ValidationError as SchemaValidationError

from ..errors import CandidateInputError
from ..schemas import (
    ActivityProfile,
    ConstraintConfiguration,
    EmployeeProfile,
    WeightConfiguration,
)
from .constraints import ConstraintEvaluator
from .models import (
    DEPARTMENT_LIMIT,
    INACTIVE,
    INVALID_RECORD,
    MISSING_MANDATORY_SKILL,
    SEAT_LIMIT,
    UNAVAILABLE,
    Candidate,
    ScoreBreakdown,
    Violation,
)
from .pareto import ObjectiveSpec, ParetoOptimizer
from .scoring import ScoreCalculator
from .strategies import OptimizationStrategy, StrategyEngine, StrategyParams

EmployeeInput = Union[EmployeeProfile, Mapping[str, Any]]


@dataclass(slots=True)
class RecommendationResult:
    """Caller-facing view of one candidate."""

    employee_id: str
    total_score: float
    breakdown: ScoreBreakdown
    rank: int | None
    reasoning: list[str]
    eligible: bool
    violations: list[str]
    strategy_score: float | None = None
    employee_name: str | None = None
    matricule: str | None = None


@dataclass(slots=True)
class RecommendationStatistics:
    total_candidates: int
    qualified: int
    recommended: int
    disqualified: int
    invalid: int
    average_score: float


@dataclass(slots=True)
class ParetoEntry:
    employee_id: str
    objectives: dict[str, float]


@dataclass(slots=True)
class RecommendationReport:
    """Ranked recommendations with alternatives and audit trail."""

    activity_id: str
    strategy: str
    recommended: list[RecommendationResult]
    alternatives: list[RecommendationResult]
    disqualified: list[RecommendationResult]
    statistics: RecommendationStatistics
    pareto_front: list[ParetoEntry] | None = None

    @property
    def results(self) -> list[RecommendationResult]:
        return self.recommended + self.alternatives + self.disqualified

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RecommendationRequest:
    """Inputs for one activity when batching with ``recommend_many``."""

    activity: ActivityProfile
    employees: Sequence[EmployeeInput]
    strategy: str | OptimizationStrategy = OptimizationStrategy.BALANCED
    weights: WeightConfiguration | None = None
    strategy_params: StrategyParams | dict[str, Any] | None = None
    constraints: ConstraintConfiguration | None = None
    include_pareto: bool = False
    objectives: Sequence[ObjectiveSpec] | None = None


def explain(candidate: Candidate) -> list[str]:
    """Human readable reasons behind a candidate's placement."""
    reasons: list[str] = []
    for match in candidate.skill_matches:
        if match.status == "missing":
            if match.mandatory:
                reasons.append(f"disqualified: missing mandatory skill {match.skill_id}")
            else:
                reasons.append(f"missing optional skill {match.skill_id}")
            continue
        level = match.employee_level.value if match.employee_level else "?"
        if match.status == "exceeds":
            reasons.append(f"exceeds required level for skill {match.skill_id} ({level})")
        elif match.status == "meets":
            reasons.append(f"meets required level for skill {match.skill_id}")
        else:
            reasons.append(
                f"below required level for skill {match.skill_id} "
                f"({level} < {match.required_level.value})"
            )
        if match.below_min_score:
            reasons.append(
                f"score {match.employee_score:g} below minimum {match.min_score:g} "
                f"for skill {match.skill_id}"
            )

    for violation in candidate.violations:
        if violation.code == MISSING_MANDATORY_SKILL:
            if not candidate.skill_matches:
                reasons.append(f"disqualified: missing mandatory skill {violation.detail}")
        elif violation.code == INACTIVE:
            reasons.append("disqualified: employee record is deactivated")
        elif violation.code == UNAVAILABLE:
            reasons.append(f"unavailable: committed to activity {violation.detail}")
        elif violation.code == DEPARTMENT_LIMIT:
            reasons.append(f"lower priority: department limit reached for {violation.detail}")
        elif violation.code == SEAT_LIMIT:
            reasons.append(f"alternative: beyond available seats ({violation.detail})")
        elif violation.code == INVALID_RECORD:
            reasons.append(f"invalid record: {violation.detail}")

    pool = candidate.details.get("pool")
    if pool:
        reasons.append(f"selected from {pool} pool")
    return reasons


class RecommendationAssembler:
    """Compose the engine stages into a ranked, explained result set."""

    def __init__(
        self,
        *,
        calculator: ScoreCalculator | None = None,
        constraints: ConstraintEvaluator | None = None,
        strategies: StrategyEngine | None = None,
        pareto: ParetoOptimizer | None = None,
        weights: WeightConfiguration | None = None,
        constraint_config: ConstraintConfiguration | None = None,
        strategy: str | OptimizationStrategy | None = None,
        strategy_params: dict[str, Any] | None = None,
        pareto_objectives: Sequence[ObjectiveSpec] | None = None,
        max_workers: int | None = None,
    ) -> None:
        self._calculator = calculator or ScoreCalculator()
        self._constraints = constraints or ConstraintEvaluator()
        self._strategies = strategies or StrategyEngine()
        self._pareto = pareto or ParetoOptimizer()
        self._weights = weights or WeightConfiguration()
        self._constraint_config = constraint_config or ConstraintConfiguration()
        self._strategy = OptimizationStrategy.parse(strategy or OptimizationStrategy.BALANCED)
        self._strategy_params = StrategyParams.from_mapping(strategy_params)
        self._pareto_objectives = pareto_objectives
        self._max_workers = max_workers
        self._logger = structlog.get_logger(__name__)

    def recommend(
        self,
        *,
        activity: ActivityProfile,
        employees: Iterable[EmployeeInput],
        strategy: str | OptimizationStrategy | None = None,
        weights: WeightConfiguration | None = None,
        strategy_params: StrategyParams | dict[str, Any] | None = None,
        constraints: ConstraintConfiguration | None = None,
        include_pareto: bool = False,
        objectives: Sequence[ObjectiveSpec] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> RecommendationReport:
        with structlog.contextvars.bound_contextvars(activity_id=activity.id):
            return self._recommend(
                activity=activity,
                employees=employees,
                strategy=strategy,
                weights=weights,
                strategy_params=strategy_params,
                constraints=constraints,
                include_pareto=include_pareto,
                objectives=objectives,
                cancel_event=cancel_event,
            )

    def _recommend(
        self,
        *,
        activity: ActivityProfile,
        employees: Iterable[EmployeeInput],
        strategy: str | OptimizationStrategy | None,
        weights: WeightConfiguration | None,
        strategy_params: StrategyParams | dict[str, Any] | None,
        constraints: ConstraintConfiguration | None,
        include_pareto: bool,
        objectives: Sequence[ObjectiveSpec] | None,
        cancel_event: threading.Event | None,
    ) -> RecommendationReport:
        weights = (weights or self._weights).ensure_valid()
        selected_strategy = OptimizationStrategy.parse(strategy or self._strategy)
        if strategy_params is None:
            params = self._strategy_params
        else:
            params = StrategyParams.from_mapping(strategy_params)
        constraint_config = constraints or self._constraint_config

        candidates = self.score_candidates(activity, list(employees), weights)
        annotated = self._constraints.annotate(candidates, activity, constraint_config)
        eligible = [candidate for candidate in annotated if candidate.eligible]
        disqualified = [candidate for candidate in annotated if not candidate.eligible]

        ordered = self._strategies.optimize(eligible, activity, selected_strategy, params)
        # Soft violations keep their place relative to each other but rank last.
        ordered = [c for c in ordered if not c.has_soft_violation] + [
            c for c in ordered if c.has_soft_violation
        ]
        selected, overflow = self._constraints.select_seats(ordered, activity)

        recommended = [
            self._to_result(candidate.with_rank(rank))
            for rank, candidate in enumerate(selected, start=1)
        ]
        alternatives = [
            self._to_result(candidate.with_rank(rank))
            for rank, candidate in enumerate(overflow, start=len(selected) + 1)
        ]
        rejected = [self._to_result(candidate) for candidate in disqualified]

        pareto_front = None
        if include_pareto:
            # Strategy scores are only set on the ordered list.
            points = self._pareto.pareto_front(
                ordered,
                objectives or self._pareto_objectives,
                cancel_event=cancel_event,
            )
            pareto_front = [
                ParetoEntry(employee_id=point.candidate.employee_id, objectives=point.objectives)
                for point in points
            ]

        statistics = self._statistics(annotated, eligible, recommended)
        self._logger.info(
            "recommendation.completed",
            strategy=selected_strategy.value,
            total_candidates=statistics.total_candidates,
            qualified=statistics.qualified,
            recommended=statistics.recommended,
        )
        return RecommendationReport(
            activity_id=activity.id,
            strategy=selected_strategy.value,
            recommended=recommended,
            alternatives=alternatives,
            disqualified=rejected,
            statistics=statistics,
            pareto_front=pareto_front,
        )

    def recommend_many(
        self,
        requests: Sequence[RecommendationRequest],
    ) -> list[RecommendationReport]:
        """Run independent activity requests concurrently, preserving order."""
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = [
                executor.submit(
                    self.recommend,
                    activity=request.activity,
                    employees=request.employees,
                    strategy=request.strategy,
                    weights=request.weights,
                    strategy_params=request.strategy_params,
                    constraints=request.constraints,
                    include_pareto=request.include_pareto,
                    objectives=request.objectives,
                )
                for request in requests
            ]
            return [future.result() for future in futures]

    def score_candidates(
        self,
        activity: ActivityProfile,
        employees: Sequence[EmployeeInput],
        weights: WeightConfiguration,
    ) -> list[Candidate]:
        """Score every employee in parallel; one bad record never aborts the batch."""
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            scored = list(
                executor.map(
                    lambda item: self._score_one(item[0], item[1], activity, weights),
                    enumerate(employees),
                )
            )

        seen: set[str] = set()
        candidates: list[Candidate] = []
        for candidate in scored:
            if candidate.employee_id in seen:
                self._logger.warning(
                    "scoring.duplicate_employee",
                    employee_id=candidate.employee_id,
                    activity_id=activity.id,
                )
                candidates.append(
                    Candidate(
                        employee_id=candidate.employee_id,
                        activity_id=activity.id,
                        violations=(
                            Violation(
                                code=INVALID_RECORD,
                                severity="hard",
                                detail="duplicate employee id",
                            ),
                        ),
                        eligible=False,
                    )
                )
                continue
            seen.add(candidate.employee_id)
            candidates.append(candidate)
        return candidates

    def _score_one(
        self,
        index: int,
        raw: EmployeeInput,
        activity: ActivityProfile,
        weights: WeightConfiguration,
    ) -> Candidate:
        try:
            employee = self._coerce_employee(raw)
            result = self._calculator.evaluate(employee, activity, weights)
        except (CandidateInputError, SchemaValidationError) as exc:
            employee_id = self._raw_employee_id(index, raw)
            self._logger.warning(
                "scoring.invalid_record",
                employee_id=employee_id,
                activity_id=activity.id,
                error=str(exc),
            )
            return Candidate(
                employee_id=employee_id,
                activity_id=activity.id,
                violations=(
                    Violation(code=INVALID_RECORD, severity="hard", detail=_describe(exc)),
                ),
                eligible=False,
            )

        violations: tuple[Violation, ...] = ()
        if result.disqualified:
            violations = (
                Violation(
                    code=MISSING_MANDATORY_SKILL,
                    severity="hard",
                    detail=", ".join(result.missing_mandatory),
                ),
            )
        return Candidate(
            employee_id=employee.id,
            activity_id=activity.id,
            breakdown=result.breakdown,
            employee=employee,
            skill_matches=tuple(result.skill_matches),
            violations=violations,
            eligible=not result.disqualified,
            details={
                "overall_level": result.overall_level.value,
                "relevant_years": result.relevant_years,
            },
        )

    @staticmethod
    def _coerce_employee(raw: EmployeeInput) -> EmployeeProfile:
        if isinstance(raw, EmployeeProfile):
            return raw
        if not isinstance(raw, Mapping):
            raise CandidateInputError(None, f"Unsupported employee record type: {type(raw).__name__}")
        return EmployeeProfile.model_validate(dict(raw))

    @staticmethod
    def _raw_employee_id(index: int, raw: EmployeeInput) -> str:
        if isinstance(raw, Mapping) and raw.get("id") is not None:
            return str(raw["id"])
        if isinstance(raw, EmployeeProfile):
            return raw.id
        return f"record-{index}"

    @staticmethod
    def _to_result(candidate: Candidate) -> RecommendationResult:
        employee = candidate.employee
        return RecommendationResult(
            employee_id=candidate.employee_id,
            total_score=candidate.breakdown.total_score,
            breakdown=candidate.breakdown,
            rank=candidate.rank,
            reasoning=explain(candidate),
            eligible=candidate.eligible,
            violations=candidate.violation_codes,
            strategy_score=candidate.strategy_score,
            employee_name=employee.name if employee is not None else None,
            matricule=employee.matricule if employee is not None else None,
        )

    @staticmethod
    def _statistics(
        annotated: Sequence[Candidate],
        eligible: Sequence[Candidate],
        recommended: Sequence[RecommendationResult],
    ) -> RecommendationStatistics:
        invalid = sum(1 for c in annotated if INVALID_RECORD in c.violation_codes)
        average = (
            sum(c.breakdown.total_score for c in eligible) / len(eligible) if eligible else 0.0
        )
        return RecommendationStatistics(
            total_candidates=len(annotated),
            qualified=len(eligible),
            recommended=len(recommended),
            disqualified=len(annotated) - len(eligible),
            invalid=invalid,
            average_score=average,
        )


def _describe(exc: Exception) -> str:
    if isinstance(exc, SchemaValidationError):
        return "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
    return str(exc)
