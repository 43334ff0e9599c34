"""Core scoring and contextual optimization engine."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .constraints import (
    ActiveEmployeeConstraint,
    AvailabilityConstraint,
    Constraint,
    ConstraintEvaluator,
    DepartmentLimitConstraint,
    MandatorySkillConstraint,
    SeatConstraint,
)
from .models import Candidate, ScoreBreakdown, SkillMatch, Violation
from .pareto import ParetoOptimizer, ParetoPoint, dominates
from .recommendation import (
    RecommendationAssembler,
    RecommendationReport,
    RecommendationRequest,
    RecommendationResult,
    RecommendationStatistics,
)
from .scoring import ScoreCalculator, ScoreResult, ScoringConfig
from .strategies import OptimizationStrategy, StrategyEngine, StrategyParams
from .tiebreak import TieBreaker, break_ties

__all__ = [
    "ActiveEmployeeConstraint",
    "AvailabilityConstraint",
    "Candidate",
    "Constraint",
    "ConstraintEvaluator",
    "DepartmentLimitConstraint",
    "MandatorySkillConstraint",
    "OptimizationStrategy",
    "ParetoOptimizer",
    "ParetoPoint",
    "RecommendationAssembler",
    "RecommendationReport",
    "RecommendationRequest",
    "RecommendationResult",
    "RecommendationStatistics",
    "ScoreBreakdown",
    "ScoreCalculator",
    "ScoreResult",
    "ScoringConfig",
    "SeatConstraint",
    "SkillMatch",
    "StrategyEngine",
    "StrategyParams",
    "TieBreaker",
    "Violation",
    "break_ties",
    "dominates",
]
