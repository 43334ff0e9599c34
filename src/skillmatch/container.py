"""Dependency injection container for the matching engine."""

from __future__ import annotations

from dependency_injector import containers, providers

from .core import (
    ConstraintEvaluator,
    ParetoOptimizer,
    RecommendationAssembler,
    ScoreCalculator,
    ScoringConfig,
    StrategyEngine,
    TieBreaker,
)
from .pipeline import ActivityLoader, EmployeeLoader, MatchingPipeline
from .schemas import ConstraintConfiguration, WeightConfiguration


class MatchingContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    tie_breaker = providers.Singleton(TieBreaker)

    score_calculator = providers.Singleton(ScoreCalculator)
    constraint_evaluator = providers.Singleton(ConstraintEvaluator, tie_breaker=tie_breaker)
    strategy_engine = providers.Singleton(StrategyEngine, tie_breaker=tie_breaker)
    pareto_optimizer = providers.Singleton(
        ParetoOptimizer,
        tie_breaker=tie_breaker,
        timeout=config.pareto.timeout_seconds,
    )

    weights = providers.Singleton(WeightConfiguration)
    constraint_config = providers.Singleton(ConstraintConfiguration)

    assembler = providers.Singleton(
        RecommendationAssembler,
        calculator=score_calculator,
        constraints=constraint_evaluator,
        strategies=strategy_engine,
        pareto=pareto_optimizer,
        weights=weights,
        constraint_config=constraint_config,
        strategy=config.core.strategy,
        strategy_params=config.core.strategy_params,
        pareto_objectives=config.pareto.objectives,
        max_workers=config.core.max_workers,
    )

    pipeline = providers.Factory(
        MatchingPipeline,
        assembler=assembler,
        employee_loader=providers.Factory(EmployeeLoader),
        activity_loader=providers.Factory(ActivityLoader),
    )


def create_container(*, settings: dict | None = None) -> MatchingContainer:
    """Instantiate container with optional overrides."""

    container = MatchingContainer()

    if not settings:
        return container

    container.config.from_dict(settings)

    core_settings = settings.get("core", {}) if isinstance(settings, dict) else {}

    if "weights" in core_settings:
        weights = WeightConfiguration(**core_settings["weights"]).ensure_valid()
        container.weights.override(providers.Object(weights))

    if "constraints" in core_settings:
        constraint_config = ConstraintConfiguration(**core_settings["constraints"])
        container.constraint_config.override(providers.Object(constraint_config))

    scoring_settings = settings.get("scoring", {}) if isinstance(settings, dict) else {}
    if scoring_settings:
        scoring_config = ScoringConfig(**scoring_settings)
        container.score_calculator.override(
            providers.Singleton(ScoreCalculator, config=scoring_config)
        )

    return container
