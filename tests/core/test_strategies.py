from __future__ import annotations

from typing import Any

import pendulum
import pytest

from skillmatch.core import (
    Candidate,
    OptimizationStrategy,
    ScoreBreakdown,
    ScoreCalculator,
    StrategyEngine,
    StrategyParams,
    TieBreaker,
)
from skillmatch.core.strategies import (
    certification_score,
    diversity_components,
    engagement_score,
    gap_score,
)
from skillmatch.errors import ConfigurationError
from skillmatch.schemas import ActivityProfile, EmployeeProfile, WeightConfiguration


def build_activity(**kwargs: Any) -> ActivityProfile:
    defaults: dict[str, Any] = {
        "id": "ACT-200",
        "type": "certification",
        "target_level": "EXPERT",
        "available_seats": 2,
        "required_skills": [{"skill_id": "cloud", "required_level": "EXPERT", "weight": 1.0}],
        "date_range": {"start": "2025-06-01", "end": "2025-06-30"},
    }
    defaults.update(kwargs)
    return ActivityProfile(**defaults)


def scored(activity: ActivityProfile, **employee: Any) -> Candidate:
    profile = EmployeeProfile(**employee)
    breakdown = ScoreCalculator().calculate_score(profile, activity, WeightConfiguration())
    return Candidate(
        employee_id=profile.id,
        activity_id=activity.id,
        breakdown=breakdown,
        employee=profile,
    )


def manual(
    employee_id: str,
    *,
    total: float,
    department: str,
    skills: list[str],
    years: float,
) -> Candidate:
    return Candidate(
        employee_id=employee_id,
        activity_id="ACT-200",
        breakdown=ScoreBreakdown(total_score=total, progression_score=50.0, context_score=50.0),
        employee=EmployeeProfile(
            id=employee_id,
            department=department,
            years_of_experience=years,
            skills=[{"skill_id": skill, "level": "MEDIUM"} for skill in skills],
        ),
    )


def test_unknown_strategy_fails_fast():
    engine = StrategyEngine()
    with pytest.raises(ConfigurationError):
        engine.optimize([], build_activity(), "random")


def test_strategy_names_parse_case_insensitively():
    assert OptimizationStrategy.parse(" Balanced ") is OptimizationStrategy.BALANCED
    assert OptimizationStrategy.parse(OptimizationStrategy.DIVERSITY) is OptimizationStrategy.DIVERSITY


def test_invalid_params_raise_configuration_error():
    with pytest.raises(ConfigurationError):
        StrategyParams.from_mapping({"expert_fraction": 2.0})
    with pytest.raises(ConfigurationError):
        StrategyParams.from_mapping({"unknown": 1})


def test_gap_score_rewards_moderate_gaps():
    activity = build_activity()

    def gap_for(level: str | None) -> float:
        skills = [{"skill_id": "cloud", "level": level}] if level else []
        return gap_score(EmployeeProfile(id="E", skills=skills), activity)

    assert gap_for("EXPERT") == pytest.approx(40.0)
    assert gap_for("HIGH") == pytest.approx(100.0)
    assert gap_for("MEDIUM") == pytest.approx(65.0)
    assert gap_for("LOW") == pytest.approx(30.0)
    assert gap_for(None) == pytest.approx(0.0)


def test_upskilling_prefers_one_level_gap():
    activity = build_activity()
    candidates = [
        scored(activity, id="E-expert", skills=[{"skill_id": "cloud", "level": "EXPERT"}]),
        scored(activity, id="E-low", skills=[{"skill_id": "cloud", "level": "LOW"}]),
        scored(activity, id="E-high", skills=[{"skill_id": "cloud", "level": "HIGH"}]),
    ]

    ordered = StrategyEngine().optimize(candidates, activity, "upskilling")

    assert [c.employee_id for c in ordered] == ["E-high", "E-expert", "E-low"]
    assert ordered[0].strategy_score == pytest.approx(100.0 * 0.4 + 50.0 * 0.4)


def test_engagement_counts_recent_history():
    employee = EmployeeProfile(
        id="E-eng",
        activity_history=[
            {"activity_id": "R1", "start": "2025-01-01", "end": "2025-01-05"},
            {"activity_id": "R2", "start": "2024-09-01", "end": "2024-09-03"},
            {"activity_id": "OLD", "start": "2020-01-01", "end": "2020-01-02"},
            {"activity_id": "X", "start": "2025-02-01", "end": "2025-02-02", "status": "cancelled"},
        ],
    )

    score = engagement_score(employee, pendulum.datetime(2025, 6, 1), 365)

    assert score == pytest.approx(50.0)


def test_expertise_orders_by_level_experience_and_certifications():
    activity = build_activity()
    candidates = [
        scored(
            activity,
            id="E-mid",
            years_of_experience=3,
            skills=[{"skill_id": "cloud", "level": "MEDIUM", "certification_count": 1}],
        ),
        scored(
            activity,
            id="E-top",
            years_of_experience=12,
            skills=[{"skill_id": "cloud", "level": "EXPERT", "certification_count": 3}],
        ),
    ]

    ordered = StrategyEngine().optimize(candidates, activity, OptimizationStrategy.EXPERTISE)

    assert [c.employee_id for c in ordered] == ["E-top", "E-mid"]
    top = ordered[0]
    assert top.strategy_score == pytest.approx(100.0 * 0.5 + 50.0 * 0.3 + 60.0 * 0.2)


def test_certification_score_only_counts_required_skills():
    activity = build_activity()
    employee = EmployeeProfile(
        id="E-cert",
        skills=[
            {"skill_id": "cloud", "level": "HIGH", "certification_count": 2},
            {"skill_id": "cooking", "level": "HIGH", "certification_count": 9},
        ],
    )
    assert certification_score(employee, activity) == pytest.approx(40.0)


def test_balanced_pools_are_exclusive():
    activity = build_activity(available_seats=4)
    candidates = [
        scored(
            activity,
            id=f"E-{idx}",
            years_of_experience=idx * 2,
            skills=[{"skill_id": "cloud", "level": level}],
        )
        for idx, level in enumerate(["LOW", "MEDIUM", "HIGH", "EXPERT"])
    ]
    engine = StrategyEngine()

    ordered = engine.optimize(candidates, activity, "balanced", {"expert_fraction": 0.3})

    ids = [c.employee_id for c in ordered]
    assert len(ids) == len(set(ids)) == 4
    pools = [c.details["pool"] for c in ordered]
    assert pools == ["expert", "expert", "developer", "developer"]

    expertise_rank = [c.employee_id for c in engine.optimize(candidates, activity, "expertise")]
    assert ids[:2] == expertise_rank[:2]


def test_diversity_picks_complementary_profiles():
    activity = build_activity(available_seats=2)
    candidates = [
        manual("E-a", total=90.0, department="IT", skills=["x", "y"], years=5),
        manual("E-b", total=85.0, department="IT", skills=["x", "y"], years=5),
        manual("E-c", total=40.0, department="HR", skills=["z"], years=15),
    ]

    ordered = StrategyEngine().optimize(candidates, activity, "diversity")

    assert [c.employee_id for c in ordered] == ["E-a", "E-c", "E-b"]
    assert ordered[1].strategy_score == pytest.approx(100.0)
    assert ordered[2].strategy_score == pytest.approx(30.0)


def test_diversity_seat_override_limits_picks():
    activity = build_activity(available_seats=5)
    candidates = [
        manual("E-a", total=90.0, department="IT", skills=["x"], years=5),
        manual("E-b", total=80.0, department="Ops", skills=["y"], years=6),
    ]

    ordered = StrategyEngine().optimize(candidates, activity, "diversity", StrategyParams(seats=1))

    assert [c.employee_id for c in ordered] == ["E-a", "E-b"]
    assert len(ordered) == 2


def test_diversity_components_against_empty_and_filled_selection():
    first = manual("E-a", total=90.0, department="IT", skills=["x", "y"], years=5)
    second = manual("E-b", total=60.0, department="IT", skills=["y", "z"], years=10)

    assert diversity_components(second, []) == {
        "skill": 100.0,
        "department": 100.0,
        "experience": 100.0,
    }
    parts = diversity_components(second, [first])
    assert parts["skill"] == pytest.approx(50.0)
    assert parts["department"] == pytest.approx(0.0)
    assert parts["experience"] == pytest.approx(50.0)


def test_diversity_treats_near_equal_scores_as_ties():
    activity = build_activity(available_seats=2)
    candidates = [
        manual("E-a", total=90.0, department="IT", skills=["x"], years=5),
        manual("E-b", total=80.0, department="Ops", skills=["y"], years=5),
        # Diversity ahead of E-b by well under the tie epsilon.
        manual("E-c", total=70.0, department="Ops", skills=["z"], years=5.0000001),
    ]

    ordered = StrategyEngine().optimize(candidates, activity, "diversity")
    assert [c.employee_id for c in ordered] == ["E-a", "E-b", "E-c"]

    strict = StrategyEngine(tie_breaker=TieBreaker(epsilon=1e-9))
    ordered = strict.optimize(candidates, activity, "diversity")
    assert [c.employee_id for c in ordered] == ["E-a", "E-c", "E-b"]
