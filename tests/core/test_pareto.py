from __future__ import annotations

import itertools
import threading

import pytest

from skillmatch.core import Candidate, ParetoOptimizer, ScoreBreakdown, dominates
from skillmatch.errors import ConfigurationError, OptimizationCancelled

OBJECTIVES = ("skill", "experience")


def build_candidate(employee_id: str, skill: float, experience: float) -> Candidate:
    return Candidate(
        employee_id=employee_id,
        activity_id="ACT-P",
        breakdown=ScoreBreakdown(
            skill_score=skill,
            experience_score=experience,
            total_score=(skill + experience) / 2,
        ),
    )


def build_pool() -> list[Candidate]:
    return [
        build_candidate("A", 90.0, 10.0),
        build_candidate("B", 10.0, 90.0),
        build_candidate("C", 50.0, 50.0),
        build_candidate("D", 40.0, 40.0),
        build_candidate("E", 90.0, 10.0),
        build_candidate("F", 5.0, 5.0),
    ]


def vector(candidate: Candidate) -> tuple[float, float]:
    return candidate.breakdown.skill_score, candidate.breakdown.experience_score


def test_dominance_definition():
    assert dominates((2, 2), (1, 2))
    assert not dominates((2, 2), (2, 2))
    assert not dominates((3, 1), (1, 3))


def test_front_contains_exactly_the_non_dominated_candidates():
    pool = build_pool()

    front = ParetoOptimizer().pareto_front(pool, OBJECTIVES)

    front_ids = {point.candidate.employee_id for point in front}
    assert front_ids == {"A", "B", "C", "E"}

    for point in front:
        assert not any(dominates(vector(other), vector(point.candidate)) for other in pool)
    for candidate in pool:
        if candidate.employee_id in front_ids:
            continue
        assert any(dominates(vector(p.candidate), vector(candidate)) for p in front)


def test_front_exposes_objective_vectors_in_deterministic_order():
    front = ParetoOptimizer().pareto_front(build_pool(), OBJECTIVES)

    assert [point.candidate.employee_id for point in front] == ["A", "B", "C", "E"]
    assert front[2].objectives == {"skill": 50.0, "experience": 50.0}


def test_custom_objective_callable():
    pool = build_pool()
    front = ParetoOptimizer().pareto_front(
        pool,
        [("inverse_skill", lambda c: -c.breakdown.skill_score)],
    )
    assert [point.candidate.employee_id for point in front] == ["F"]


def test_unknown_objective_is_configuration_error():
    with pytest.raises(ConfigurationError):
        ParetoOptimizer().pareto_front(build_pool(), ["charisma"])


def test_cancellation_event_stops_computation():
    event = threading.Event()
    event.set()

    with pytest.raises(OptimizationCancelled):
        ParetoOptimizer().pareto_front(build_pool(), OBJECTIVES, cancel_event=event)


def test_timeout_stops_computation():
    ticks = itertools.count()
    optimizer = ParetoOptimizer(clock=lambda: float(next(ticks)), timeout=3.0)

    with pytest.raises(OptimizationCancelled):
        optimizer.pareto_front(build_pool(), OBJECTIVES)


def test_empty_pool_has_empty_front():
    assert ParetoOptimizer().pareto_front([], OBJECTIVES) == []
