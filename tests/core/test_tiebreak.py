from __future__ import annotations

import random

from skillmatch.core import Candidate, ScoreBreakdown, TieBreaker, break_ties
from skillmatch.schemas import EmployeeProfile


def build_candidate(
    employee_id: str,
    *,
    total: float = 70.0,
    progression: float = 50.0,
    context: float = 80.0,
    last_activity_date: str | None = None,
) -> Candidate:
    return Candidate(
        employee_id=employee_id,
        activity_id="ACT-TB",
        breakdown=ScoreBreakdown(
            skill_score=60.0,
            experience_score=40.0,
            progression_score=progression,
            context_score=context,
            total_score=total,
        ),
        employee=EmployeeProfile(id=employee_id, last_activity_date=last_activity_date),
    )


def test_higher_score_wins_before_any_tie_rule():
    ordered = break_ties(
        [build_candidate("E-1", total=60.0, progression=90.0), build_candidate("E-2", total=65.0)]
    )
    assert [c.employee_id for c in ordered] == ["E-2", "E-1"]


def test_progression_then_context_resolve_ties():
    candidates = [
        build_candidate("E-1", progression=50.0, context=100.0),
        build_candidate("E-2", progression=60.0, context=20.0),
        build_candidate("E-3", progression=50.0, context=80.0),
    ]
    ordered = break_ties(candidates)
    assert [c.employee_id for c in ordered] == ["E-2", "E-1", "E-3"]


def test_scores_within_epsilon_are_ties():
    candidates = [
        build_candidate("E-1", total=70.0000001, progression=40.0),
        build_candidate("E-2", total=70.0, progression=45.0),
    ]
    ordered = TieBreaker().break_ties(candidates)
    assert [c.employee_id for c in ordered] == ["E-2", "E-1"]


def test_older_activity_date_then_id_is_deterministic():
    candidates = [
        build_candidate("E-1", last_activity_date="2024-05-01"),
        build_candidate("E-4", last_activity_date="2023-01-01"),
        build_candidate("E-2", last_activity_date="2023-01-01"),
        build_candidate("E-3", last_activity_date=None),
    ]
    expected = ["E-3", "E-2", "E-4", "E-1"]

    rng = random.Random(7)
    for _ in range(10):
        shuffled = list(candidates)
        rng.shuffle(shuffled)
        assert [c.employee_id for c in break_ties(shuffled)] == expected


def test_custom_score_key():
    candidates = [
        build_candidate("E-1", total=10.0).with_strategy_score(90.0),
        build_candidate("E-2", total=80.0).with_strategy_score(20.0),
    ]
    by_strategy = break_ties(candidates)
    by_total = break_ties(candidates, score=lambda c: c.breakdown.total_score)

    assert [c.employee_id for c in by_strategy] == ["E-1", "E-2"]
    assert [c.employee_id for c in by_total] == ["E-2", "E-1"]
