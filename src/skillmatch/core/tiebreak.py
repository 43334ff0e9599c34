"""Deterministic total ordering for equally scored candidates."""

from __future__ import annotations

from functools import cmp_to_key
from typing import Callable, Iterable

from .models import Candidate

SCORE_EPSILON = 1e-6

ScoreKey = Callable[[Candidate], float]


def _compare(left: float, right: float) -> int:
    if left > right:
        return -1
    if left < right:
        return 1
    return 0


class TieBreaker:
    """Order candidates by score, falling back to a fixed precedence.

    Scores closer than ``epsilon`` are equal. Equal candidates are ordered by
    higher progression score, then higher context score, then the oldest
    ``last_activity_date`` (never active sorts first), then employee id.
    """

    def __init__(self, *, epsilon: float = SCORE_EPSILON) -> None:
        self._epsilon = epsilon

    @property
    def epsilon(self) -> float:
        return self._epsilon

    def break_ties(
        self,
        candidates: Iterable[Candidate],
        *,
        score: ScoreKey | None = None,
    ) -> list[Candidate]:
        score_of = score or (lambda candidate: candidate.score)

        def compare(a: Candidate, b: Candidate) -> int:
            score_a, score_b = score_of(a), score_of(b)
            if abs(score_a - score_b) >= self._epsilon:
                return _compare(score_a, score_b)
            return self.compare_tied(a, b)

        return sorted(candidates, key=cmp_to_key(compare))

    def compare_tied(self, a: Candidate, b: Candidate) -> int:
        for left, right in (
            (a.breakdown.progression_score, b.breakdown.progression_score),
            (a.breakdown.context_score, b.breakdown.context_score),
        ):
            if abs(left - right) >= self._epsilon:
                return _compare(left, right)

        date_a, date_b = a.last_activity_date, b.last_activity_date
        if date_a != date_b:
            if date_a is None:
                return -1
            if date_b is None:
                return 1
            return -1 if date_a < date_b else 1

        if a.employee_id != b.employee_id:
            return -1 if a.employee_id < b.employee_id else 1
        return 0


def break_ties(candidates: Iterable[Candidate], *, score: ScoreKey | None = None) -> list[Candidate]:
    return TieBreaker().break_ties(candidates, score=score)
