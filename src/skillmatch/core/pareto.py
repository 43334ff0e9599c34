"""Non-dominated front over several candidate objectives."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Sequence, Union

from ..errors import ConfigurationError, OptimizationCancelled
from .models import Candidate
from .tiebreak import TieBreaker

ObjectiveFn = Callable[[Candidate], float]
ObjectiveSpec = Union[str, tuple[str, ObjectiveFn]]

OBJECTIVES: dict[str, ObjectiveFn] = {
    "skill": lambda candidate: candidate.breakdown.skill_score,
    "experience": lambda candidate: candidate.breakdown.experience_score,
    "progression": lambda candidate: candidate.breakdown.progression_score,
    "context": lambda candidate: candidate.breakdown.context_score,
    "total": lambda candidate: candidate.breakdown.total_score,
    "strategy": lambda candidate: candidate.score,
}

DEFAULT_OBJECTIVES: tuple[str, ...] = ("skill", "experience", "progression", "context")


@dataclass(slots=True, frozen=True)
class ParetoPoint:
    candidate: Candidate
    objectives: dict[str, float]


def dominates(a: Sequence[float], b: Sequence[float]) -> bool:
    """``a`` is no worse than ``b`` everywhere and strictly better somewhere."""
    not_worse = all(left >= right for left, right in zip(a, b))
    better = any(left > right for left, right in zip(a, b))
    return not_worse and better


def resolve_objectives(objectives: Sequence[ObjectiveSpec] | None) -> list[tuple[str, ObjectiveFn]]:
    resolved: list[tuple[str, ObjectiveFn]] = []
    for spec in objectives or DEFAULT_OBJECTIVES:
        if isinstance(spec, str):
            try:
                resolved.append((spec, OBJECTIVES[spec]))
            except KeyError as exc:
                known = ", ".join(OBJECTIVES)
                raise ConfigurationError(
                    f"Unknown objective {spec!r}; expected one of: {known}"
                ) from exc
        else:
            name, fn = spec
            resolved.append((name, fn))
    if not resolved:
        raise ConfigurationError("At least one objective is required")
    return resolved


class ParetoOptimizer:
    """Pairwise O(n^2) dominance filter with cooperative cancellation."""

    def __init__(
        self,
        *,
        tie_breaker: TieBreaker | None = None,
        timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._tie_breaker = tie_breaker or TieBreaker()
        self._timeout = timeout
        self._clock = clock

    def pareto_front(
        self,
        candidates: Sequence[Candidate],
        objectives: Sequence[ObjectiveSpec] | None = None,
        *,
        cancel_event: threading.Event | None = None,
        timeout: float | None = None,
    ) -> list[ParetoPoint]:
        resolved = resolve_objectives(objectives)
        vectors = [tuple(fn(candidate) for _, fn in resolved) for candidate in candidates]

        limit = timeout if timeout is not None else self._timeout
        deadline = self._clock() + limit if limit is not None else None

        front_indexes: list[int] = []
        for i, vector in enumerate(vectors):
            dominated = False
            for j, other in enumerate(vectors):
                self._check_cancelled(cancel_event, deadline)
                if i != j and dominates(other, vector):
                    dominated = True
                    break
            if not dominated:
                front_indexes.append(i)

        front = self._tie_breaker.break_ties(
            [candidates[i] for i in front_indexes],
            score=lambda candidate: candidate.breakdown.total_score,
        )
        names = [name for name, _ in resolved]
        return [
            ParetoPoint(
                candidate=candidate,
                objectives=dict(zip(names, (fn(candidate) for _, fn in resolved))),
            )
            for candidate in front
        ]

    def _check_cancelled(
        self,
        cancel_event: threading.Event | None,
        deadline: float | None,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise OptimizationCancelled("Pareto computation cancelled")
        if deadline is not None and self._clock() > deadline:
            raise OptimizationCancelled("Pareto computation timed out")
