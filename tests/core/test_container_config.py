from __future__ import annotations

import pytest

from skillmatch.container import create_container
from skillmatch.core import OptimizationStrategy
from skillmatch.errors import ValidationError


def test_create_container_with_overrides():
    container = create_container(
        settings={
            "core": {
                "strategy": "expertise",
                "weights": {"skill": 0.4, "experience": 0.3, "progression": 0.15, "context": 0.15},
                "constraints": {"department_limit": 2, "check_availability": False},
                "strategy_params": {"expert_fraction": 0.5},
                "max_workers": 4,
            },
            "scoring": {"max_skill_deltas": 3, "activity_type_similarity": 90},
            "pareto": {"objectives": ["skill", "total"], "timeout_seconds": 2.5},
        }
    )

    assembler = container.assembler()
    calculator = container.score_calculator()
    pareto = container.pareto_optimizer()

    assert assembler._strategy is OptimizationStrategy.EXPERTISE
    assert assembler._weights.skill == 0.4
    assert assembler._constraint_config.department_limit == 2
    assert assembler._constraint_config.check_availability is False
    assert assembler._strategy_params.expert_fraction == 0.5
    assert assembler._max_workers == 4
    assert assembler._pareto_objectives == ["skill", "total"]
    assert assembler._calculator is calculator
    assert calculator._config.max_skill_deltas == 3
    assert calculator._config.activity_type_similarity == 90
    assert pareto._timeout == 2.5


def test_create_container_defaults():
    container = create_container()

    assembler = container.assembler()

    assert assembler._strategy is OptimizationStrategy.BALANCED
    assert assembler._weights.as_dict()["skill"] == 0.5
    assert assembler._constraint_config.department_limit is None


def test_create_container_rejects_invalid_weights():
    with pytest.raises(ValidationError):
        create_container(
            settings={"core": {"weights": {"skill": 0.9, "experience": 0.9, "progression": 0.0, "context": 0.0}}}
        )
