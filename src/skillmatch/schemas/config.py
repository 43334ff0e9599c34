"""Pydantic configuration documents for engine calls and YAML input."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaValidationError

from ..errors import ValidationError

WEIGHT_SUM_TOLERANCE = 1e-6


class WeightConfiguration(BaseModel):
    """Composite score weights; validated before every calculation."""

    skill: float = 0.5
    experience: float = 0.2
    progression: float = 0.15
    context: float = 0.15

    model_config = ConfigDict(extra="forbid")

    def as_dict(self) -> dict[str, float]:
        return {
            "skill": self.skill,
            "experience": self.experience,
            "progression": self.progression,
            "context": self.context,
        }

    def ensure_valid(self, tolerance: float = WEIGHT_SUM_TOLERANCE) -> "WeightConfiguration":
        weights = self.as_dict()
        for name, value in weights.items():
            if not math.isfinite(value) or value < 0.0 or value > 1.0:
                raise ValidationError(f"Weight {name!r} must be within [0, 1], got {value!r}")
        total = sum(weights.values())
        if abs(total - 1.0) > tolerance:
            raise ValidationError(f"Weights must sum to 1.0 (±{tolerance}), got {total!r}")
        return self


class ConstraintConfiguration(BaseModel):
    """Switches for the constraint evaluator."""

    check_mandatory: bool = True
    check_availability: bool = True
    check_active: bool = True
    department_limit: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")


class CoreConfig(BaseModel):
    weights: WeightConfiguration | None = None
    constraints: ConstraintConfiguration | None = None
    strategy: str | None = None
    strategy_params: dict[str, Any] | None = None
    max_workers: int | None = Field(default=None, ge=1)


class ScoringSettings(BaseModel):
    activity_type_similarity: float | None = Field(default=None, ge=0.0, le=100.0)
    max_skill_deltas: int | None = Field(default=None, ge=1)


class ParetoSettings(BaseModel):
    objectives: list[str] | None = None
    timeout_seconds: float | None = Field(default=None, gt=0.0)


class AppConfig(BaseModel):
    core: CoreConfig = Field(default_factory=CoreConfig)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    pareto: ParetoSettings = Field(default_factory=ParetoSettings)

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        core_settings = self.core.model_dump(exclude_none=True)
        if core_settings:
            settings["core"] = core_settings
        scoring_settings = self.scoring.model_dump(exclude_none=True)
        if scoring_settings:
            settings["scoring"] = scoring_settings
        pareto_settings = self.pareto.model_dump(exclude_none=True)
        if pareto_settings:
            settings["pareto"] = pareto_settings
        return settings


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValidationError("Config must be a mapping")
    try:
        return AppConfig.model_validate(raw)
    except SchemaValidationError as exc:
        raise ValidationError(f"Invalid configuration: {exc}") from exc
