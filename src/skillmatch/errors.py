"""Exception hierarchy for the matching engine."""

from __future__ import annotations


class MatchingError(Exception):
    """Base class for all engine errors."""


class ValidationError(MatchingError, ValueError):
    """Raised when a configuration value is out of its allowed range."""


class ConfigurationError(MatchingError):
    """Raised for unknown strategy names and other unusable settings."""


class CandidateInputError(MatchingError, ValueError):
    """Raised when a single employee record cannot be scored."""

    def __init__(self, employee_id: str | None, message: str):
        super().__init__(message)
        self.employee_id = employee_id


class OptimizationCancelled(MatchingError):
    """Raised when a long-running optimization is cancelled or times out."""


__all__ = [
    "MatchingError",
    "ValidationError",
    "ConfigurationError",
    "CandidateInputError",
    "OptimizationCancelled",
]
