"""Matching pipeline assembly and execution."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pendulum
import structlog
from pydantic import ValidationError as SchemaValidationError

from .core import RecommendationAssembler, RecommendationReport
from .schemas import ActivityProfile
from . import __version__


class EmployeeLoadError(ValueError):
    """Raised when employee loading encounters invalid lines."""

    def __init__(self, errors: list[str], partial: list[dict[str, Any]]):
        super().__init__("Employee loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Employee loading failed: {self.errors}"


class EmployeeLoader:
    """Load raw employee records from JSON lines.

    Records are only decoded here; schema validation happens per candidate in
    the assembler so that one malformed profile never aborts the batch.
    """

    def load(self, path: Path) -> list[dict[str, Any]]:
        records: list[dict[str, Any]] = []
        errors: list[str] = []
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")
                    continue
                if not isinstance(record, dict):
                    errors.append(f"line {idx}: expected an object")
                    continue
                records.append(record)
        if errors:
            raise EmployeeLoadError(errors, records)
        return records


class ActivityLoader:
    """Load activity documents."""

    def load(self, path: Path) -> ActivityProfile:
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid activity JSON: {exc}") from exc
        try:
            return ActivityProfile.model_validate(data)
        except SchemaValidationError as exc:
            raise ValueError(f"Invalid activity document: {exc}") from exc


class OutputWriter:
    """Persist recommendation reports."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False))
            handle.write("\n")


class MatchingPipeline:
    """End-to-end matching orchestrator."""

    def __init__(
        self,
        *,
        assembler: RecommendationAssembler,
        employee_loader: EmployeeLoader | None = None,
        activity_loader: ActivityLoader | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self._assembler = assembler
        self._employees = employee_loader or EmployeeLoader()
        self._activities = activity_loader or ActivityLoader()
        self._writer = writer or OutputWriter()
        self._logger = structlog.get_logger(__name__)

    def run(
        self,
        *,
        employees_path: Path,
        activity_path: Path,
        output_path: Path,
        strategy: str | None = None,
        include_pareto: bool = False,
        audit_logger: AuditLogger | None = None,
    ) -> RecommendationReport:
        activity = self._activities.load(activity_path)
        load_errors: list[str] = []
        try:
            employees = self._employees.load(employees_path)
        except EmployeeLoadError as exc:
            employees = exc.partial
            load_errors.extend(exc.errors)
            self._logger.warning("employees.partial_load", errors=exc.errors)

        report = self._assembler.recommend(
            activity=activity,
            employees=employees,
            strategy=strategy,
            include_pareto=include_pareto,
        )

        if audit_logger:
            for result in report.results:
                audit_logger.append(
                    {
                        "activity_id": activity.id,
                        "employee_id": result.employee_id,
                        "strategy": report.strategy,
                        "rank": result.rank,
                        "eligible": result.eligible,
                        "total_score": result.total_score,
                        "violations": result.violations,
                        "reasoning": result.reasoning,
                    }
                )

        for result in report.recommended:
            self._logger.info(
                "matching.result",
                activity_id=activity.id,
                employee_id=result.employee_id,
                rank=result.rank,
                total_score=result.total_score,
            )

        metadata = {
            "activity_id": activity.id,
            "candidate_count": len(employees),
            "errors": load_errors,
            "timestamp": pendulum.now().to_iso8601_string(),
            "app_version": __version__,
        }
        self._writer.write(
            output_path,
            {"metadata": metadata, "recommendation": report.to_dict()},
        )
        return report
