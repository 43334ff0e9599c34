"""Typer CLI entrypoint for the matching pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

import yaml

from .container import create_container
from .errors import MatchingError
from .logging import configure_logging
from .pipeline import AuditLogger
from .schemas import load_config

app = typer.Typer(help="Employee to activity matching CLI.")


@app.command()
def run(
    employees: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Employees JSONL path."),
    activity: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Activity JSON path."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    strategy: Optional[str] = typer.Option(
        None, help="Ordering strategy: upskilling, expertise, balanced or diversity."
    ),
    pareto: bool = typer.Option(False, "--pareto", help="Include the Pareto front."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
) -> None:
    """Rank employees for an activity."""
    settings: dict[str, Any] = {}
    if config:
        with config.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
            if not isinstance(loaded, dict):
                raise typer.BadParameter("Config file must be a YAML object", param_name="config")
        try:
            settings = load_config(loaded).to_settings()
        except MatchingError as exc:
            raise typer.BadParameter(str(exc), param_name="config") from exc

    configure_logging(log_level)

    try:
        container = create_container(settings=settings)
        pipeline = container.pipeline()
        audit_logger = AuditLogger(audit_log) if audit_log else None
        report = pipeline.run(
            employees_path=employees,
            activity_path=activity,
            output_path=output,
            strategy=strategy,
            include_pareto=pareto,
            audit_logger=audit_logger,
        )
    except (MatchingError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    stats = report.statistics
    typer.echo(
        f"Recommended {stats.recommended} of {stats.total_candidates} candidates "
        f"({stats.qualified} qualified). Results saved to {output}."
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
