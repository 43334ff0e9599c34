"""Date parsing helpers shared by scoring, constraints and strategies."""

from __future__ import annotations

import pendulum
from pendulum.parsing.exceptions import ParserError

DAYS_PER_YEAR = 365.25


def parse_date(
    value: str | None,
    *,
    default: pendulum.DateTime | None = None,
) -> pendulum.DateTime | None:
    """Parse ``YYYY-MM`` or ISO strings, returning ``default`` when unusable."""
    if not value:
        return default
    if isinstance(value, pendulum.DateTime):
        return value
    try:
        if len(value) == 7 and value[4] == "-":
            return pendulum.datetime(int(value[:4]), int(value[5:7]), 1)
        parsed = pendulum.parse(value)
    except (ValueError, ParserError):
        return default
    if not isinstance(parsed, pendulum.DateTime):
        return default
    return parsed


def years_between(start: pendulum.DateTime, end: pendulum.DateTime) -> float:
    if end < start:
        return 0.0
    return end.diff(start).in_days() / DAYS_PER_YEAR


def ranges_overlap(
    first: tuple[pendulum.DateTime, pendulum.DateTime | None],
    second: tuple[pendulum.DateTime, pendulum.DateTime | None],
) -> bool:
    """Inclusive overlap test; a missing end means the range is still open."""
    first_start, first_end = first
    second_start, second_end = second
    if first_end is not None and first_end < second_start:
        return False
    if second_end is not None and second_end < first_start:
        return False
    return True
