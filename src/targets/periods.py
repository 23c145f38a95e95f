"""Calendar windows for targets.

Every function here is pure: the same inputs always give the same window, so
the reconciler and the achievement calculator land on the same stored target.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from django.utils.dateparse import parse_date

from core.exceptions import ValidationError
from targets.models import TargetType


@dataclass(frozen=True)
class Period:
    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


def coerce_date(value, field_name: str = "date") -> date | None:
    """Accept a ``date``, a ``datetime`` or an ISO ``YYYY-MM-DD`` string."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        parsed = parse_date(str(value).strip()[:10])
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"Invalid {field_name}: {value}")
    return parsed


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def month_window(day: date) -> Period:
    return Period(day.replace(day=1), _month_end(day.year, day.month))


def quarter_window(day: date) -> Period:
    quarter = (day.month - 1) // 3
    first_month = quarter * 3 + 1
    return Period(date(day.year, first_month, 1), _month_end(day.year, first_month + 2))


def year_window(day: date) -> Period:
    return Period(date(day.year, 1, 1), date(day.year, 12, 31))


def resolve_period(target_type, reference_date, period_start=None, period_end=None) -> Period:
    """Map a target type and a reference date to its concrete window.

    ``period_start`` / ``period_end`` only apply to the dimensional types
    (category, region, rep); a missing bound falls back to the reference
    year's bound. Time-only types ignore them.

    Raises
    ------
    ValidationError
        Unknown target type, unparsable dates, or an end before the start.
    """
    try:
        target_type = TargetType(target_type)
    except ValueError:
        raise ValidationError(f"Invalid target type: {target_type}") from None

    reference_date = coerce_date(reference_date, "reference date")
    if reference_date is None:
        raise ValidationError("A reference date is required")

    if target_type == TargetType.MONTHLY:
        return month_window(reference_date)
    if target_type == TargetType.QUARTERLY:
        return quarter_window(reference_date)
    if target_type == TargetType.YEARLY:
        return year_window(reference_date)

    year = year_window(reference_date)
    start = coerce_date(period_start, "period start") or year.start
    end = coerce_date(period_end, "period end") or year.end
    if end < start:
        raise ValidationError("Period end must not be before period start")
    return Period(start, end)


def previous_period(start: date, end: date) -> Period:
    """Window spanning ``end - start`` before ``start``, ending the day before it.

    A single-day window has an empty predecessor (``start`` after ``end``).
    """
    return Period(start - (end - start), start - timedelta(days=1))
