"""Actual sales against active targets."""
from __future__ import annotations

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal

from django.utils import timezone

from analytics.aggregation import SalesFilters, sum_total
from targets.models import DIMENSION_TARGET_TYPES, TIME_TARGET_TYPES, Target, TargetType
from targets.periods import Period, coerce_date, resolve_period

logger = logging.getLogger("salesdash")

# target type -> SalesFilters field holding the dimension id
DIMENSION_FILTERS = {
    TargetType.CATEGORY: "category_name",
    TargetType.REGION: "sales_unit_name",
    TargetType.REP: "sales_rep",
}


def _active_targets(on_date):
    return (
        Target.objects
        .filter(period_start__lte=on_date, period_end__gte=on_date)
        .order_by("period_start", "target_type", "target_id")
    )


def _empty_buckets():
    buckets = {t.value: None for t in TIME_TARGET_TYPES}
    buckets.update({t.value: {} for t in DIMENSION_TARGET_TYPES})
    return buckets


def _on_date(on_date):
    return coerce_date(on_date, "date") or timezone.localdate()


def get_active_targets(on_date=None) -> dict:
    """Target values in force on ``on_date``, bucketed by type.

    Company-wide types map to a single value (``None`` when unset); the
    dimensional types map target id -> value.
    """
    on_date = _on_date(on_date)
    buckets = _empty_buckets()
    for target in _active_targets(on_date):
        if target.is_dimensional:
            buckets[target.target_type][target.target_id] = target.target_value
        else:
            buckets[target.target_type] = target.target_value
    return buckets


def achievement_percent(actual, target) -> Decimal | None:
    """``actual / target * 100`` to two decimals, ``None`` without a positive target."""
    if target is None or target <= 0:
        return None
    percent = Decimal(actual or 0) / Decimal(target) * 100
    return percent.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _dimension_sales(target_type, target_id, period: Period) -> Decimal:
    if target_type == TargetType.REP:
        try:
            target_id = str(uuid.UUID(str(target_id)))
        except ValueError:
            logger.warning("Rep target %r does not reference a user id; counting no sales", target_id)
            return Decimal("0")
    filters = SalesFilters(
        start_date=period.start,
        end_date=period.end,
        **{DIMENSION_FILTERS[target_type]: target_id},
    )
    return sum_total(filters)


def compute_achievement(on_date=None) -> dict:
    """Compare active targets with actual sales over matching windows.

    Company-wide targets are measured over the month, quarter or year that
    contains ``on_date``; dimensional targets over their own stored window.

    Returns
    -------
    dict
        ``{"targets": ..., "sales": ..., "achievement": ...}``, each bucketed
        like :func:`get_active_targets`.
    """
    on_date = _on_date(on_date)
    targets = _empty_buckets()
    windows = {t.value: {} for t in DIMENSION_TARGET_TYPES}
    for target in _active_targets(on_date):
        if target.is_dimensional:
            targets[target.target_type][target.target_id] = target.target_value
            windows[target.target_type][target.target_id] = Period(target.period_start, target.period_end)
        else:
            targets[target.target_type] = target.target_value

    sales = _empty_buckets()
    achievement = _empty_buckets()

    for target_type in TIME_TARGET_TYPES:
        value = targets[target_type.value]
        if value is None:
            continue
        period = resolve_period(target_type, on_date)
        actual = sum_total(SalesFilters(start_date=period.start, end_date=period.end))
        sales[target_type.value] = actual
        achievement[target_type.value] = achievement_percent(actual, value)

    for target_type in DIMENSION_TARGET_TYPES:
        for target_id, value in targets[target_type.value].items():
            period = windows[target_type.value][target_id]
            actual = _dimension_sales(target_type, target_id, period)
            sales[target_type.value][target_id] = actual
            achievement[target_type.value][target_id] = achievement_percent(actual, value)

    return {"targets": targets, "sales": sales, "achievement": achievement}
