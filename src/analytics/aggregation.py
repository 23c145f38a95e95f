"""Grouped aggregation over the sales ledger.

Group-by and aggregation tags select entries of closed dispatch tables; user
supplied values only ever reach the database as bound filter parameters.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.db.models import (
    Avg,
    Count,
    DecimalField,
    F,
    Max,
    Min,
    Sum,
    Value,
)
from django.db.models.functions import Coalesce, Concat, TruncMonth

from core.exceptions import QueryError, ValidationError
from sales.models import SalesLine
from targets.periods import coerce_date, previous_period

logger = logging.getLogger("salesdash")

ZERO = Decimal("0")
_AMOUNT = DecimalField(max_digits=18, decimal_places=3)


class GroupBy(str, Enum):
    DATE = "date"
    MONTH = "month"
    CATEGORY = "category"
    CUSTOMER = "customer"
    SALES_UNIT = "sales_unit"
    MATERIAL = "material"
    SALES_REP = "sales_rep"


class Aggregation(str, Enum):
    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    MIN = "min"
    MAX = "max"


# ---------------------------------------------------------------------------
# Dispatch tables
# ---------------------------------------------------------------------------

def _month_label(value):
    return value.strftime("%Y-%m") if value else None


def _name_label(value):
    if value is None:
        return None
    return value.strip() or None


# tag -> (label expression, label formatter)
GROUP_BY_EXPRESSIONS = {
    GroupBy.DATE: (lambda: F("date"), None),
    GroupBy.MONTH: (lambda: TruncMonth("date"), _month_label),
    GroupBy.CATEGORY: (lambda: F("material__category__name"), None),
    GroupBy.CUSTOMER: (lambda: F("customer__name"), None),
    GroupBy.SALES_UNIT: (lambda: F("sales_unit__name"), None),
    GroupBy.MATERIAL: (lambda: F("material__name"), None),
    GroupBy.SALES_REP: (
        lambda: Concat("sales_rep__first_name", Value(" "), "sales_rep__last_name"),
        _name_label,
    ),
}

AGGREGATION_EXPRESSIONS = {
    Aggregation.SUM: lambda: Sum("item_net"),
    Aggregation.AVG: lambda: Avg("item_net"),
    Aggregation.COUNT: lambda: Count("pk"),
    Aggregation.MIN: lambda: Min("item_net"),
    Aggregation.MAX: lambda: Max("item_net"),
}

CHRONOLOGICAL_GROUPS = frozenset({GroupBy.DATE, GroupBy.MONTH})


def _parse_tag(enum_cls, value, label):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {label} parameter: {value}") from None


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def _active(value):
    """Absent, blank and ``"all"`` filter values do not constrain anything."""
    if value is None:
        return False
    text = str(value).strip()
    return bool(text) and text.lower() != "all"


def _lookup_field(lookup):
    """Model field at the end of an ORM lookup path, relations resolved to their key."""
    model = SalesLine
    *path, last = lookup.split("__")
    for part in path:
        model = model._meta.get_field(part).related_model
    model_field = model._meta.get_field(last)
    return getattr(model_field, "target_field", model_field)


@dataclass(frozen=True)
class SalesFilters:
    """Equality filters over the ledger plus an inclusive date window."""

    start_date: date | None = None
    end_date: date | None = None
    sales_unit: str | None = None
    customer: str | None = None
    material: str | None = None
    category: str | None = None
    sales_rep: str | None = None
    category_name: str | None = None
    sales_unit_name: str | None = None

    # filter field -> ORM lookup
    LOOKUPS = {
        "sales_unit": "sales_unit_id",
        "customer": "customer_id",
        "material": "material_id",
        "category": "material__category_id",
        "sales_rep": "sales_rep_id",
        "category_name": "material__category__name",
        "sales_unit_name": "sales_unit__name",
    }

    # accepted request keys for each field
    ALIASES = {
        "start_date": ("start_date", "startDate"),
        "end_date": ("end_date", "endDate"),
        "sales_unit": ("sales_unit", "salesUnit"),
        "customer": ("customer",),
        "material": ("material",),
        "category": ("category",),
        "sales_rep": ("sales_rep", "salesRep", "sales_rep_id", "salesRepId"),
    }

    def __post_init__(self):
        object.__setattr__(self, "start_date", coerce_date(self.start_date, "start date"))
        object.__setattr__(self, "end_date", coerce_date(self.end_date, "end date"))
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError("End date must not be before start date")
        for name, lookup in self.LOOKUPS.items():
            raw = getattr(self, name)
            if not _active(raw):
                continue
            try:
                value = _lookup_field(lookup).to_python(str(raw).strip())
            except DjangoValidationError as exc:
                raise ValidationError(f"Invalid {name} filter: {'; '.join(exc.messages)}") from None
            object.__setattr__(self, name, value)

    @classmethod
    def from_mapping(cls, data) -> "SalesFilters":
        """Build filters from request parameters (query dict or JSON body)."""
        data = data or {}
        values = {}
        for name, keys in cls.ALIASES.items():
            for key in keys:
                raw = data.get(key)
                if _active(raw):
                    values[name] = str(raw).strip()
                    break
        return cls(**values)

    def with_dates(self, start_date, end_date) -> "SalesFilters":
        return replace(self, start_date=start_date, end_date=end_date)

    def apply(self, queryset):
        if self.start_date:
            queryset = queryset.filter(date__gte=self.start_date)
        if self.end_date:
            queryset = queryset.filter(date__lte=self.end_date)
        conditions = {
            lookup: getattr(self, name)
            for name, lookup in self.LOOKUPS.items()
            if _active(getattr(self, name))
        }
        if conditions:
            queryset = queryset.filter(**conditions)
        return queryset

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass(frozen=True)
class AggregationRequest:
    group_by: GroupBy = GroupBy.DATE
    aggregation: Aggregation = Aggregation.SUM
    filters: SalesFilters = field(default_factory=SalesFilters)

    def __post_init__(self):
        object.__setattr__(self, "group_by", _parse_tag(GroupBy, self.group_by, "groupBy"))
        object.__setattr__(
            self, "aggregation", _parse_tag(Aggregation, self.aggregation, "aggregation"),
        )

    @classmethod
    def build(cls, start_date=None, end_date=None, group_by=GroupBy.DATE,
              aggregation=Aggregation.SUM, filters=None) -> "AggregationRequest":
        """Combine a window and dimension filters into one request."""
        if filters is None:
            filters = SalesFilters()
        elif not isinstance(filters, SalesFilters):
            filters = SalesFilters.from_mapping(filters)
        if start_date is not None or end_date is not None:
            filters = filters.with_dates(
                start_date if start_date is not None else filters.start_date,
                end_date if end_date is not None else filters.end_date,
            )
        if group_by is None:
            group_by = GroupBy.DATE
        if aggregation is None:
            aggregation = Aggregation.SUM
        return cls(group_by=group_by, aggregation=aggregation, filters=filters)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def _base_queryset(filters: SalesFilters):
    return filters.apply(SalesLine.objects.all())


def aggregate(request: AggregationRequest) -> list[dict]:
    """Return ``[{"label", "value"}, ...]`` for a grouped aggregation.

    Rows are in label order for ``date`` / ``month`` and by value, largest
    first, for every other grouping.
    """
    label_expr, formatter = GROUP_BY_EXPRESSIONS[request.group_by]
    value_expr = AGGREGATION_EXPRESSIONS[request.aggregation]

    if request.group_by in CHRONOLOGICAL_GROUPS:
        ordering = ("label",)
    else:
        ordering = (F("value").desc(nulls_last=True), "label")

    try:
        rows = list(
            _base_queryset(request.filters)
            .annotate(label=label_expr())
            .values("label")
            .annotate(value=value_expr())
            .order_by(*ordering)
        )
    except DatabaseError as exc:
        logger.error("Aggregation %s/%s failed: %s",
                     request.group_by.value, request.aggregation.value, exc)
        raise QueryError("Failed to execute analytics query") from exc

    if formatter is not None:
        for row in rows:
            row["label"] = formatter(row["label"])
    return rows


def sum_total(filters: SalesFilters) -> Decimal:
    """Total ``item_net`` of the filtered ledger, ``0`` when nothing matches."""
    try:
        result = _base_queryset(filters).aggregate(
            total=Coalesce(Sum("item_net"), Value(ZERO), output_field=_AMOUNT),
        )
    except DatabaseError as exc:
        raise QueryError("Failed to compute sales total") from exc
    return result["total"]


def growth_rate(current, previous) -> Decimal:
    """Percent change from ``previous`` to ``current``.

    A zero previous value gives ``100`` when there is current activity and
    ``0`` when there is none.
    """
    current = Decimal(current or 0)
    previous = Decimal(previous or 0)
    if previous != 0:
        rate = (current - previous) / previous * 100
    elif current != 0:
        rate = Decimal("100")
    else:
        rate = ZERO
    return rate.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def get_summary(filters: SalesFilters) -> dict:
    """Headline figures for a filtered slice of the ledger.

    When both date bounds are set the result also carries
    ``previous_period_sales`` (the window spanning ``end_date - start_date``
    and ending the day before ``start_date``) and the ``growth_rate`` against it.
    """
    try:
        summary = _base_queryset(filters).aggregate(
            total_sales=Coalesce(Sum("item_net"), Value(ZERO), output_field=_AMOUNT),
            invoice_count=Count("invoice_id", distinct=True),
            line_item_count=Count("pk"),
            average_sale=Avg("item_net"),
            first_date=Min("date"),
            last_date=Max("date"),
            customer_count=Count("customer_id", distinct=True),
            product_count=Count("material_id", distinct=True),
            sales_unit_count=Count("sales_unit_id", distinct=True),
        )
    except DatabaseError as exc:
        logger.error("Sales summary failed: %s", exc)
        raise QueryError("Failed to compute sales summary") from exc

    if filters.start_date and filters.end_date:
        prior = previous_period(filters.start_date, filters.end_date)
        if prior.start <= prior.end:
            previous_sales = sum_total(filters.with_dates(prior.start, prior.end))
        else:
            previous_sales = ZERO
        summary["previous_period_sales"] = previous_sales
        summary["growth_rate"] = growth_rate(summary["total_sales"], previous_sales)
    return summary
