"""Query filters for stored targets."""
import django_filters

from targets.models import Target, TargetType


class TargetFilter(django_filters.FilterSet):
    """``period_start`` / ``period_end`` keep targets inside the given window."""

    target_type = django_filters.ChoiceFilter(choices=TargetType.choices)
    target_id = django_filters.CharFilter()
    period_start = django_filters.DateFilter(field_name="period_start", lookup_expr="gte")
    period_end = django_filters.DateFilter(field_name="period_end", lookup_expr="lte")
    created_by = django_filters.UUIDFilter(field_name="created_by_id")

    class Meta:
        model = Target
        fields = ["target_type", "target_id", "period_start", "period_end", "created_by"]
