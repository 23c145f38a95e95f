from datetime import date
from decimal import Decimal

import pytest

from analytics.aggregation import (
    Aggregation,
    AggregationRequest,
    GroupBy,
    SalesFilters,
    aggregate,
    get_summary,
    growth_rate,
    sum_total,
)
from core.exceptions import ValidationError


class TestGrowthRate:
    @pytest.mark.parametrize(
        "current, previous, expected",
        [
            (Decimal("150"), Decimal("100"), Decimal("50.00")),
            (Decimal("50"), Decimal("100"), Decimal("-50.00")),
            (Decimal("10"), Decimal("0"), Decimal("100.00")),
            (Decimal("0"), Decimal("0"), Decimal("0.00")),
            (None, None, Decimal("0.00")),
            (Decimal("0"), Decimal("80"), Decimal("-100.00")),
            (Decimal("1"), Decimal("3"), Decimal("-66.67")),
        ],
    )
    def test_edge_cases(self, current, previous, expected):
        assert growth_rate(current, previous) == expected


class TestSalesFilters:
    def test_from_mapping_accepts_camel_case_and_ignores_all(self):
        filters = SalesFilters.from_mapping({
            "startDate": "2024-01-01",
            "endDate": "2024-01-31",
            "salesUnit": "SU-MCT",
            "customer": "all",
            "category": "",
        })

        assert filters.start_date == date(2024, 1, 1)
        assert filters.end_date == date(2024, 1, 31)
        assert filters.sales_unit == "SU-MCT"
        assert filters.customer is None
        assert filters.category is None

    def test_end_before_start(self):
        with pytest.raises(ValidationError, match="End date must not be before start date"):
            SalesFilters(start_date="2024-02-01", end_date="2024-01-01")

    def test_bad_date(self):
        with pytest.raises(ValidationError, match="Invalid start date"):
            SalesFilters.from_mapping({"start_date": "soon"})


class TestAggregationRequest:
    def test_defaults(self):
        request = AggregationRequest.build()
        assert request.group_by is GroupBy.DATE
        assert request.aggregation is Aggregation.SUM

    def test_invalid_group_by(self):
        with pytest.raises(ValidationError, match="Invalid groupBy parameter: colour"):
            AggregationRequest.build(group_by="colour")

    def test_blank_group_by_is_rejected(self):
        with pytest.raises(ValidationError, match="Invalid groupBy parameter"):
            AggregationRequest.build(group_by="")

    def test_invalid_aggregation(self):
        with pytest.raises(ValidationError, match="Invalid aggregation parameter: median"):
            AggregationRequest.build(aggregation="median")

    def test_window_overrides_filter_dates(self):
        request = AggregationRequest.build(
            start_date=date(2024, 3, 1), filters={"startDate": "2024-01-01", "endDate": "2024-12-31"},
        )
        assert request.filters.start_date == date(2024, 3, 1)
        assert request.filters.end_date == date(2024, 12, 31)


@pytest.mark.django_db
class TestAggregate:
    @pytest.fixture
    def ledger(self, make_line, laptop, desk, customer, other_customer, muscat, salalah, rep_user):
        make_line(100, day=date(2024, 1, 5), material=laptop, customer=customer, sales_unit=muscat)
        make_line(300, day=date(2024, 1, 20), material=desk, customer=customer, sales_unit=salalah,
                  sales_rep=rep_user)
        make_line(50, day=date(2024, 2, 3), material=laptop, customer=other_customer, sales_unit=muscat)
        make_line(25, day=date(2024, 2, 3), material_id="MAT-404", sales_unit=muscat)

    def test_month_groups_are_chronological(self, ledger):
        rows = aggregate(AggregationRequest.build(group_by="month"))
        assert rows == [
            {"label": "2024-01", "value": Decimal("400")},
            {"label": "2024-02", "value": Decimal("75")},
        ]

    def test_date_groups_are_chronological(self, ledger):
        rows = aggregate(AggregationRequest.build(group_by="date", aggregation="count"))
        assert [(row["label"], row["value"]) for row in rows] == [
            (date(2024, 1, 5), 1),
            (date(2024, 1, 20), 1),
            (date(2024, 2, 3), 2),
        ]

    def test_dimension_groups_are_sorted_by_value(self, ledger):
        rows = aggregate(AggregationRequest.build(group_by="category"))
        assert rows == [
            {"label": "Furniture", "value": Decimal("300")},
            {"label": "Electronics", "value": Decimal("150")},
            {"label": None, "value": Decimal("25")},
        ]

    def test_sales_rep_labels(self, ledger):
        rows = aggregate(AggregationRequest.build(group_by="sales_rep"))
        assert rows[0] == {"label": "Sara Rep", "value": Decimal("300")}
        assert rows[1]["label"] is None

    def test_filters_and_window(self, ledger):
        rows = aggregate(AggregationRequest.build(
            start_date=date(2024, 2, 1),
            group_by="customer",
            aggregation="max",
            filters={"salesUnit": "SU-MCT"},
        ))
        assert rows == [
            {"label": "Blue Coast LLC", "value": Decimal("50")},
            {"label": None, "value": Decimal("25")},
        ]

    def test_empty_result(self, db):
        assert aggregate(AggregationRequest.build(group_by="sales_unit")) == []

    @pytest.mark.parametrize(
        "filters, message",
        [
            ({"salesRep": "abc"}, "Invalid sales_rep filter"),
            ({"category": "Electronics"}, "Invalid category filter"),
        ],
    )
    def test_malformed_id_filters(self, db, filters, message):
        with pytest.raises(ValidationError, match=message):
            aggregate(AggregationRequest.build(group_by="category", filters=filters))

    def test_id_filters_are_coerced(self, ledger, electronics, rep_user):
        by_category = aggregate(AggregationRequest.build(
            group_by="category", filters={"category": str(electronics.pk)},
        ))
        by_rep = aggregate(AggregationRequest.build(
            group_by="sales_rep", filters={"salesRep": str(rep_user.pk)},
        ))

        assert by_category == [{"label": "Electronics", "value": Decimal("150")}]
        assert by_rep == [{"label": "Sara Rep", "value": Decimal("300")}]

    def test_sum_total(self, ledger):
        assert sum_total(SalesFilters(category_name="Electronics")) == Decimal("150")
        assert sum_total(SalesFilters(start_date="2030-01-01")) == Decimal("0")


@pytest.mark.django_db
class TestSummary:
    def test_counts(self, make_line, customer):
        make_line(100, day=date(2024, 3, 1), customer=customer, material_id="M1")
        make_line(300, day=date(2024, 3, 2), customer=customer, material_id="M2")

        summary = get_summary(SalesFilters())

        assert summary["total_sales"] == Decimal("400")
        assert summary["invoice_count"] == 2
        assert summary["line_item_count"] == 2
        assert summary["average_sale"] == Decimal("200")
        assert summary["first_date"] == date(2024, 3, 1)
        assert summary["last_date"] == date(2024, 3, 2)
        assert summary["customer_count"] == 1
        assert summary["product_count"] == 2
        assert "growth_rate" not in summary

    def test_growth_against_previous_window(self, make_line):
        make_line(40, day=date(2024, 1, 30))
        make_line(100, day=date(2024, 1, 31))
        make_line(150, day=date(2024, 3, 10))

        summary = get_summary(SalesFilters(start_date="2024-03-01", end_date="2024-03-31"))

        assert summary["total_sales"] == Decimal("150")
        assert summary["previous_period_sales"] == Decimal("100")
        assert summary["growth_rate"] == Decimal("50.00")

    def test_single_day_window_has_no_prior_sales(self, make_line):
        make_line(70, day=date(2024, 3, 9))
        make_line(30, day=date(2024, 3, 10))

        summary = get_summary(SalesFilters(start_date="2024-03-10", end_date="2024-03-10"))

        assert summary["total_sales"] == Decimal("30")
        assert summary["previous_period_sales"] == Decimal("0")
        assert summary["growth_rate"] == Decimal("100.00")

    @pytest.mark.parametrize(
        "filters, message",
        [
            ({"salesRep": "abc"}, "Invalid sales_rep filter"),
            ({"category": "Electronics"}, "Invalid category filter"),
        ],
    )
    def test_malformed_id_filters(self, db, filters, message):
        with pytest.raises(ValidationError, match=message):
            get_summary(SalesFilters.from_mapping(filters))

    def test_empty_window(self, db):
        summary = get_summary(SalesFilters(start_date="2024-03-01", end_date="2024-03-31"))
        assert summary["total_sales"] == Decimal("0")
        assert summary["average_sale"] is None
        assert summary["growth_rate"] == Decimal("0.00")
