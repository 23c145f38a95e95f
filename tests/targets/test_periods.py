from datetime import date

import pytest

from core.exceptions import ValidationError
from targets.periods import Period, coerce_date, previous_period, resolve_period


class TestResolvePeriod:
    @pytest.mark.parametrize(
        "target_type, reference, expected",
        [
            ("monthly", date(2024, 2, 10), Period(date(2024, 2, 1), date(2024, 2, 29))),
            ("monthly", date(2023, 12, 31), Period(date(2023, 12, 1), date(2023, 12, 31))),
            ("quarterly", date(2024, 5, 15), Period(date(2024, 4, 1), date(2024, 6, 30))),
            ("quarterly", date(2024, 11, 1), Period(date(2024, 10, 1), date(2024, 12, 31))),
            ("yearly", date(2024, 7, 4), Period(date(2024, 1, 1), date(2024, 12, 31))),
        ],
    )
    def test_time_windows(self, target_type, reference, expected):
        assert resolve_period(target_type, reference) == expected

    def test_is_deterministic(self):
        first = resolve_period("quarterly", date(2024, 8, 20))
        second = resolve_period("quarterly", "2024-08-20")
        assert first == second

    def test_reference_date_lies_inside_window(self):
        for month in range(1, 13):
            day = date(2024, month, 28)
            for target_type in ("monthly", "quarterly", "yearly"):
                assert day in resolve_period(target_type, day)

    def test_time_types_ignore_explicit_bounds(self):
        period = resolve_period("monthly", date(2024, 3, 3), date(2024, 1, 1), date(2024, 12, 31))
        assert period == Period(date(2024, 3, 1), date(2024, 3, 31))

    def test_dimensional_defaults_to_year(self):
        period = resolve_period("category", date(2024, 3, 3))
        assert period == Period(date(2024, 1, 1), date(2024, 12, 31))

    def test_dimensional_partial_bounds(self):
        period = resolve_period("region", date(2024, 3, 3), period_start="2024-04-01")
        assert period == Period(date(2024, 4, 1), date(2024, 12, 31))

    def test_dimensional_explicit_bounds(self):
        period = resolve_period("rep", date(2024, 3, 3), date(2024, 2, 1), date(2024, 2, 15))
        assert period.days == 15

    def test_end_before_start(self):
        with pytest.raises(ValidationError, match="Period end must not be before period start"):
            resolve_period("category", date(2024, 3, 3), date(2024, 5, 1), date(2024, 4, 1))

    def test_unknown_type(self):
        with pytest.raises(ValidationError, match="Invalid target type: weekly"):
            resolve_period("weekly", date(2024, 3, 3))


class TestPreviousPeriod:
    def test_adjacent_and_same_span(self):
        prior = previous_period(date(2024, 1, 10), date(2024, 1, 19))
        assert prior == Period(date(2024, 1, 1), date(2024, 1, 9))

    def test_month_window_crosses_leap_day(self):
        prior = previous_period(date(2024, 3, 1), date(2024, 3, 31))
        assert prior.end == date(2024, 2, 29)
        assert prior.start == date(2024, 1, 31)

    def test_single_day_has_empty_predecessor(self):
        prior = previous_period(date(2024, 1, 1), date(2024, 1, 1))
        assert prior.start == date(2024, 1, 1)
        assert prior.end == date(2023, 12, 31)
        assert prior.start > prior.end


class TestCoerceDate:
    def test_accepts_iso_strings_and_dates(self):
        assert coerce_date("2024-01-05") == date(2024, 1, 5)
        assert coerce_date(date(2024, 1, 5)) == date(2024, 1, 5)
        assert coerce_date("") is None
        assert coerce_date(None) is None

    def test_rejects_garbage(self):
        with pytest.raises(ValidationError):
            coerce_date("05/01/2024", "start date")
