from datetime import date
from decimal import Decimal

import pytest

from targets.achievement import achievement_percent, compute_achievement, get_active_targets
from targets.models import Target

TODAY = date(2024, 5, 15)


def _target(target_type, value, start, end, target_id="company"):
    return Target.objects.create(
        target_type=target_type,
        target_id=target_id,
        period_start=start,
        period_end=end,
        target_value=Decimal(str(value)),
    )


class TestAchievementPercent:
    def test_ratio(self):
        assert achievement_percent(Decimal("120000"), Decimal("100000")) == Decimal("120.00")

    def test_rounds_half_up(self):
        assert achievement_percent(Decimal("1"), Decimal("3")) == Decimal("33.33")
        assert achievement_percent(Decimal("2"), Decimal("3")) == Decimal("66.67")

    @pytest.mark.parametrize("target", [None, Decimal("0"), Decimal("-5")])
    def test_no_positive_target(self, target):
        assert achievement_percent(Decimal("100"), target) is None

    def test_no_sales(self):
        assert achievement_percent(None, Decimal("50")) == Decimal("0.00")


@pytest.mark.django_db
class TestActiveTargets:
    def test_empty_buckets(self):
        assert get_active_targets(TODAY) == {
            "monthly": None,
            "quarterly": None,
            "yearly": None,
            "category": {},
            "region": {},
            "rep": {},
        }

    def test_only_targets_covering_the_date(self):
        _target("monthly", 100000, date(2024, 5, 1), date(2024, 5, 31))
        _target("monthly", 90000, date(2024, 4, 1), date(2024, 4, 30))
        _target("category", 50000, date(2024, 1, 1), date(2024, 12, 31), "Electronics")

        active = get_active_targets("2024-05-15")

        assert active["monthly"] == Decimal("100000")
        assert active["category"] == {"Electronics": Decimal("50000")}
        assert active["yearly"] is None


@pytest.mark.django_db
class TestComputeAchievement:
    def test_monthly_target_exceeded(self, make_line):
        _target("monthly", 100000, date(2024, 5, 1), date(2024, 5, 31))
        make_line(70000, day=date(2024, 5, 2))
        make_line(50000, day=date(2024, 5, 20))
        make_line(99999, day=date(2024, 4, 30))

        result = compute_achievement(TODAY)

        assert result["targets"]["monthly"] == Decimal("100000")
        assert result["sales"]["monthly"] == Decimal("120000")
        assert result["achievement"]["monthly"] == Decimal("120.00")

    def test_category_target_without_sales(self, make_line, laptop, desk):
        _target("category", 50000, date(2024, 1, 1), date(2024, 12, 31), "Electronics")
        make_line(800, day=date(2024, 5, 2), material=desk)

        result = compute_achievement(TODAY)

        assert result["sales"]["category"] == {"Electronics": Decimal("0")}
        assert result["achievement"]["category"] == {"Electronics": Decimal("0.00")}

    def test_dimension_uses_stored_window(self, make_line, muscat):
        _target("region", 1000, date(2024, 5, 10), date(2024, 5, 20), "Muscat")
        make_line(400, day=date(2024, 5, 9), sales_unit=muscat)
        make_line(500, day=date(2024, 5, 10), sales_unit=muscat)

        result = compute_achievement(TODAY)

        assert result["sales"]["region"] == {"Muscat": Decimal("500")}
        assert result["achievement"]["region"] == {"Muscat": Decimal("50.00")}

    def test_rep_target(self, make_line, rep_user, admin_user):
        _target("rep", 2000, date(2024, 1, 1), date(2024, 12, 31), str(rep_user.pk))
        make_line(500, day=date(2024, 3, 1), sales_rep=rep_user)
        make_line(700, day=date(2024, 3, 1), sales_rep=admin_user)

        result = compute_achievement(TODAY)

        assert result["achievement"]["rep"] == {str(rep_user.pk): Decimal("25.00")}

    def test_rep_target_with_foreign_id_counts_no_sales(self, make_line):
        _target("rep", 2000, date(2024, 1, 1), date(2024, 12, 31), "legacy-42")
        make_line(500, day=date(2024, 3, 1))

        result = compute_achievement(TODAY)

        assert result["sales"]["rep"] == {"legacy-42": Decimal("0")}
        assert result["achievement"]["rep"] == {"legacy-42": Decimal("0.00")}

    def test_missing_targets_stay_null(self, make_line):
        make_line(500, day=date(2024, 5, 1))

        result = compute_achievement(TODAY)

        assert result["targets"]["monthly"] is None
        assert result["sales"]["monthly"] is None
        assert result["achievement"]["monthly"] is None
        assert result["achievement"]["category"] == {}
