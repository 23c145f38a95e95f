"""Tests for the targets endpoints."""
from datetime import date
from decimal import Decimal

import pytest
from django.utils import timezone

from sales.models import SalesLine
from targets.models import Target

TARGETS_URL = "/api/v1/targets/"


def _target(target_type="monthly", value=1000, target_id="company", start=None, end=None):
    today = timezone.localdate()
    return Target.objects.create(
        target_type=target_type,
        target_id=target_id,
        period_start=start or today.replace(day=1),
        period_end=end or date(today.year, 12, 31),
        target_value=Decimal(str(value)),
    )


@pytest.mark.django_db
def test_list_with_filters(viewer_client):
    _target("monthly")
    _target("category", target_id="Electronics")

    response = viewer_client.get(TARGETS_URL, {"target_type": "category"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert [row["target_id"] for row in data] == ["Electronics"]
    assert data[0]["target_value"] == 1000.0


@pytest.mark.django_db
def test_list_rejects_unknown_type(viewer_client):
    response = viewer_client.get(TARGETS_URL, {"target_type": "weekly"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "BAD_REQUEST"


@pytest.mark.django_db
def test_manager_creates_target(manager_client, manager_user):
    response = manager_client.post(
        TARGETS_URL,
        {
            "target_type": "region",
            "target_id": "Muscat",
            "target_value": 5000,
            "period_start": "2024-01-01",
            "period_end": "2024-06-30",
        },
        format="json",
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["period_end"] == "2024-06-30"
    assert data["created_by"] == str(manager_user.pk)
    assert data["created_by_name"] == "Manager User"


@pytest.mark.django_db
def test_duplicate_target_is_rejected(manager_client):
    payload = {
        "target_type": "category", "target_id": "Toys", "target_value": 10,
        "period_start": "2024-01-01", "period_end": "2024-12-31",
    }
    assert manager_client.post(TARGETS_URL, payload, format="json").status_code == 201

    response = manager_client.post(TARGETS_URL, payload, format="json")

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Target already exists for this period"


@pytest.mark.django_db
def test_viewer_cannot_create(viewer_client):
    response = viewer_client.post(
        TARGETS_URL, {"target_type": "monthly", "target_id": "company", "target_value": 1}, format="json",
    )
    assert response.status_code == 403


@pytest.mark.django_db
def test_update_and_delete(admin_client, manager_client):
    target = _target()
    url = f"{TARGETS_URL}{target.pk}/"

    response = manager_client.put(url, {"target_value": 2500}, format="json")
    assert response.status_code == 200
    assert response.json()["data"]["target_value"] == 2500.0

    assert manager_client.delete(url).status_code == 403
    assert admin_client.delete(url).status_code == 200
    response = admin_client.get(url)
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Target not found"


@pytest.mark.django_db
def test_active_targets(viewer_client):
    _target("monthly", 100000, start=date(2024, 5, 1), end=date(2024, 5, 31))
    _target("category", 50000, "Electronics", date(2024, 1, 1), date(2024, 12, 31))

    response = viewer_client.get(f"{TARGETS_URL}active/", {"date": "2024-05-15"})

    assert response.status_code == 200
    assert response.json()["data"] == {
        "monthly": 100000.0,
        "quarterly": None,
        "yearly": None,
        "category": {"Electronics": 50000.0},
        "region": {},
        "rep": {},
    }


@pytest.mark.django_db
def test_achievement(viewer_client):
    _target("monthly", 100000, start=date(2024, 5, 1), end=date(2024, 5, 31))
    SalesLine.objects.create(invoice_id="A-1", date=date(2024, 5, 3), item_net=Decimal("120000"))

    response = viewer_client.get(f"{TARGETS_URL}achievement/", {"date": "2024-05-15"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["sales"]["monthly"] == 120000.0
    assert data["achievement"]["monthly"] == 120.0
    assert data["achievement"]["quarterly"] is None


@pytest.mark.django_db
def test_achievement_rejects_bad_date(viewer_client):
    response = viewer_client.get(f"{TARGETS_URL}achievement/", {"date": "someday"})
    assert response.status_code == 400


@pytest.mark.django_db
def test_bulk_upsert(manager_client):
    payload = {
        "targets": {"monthly": 100000, "category_Electronics": 50000, "bogus": 1},
        "options": {"periodStart": "2024-01-01", "periodEnd": "2024-06-30", "currency": "OMR"},
    }

    response = manager_client.post(f"{TARGETS_URL}bulk/", payload, format="json")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Updated 0 and created 2 targets successfully"
    assert body["data"]["errors"] == [{"key": "bogus", "error": "Invalid target key format"}]
    category = Target.objects.get(target_type="category")
    assert (category.period_start, category.period_end) == (date(2024, 1, 1), date(2024, 6, 30))

    response = manager_client.post(f"{TARGETS_URL}bulk/", payload, format="json")
    assert response.json()["message"] == "Updated 2 and created 0 targets successfully"
    assert Target.objects.count() == 2


@pytest.mark.django_db
def test_bulk_requires_targets(manager_client):
    response = manager_client.post(f"{TARGETS_URL}bulk/", {"targets": {}}, format="json")

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "targets: No target data provided"
