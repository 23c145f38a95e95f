from datetime import date
from decimal import Decimal

import pytest

from accounts.models import User
from catalog.models import Category, Product
from customers.models import Customer
from sales.models import SalesLine, SalesUnit


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email="admin@test.com",
        password="testpass123",
        first_name="Admin",
        last_name="User",
        role=User.Role.ADMIN,
    )


@pytest.fixture
def manager_user(db):
    return User.objects.create_user(
        email="manager@test.com",
        password="testpass123",
        first_name="Manager",
        last_name="User",
        role=User.Role.MANAGER,
    )


@pytest.fixture
def viewer_user(db):
    return User.objects.create_user(
        email="viewer@test.com",
        password="testpass123",
        first_name="Viewer",
        last_name="User",
        role=User.Role.VIEWER,
    )


@pytest.fixture
def rep_user(db):
    return User.objects.create_user(
        email="rep@test.com",
        password="testpass123",
        first_name="Sara",
        last_name="Rep",
    )


@pytest.fixture
def electronics(db):
    return Category.objects.create(name="Electronics")


@pytest.fixture
def furniture(db):
    return Category.objects.create(name="Furniture")


@pytest.fixture
def laptop(electronics):
    return Product.objects.create(id="MAT-001", name="Laptop", category=electronics)


@pytest.fixture
def desk(furniture):
    return Product.objects.create(id="MAT-002", name="Desk", category=furniture)


@pytest.fixture
def customer(db):
    return Customer.objects.create(id="CUST-001", name="Acme Trading")


@pytest.fixture
def other_customer(db):
    return Customer.objects.create(id="CUST-002", name="Blue Coast LLC")


@pytest.fixture
def muscat(db):
    return SalesUnit.objects.create(id="SU-MCT", name="Muscat")


@pytest.fixture
def salalah(db):
    return SalesUnit.objects.create(id="SU-SLL", name="Salalah")


@pytest.fixture
def make_line(db):
    """Factory storing a ledger line directly, bypassing the services."""
    counter = {"n": 0}

    def _make(item_net, day=date(2024, 1, 15), **kwargs):
        counter["n"] += 1
        kwargs.setdefault("invoice_id", f"INV-{counter['n']:04d}")
        return SalesLine.objects.create(date=day, item_net=Decimal(str(item_net)), **kwargs)

    return _make
