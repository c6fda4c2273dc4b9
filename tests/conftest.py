"""Pytest fixtures for the billing engine."""

from decimal import Decimal

import pytest

from pos_billing.catalog import CatalogIndex
from pos_billing.features import capabilities_for
from pos_billing.session import BillingSession
from pos_billing.store import InMemoryBackend


@pytest.fixture
def backend() -> InMemoryBackend:
    backend = InMemoryBackend()

    backend.add_product("A", "Product A", price=Decimal("10.00"), quantity=Decimal("5"))
    backend.add_product("B", "Product B", price=Decimal("4.50"), quantity=Decimal("100"))
    backend.add_product("RICE", "Basmati Rice", price=Decimal("40.00"), quantity=Decimal("12.5"))
    backend.add_product("SOLD", "Sold Out", price=Decimal("5.00"), quantity=Decimal("0"))  # Out of stock

    return backend


@pytest.fixture
def catalog(backend) -> CatalogIndex:
    return CatalogIndex(backend.products)


@pytest.fixture
def full_features():
    return capabilities_for("1499")


@pytest.fixture
def make_session(backend):
    def _make(plan="1499", exporter=None) -> BillingSession:
        session = BillingSession(backend, plan=plan, exporter=exporter)
        session.refresh_catalog()
        return session

    return _make
