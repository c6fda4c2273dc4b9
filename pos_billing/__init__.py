"""Point-of-sale cart building, validation and bill finalization."""

from pos_billing.catalog import CatalogIndex
from pos_billing.errors import (
    BillingError,
    EmptyCartError,
    FeatureDisabledError,
    InsufficientStockError,
    LineIndexError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from pos_billing.features import FeatureSet, capabilities_for
from pos_billing.models import Bill, Cart, LineItem, Product, Unit
from pos_billing.session import BillingSession, InputQueue

__all__ = [
    "Bill",
    "BillingError",
    "BillingSession",
    "Cart",
    "CatalogIndex",
    "EmptyCartError",
    "FeatureDisabledError",
    "FeatureSet",
    "InputQueue",
    "InsufficientStockError",
    "LineIndexError",
    "LineItem",
    "NetworkError",
    "NotFoundError",
    "Product",
    "Unit",
    "ValidationError",
    "capabilities_for",
]
