from __future__ import annotations

from decimal import Decimal


class BillingError(Exception):
    pass


class ValidationError(BillingError, ValueError):
    pass


class NotFoundError(BillingError, LookupError):
    pass


class InsufficientStockError(ValidationError):
    def __init__(self, barcode: str, name: str, requested: Decimal, available: Decimal):
        super().__init__(f"Insufficient stock for {name}. Available: {available}, requested: {requested}")
        self.barcode = barcode
        self.requested = requested
        self.available = available


class LineIndexError(BillingError, IndexError):
    pass


class EmptyCartError(BillingError):
    pass


class NetworkError(BillingError):
    """External call failed. The message is safe to show to the user as-is."""


class FeatureDisabledError(BillingError):
    def __init__(self, capability: str, plan: str | None = None):
        where = f" on plan {plan}" if plan else ""
        super().__init__(f"{capability} is not available{where}")
        self.capability = capability
        self.plan = plan
