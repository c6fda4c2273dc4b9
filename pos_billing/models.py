from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pos_billing.errors import ValidationError

CENTS = Decimal("0.01")


def to_decimal(value: Any, what: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{what} must be a number")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{what} must be a number, got {value!r}") from None
    if not result.is_finite():
        raise ValidationError(f"{what} must be a finite number")
    return result


def money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class Unit(str, Enum):
    COUNT = "qty"
    WEIGHT = "kg"
    VOLUME = "litre"

    @classmethod
    def parse(cls, value: Any) -> "Unit":
        if isinstance(value, Unit):
            return value
        text = str(value or "").strip().lower()
        for unit in cls:
            if text in (unit.value, unit.name.lower()):
                return unit
        raise ValidationError(f"Unknown unit {value!r}, expected one of: qty, kg, litre")


@dataclass(frozen=True, slots=True)
class Product:
    barcode: str
    name: str
    price: Decimal
    quantity: Decimal

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "Product":
        barcode = str(record.get("barcode") or "").strip()
        if not barcode:
            raise ValidationError(f"Catalog product without barcode: {record!r}")
        price = to_decimal(record.get("price"), f"price of {barcode}")
        quantity = to_decimal(record.get("quantity", 0), f"quantity of {barcode}")
        if price < 0:
            raise ValidationError(f"price of {barcode} must be >= 0")
        if quantity < 0:
            raise ValidationError(f"quantity of {barcode} must be >= 0")
        return cls(barcode=barcode, name=str(record.get("name") or barcode), price=price, quantity=quantity)


@dataclass(frozen=True, slots=True)
class LineItem:
    """
    One priced entry of a cart.

    `barcode == ""` marks a manual item: it is never merged with other lines
    and never checked against stock.
    """

    barcode: str
    name: str
    price: Decimal
    quantity: Decimal
    unit: Unit = Unit.COUNT
    discount: Decimal = Decimal("0")

    @property
    def is_manual(self) -> bool:
        return not self.barcode

    @property
    def gross(self) -> Decimal:
        return self.price * self.quantity

    @property
    def subtotal(self) -> Decimal:
        return self.gross - self.discount

    def key(self) -> Tuple[str, Unit]:
        return (self.barcode, self.unit)

    def with_quantity(self, quantity: Decimal) -> "LineItem":
        return replace(self, quantity=quantity)

    def with_discount(self, discount: Decimal) -> "LineItem":
        return replace(self, discount=discount)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "barcode": self.barcode,
            "name": self.name,
            "price": str(self.price),
            "quantity": str(self.quantity),
            "unit": self.unit.value,
            "discount": str(self.discount),
            "subtotal": str(money(self.subtotal)),
        }


@dataclass(frozen=True, slots=True)
class Cart:
    lines: Tuple[LineItem, ...] = ()
    customer_reference: Optional[str] = None

    @classmethod
    def empty(cls) -> "Cart":
        return cls()

    def __len__(self) -> int:
        return len(self.lines)

    def quantity_for(self, barcode: str) -> Decimal:
        return sum((line.quantity for line in self.lines if line.barcode == barcode), Decimal("0"))

    def find(self, barcode: str, unit: Unit) -> Optional[int]:
        for index, line in enumerate(self.lines):
            if not line.is_manual and line.key() == (barcode, unit):
                return index
        return None


@dataclass(frozen=True, slots=True)
class Bill:
    bill_id: str
    lines: Tuple[LineItem, ...]
    customer_reference: Optional[str]
    total: Decimal
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ReceiptRow:
    product: str
    price: str = ""
    quantity: str = ""
    unit: str = ""
    discount: str = ""
    subtotal: str = ""

    @property
    def cells(self) -> Tuple[str, ...]:
        return (self.product, self.price, self.quantity, self.unit, self.discount, self.subtotal)
