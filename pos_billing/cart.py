"""
Cart transitions.

Every function takes a Cart and returns a new one; nothing here mutates its
input. A rejected operation raises and the caller keeps the cart it had.
"""

from __future__ import annotations

import logging
from decimal import Decimal, DecimalException
from typing import Any, Optional

from pos_billing.catalog import CatalogIndex
from pos_billing.errors import FeatureDisabledError, InsufficientStockError, LineIndexError, ValidationError
from pos_billing.features import FeatureSet
from pos_billing.models import Cart, LineItem, Unit, money, to_decimal

logger = logging.getLogger(__name__)


def _positive_quantity(quantity: Any) -> Decimal:
    qty = to_decimal(quantity, "quantity")
    if qty <= 0:
        raise ValidationError("Quantity must be positive.")
    return qty


def _priced(lines, customer_reference: Optional[str]) -> Cart:
    new_cart = Cart(lines=tuple(lines), customer_reference=customer_reference)
    try:
        calculate_total(new_cart)
    except DecimalException:
        raise ValidationError("Quantity or price is too large.") from None
    return new_cart


def _check_index(cart: Cart, index: int) -> None:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(cart.lines):
        raise LineIndexError(f"Line {index!r} out of range (cart has {len(cart.lines)} lines)")


def add_item(
    cart: Cart,
    catalog: CatalogIndex,
    barcode: str,
    quantity: Any,
    unit: Any = Unit.COUNT,
    *,
    name: Optional[str] = None,
    price: Any = None,
    features: Optional[FeatureSet] = None,
) -> Cart:
    qty = _positive_quantity(quantity)
    unit = Unit.parse(unit)
    barcode = (barcode or "").strip()

    if not barcode:
        return _add_manual(cart, qty, unit, name, price, features)

    product = catalog.require(barcode)
    candidate = cart.quantity_for(barcode) + qty
    if candidate > product.quantity:
        logger.warning("stock check failed: %s need=%s have=%s", barcode, candidate, product.quantity)
        raise InsufficientStockError(barcode, product.name, requested=candidate, available=product.quantity)

    index = cart.find(barcode, unit)
    lines = list(cart.lines)
    if index is None:
        lines.append(LineItem(barcode=barcode, name=product.name, price=product.price, quantity=qty, unit=unit))
    else:
        # discount is carried over unchanged
        lines[index] = lines[index].with_quantity(lines[index].quantity + qty)
    new_cart = _priced(lines, cart.customer_reference)
    logger.info("added %s x%s %s", barcode, qty, unit.value)
    return new_cart


def _add_manual(
    cart: Cart, qty: Decimal, unit: Unit, name: Optional[str], price: Any, features: Optional[FeatureSet]
) -> Cart:
    if features is not None and not features.manual_entry:
        raise FeatureDisabledError("manual_entry")
    name = (name or "").strip()
    if not name:
        raise ValidationError("Manual items need a name.")
    if price is None or price == "":
        raise ValidationError("Manual items need a price.")
    unit_price = to_decimal(price, "price")
    if unit_price < 0:
        raise ValidationError("Price must not be negative.")

    line = LineItem(barcode="", name=name, price=unit_price, quantity=qty, unit=unit)
    new_cart = _priced(cart.lines + (line,), cart.customer_reference)
    logger.info("added manual item %s x%s %s", name, qty, unit.value)
    return new_cart


def remove_line(cart: Cart, index: int) -> Cart:
    _check_index(cart, index)
    return Cart(lines=cart.lines[:index] + cart.lines[index + 1:], customer_reference=cart.customer_reference)


def set_discount(cart: Cart, index: int, amount: Any) -> Cart:
    _check_index(cart, index)
    discount = to_decimal(amount, "discount")
    line = cart.lines[index]
    if discount < 0 or discount > line.gross:
        logger.warning("discount %s rejected for line %d (gross=%s)", discount, index, line.gross)
        raise ValidationError(f"Discount must be between 0 and {money(line.gross)}.")

    lines = list(cart.lines)
    lines[index] = line.with_discount(discount)
    return Cart(lines=tuple(lines), customer_reference=cart.customer_reference)


def set_customer(cart: Cart, reference: Optional[str]) -> Cart:
    return Cart(lines=cart.lines, customer_reference=(reference or "").strip() or None)


def reset(cart: Cart) -> Cart:
    return Cart.empty()


def calculate_total(cart: Cart) -> Decimal:
    return sum((line.subtotal for line in cart.lines), Decimal("0.00"))
