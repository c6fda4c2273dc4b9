"""Tests for cart transitions: merge rules, stock checks, discounts, totals."""
from decimal import Decimal

import pytest

from pos_billing.cart import add_item, calculate_total, remove_line, reset, set_customer, set_discount
from pos_billing.errors import (
    FeatureDisabledError,
    InsufficientStockError,
    LineIndexError,
    NotFoundError,
    ValidationError,
)
from pos_billing.features import capabilities_for
from pos_billing.models import Cart, Unit


def test_add_new_catalog_line(catalog):
    cart = add_item(Cart.empty(), catalog, "A", 3, Unit.COUNT)

    assert len(cart.lines) == 1
    line = cart.lines[0]
    assert line.name == "Product A"
    assert line.quantity == 3
    assert line.discount == 0
    assert line.subtotal == Decimal("30.00")
    assert calculate_total(cart) == Decimal("30.00")


def test_transition_does_not_touch_input_cart(catalog):
    before = Cart.empty()
    after = add_item(before, catalog, "A", 1)

    assert before.lines == ()
    assert after is not before
    assert len(after.lines) == 1


def test_same_barcode_and_unit_merges(catalog):
    cart = add_item(Cart.empty(), catalog, "B", 2, "qty")
    cart = add_item(cart, catalog, "B", 5, "count")

    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 7
    assert cart.lines[0].subtotal == Decimal("31.50")


def test_merge_over_stock_is_rejected_atomically(catalog):
    """Product A: price 10, stock 5."""
    cart = add_item(Cart.empty(), catalog, "A", 3, Unit.COUNT)
    assert calculate_total(cart) == Decimal("30.00")

    with pytest.raises(InsufficientStockError) as exc_info:
        add_item(cart, catalog, "A", 3, Unit.COUNT)

    assert exc_info.value.requested == 6
    assert exc_info.value.available == 5
    assert "Available: 5" in str(exc_info.value)
    assert cart.lines[0].quantity == 3  # unchanged
    assert calculate_total(cart) == Decimal("30.00")


def test_first_add_over_stock_is_rejected(catalog):
    with pytest.raises(InsufficientStockError):
        add_item(Cart.empty(), catalog, "A", 6)
    with pytest.raises(InsufficientStockError):
        add_item(Cart.empty(), catalog, "SOLD", 1)


def test_stock_is_checked_across_units(catalog):
    cart = add_item(Cart.empty(), catalog, "A", 3, Unit.COUNT)
    cart = add_item(cart, catalog, "A", 2, Unit.WEIGHT)

    assert [line.unit for line in cart.lines] == [Unit.COUNT, Unit.WEIGHT]

    with pytest.raises(InsufficientStockError):
        add_item(cart, catalog, "A", Decimal("0.5"), Unit.WEIGHT)


def test_unknown_barcode(catalog):
    cart = add_item(Cart.empty(), catalog, "B", 1)

    with pytest.raises(NotFoundError):
        add_item(cart, catalog, "NOPE", 1)

    assert len(cart.lines) == 1


@pytest.mark.parametrize("quantity", [0, -1, "abc", None, float("nan")])
def test_invalid_quantity(catalog, quantity):
    with pytest.raises(ValidationError):
        add_item(Cart.empty(), catalog, "B", quantity)


def test_invalid_unit(catalog):
    with pytest.raises(ValidationError):
        add_item(Cart.empty(), catalog, "B", 1, "box")


def test_fractional_weight(catalog):
    cart = add_item(Cart.empty(), catalog, "RICE", "1.5", "kg")

    assert cart.lines[0].quantity == Decimal("1.5")
    assert cart.lines[0].subtotal == Decimal("60.00")


def test_manual_items_never_merge(catalog, full_features):
    cart = add_item(Cart.empty(), catalog, "", 2, "qty", name="X", price=20, features=full_features)
    cart = add_item(cart, catalog, "  ", 2, "qty", name="X", price=20, features=full_features)

    assert len(cart.lines) == 2
    assert all(line.is_manual for line in cart.lines)
    assert calculate_total(cart) == Decimal("80.00")


def test_sub_cent_weight_keeps_exact_subtotal(catalog):
    """B @ 4.50 x 0.333 kg is 1.4985, not a rounded 1.50."""
    cart = add_item(Cart.empty(), catalog, "B", "0.333", "kg")

    assert cart.lines[0].subtotal == Decimal("1.4985")
    assert calculate_total(cart) == Decimal("1.4985")

    cart = add_item(cart, catalog, "B", "0.333", "kg")

    assert calculate_total(cart) == Decimal("1.4985") + Decimal("1.4985")
    assert cart.lines[0].to_dict()["subtotal"] == "3.00"  # rounded only on the wire


def test_oversized_quantity_is_rejected_on_add(catalog, full_features):
    cart = add_item(Cart.empty(), catalog, "B", 1)

    with pytest.raises(ValidationError):
        add_item(cart, catalog, "", "1e999999", name="X", price=20, features=full_features)

    assert len(cart.lines) == 1
    assert calculate_total(cart) == Decimal("4.50")


def test_manual_item_skips_stock(catalog, full_features):
    cart = add_item(Cart.empty(), catalog, "", 1000, name="Bulk bag", price="1.25", features=full_features)

    assert cart.lines[0].subtotal == Decimal("1250.00")


def test_manual_item_blocked_by_plan(catalog):
    with pytest.raises(FeatureDisabledError) as exc_info:
        add_item(Cart.empty(), catalog, "", 1, name="X", price=20, features=capabilities_for("free"))

    assert exc_info.value.capability == "manual_entry"


@pytest.mark.parametrize("name, price", [("", 20), (None, 20), ("X", None), ("X", ""), ("X", -1), ("X", "ten")])
def test_manual_item_requires_name_and_price(catalog, full_features, name, price):
    with pytest.raises(ValidationError):
        add_item(Cart.empty(), catalog, "", 1, name=name, price=price, features=full_features)


def test_merge_keeps_position_and_discount(catalog):
    cart = add_item(Cart.empty(), catalog, "B", 2)
    cart = add_item(cart, catalog, "A", 1)
    cart = set_discount(cart, 0, "1.00")
    cart = add_item(cart, catalog, "B", 2)

    assert [line.barcode for line in cart.lines] == ["B", "A"]
    assert cart.lines[0].quantity == 4
    assert cart.lines[0].discount == Decimal("1.00")
    assert cart.lines[0].subtotal == Decimal("17.00")


def test_total_grows_by_price_times_quantity(catalog):
    cart = Cart.empty()
    for barcode, qty in [("B", 3), ("A", 2), ("RICE", "0.25"), ("B", 1), ("B", "0.333")]:
        before = calculate_total(cart)
        cart = add_item(cart, catalog, barcode, qty)
        price = catalog.lookup(barcode).price
        assert calculate_total(cart) == before + Decimal(str(qty)) * price


def test_remove_line(catalog):
    cart = add_item(Cart.empty(), catalog, "A", 1)
    cart = add_item(cart, catalog, "B", 1)

    cart = remove_line(cart, 0)

    assert [line.barcode for line in cart.lines] == ["B"]
    assert calculate_total(cart) == Decimal("4.50")


@pytest.mark.parametrize("index", [1, -1, 5])
def test_remove_line_out_of_range(catalog, index):
    cart = add_item(Cart.empty(), catalog, "A", 1)

    with pytest.raises(LineIndexError):
        remove_line(cart, index)
    with pytest.raises(IndexError):
        remove_line(cart, index)


def test_discount_example_sequence(catalog, full_features):
    """A x3 = 30, manual X 2 @ 20 = 40, discount 15 on X -> 55."""
    cart = add_item(Cart.empty(), catalog, "A", 3, Unit.COUNT)
    cart = add_item(cart, catalog, "", 2, Unit.COUNT, name="X", price=20, features=full_features)
    assert calculate_total(cart) == Decimal("70.00")

    cart = set_discount(cart, 1, 15)
    assert cart.lines[1].subtotal == Decimal("25.00")
    assert calculate_total(cart) == Decimal("55.00")

    with pytest.raises(ValidationError):
        set_discount(cart, 1, -5)
    assert cart.lines[1].subtotal == Decimal("25.00")
    assert cart.lines[0].subtotal == Decimal("30.00")


def test_discount_is_idempotent(catalog):
    cart = add_item(Cart.empty(), catalog, "B", 2)

    once = set_discount(cart, 0, "2.25")
    twice = set_discount(once, 0, "2.25")

    assert once.lines[0].subtotal == twice.lines[0].subtotal == Decimal("6.75")
    assert once == twice


def test_discount_upper_bound(catalog):
    cart = add_item(Cart.empty(), catalog, "A", 2)

    with pytest.raises(ValidationError):
        set_discount(cart, 0, "20.01")

    full = set_discount(cart, 0, 20)
    assert full.lines[0].subtotal == 0
    assert calculate_total(full) == 0


def test_discount_bad_index_or_value(catalog):
    cart = add_item(Cart.empty(), catalog, "A", 1)

    with pytest.raises(LineIndexError):
        set_discount(cart, 3, 1)
    with pytest.raises(ValidationError):
        set_discount(cart, 0, "lots")


def test_total_of_empty_cart():
    assert calculate_total(Cart.empty()) == Decimal("0.00")


def test_customer_and_reset(catalog):
    cart = add_item(Cart.empty(), catalog, "A", 1)
    cart = set_customer(cart, " 9876543210 ")
    assert cart.customer_reference == "9876543210"

    cart = add_item(cart, catalog, "B", 1)
    assert cart.customer_reference == "9876543210"
    assert set_customer(cart, "   ").customer_reference is None

    cleared = reset(cart)
    assert cleared == Cart.empty()
    assert calculate_total(cleared) == 0
