"""Tests for cart building and order totals."""

from decimal import Decimal

import pytest

from coffeeos.schemas.menu import MenuItem, OptionChoice, OptionGroup
from coffeeos.services.cart import Cart, calculate_totals


@pytest.fixture
def latte() -> MenuItem:
    return MenuItem(
        id="latte",
        name="Latte",
        category="Coffee",
        price=Decimal("3.50"),
        options=[
            OptionGroup(name="Size", choices=[
                OptionChoice(name="Regular", additional_price=Decimal("0")),
                OptionChoice(name="Large", additional_price=Decimal("0.75")),
            ]),
            OptionGroup(name="Milk", choices=[
                OptionChoice(name="Whole"),
                OptionChoice(name="Oat", additional_price=Decimal("0.50")),
            ]),
        ],
    )


@pytest.fixture
def croissant() -> MenuItem:
    return MenuItem(id="croissant", name="Croissant", category="Pastries", price=Decimal("2.00"))


class TestCart:
    """Tests for Cart.add_item semantics."""

    def test_line_price_includes_options(self, latte):
        cart = Cart()
        line = cart.add_item(latte, 2, options={"Size": "Large", "Milk": "Oat"})

        assert line.calculated_price == Decimal("4.75")
        assert line.item_subtotal == Decimal("9.50")
        assert [(o.name, o.choice) for o in line.selected_options] == [("Milk", "Oat"), ("Size", "Large")]

    def test_same_item_same_options_replaces_quantity(self, latte):
        cart = Cart()
        cart.add_item(latte, 1, options={"Size": "Large"})
        cart.add_item(latte, 3, options={"Size": "Large"})

        assert len(cart) == 1
        assert cart.lines[0].quantity == 3

    def test_different_options_are_separate_lines(self, latte):
        cart = Cart()
        cart.add_item(latte, 1, options={"Size": "Large"})
        cart.add_item(latte, 1, options={"Size": "Regular"})
        assert len(cart) == 2

    def test_zero_quantity_removes(self, latte, croissant):
        cart = Cart()
        cart.add_item(latte, 1)
        cart.add_item(croissant, 1)

        assert cart.add_item(latte, 0) is None
        assert [line.menu_item_id for line in cart.lines] == ["croissant"]

    def test_remove_item(self, latte):
        cart = Cart()
        cart.add_item(latte, 1, options={"Size": "Large"})
        cart.remove_item("latte", {"Size": "Large"})
        assert len(cart) == 0

    def test_unknown_option_rejected(self, latte):
        with pytest.raises(ValueError):
            Cart().add_item(latte, 1, options={"Sugar": "None"})
        with pytest.raises(ValueError):
            Cart().add_item(latte, 1, options={"Size": "Huge"})

    def test_unavailable_item_rejected(self, croissant):
        sold_out = croissant.model_copy(update={"available": False})
        with pytest.raises(ValueError):
            Cart().add_item(sold_out, 1)


class TestCalculateTotals:
    """Tests for subtotal, discount, tax and service charge."""

    def test_default_tax_rate(self, latte, croissant):
        cart = Cart()
        cart.add_item(latte, 2)
        cart.add_item(croissant, 1)

        totals = cart.totals()

        assert totals.subtotal_amount == Decimal("9.00")
        assert totals.tax_amount == Decimal("0.72")
        assert totals.total_amount == Decimal("9.72")

    def test_ten_dollar_order(self, croissant):
        cart = Cart()
        cart.add_item(croissant, 5)
        assert cart.totals().total_amount == Decimal("10.80")

    def test_discount_and_service_charge(self, croissant):
        cart = Cart()
        cart.add_item(croissant, 5)

        totals = cart.totals(tax_rate=Decimal("0.10"), discount=Decimal("2.00"), service_charge_rate=Decimal("0.05"))

        assert totals.discount_amount == Decimal("2.00")
        assert totals.tax_amount == Decimal("0.80")
        assert totals.service_charge_amount == Decimal("0.40")
        assert totals.total_amount == Decimal("9.20")
        assert totals.total_amount == (
            totals.subtotal_amount - totals.discount_amount + totals.tax_amount + totals.service_charge_amount
        )

    def test_discount_cannot_exceed_subtotal(self, croissant):
        cart = Cart()
        cart.add_item(croissant, 1)
        with pytest.raises(ValueError):
            cart.totals(discount=Decimal("2.01"))

    def test_rounding_half_up(self):
        class Line:
            item_subtotal = Decimal("0.63")

        totals = calculate_totals([Line()], tax_rate=Decimal("0.5"))
        assert totals.tax_amount == Decimal("0.32")

    def test_empty(self):
        totals = calculate_totals([])
        assert totals.total_amount == Decimal("0")
