"""Cart building and order totals.

A cart is a client-side working set: lines are priced from the menu item at
the moment they are added and turned into persisted line items when the
order is created.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from coffeeos.core.config import get_settings
from coffeeos.schemas.common import quantize_money
from coffeeos.schemas.menu import MenuItem
from coffeeos.schemas.order import OrderTotals, SelectedOption


def _decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def resolve_options(menu_item: MenuItem, selected: Optional[Dict[str, str]]) -> List[SelectedOption]:
    """Map ``{group name: choice name}`` to priced options of the menu item."""
    resolved: List[SelectedOption] = []
    for group_name, choice_name in sorted((selected or {}).items()):
        group = menu_item.find_option(group_name)
        if group is None:
            raise ValueError(f"'{menu_item.name}' has no option '{group_name}'")
        choice = group.find_choice(choice_name)
        if choice is None:
            raise ValueError(f"'{choice_name}' is not a choice of {menu_item.name} / {group_name}")
        resolved.append(SelectedOption(
            name=group.name,
            choice=choice.name,
            additional_price=choice.additional_price,
        ))
    return resolved


@dataclass
class CartLine:
    menu_item_id: str
    menu_item_name: str
    unit_price: Decimal
    quantity: int
    selected_options: List[SelectedOption] = field(default_factory=list)
    note: Optional[str] = None

    @property
    def options_key(self) -> Tuple[Tuple[str, str], ...]:
        return tuple(sorted((o.name, o.choice) for o in self.selected_options))

    @property
    def calculated_price(self) -> Decimal:
        """Unit price plus every option's additional price."""
        return self.unit_price + sum(
            (_decimal(o.additional_price) for o in self.selected_options), Decimal("0")
        )

    @property
    def item_subtotal(self) -> Decimal:
        return quantize_money(self.calculated_price * self.quantity)


class Cart:
    """Lines keyed by menu item and chosen options."""

    def __init__(self):
        self._lines: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], CartLine] = {}

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def add_item(
        self,
        menu_item: MenuItem,
        quantity: int = 1,
        note: Optional[str] = None,
        options: Optional[Dict[str, str]] = None,
    ) -> Optional[CartLine]:
        """
        Put a menu item in the cart.

        The same item with the same options replaces the existing quantity;
        a quantity of zero or less removes it. Unavailable items are refused.
        """
        selected = resolve_options(menu_item, options)
        line = CartLine(
            menu_item_id=menu_item.id,
            menu_item_name=menu_item.name,
            unit_price=_decimal(menu_item.price),
            quantity=quantity,
            selected_options=selected,
            note=note,
        )
        key = (menu_item.id, line.options_key)

        if quantity <= 0:
            self._lines.pop(key, None)
            return None
        if not menu_item.available:
            raise ValueError(f"'{menu_item.name}' is not available")

        self._lines[key] = line
        return line

    def remove_item(self, menu_item_id: str, options: Optional[Dict[str, str]] = None) -> None:
        key = (menu_item_id, tuple(sorted((options or {}).items())))
        self._lines.pop(key, None)

    def clear(self) -> None:
        self._lines.clear()

    def totals(
        self,
        tax_rate: Optional[Decimal] = None,
        discount: Decimal = Decimal("0"),
        service_charge_rate: Optional[Decimal] = None,
    ) -> OrderTotals:
        return calculate_totals(self.lines, tax_rate, discount, service_charge_rate)


def calculate_totals(
    lines: List,
    tax_rate: Optional[Decimal] = None,
    discount: Decimal = Decimal("0"),
    service_charge_rate: Optional[Decimal] = None,
) -> OrderTotals:
    """
    total = subtotal - discount + tax + service charge

    Tax and service charge apply to the discounted subtotal. Each amount is
    rounded half-up to cents. ``lines`` are anything with ``item_subtotal``.
    """
    settings = get_settings()
    tax_rate = _decimal(settings.default_tax_rate if tax_rate is None else tax_rate)
    service_charge_rate = _decimal(
        settings.default_service_charge_rate if service_charge_rate is None else service_charge_rate
    )
    discount = quantize_money(discount)

    subtotal = quantize_money(sum((_decimal(line.item_subtotal) for line in lines), Decimal("0")))
    if discount < 0:
        raise ValueError("Discount cannot be negative")
    if discount > subtotal:
        raise ValueError("Discount cannot exceed the subtotal")

    taxable = subtotal - discount
    tax = quantize_money(taxable * tax_rate)
    service_charge = quantize_money(taxable * service_charge_rate)

    return OrderTotals(
        subtotal_amount=subtotal,
        discount_amount=discount,
        tax_amount=tax,
        service_charge_amount=service_charge,
        total_amount=taxable + tax + service_charge,
    )
