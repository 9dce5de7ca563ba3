"""Demo data for a fresh store.

Creates one tenant with a branch, staff, tables and an active menu, then
optionally seats a few sample orders at available tables and pays some of
them.
"""

import logging
import random
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from coffeeos.schemas.common import utcnow
from coffeeos.schemas.menu import Menu, MenuItem, OptionChoice, OptionGroup
from coffeeos.schemas.order import CartLineRequest, CreateOrderRequest, OrderType, PaymentMethod
from coffeeos.schemas.table import CafeTable, TableStatus
from coffeeos.schemas.tenant import Branch, StaffUser, Tenant
from coffeeos.services.context import BranchContext
from coffeeos.services.order_lifecycle import OrderLifecycleController
from coffeeos.services.order_service import OrderService, new_id
from coffeeos.store.base import DocumentStore, join_path

logger = logging.getLogger(__name__)

SIZE_OPTION = OptionGroup(
    name="Size",
    choices=[
        OptionChoice(name="Regular", additional_price=Decimal("0")),
        OptionChoice(name="Large", additional_price=Decimal("0.75")),
    ],
)
MILK_OPTION = OptionGroup(
    name="Milk",
    choices=[
        OptionChoice(name="Whole", additional_price=Decimal("0")),
        OptionChoice(name="Oat", additional_price=Decimal("0.50")),
        OptionChoice(name="Almond", additional_price=Decimal("0.50")),
    ],
)

MENU_ITEMS = [
    {"name": "Espresso", "category": "Coffee", "price": "2.50", "unit": "cup", "available": True, "options": [SIZE_OPTION]},
    {"name": "Latte", "category": "Coffee", "price": "3.50", "unit": "cup", "available": True, "options": [SIZE_OPTION, MILK_OPTION]},
    {"name": "Cappuccino", "category": "Coffee", "price": "3.50", "unit": "cup", "available": False, "options": [SIZE_OPTION, MILK_OPTION]},
    {"name": "Croissant", "category": "Pastries", "price": "2.00", "unit": "piece", "available": True, "options": []},
    {"name": "Blueberry Muffin", "category": "Pastries", "price": "2.25", "unit": "piece", "available": True, "options": []},
]

TABLES = [
    {"table_number": "A1", "zone": "Indoors", "capacity": 2, "status": TableStatus.AVAILABLE},
    {"table_number": "A2", "zone": "Indoors", "capacity": 4, "status": TableStatus.AVAILABLE},
    {"table_number": "A3", "zone": "Indoors", "capacity": 4, "status": TableStatus.AVAILABLE},
    {"table_number": "B1", "zone": "Patio", "capacity": 4, "status": TableStatus.RESERVED},
    {"table_number": "B2", "zone": "Patio", "capacity": 6, "status": TableStatus.AVAILABLE},
]

STAFF = [
    {"username": "admin", "display_name": "Admin Main", "role": "admin"},
    {"username": "manager", "display_name": "Manager Main", "role": "manager"},
    {"username": "cashier", "display_name": "Cashier Main", "role": "cashier"},
]


@dataclass
class SeedSummary:
    tenant_id: str
    branch_id: str
    menu_id: str
    table_ids: List[str] = field(default_factory=list)
    user_ids: List[str] = field(default_factory=list)
    order_ids: List[str] = field(default_factory=list)
    paid_order_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "tenant_id": self.tenant_id,
            "branch_id": self.branch_id,
            "menu_id": self.menu_id,
            "tables": len(self.table_ids),
            "users": len(self.user_ids),
            "orders": len(self.order_ids),
            "paid_orders": len(self.paid_order_ids),
        }


def seed_demo_data(
    store: DocumentStore,
    tenant_name: str = "The Cozy Bean Corp.",
    sample_orders: int = 3,
    seed: Optional[int] = None,
) -> SeedSummary:
    """Populate ``store`` with one demo tenant and return what was created."""
    now = utcnow()
    tenant = Tenant(id=new_id(), name=tenant_name, subscription_plan="pro", created_at=now, updated_at=now)
    branch = Branch(
        id=new_id(), tenant_id=tenant.id, name="Main Street Branch",
        location="123 Main St", created_at=now, updated_at=now,
    )
    menu = Menu(
        id=new_id(), tenant_id=tenant.id, name="Main Menu", is_active=True,
        description="Our signature offerings", created_at=now, updated_at=now,
    )
    context = BranchContext(tenant_id=tenant.id, branch_id=branch.id)
    summary = SeedSummary(tenant_id=tenant.id, branch_id=branch.id, menu_id=menu.id)

    txn = store.transaction()
    txn.create(join_path("tenants", tenant.id), tenant.to_document())
    txn.create(join_path("branches", branch.id), branch.to_document())
    txn.create(join_path("menus", menu.id), menu.to_document())

    for position, data in enumerate(MENU_ITEMS, start=1):
        item = MenuItem(id=new_id(), menu_id=menu.id, display_order=position, created_at=now, updated_at=now, **data)
        txn.create(join_path("menus", menu.id, "items", item.id), item.to_document())

    for data in TABLES:
        table = CafeTable(id=new_id(), branch_id=branch.id, created_at=now, updated_at=now, **data)
        txn.create(context.table_path(table.id), table.to_document())
        summary.table_ids.append(table.id)

    for data in STAFF:
        user = StaffUser(
            id=new_id(), tenant_id=tenant.id, branch_id=branch.id,
            email=f"{data['username']}@example.com", created_at=now, updated_at=now, **data,
        )
        txn.create(join_path(context.users_path(), user.id), user.to_document())
        summary.user_ids.append(user.id)

    txn.commit()
    logger.info(f"Seeded tenant {tenant.name} ({tenant.id}) with branch {branch.id}")

    if sample_orders > 0:
        _seed_sample_orders(store, context, summary, sample_orders, random.Random(seed))
    return summary


def _seed_sample_orders(
    store: DocumentStore,
    context: BranchContext,
    summary: SeedSummary,
    count: int,
    rng: random.Random,
) -> None:
    orders = OrderService(store)
    lifecycle = OrderLifecycleController(store)
    menu = orders.menus.get_active_menu(context.tenant_id)
    menu_items = orders.menus.list_menu_items(menu.id)
    cashier_id = summary.user_ids[-1]

    free_tables = store.query(context.tables_path(), "status", TableStatus.AVAILABLE.value, limit=count)
    if not free_tables:
        logger.warning("No available tables; sample orders skipped")
        return

    methods = [PaymentMethod.CASH, PaymentMethod.CARD, PaymentMethod.MOMO]
    for index, table in enumerate(free_tables):
        picked = rng.sample(menu_items, k=min(len(menu_items), rng.randint(1, 3)))
        request = CreateOrderRequest(
            type=OrderType.DINE_IN,
            table_id=table.id,
            user_id=cashier_id,
            items=[CartLineRequest(menu_item_id=i.id, quantity=rng.randint(1, 2)) for i in picked],
        )
        order = orders.create_order(context, request)
        summary.order_ids.append(order.id)

        # every other order is settled so the shift report has data
        if index % 2 == 0:
            lifecycle.complete_payment(context, order.id, methods[index % len(methods)].value)
            summary.paid_order_ids.append(order.id)

    logger.info(f"Seeded {len(summary.order_ids)} sample order(s), {len(summary.paid_order_ids)} paid")
