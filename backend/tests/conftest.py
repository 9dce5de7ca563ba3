"""Pytest configuration and fixtures."""

from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from coffeeos.api.deps import get_store
from coffeeos.db.base import Base
from coffeeos.db.session import create_session_factory
from coffeeos.main import app
from coffeeos.schemas.menu import Menu, MenuItem, OptionChoice, OptionGroup
from coffeeos.schemas.order import Order, OrderLineItem, OrderStatus
from coffeeos.schemas.table import CafeTable, TableStatus
from coffeeos.schemas.tenant import Branch, Tenant
from coffeeos.services.context import BranchContext
from coffeeos.store.base import join_path
from coffeeos.store.sql import SqlDocumentStore

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

TENANT_ID = "tenant-1"
BRANCH_ID = "branch-1"
MENU_ID = "menu-1"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def store(db_engine) -> SqlDocumentStore:
    """An empty sql document store."""
    return SqlDocumentStore(create_session_factory(db_engine))


def put(store, path: str, data: dict) -> None:
    """Create one document directly."""
    txn = store.transaction()
    txn.create(path, data)
    txn.commit()


@pytest.fixture
def context() -> BranchContext:
    return BranchContext(tenant_id=TENANT_ID, branch_id=BRANCH_ID)


@pytest.fixture
def context_headers() -> dict:
    return {"X-Tenant-Id": TENANT_ID, "X-Branch-Id": BRANCH_ID}


@pytest.fixture
def cafe(store):
    """Tenant, branch, an active menu with four items and four tables."""
    put(store, join_path("tenants", TENANT_ID), Tenant(id=TENANT_ID, name="Cozy Bean").to_document())
    put(store, join_path("tenants", "tenant-2"), Tenant(id="tenant-2", name="Urban Grind").to_document())
    put(
        store,
        join_path("branches", BRANCH_ID),
        Branch(id=BRANCH_ID, tenant_id=TENANT_ID, name="Main Street").to_document(),
    )
    put(
        store,
        join_path("branches", "branch-2"),
        Branch(id="branch-2", tenant_id="tenant-2", name="Downtown").to_document(),
    )

    put(store, join_path("menus", "menu-old"), Menu(id="menu-old", tenant_id=TENANT_ID, name="Old", is_active=False).to_document())
    put(store, join_path("menus", MENU_ID), Menu(id=MENU_ID, tenant_id=TENANT_ID, name="Main Menu", is_active=True).to_document())

    size = OptionGroup(
        name="Size",
        choices=[
            OptionChoice(name="Regular", additional_price=Decimal("0")),
            OptionChoice(name="Large", additional_price=Decimal("0.75")),
        ],
    )
    items = [
        MenuItem(id="espresso", menu_id=MENU_ID, name="Espresso", category="Coffee", price=Decimal("2.50"), display_order=1, options=[size]),
        MenuItem(id="latte", menu_id=MENU_ID, name="Latte", category="Coffee", price=Decimal("3.50"), display_order=2, options=[size]),
        MenuItem(id="cappuccino", menu_id=MENU_ID, name="Cappuccino", category="Coffee", price=Decimal("3.50"), available=False),
        MenuItem(id="croissant", menu_id=MENU_ID, name="Croissant", category="Pastries", price=Decimal("2.00"), unit="piece"),
    ]
    for item in items:
        put(store, join_path("menus", MENU_ID, "items", item.id), item.to_document())

    tables = [
        CafeTable(id="T1", table_number="A1", zone="Indoors", capacity=2),
        CafeTable(id="T2", table_number="A2", zone="Indoors", capacity=4),
        CafeTable(id="T3", table_number="B1", zone="Patio", capacity=4, status=TableStatus.RESERVED),
        CafeTable(id="T10", table_number="A10", zone="Indoors", capacity=6, status=TableStatus.CLEANING),
    ]
    for table in tables:
        put(store, join_path("branches", BRANCH_ID, "tables", table.id), table.to_document())
    return store


def write_order(
    store,
    order_id: str,
    table_id: str = None,
    status: OrderStatus = OrderStatus.OPEN,
    total: str = "10.80",
    payment_method: str = None,
    paid_at=None,
) -> None:
    """Write an order (and occupy its table) the way order creation does."""
    total = Decimal(total)
    subtotal = (total / Decimal("1.08")).quantize(Decimal("0.01"))
    order = Order(
        id=order_id,
        order_number=order_id,
        status=status,
        table_id=table_id,
        tenant_id=TENANT_ID,
        branch_id=BRANCH_ID,
        subtotal_amount=subtotal,
        tax_amount=total - subtotal,
        total_amount=total,
        payment_method=payment_method,
        paid_at=paid_at,
    )
    line = OrderLineItem(
        id=f"{order_id}-line",
        menu_item_id="latte",
        menu_item_name="Latte",
        unit_price=subtotal,
        quantity=1,
        item_subtotal=subtotal,
    )
    txn = store.transaction()
    txn.create(join_path("branches", BRANCH_ID, "orders", order_id), order.to_document())
    txn.create(join_path("branches", BRANCH_ID, "orders", order_id, "items", line.id), line.to_document())
    if table_id and status not in (OrderStatus.PAID, OrderStatus.CANCELLED, OrderStatus.COMPLETED):
        txn.stage(
            join_path("branches", BRANCH_ID, "tables", table_id),
            {"status": "occupied", "currentOrderId": order_id},
        )
    txn.commit()


@pytest.fixture
def seat_order(cafe):
    """Seat an order in the cafe fixture: ``seat_order("ORD-1", table_id="T2")``."""
    def _seat(order_id: str, **kwargs) -> None:
        write_order(cafe, order_id, **kwargs)
    return _seat


@pytest.fixture(scope="function")
def client(store) -> Generator[TestClient, None, None]:
    """Create a test client backed by the in-memory store."""
    app.state.store = store
    app.dependency_overrides[get_store] = lambda: store
    # Disable rate limiters during tests to avoid flaky failures
    from coffeeos.core.rate_limit import limiter as global_limiter
    global_limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    global_limiter.enabled = True
    app.dependency_overrides.clear()
    app.state.store = None
