"""Order management: creation from a cart, line items and status changes.

Payment is not handled here; see ``OrderLifecycleController``. Every write
that touches both an order and its table goes through one store transaction
with version preconditions on the documents read.
"""

import logging
import uuid
from decimal import Decimal
from typing import List, Optional

from coffeeos.core.errors import InvalidState, NotFound
from coffeeos.schemas.common import quantize_money, utcnow
from coffeeos.schemas.menu import Menu
from coffeeos.schemas.order import (
    CartLineRequest,
    CreateOrderRequest,
    Order,
    OrderDetail,
    OrderLineItem,
    OrderStatus,
    OrderTotals,
    OrderType,
)
from coffeeos.schemas.table import CafeTable, TableStatus
from coffeeos.services.cart import Cart, CartLine, calculate_totals
from coffeeos.services.context import BranchContext
from coffeeos.services.menu_service import MenuService
from coffeeos.services.order_lifecycle import can_transition
from coffeeos.store.base import DocumentSnapshot, DocumentStore

logger = logging.getLogger(__name__)

OCCUPIABLE_TABLE_STATUSES = (TableStatus.AVAILABLE, TableStatus.RESERVED)


def new_id() -> str:
    return uuid.uuid4().hex[:20]


def order_number_for(order_id: str) -> str:
    return f"ORD-{order_id[:6].upper()}"


class OrderService:
    """Order creation and the non-payment part of the order lifecycle."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.menus = MenuService(store)

    # ===== READS =====

    def _get_order_snapshot(self, context: BranchContext, order_id: str) -> DocumentSnapshot:
        path = context.order_path(order_id)
        snap = self.store.get(path)
        if not snap.exists:
            raise NotFound(f"Order {order_id} not found", path=path)
        return snap

    def _list_items(self, context: BranchContext, order_id: str) -> List[OrderLineItem]:
        snaps = self.store.list_collection(context.order_items_path(order_id), order_by="createdAt")
        return [OrderLineItem.from_snapshot(s) for s in snaps]

    def get_order(self, context: BranchContext, order_id: str) -> OrderDetail:
        order = Order.from_snapshot(self._get_order_snapshot(context, order_id))
        return OrderDetail(**order.model_dump(), items=self._list_items(context, order_id))

    def list_orders(
        self,
        context: BranchContext,
        status: Optional[OrderStatus] = None,
        table_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Order]:
        """Orders of the branch, newest first."""
        if status is not None:
            snaps = self.store.query(context.orders_path(), "status", OrderStatus(status).value)
        else:
            snaps = self.store.list_collection(context.orders_path())
        orders = [Order.from_snapshot(s) for s in snaps]
        if table_id:
            orders = [o for o in orders if o.table_id == table_id]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders[:limit] if limit else orders

    # ===== CART -> LINE ITEMS =====

    def _build_cart(self, menu: Menu, requested: List[CartLineRequest]) -> Cart:
        cart = Cart()
        for line in requested:
            menu_item = self.menus.get_menu_item(menu.id, line.menu_item_id)
            cart.add_item(menu_item, line.quantity, note=line.note, options=line.selected_options)
        return cart

    def quote(
        self,
        context: BranchContext,
        requested: List[CartLineRequest],
        discount: Decimal = Decimal("0"),
        tax_rate: Optional[Decimal] = None,
        service_charge_rate: Optional[Decimal] = None,
    ) -> OrderTotals:
        """Totals of a prospective order, without writing anything."""
        menu = self.menus.get_active_menu(context.tenant_id)
        cart = self._build_cart(menu, requested)
        return cart.totals(tax_rate, discount, service_charge_rate)

    @staticmethod
    def _line_item(line: CartLine, now) -> OrderLineItem:
        return OrderLineItem(
            id=new_id(),
            menu_item_id=line.menu_item_id,
            menu_item_name=line.menu_item_name,
            unit_price=line.unit_price,
            quantity=line.quantity,
            selected_options=line.selected_options,
            item_subtotal=line.item_subtotal,
            note=line.note,
            created_at=now,
            updated_at=now,
        )

    # ===== WRITES =====

    def create_order(self, context: BranchContext, request: CreateOrderRequest) -> OrderDetail:
        """
        Create an order with its line items.

        A dine-in order with a table occupies that table in the same
        transaction; the table must be available or reserved.
        """
        if request.table_id and request.type != OrderType.DINE_IN:
            raise ValueError("Only dine-in orders can be seated at a table")

        menu = self.menus.get_active_menu(context.tenant_id)
        cart = self._build_cart(menu, request.items)
        if not len(cart):
            raise ValueError("Order has no items")
        totals = cart.totals(request.tax_rate, request.discount_amount, request.service_charge_rate)

        table_snap = None
        if request.table_id:
            table_snap = self.store.get(context.table_path(request.table_id))
            if not table_snap.exists:
                raise NotFound(f"Table {request.table_id} not found", path=table_snap.path)
            table = CafeTable.from_snapshot(table_snap)
            if table.status not in OCCUPIABLE_TABLE_STATUSES or table.current_order_id:
                logger.warning(
                    f"Order rejected: table {table.table_number} is {table.status.value}"
                )
                raise InvalidState(
                    f"Table {table.table_number} is {table.status.value}",
                    current_status=table.status.value,
                )
            if not table.is_active:
                raise InvalidState(f"Table {table.table_number} is not in service")

        now = utcnow()
        order_id = new_id()
        order = Order(
            id=order_id,
            order_number=order_number_for(order_id),
            status=request.status,
            type=request.type,
            table_id=request.table_id,
            user_id=request.user_id,
            tenant_id=context.tenant_id,
            branch_id=context.branch_id,
            notes=request.notes,
            tax_rate=request.tax_rate,
            service_charge_rate=request.service_charge_rate,
            created_at=now,
            updated_at=now,
            **totals.model_dump(),
        )
        items = [self._line_item(line, now) for line in cart.lines]

        txn = self.store.transaction()
        txn.create(context.order_path(order_id), order.to_document())
        for item in items:
            txn.create(context.order_item_path(order_id, item.id), item.to_document())
        if table_snap is not None:
            txn.stage(
                table_snap.path,
                {
                    "status": TableStatus.OCCUPIED.value,
                    "currentOrderId": order_id,
                    "updatedAt": now.isoformat(),
                },
                expected_version=table_snap.version,
            )
        txn.commit()

        logger.info(
            f"Order {order.order_number} created with {len(items)} line(s), total {order.total_amount}"
            + (f", table {request.table_id} occupied" if request.table_id else "")
        )
        return OrderDetail(**order.model_dump(), items=items)

    def _recalculated(
        self, order: Order, items: List[OrderLineItem], discount: Optional[Decimal] = None
    ) -> OrderTotals:
        discount = order.discount_amount if discount is None else discount
        subtotal = quantize_money(sum((i.item_subtotal for i in items), Decimal("0")))
        return calculate_totals(
            items,
            tax_rate=order.tax_rate,
            discount=min(discount, subtotal),
            service_charge_rate=order.service_charge_rate,
        )

    def _totals_fields(self, totals: OrderTotals, now) -> dict:
        fields = totals.to_document()
        fields["updatedAt"] = now.isoformat()
        return fields

    def add_line_items(
        self, context: BranchContext, order_id: str, requested: List[CartLineRequest]
    ) -> OrderDetail:
        """Append lines to a non-terminal order and recompute its totals."""
        order_snap = self._get_order_snapshot(context, order_id)
        order = Order.from_snapshot(order_snap)
        if order.is_terminal:
            logger.warning(f"Line items rejected for {order.status.value} order {order_id}")
            raise InvalidState(
                f"Order {order_id} is {order.status.value}; items can no longer change",
                current_status=order.status.value,
            )

        menu = self.menus.get_active_menu(context.tenant_id)
        cart = self._build_cart(menu, requested)
        now = utcnow()
        new_items = [self._line_item(line, now) for line in cart.lines]
        items = self._list_items(context, order_id) + new_items
        totals = self._recalculated(order, items)

        txn = self.store.transaction()
        for item in new_items:
            txn.create(context.order_item_path(order_id, item.id), item.to_document())
        txn.stage(order_snap.path, self._totals_fields(totals, now), expected_version=order_snap.version)
        txn.commit()

        logger.info(f"Added {len(new_items)} line(s) to order {order_id}")
        return self.get_order(context, order_id)

    def remove_line_item(self, context: BranchContext, order_id: str, item_id: str) -> OrderDetail:
        """Remove one line of a non-terminal order and recompute its totals."""
        order_snap = self._get_order_snapshot(context, order_id)
        order = Order.from_snapshot(order_snap)
        if order.is_terminal:
            logger.warning(f"Line item removal rejected for {order.status.value} order {order_id}")
            raise InvalidState(
                f"Order {order_id} is {order.status.value}; items can no longer change",
                current_status=order.status.value,
            )

        item_path = context.order_item_path(order_id, item_id)
        item_snap = self.store.get(item_path)
        if not item_snap.exists:
            raise NotFound(f"Line item {item_id} not found", path=item_path)

        remaining = [i for i in self._list_items(context, order_id) if i.id != item_id]
        totals = self._recalculated(order, remaining)
        now = utcnow()

        txn = self.store.transaction()
        txn.delete(item_path, expected_version=item_snap.version)
        txn.stage(order_snap.path, self._totals_fields(totals, now), expected_version=order_snap.version)
        txn.commit()

        logger.info(f"Removed line {item_id} from order {order_id}")
        return self.get_order(context, order_id)

    def advance_status(self, context: BranchContext, order_id: str, new_status: OrderStatus) -> Order:
        """
        Move an order along the status map.

        Payment is refused here. Cancelling a seated order releases its table
        to cleaning in the same transaction.
        """
        new_status = OrderStatus(new_status)
        order_snap = self._get_order_snapshot(context, order_id)
        order = Order.from_snapshot(order_snap)

        if new_status == OrderStatus.PAID:
            raise InvalidState(
                "Orders are paid through the payment endpoint",
                current_status=order.status.value,
            )
        if not can_transition(order.status, new_status):
            logger.warning(
                f"Status change rejected for order {order_id}: "
                f"{order.status.value} -> {new_status.value}"
            )
            raise InvalidState(
                f"Order {order_id} cannot move from '{order.status.value}' to '{new_status.value}'",
                current_status=order.status.value,
            )

        now = utcnow()
        fields = {"status": new_status.value, "updatedAt": now.isoformat()}
        if new_status == OrderStatus.CANCELLED:
            fields["completedAt"] = now.isoformat()

        txn = self.store.transaction()
        txn.stage(order_snap.path, fields, expected_version=order_snap.version)

        released_table = None
        if new_status == OrderStatus.CANCELLED and order.table_id:
            table_snap = self.store.get(context.table_path(order.table_id))
            if table_snap.exists and table_snap.get("currentOrderId") == order.id:
                txn.stage(
                    table_snap.path,
                    {
                        "status": TableStatus.CLEANING.value,
                        "currentOrderId": None,
                        "updatedAt": now.isoformat(),
                    },
                    expected_version=table_snap.version,
                )
                released_table = order.table_id
        txn.commit()

        logger.info(
            f"Order {order_id}: {order.status.value} -> {new_status.value}"
            + (f"; table {released_table} set to cleaning" if released_table else "")
        )
        update = {"status": new_status, "updated_at": now}
        if new_status == OrderStatus.CANCELLED:
            update["completed_at"] = now
        return order.model_copy(update=update)
