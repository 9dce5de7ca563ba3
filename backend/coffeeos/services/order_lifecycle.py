"""Order Lifecycle Controller - status map and payment completion.

Payment completion is the only transition this controller performs itself:
``open -> paid``, written in one atomic store transaction together with the
table release (``occupied -> cleaning``). Both writes carry the versions that
were read, so a concurrent change to either document fails the commit and
nothing is applied.

Status map used by the surrounding order management:

    pending   -> open | cancelled
    open      -> preparing | cancelled | paid (controller only)
    preparing -> ready | cancelled
    ready     -> served | cancelled
    served    -> open

paid, completed, cancelled and refunded are terminal.
"""

import logging
from typing import Dict, FrozenSet, List, Optional

from coffeeos.core.errors import InvalidState, NotFound
from coffeeos.schemas.common import utcnow
from coffeeos.schemas.order import TERMINAL_STATUSES, Order, OrderStatus
from coffeeos.schemas.table import CafeTable, ConsistencyViolation, TableStatus
from coffeeos.services.context import BranchContext
from coffeeos.store.base import DocumentStore

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.OPEN, OrderStatus.CANCELLED}),
    OrderStatus.OPEN: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED, OrderStatus.PAID}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.SERVED, OrderStatus.CANCELLED}),
    OrderStatus.SERVED: frozenset({OrderStatus.OPEN}),
    OrderStatus.PAID: frozenset(),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}


def is_terminal(status: OrderStatus) -> bool:
    return OrderStatus(status) in TERMINAL_STATUSES


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return OrderStatus(target) in TRANSITIONS[OrderStatus(current)]


class OrderLifecycleController:
    """Performs the atomic payment transition of an order."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def complete_payment(
        self,
        context: BranchContext,
        order_id: str,
        payment_method: Optional[str] = None,
    ) -> Order:
        """
        Mark an open order as paid and release its table for cleaning.

        Paid is terminal, so ``completedAt`` is stamped with ``paidAt``;
        no later status would ever set it.

        Raises:
            NotFound: the order does not exist in the branch.
            InvalidState: the order is not open, or its table does not
                reference it. Re-fetch before trying again.
            CommitFailure: the atomic write did not apply; safe to retry.
        """
        order_path = context.order_path(order_id)
        order_snap = self.store.get(order_path)
        if not order_snap.exists:
            raise NotFound(f"Order {order_id} not found", path=order_path)
        order = Order.from_snapshot(order_snap)

        if order.status != OrderStatus.OPEN:
            logger.warning(
                f"Payment rejected for order {order_id}: status is {order.status.value}"
            )
            raise InvalidState(
                f"Order {order_id} cannot be paid in status '{order.status.value}'",
                current_status=order.status.value,
            )

        table_snap = None
        if order.table_id:
            table_path = context.table_path(order.table_id)
            table_snap = self.store.get(table_path)
            if not table_snap.exists or table_snap.get("currentOrderId") != order.id:
                logger.warning(
                    f"Payment rejected for order {order_id}: table {order.table_id} "
                    f"does not reference it"
                )
                raise InvalidState(
                    f"Table {order.table_id} is not linked to order {order_id}",
                    current_status=order.status.value,
                )

        now = utcnow()
        order_fields = {
            "status": OrderStatus.PAID.value,
            "paidAt": now.isoformat(),
            "completedAt": now.isoformat(),
            "updatedAt": now.isoformat(),
        }
        if payment_method:
            order_fields["paymentMethod"] = payment_method

        txn = self.store.transaction()
        txn.stage(order_path, order_fields, expected_version=order_snap.version)
        if table_snap is not None:
            txn.stage(
                table_snap.path,
                {
                    "status": TableStatus.CLEANING.value,
                    "currentOrderId": None,
                    "updatedAt": now.isoformat(),
                },
                expected_version=table_snap.version,
            )
        txn.commit()

        logger.info(
            f"Order {order_id} paid"
            + (f" via {payment_method}" if payment_method else "")
            + (f"; table {order.table_id} set to cleaning" if order.table_id else "")
        )
        return order.model_copy(
            update={
                "status": OrderStatus.PAID,
                "paid_at": now,
                "completed_at": now,
                "updated_at": now,
                "payment_method": payment_method or order.payment_method,
            }
        )

    def check_table_consistency(self, context: BranchContext) -> List[ConsistencyViolation]:
        """Every broken link between the branch's tables and orders."""
        tables = {
            snap.id: CafeTable.from_snapshot(snap)
            for snap in self.store.list_collection(context.tables_path())
        }
        orders = {
            snap.id: Order.from_snapshot(snap)
            for snap in self.store.list_collection(context.orders_path())
        }
        violations: List[ConsistencyViolation] = []

        for table in tables.values():
            if table.status == TableStatus.OCCUPIED and not table.current_order_id:
                violations.append(ConsistencyViolation(
                    table_id=table.id, problem="occupied table references no order",
                ))
            if not table.current_order_id:
                continue
            order = orders.get(table.current_order_id)
            if order is None:
                violations.append(ConsistencyViolation(
                    table_id=table.id, order_id=table.current_order_id,
                    problem="table references a missing order",
                ))
                continue
            if order.is_terminal:
                violations.append(ConsistencyViolation(
                    table_id=table.id, order_id=order.id,
                    problem=f"table references a {order.status.value} order",
                ))
            if order.table_id != table.id:
                violations.append(ConsistencyViolation(
                    table_id=table.id, order_id=order.id,
                    problem="order does not point back to the table",
                ))
            if table.status != TableStatus.OCCUPIED:
                violations.append(ConsistencyViolation(
                    table_id=table.id, order_id=order.id,
                    problem=f"{table.status.value} table references an order",
                ))

        for order in orders.values():
            if not order.table_id or order.is_terminal:
                continue
            table = tables.get(order.table_id)
            if table is None:
                violations.append(ConsistencyViolation(
                    table_id=order.table_id, order_id=order.id,
                    problem="order references a missing table",
                ))
            elif table.current_order_id != order.id:
                violations.append(ConsistencyViolation(
                    table_id=table.id, order_id=order.id,
                    problem="open order's table does not reference it",
                ))

        if violations:
            logger.warning(f"Branch {context.branch_id}: {len(violations)} table/order inconsistencies")
        return violations
