"""Table management for a branch.

Seating happens when an order is created and release happens on payment or
cancellation; this service covers listing and housekeeping.
"""

import logging
import re
from typing import List, Optional

from coffeeos.core.errors import InvalidState, NotFound
from coffeeos.schemas.common import utcnow
from coffeeos.schemas.order import Order
from coffeeos.schemas.table import CafeTable, TableStats, TableStatus
from coffeeos.services.context import BranchContext
from coffeeos.store.base import DocumentSnapshot, DocumentStore

logger = logging.getLogger(__name__)


def table_sort_key(table: CafeTable):
    """Natural order: A2 before A10."""
    parts = re.split(r"(\d+)", table.table_number)
    return [int(p) if p.isdigit() else p.lower() for p in parts]


class TableService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def _get_snapshot(self, context: BranchContext, table_id: str) -> DocumentSnapshot:
        path = context.table_path(table_id)
        snap = self.store.get(path)
        if not snap.exists:
            raise NotFound(f"Table {table_id} not found", path=path)
        return snap

    def get_table(self, context: BranchContext, table_id: str) -> CafeTable:
        return CafeTable.from_snapshot(self._get_snapshot(context, table_id))

    def list_tables(
        self,
        context: BranchContext,
        zone: Optional[str] = None,
        search: Optional[str] = None,
        status: Optional[TableStatus] = None,
        include_inactive: bool = False,
    ) -> List[CafeTable]:
        """Tables ordered by table number."""
        tables = [
            CafeTable.from_snapshot(s)
            for s in self.store.list_collection(context.tables_path())
        ]
        if not include_inactive:
            tables = [t for t in tables if t.is_active]
        if zone:
            tables = [t for t in tables if (t.zone or "").lower() == zone.lower()]
        if status:
            tables = [t for t in tables if t.status == TableStatus(status)]
        if search:
            term = search.strip().lower()
            tables = [
                t for t in tables
                if term in t.table_number.lower() or term in (t.zone or "").lower()
            ]
        tables.sort(key=table_sort_key)
        return tables

    def get_table_stats(self, context: BranchContext) -> TableStats:
        tables = self.list_tables(context)
        by_status = {status.value: 0 for status in TableStatus}
        for table in tables:
            by_status[table.status.value] += 1
        total = len(tables)
        occupied = by_status[TableStatus.OCCUPIED.value]
        return TableStats(
            total=total,
            by_status=by_status,
            occupancy_rate=round(occupied / total * 100, 1) if total else 0.0,
        )

    def mark_available(self, context: BranchContext, table_id: str) -> CafeTable:
        """Housekeeping done (or reservation released): cleaning/reserved -> available."""
        snap = self._get_snapshot(context, table_id)
        table = CafeTable.from_snapshot(snap)
        if table.status not in (TableStatus.CLEANING, TableStatus.RESERVED):
            logger.warning(f"Table {table.table_number} cannot become available from {table.status.value}")
            raise InvalidState(
                f"Table {table.table_number} is {table.status.value}",
                current_status=table.status.value,
            )
        return self._set_status(snap, table, TableStatus.AVAILABLE)

    def mark_cleaning(self, context: BranchContext, table_id: str) -> CafeTable:
        """Send a table to cleaning; refused while an open order is seated at it."""
        snap = self._get_snapshot(context, table_id)
        table = CafeTable.from_snapshot(snap)
        if table.current_order_id:
            order_snap = self.store.get(context.order_path(table.current_order_id))
            if order_snap.exists and not Order.from_snapshot(order_snap).is_terminal:
                logger.warning(
                    f"Table {table.table_number} cannot be cleaned: order "
                    f"{table.current_order_id} is still open"
                )
                raise InvalidState(
                    f"Table {table.table_number} still has an open order",
                    current_status=table.status.value,
                )
        return self._set_status(snap, table, TableStatus.CLEANING)

    def mark_reserved(self, context: BranchContext, table_id: str) -> CafeTable:
        snap = self._get_snapshot(context, table_id)
        table = CafeTable.from_snapshot(snap)
        if table.status != TableStatus.AVAILABLE:
            raise InvalidState(
                f"Table {table.table_number} is {table.status.value}",
                current_status=table.status.value,
            )
        return self._set_status(snap, table, TableStatus.RESERVED)

    def _set_status(self, snap: DocumentSnapshot, table: CafeTable, status: TableStatus) -> CafeTable:
        now = utcnow()
        txn = self.store.transaction()
        txn.stage(
            snap.path,
            {"status": status.value, "currentOrderId": None, "updatedAt": now.isoformat()},
            expected_version=snap.version,
        )
        txn.commit()
        logger.info(f"Table {table.table_number}: {table.status.value} -> {status.value}")
        return table.model_copy(update={"status": status, "current_order_id": None, "updated_at": now})
