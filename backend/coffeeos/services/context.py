"""Tenant/branch context resolution.

Every branch-scoped operation runs inside a ``BranchContext``; it is the only
place document paths under ``branches/{branchId}`` are built.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from coffeeos.core.errors import MissingContext
from coffeeos.store.base import DocumentStore, join_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BranchContext:
    tenant_id: str
    branch_id: str

    @property
    def branch_path(self) -> str:
        return join_path("branches", self.branch_id)

    @property
    def tenant_path(self) -> str:
        return join_path("tenants", self.tenant_id)

    def tables_path(self) -> str:
        return join_path(self.branch_path, "tables")

    def table_path(self, table_id: str) -> str:
        return join_path(self.branch_path, "tables", table_id)

    def orders_path(self) -> str:
        return join_path(self.branch_path, "orders")

    def order_path(self, order_id: str) -> str:
        return join_path(self.branch_path, "orders", order_id)

    def order_items_path(self, order_id: str) -> str:
        return join_path(self.branch_path, "orders", order_id, "items")

    def order_item_path(self, order_id: str, item_id: str) -> str:
        return join_path(self.branch_path, "orders", order_id, "items", item_id)

    def shift_reports_path(self) -> str:
        return join_path(self.branch_path, "shiftReports")

    def shift_report_path(self, report_id: str) -> str:
        return join_path(self.branch_path, "shiftReports", report_id)

    def users_path(self) -> str:
        return join_path(self.branch_path, "users")


def resolve_context(
    store: DocumentStore,
    tenant_id: Optional[str],
    branch_id: Optional[str],
) -> BranchContext:
    """Check that the branch exists and belongs to the tenant."""
    if not tenant_id or not branch_id:
        raise MissingContext("Select a tenant and a branch first")
    try:
        branch = store.get(join_path("branches", branch_id))
    except ValueError:
        raise MissingContext(f"Invalid branch id: {branch_id!r}")

    if not branch.exists:
        logger.warning(f"Context rejected: branch {branch_id} does not exist")
        raise MissingContext(f"Branch {branch_id} not found")
    if branch.get("tenantId") != tenant_id:
        logger.warning(f"Context rejected: branch {branch_id} is not owned by tenant {tenant_id}")
        raise MissingContext(f"Branch {branch_id} does not belong to tenant {tenant_id}")

    return BranchContext(tenant_id=tenant_id, branch_id=branch_id)
