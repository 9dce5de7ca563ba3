"""Menu browsing for a tenant's active menu."""

import logging
from typing import List, Optional

from coffeeos.core.errors import NotFound
from coffeeos.schemas.menu import Menu, MenuItem
from coffeeos.store.base import DocumentStore, join_path

logger = logging.getLogger(__name__)


class MenuService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def get_active_menu(self, tenant_id: str) -> Menu:
        """First menu of the tenant flagged ``isActive``."""
        candidates = self.store.query("menus", "tenantId", tenant_id)
        for snap in candidates:
            if snap.get("isActive") is True:
                return Menu.from_snapshot(snap)
        logger.warning(f"No active menu for tenant {tenant_id}")
        raise NotFound(f"No active menu found for tenant {tenant_id}")

    def get_menu_item(self, menu_id: str, item_id: str) -> MenuItem:
        path = join_path("menus", menu_id, "items", item_id)
        snap = self.store.get(path)
        if not snap.exists:
            raise NotFound(f"Menu item {item_id} not found", path=path)
        return MenuItem.from_snapshot(snap)

    def list_menu_items(
        self,
        menu_id: str,
        search: Optional[str] = None,
        category: Optional[str] = None,
        include_unavailable: bool = False,
    ) -> List[MenuItem]:
        """Items sorted by category, display order, then name."""
        items = [
            MenuItem.from_snapshot(snap)
            for snap in self.store.list_collection(join_path("menus", menu_id, "items"))
        ]
        if not include_unavailable:
            items = [i for i in items if i.available]
        if category:
            items = [i for i in items if i.category.lower() == category.lower()]
        if search:
            term = search.strip().lower()
            items = [i for i in items if term in i.name.lower() or term in i.category.lower()]

        items.sort(key=lambda i: (
            i.category.lower(),
            i.display_order if i.display_order is not None else float("inf"),
            i.name.lower(),
        ))
        return items

    def list_categories(self, menu_id: str) -> List[str]:
        """Distinct categories of the available items, in menu order."""
        categories: List[str] = []
        for item in self.list_menu_items(menu_id):
            if item.category not in categories:
                categories.append(item.category)
        return categories
