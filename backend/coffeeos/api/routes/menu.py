"""Menu routes for the selected tenant's active menu."""

from typing import List, Optional

from fastapi import APIRouter, Query

from coffeeos.api.deps import ContextDep, StoreDep
from coffeeos.schemas.menu import ActiveMenuResponse, MenuItem
from coffeeos.services.menu_service import MenuService

router = APIRouter()


@router.get("/", response_model=ActiveMenuResponse)
def get_active_menu(store: StoreDep, context: ContextDep):
    """The active menu with its available items and categories."""
    service = MenuService(store)
    menu = service.get_active_menu(context.tenant_id)
    items = service.list_menu_items(menu.id)
    categories: List[str] = []
    for item in items:
        if item.category not in categories:
            categories.append(item.category)
    return ActiveMenuResponse(menu=menu, items=items, categories=categories)


@router.get("/items", response_model=List[MenuItem])
def list_menu_items(
    store: StoreDep,
    context: ContextDep,
    search: Optional[str] = Query(None, max_length=100),
    category: Optional[str] = None,
):
    """Available items, optionally filtered by category or a name/category search."""
    service = MenuService(store)
    menu = service.get_active_menu(context.tenant_id)
    return service.list_menu_items(menu.id, search=search, category=category)


@router.get("/categories", response_model=List[str])
def list_categories(store: StoreDep, context: ContextDep):
    service = MenuService(store)
    menu = service.get_active_menu(context.tenant_id)
    return service.list_categories(menu.id)
