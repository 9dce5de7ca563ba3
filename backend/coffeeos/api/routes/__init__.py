"""API routes."""

from fastapi import APIRouter

from coffeeos.api.routes import forecasting, menu, orders, reports, tables, tenants

api_router = APIRouter()

api_router.include_router(tenants.router, prefix="/tenants", tags=["tenants"])
api_router.include_router(menu.router, prefix="/menu", tags=["menu"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(tables.router, prefix="/tables", tags=["tables"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports", "shifts"])
api_router.include_router(forecasting.router, prefix="/forecasting", tags=["forecasting", "ai"])
