"""Table routes - listing, statistics and housekeeping."""

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from coffeeos.api.deps import ContextDep, StoreDep
from coffeeos.core.rate_limit import limiter
from coffeeos.schemas.table import CafeTable, ConsistencyViolation, TableStats, TableStatus
from coffeeos.services.order_lifecycle import OrderLifecycleController
from coffeeos.services.table_service import TableService

router = APIRouter()


@router.get("/", response_model=List[CafeTable])
def list_tables(
    store: StoreDep,
    context: ContextDep,
    zone: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=50),
    table_status: Optional[TableStatus] = Query(None, alias="status"),
):
    """Active tables of the branch, ordered by table number."""
    return TableService(store).list_tables(context, zone=zone, search=search, status=table_status)


@router.get("/summary/stats", response_model=TableStats)
def get_table_stats(store: StoreDep, context: ContextDep):
    """Get table statistics."""
    return TableService(store).get_table_stats(context)


@router.get("/zones", response_model=List[str])
def list_zones(store: StoreDep, context: ContextDep):
    """Distinct table zones."""
    tables = TableService(store).list_tables(context)
    return sorted({t.zone for t in tables if t.zone})


@router.get("/consistency", response_model=List[ConsistencyViolation])
def check_consistency(store: StoreDep, context: ContextDep):
    """Tables and orders whose references disagree; empty when consistent."""
    return OrderLifecycleController(store).check_table_consistency(context)


@router.get("/{table_id}", response_model=CafeTable)
def get_table(table_id: str, store: StoreDep, context: ContextDep):
    return TableService(store).get_table(context, table_id)


@router.post("/{table_id}/available", response_model=CafeTable)
@limiter.limit("60/minute")
def mark_available(request: Request, table_id: str, store: StoreDep, context: ContextDep):
    """Cleaning finished or reservation released."""
    return TableService(store).mark_available(context, table_id)


@router.post("/{table_id}/cleaning", response_model=CafeTable)
@limiter.limit("60/minute")
def mark_cleaning(request: Request, table_id: str, store: StoreDep, context: ContextDep):
    return TableService(store).mark_cleaning(context, table_id)


@router.post("/{table_id}/reserved", response_model=CafeTable)
@limiter.limit("60/minute")
def mark_reserved(request: Request, table_id: str, store: StoreDep, context: ContextDep):
    return TableService(store).mark_reserved(context, table_id)
