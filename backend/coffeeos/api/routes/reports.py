"""Shift report routes."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request, status

from coffeeos.api.deps import ContextDep, StoreDep
from coffeeos.core.rate_limit import limiter
from coffeeos.schemas.shift_report import CloseShiftRequest, ShiftReport
from coffeeos.services.shift_report_service import ShiftReportService

router = APIRouter()


@router.get("/shifts", response_model=List[ShiftReport])
def list_shift_reports(
    store: StoreDep,
    context: ContextDep,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """Shift reports started within the date range, newest first."""
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date is before start_date")
    return ShiftReportService(store).list_shift_reports(context, start_date, end_date)


@router.post("/shifts/close", response_model=ShiftReport, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def close_shift(request: Request, body: CloseShiftRequest, store: StoreDep, context: ContextDep):
    """Close a shift, totalling the orders paid during it by payment method."""
    return ShiftReportService(store).close_shift(context, body)
