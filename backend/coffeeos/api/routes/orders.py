"""Order routes: cart quotes, order creation, line items, status and payment."""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from coffeeos.api.deps import ContextDep, StoreDep
from coffeeos.core.rate_limit import limiter
from coffeeos.schemas.order import (
    AddItemsRequest,
    CreateOrderRequest,
    Order,
    OrderDetail,
    OrderStatus,
    OrderTotals,
    PaymentRequest,
    QuoteRequest,
    StatusChangeRequest,
)
from coffeeos.services.order_lifecycle import OrderLifecycleController
from coffeeos.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/quote", response_model=OrderTotals)
@limiter.limit("120/minute")
def quote_order(request: Request, body: QuoteRequest, store: StoreDep, context: ContextDep):
    """Totals for a cart without placing the order."""
    try:
        return OrderService(store).quote(
            context,
            body.items,
            discount=body.discount_amount,
            tax_rate=body.tax_rate,
            service_charge_rate=body.service_charge_rate,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/", response_model=OrderDetail, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_order(request: Request, body: CreateOrderRequest, store: StoreDep, context: ContextDep):
    """
    Place an order from cart lines.

    Dine-in orders with a table seat the table in the same atomic write.
    """
    try:
        return OrderService(store).create_order(context, body)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=List[Order])
def list_orders(
    store: StoreDep,
    context: ContextDep,
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    table_id: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
):
    """Orders of the branch, newest first."""
    return OrderService(store).list_orders(context, status=order_status, table_id=table_id, limit=limit)


@router.get("/{order_id}", response_model=OrderDetail)
def get_order(order_id: str, store: StoreDep, context: ContextDep):
    return OrderService(store).get_order(context, order_id)


@router.post("/{order_id}/items", response_model=OrderDetail)
@limiter.limit("60/minute")
def add_order_items(
    request: Request, order_id: str, body: AddItemsRequest, store: StoreDep, context: ContextDep
):
    """Add lines to an order that is not yet paid, completed or cancelled."""
    try:
        return OrderService(store).add_line_items(context, order_id, body.items)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{order_id}/items/{item_id}", response_model=OrderDetail)
@limiter.limit("60/minute")
def remove_order_item(request: Request, order_id: str, item_id: str, store: StoreDep, context: ContextDep):
    return OrderService(store).remove_line_item(context, order_id, item_id)


@router.post("/{order_id}/status", response_model=Order)
@limiter.limit("60/minute")
def change_order_status(
    request: Request, order_id: str, body: StatusChangeRequest, store: StoreDep, context: ContextDep
):
    """Move an order along its status map. Use /payment to mark it paid."""
    return OrderService(store).advance_status(context, order_id, body.status)


@router.post("/{order_id}/payment", response_model=Order)
@limiter.limit("30/minute")
def complete_payment(
    request: Request,
    order_id: str,
    store: StoreDep,
    context: ContextDep,
    body: Optional[PaymentRequest] = None,
):
    """
    Mark an open order as paid and send its table to cleaning.

    409 when the order is not open or its table is not linked to it,
    503 when the write did not apply (safe to retry).
    """
    method = body.payment_method.value if body and body.payment_method else None
    return OrderLifecycleController(store).complete_payment(context, order_id, method)
