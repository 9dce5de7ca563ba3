"""Order, line item and cart request schemas."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from coffeeos.schemas.common import ApiModel, DocumentModel, Money, Rate, utcnow


class OrderStatus(str, Enum):
    PENDING = "pending"
    OPEN = "open"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    PAID = "paid"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class OrderType(str, Enum):
    DINE_IN = "dine-in"
    TAKEOUT = "takeout"
    DELIVERY = "delivery"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    MOMO = "momo"
    ZALOPAY = "zalopay"
    VNPAY = "vnpay"
    POINTS = "points"
    VOUCHER = "voucher"


TERMINAL_STATUSES = frozenset({
    OrderStatus.PAID,
    OrderStatus.COMPLETED,
    OrderStatus.CANCELLED,
    OrderStatus.REFUNDED,
})


class SelectedOption(DocumentModel):
    name: str
    choice: str
    additional_price: Money = Decimal("0")


class OrderLineItem(DocumentModel):
    """A persisted line of an order. Name and price are snapshots."""

    id: str
    menu_item_id: str
    menu_item_name: str
    unit_price: Money
    quantity: int = Field(..., gt=0)
    selected_options: List[SelectedOption] = []
    item_subtotal: Money
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Order(DocumentModel):
    id: str
    order_number: Optional[str] = None
    status: OrderStatus
    type: OrderType = OrderType.DINE_IN
    subtotal_amount: Money = Decimal("0")
    discount_amount: Money = Decimal("0")
    tax_amount: Money = Decimal("0")
    service_charge_amount: Money = Decimal("0")
    total_amount: Money = Decimal("0")
    tax_rate: Optional[Rate] = None
    service_charge_rate: Optional[Rate] = None
    table_id: Optional[str] = None
    user_id: Optional[str] = None
    tenant_id: str
    branch_id: str
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    paid_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class OrderDetail(Order):
    """Order with its line items, as returned by the API."""

    items: List[OrderLineItem] = []


class OrderTotals(DocumentModel):
    subtotal_amount: Money
    discount_amount: Money
    tax_amount: Money
    service_charge_amount: Money
    total_amount: Money


# Request bodies

class CartLineRequest(ApiModel):
    menu_item_id: str
    quantity: int = Field(..., gt=0, le=100)
    note: Optional[str] = Field(None, max_length=500)
    # option group name -> choice name
    selected_options: Dict[str, str] = {}


class CreateOrderRequest(ApiModel):
    type: OrderType = OrderType.DINE_IN
    table_id: Optional[str] = None
    user_id: Optional[str] = None
    status: OrderStatus = OrderStatus.OPEN
    items: List[CartLineRequest] = Field(..., min_length=1)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    service_charge_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("status")
    @classmethod
    def initial_status(cls, v: OrderStatus) -> OrderStatus:
        if v not in (OrderStatus.PENDING, OrderStatus.OPEN):
            raise ValueError("Orders start as pending or open")
        return v


class QuoteRequest(ApiModel):
    items: List[CartLineRequest] = Field(..., min_length=1)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    service_charge_rate: Optional[Decimal] = Field(None, ge=0, le=1)


class AddItemsRequest(ApiModel):
    items: List[CartLineRequest] = Field(..., min_length=1)


class StatusChangeRequest(ApiModel):
    status: OrderStatus


class PaymentRequest(ApiModel):
    payment_method: Optional[PaymentMethod] = None
