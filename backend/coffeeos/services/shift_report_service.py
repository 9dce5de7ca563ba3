"""Shift reports: listing by date range and closing a shift."""

import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

from coffeeos.schemas.common import as_utc, quantize_money, utcnow
from coffeeos.schemas.order import Order, OrderStatus, PaymentMethod
from coffeeos.schemas.shift_report import CloseShiftRequest, ShiftReport, ShiftStatus
from coffeeos.services.context import BranchContext
from coffeeos.store.base import DocumentStore

logger = logging.getLogger(__name__)

QR_METHODS = frozenset({PaymentMethod.MOMO.value, PaymentMethod.ZALOPAY.value, PaymentMethod.VNPAY.value})
REVENUE_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.COMPLETED})


class ShiftReportService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def list_shift_reports(
        self,
        context: BranchContext,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[ShiftReport]:
        """Reports whose start time falls in [start, end], newest first.

        ``end`` covers the whole day.
        """
        reports = [
            ShiftReport.from_snapshot(s)
            for s in self.store.list_collection(context.shift_reports_path())
        ]
        if start is not None:
            lower = datetime.combine(start, time.min, tzinfo=timezone.utc)
            reports = [r for r in reports if as_utc(r.start_time) >= lower]
        if end is not None:
            upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
            reports = [r for r in reports if as_utc(r.start_time) < upper]
        reports.sort(key=lambda r: as_utc(r.start_time), reverse=True)
        return reports

    def close_shift(self, context: BranchContext, request: CloseShiftRequest) -> ShiftReport:
        """Aggregate the orders paid during the shift into a closed report."""
        start = as_utc(request.start_time)
        end = as_utc(request.end_time)

        cash = card = qr = other = Decimal("0")
        transactions = 0
        for snap in self.store.list_collection(context.orders_path()):
            order = Order.from_snapshot(snap)
            if order.status not in REVENUE_STATUSES or order.paid_at is None:
                continue
            if not start <= as_utc(order.paid_at) <= end:
                continue
            transactions += 1
            method = (order.payment_method or "").lower()
            if method == PaymentMethod.CASH.value:
                cash += order.total_amount
            elif method == PaymentMethod.CARD.value:
                card += order.total_amount
            elif method in QR_METHODS:
                qr += order.total_amount
            else:
                other += order.total_amount

        now = utcnow()
        report = ShiftReport(
            id=uuid.uuid4().hex[:20],
            branch_id=context.branch_id,
            user_id=request.user_id,
            username=request.username,
            status=ShiftStatus.CLOSED,
            start_time=start,
            end_time=end,
            total_cash_in=quantize_money(cash),
            total_card_in=quantize_money(card),
            total_qr_in=quantize_money(qr),
            total_revenue=quantize_money(cash + card + qr + other),
            total_transactions=transactions,
            notes=request.notes,
            created_at=now,
            updated_at=now,
        )
        txn = self.store.transaction()
        txn.create(context.shift_report_path(report.id), report.to_document())
        txn.commit()

        logger.info(
            f"Shift closed for user {request.user_id} at branch {context.branch_id}: "
            f"{transactions} transaction(s), revenue {report.total_revenue}"
        )
        return report
