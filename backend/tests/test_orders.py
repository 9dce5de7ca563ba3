"""Tests for order creation, line items, status changes and the order API."""

from decimal import Decimal

import pytest

from coffeeos.core.errors import InvalidState, NotFound
from coffeeos.schemas.order import CartLineRequest, CreateOrderRequest, OrderStatus, OrderType
from coffeeos.services.order_lifecycle import OrderLifecycleController
from coffeeos.services.order_service import OrderService, order_number_for

API = "/api/v1"


def _request(table_id=None, **kwargs) -> CreateOrderRequest:
    items = kwargs.pop("items", [CartLineRequest(menu_item_id="latte", quantity=2, selected_options={"Size": "Large"})])
    return CreateOrderRequest(table_id=table_id, items=items, **kwargs)


class TestCreateOrder:
    """Tests for OrderService.create_order."""

    def test_creates_order_and_occupies_table(self, cafe, context):
        order = OrderService(cafe).create_order(context, _request(table_id="T1"))

        assert order.status == OrderStatus.OPEN
        assert order.order_number == order_number_for(order.id)
        assert order.subtotal_amount == Decimal("8.50")
        assert order.tax_amount == Decimal("0.68")
        assert order.total_amount == Decimal("9.18")
        assert len(order.items) == 1
        assert order.items[0].selected_options[0].choice == "Large"

        table = cafe.get("branches/branch-1/tables/T1")
        assert table.get("status") == "occupied"
        assert table.get("currentOrderId") == order.id
        assert cafe.get(f"branches/branch-1/orders/{order.id}").get("tableId") == "T1"
        assert OrderLifecycleController(cafe).check_table_consistency(context) == []

    def test_reserved_table_can_be_seated(self, cafe, context):
        order = OrderService(cafe).create_order(context, _request(table_id="T3"))
        assert cafe.get("branches/branch-1/tables/T3").get("currentOrderId") == order.id

    @pytest.mark.parametrize("table_id", ["T10"])
    def test_table_in_cleaning_rejected(self, cafe, context, table_id):
        before = cafe.dump()
        with pytest.raises(InvalidState) as exc_info:
            OrderService(cafe).create_order(context, _request(table_id=table_id))
        assert exc_info.value.current_status == "cleaning"
        assert cafe.dump() == before

    def test_occupied_table_rejected(self, cafe, context):
        service = OrderService(cafe)
        service.create_order(context, _request(table_id="T1"))
        with pytest.raises(InvalidState):
            service.create_order(context, _request(table_id="T1"))

    def test_missing_table(self, cafe, context):
        with pytest.raises(NotFound):
            OrderService(cafe).create_order(context, _request(table_id="T99"))

    def test_takeout_order_cannot_take_a_table(self, cafe, context):
        with pytest.raises(ValueError):
            OrderService(cafe).create_order(context, _request(table_id="T1", type=OrderType.TAKEOUT))

    def test_takeout_order_without_table(self, cafe, context):
        order = OrderService(cafe).create_order(context, _request(type=OrderType.TAKEOUT))
        assert order.table_id is None
        assert cafe.get("branches/branch-1/tables/T1").get("status") == "available"

    def test_unavailable_item_rejected(self, cafe, context):
        items = [CartLineRequest(menu_item_id="cappuccino", quantity=1)]
        with pytest.raises(ValueError):
            OrderService(cafe).create_order(context, _request(items=items))

    def test_initial_status_must_be_pending_or_open(self):
        with pytest.raises(ValueError):
            _request(status=OrderStatus.PAID)


class TestLineItems:
    """Tests for adding and removing lines."""

    def test_add_items_recomputes_totals(self, cafe, context):
        service = OrderService(cafe)
        order = service.create_order(context, _request(table_id="T1"))

        updated = service.add_line_items(context, order.id, [CartLineRequest(menu_item_id="croissant", quantity=1)])

        assert len(updated.items) == 2
        assert updated.subtotal_amount == Decimal("10.50")
        assert updated.total_amount == Decimal("11.34")

    def test_remove_item_recomputes_totals(self, cafe, context):
        service = OrderService(cafe)
        order = service.create_order(context, _request(table_id="T1"))
        order = service.add_line_items(context, order.id, [CartLineRequest(menu_item_id="croissant", quantity=1)])
        latte_line = next(i for i in order.items if i.menu_item_id == "latte")

        updated = service.remove_line_item(context, order.id, latte_line.id)

        assert [i.menu_item_id for i in updated.items] == ["croissant"]
        assert updated.subtotal_amount == Decimal("2.00")
        assert updated.total_amount == Decimal("2.16")

    def test_discount_is_clamped_when_subtotal_shrinks(self, cafe, context):
        service = OrderService(cafe)
        order = service.create_order(context, _request(discount_amount=Decimal("5.00")))
        service.add_line_items(context, order.id, [CartLineRequest(menu_item_id="croissant", quantity=1)])
        order = service.get_order(context, order.id)
        latte_line = next(i for i in order.items if i.menu_item_id == "latte")

        updated = service.remove_line_item(context, order.id, latte_line.id)

        assert updated.discount_amount == Decimal("2.00")
        assert updated.total_amount == Decimal("0.00")

    def test_terminal_order_rejects_changes(self, cafe, context, seat_order):
        seat_order("ORD-2", table_id="T1", status=OrderStatus.PAID)
        service = OrderService(cafe)
        before = cafe.dump()

        with pytest.raises(InvalidState):
            service.add_line_items(context, "ORD-2", [CartLineRequest(menu_item_id="croissant", quantity=1)])
        with pytest.raises(InvalidState):
            service.remove_line_item(context, "ORD-2", "ORD-2-line")

        assert cafe.dump() == before

    def test_remove_missing_line(self, cafe, context, seat_order):
        seat_order("ORD-1", table_id="T2")
        with pytest.raises(NotFound):
            OrderService(cafe).remove_line_item(context, "ORD-1", "nope")


class TestAdvanceStatus:
    """Tests for status changes other than payment."""

    def test_kitchen_flow(self, cafe, context, seat_order):
        seat_order("ORD-1", table_id="T2")
        service = OrderService(cafe)

        for status in (OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.SERVED, OrderStatus.OPEN):
            assert service.advance_status(context, "ORD-1", status).status == status

        assert cafe.get("branches/branch-1/orders/ORD-1").get("status") == "open"

    def test_paid_is_refused(self, cafe, context, seat_order):
        seat_order("ORD-1", table_id="T2")
        with pytest.raises(InvalidState):
            OrderService(cafe).advance_status(context, "ORD-1", OrderStatus.PAID)
        assert cafe.get("branches/branch-1/orders/ORD-1").get("status") == "open"

    def test_illegal_transition(self, cafe, context, seat_order):
        seat_order("ORD-1", table_id="T2")
        with pytest.raises(InvalidState) as exc_info:
            OrderService(cafe).advance_status(context, "ORD-1", OrderStatus.READY)
        assert exc_info.value.current_status == "open"

    def test_cancel_releases_table(self, cafe, context, seat_order):
        seat_order("ORD-1", table_id="T2")

        result = OrderService(cafe).advance_status(context, "ORD-1", OrderStatus.CANCELLED)

        assert result.completed_at is not None
        table = cafe.get("branches/branch-1/tables/T2")
        assert table.get("status") == "cleaning"
        assert table.get("currentOrderId") is None
        assert OrderLifecycleController(cafe).check_table_consistency(context) == []


class TestListOrders:
    def test_filters(self, cafe, context, seat_order):
        seat_order("ORD-1", table_id="T2")
        seat_order("ORD-2", table_id="T1", status=OrderStatus.PAID)
        service = OrderService(cafe)

        assert [o.id for o in service.list_orders(context, status=OrderStatus.PAID)] == ["ORD-2"]
        assert [o.id for o in service.list_orders(context, table_id="T2")] == ["ORD-1"]
        assert len(service.list_orders(context, limit=1)) == 1

    def test_get_order_includes_items(self, cafe, context, seat_order):
        seat_order("ORD-1", table_id="T2")
        order = OrderService(cafe).get_order(context, "ORD-1")
        assert [i.id for i in order.items] == ["ORD-1-line"]


class TestOrdersAPI:
    """Tests for the order endpoints."""

    def test_quote(self, client, cafe, context_headers):
        response = client.post(
            f"{API}/orders/quote",
            headers=context_headers,
            json={"items": [{"menuItemId": "croissant", "quantity": 5}]},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["subtotalAmount"] == 10.0
        assert data["taxAmount"] == 0.8
        assert data["totalAmount"] == 10.8

    def test_create_and_fetch(self, client, cafe, context_headers):
        response = client.post(
            f"{API}/orders/",
            headers=context_headers,
            json={
                "tableId": "T1",
                "items": [{"menuItemId": "latte", "quantity": 2, "selectedOptions": {"Size": "Large"}}],
            },
        )
        assert response.status_code == 201
        created = response.json()
        assert created["tableId"] == "T1"
        assert created["totalAmount"] == 9.18

        fetched = client.get(f"{API}/orders/{created['id']}", headers=context_headers)
        assert fetched.status_code == 200
        assert len(fetched.json()["items"]) == 1

    def test_create_on_occupied_table_conflicts(self, client, seat_order, context_headers):
        seat_order("ORD-1", table_id="T2")
        response = client.post(
            f"{API}/orders/",
            headers=context_headers,
            json={"tableId": "T2", "items": [{"menuItemId": "latte", "quantity": 1}]},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_state"

    def test_unknown_option_is_bad_request(self, client, cafe, context_headers):
        response = client.post(
            f"{API}/orders/quote",
            headers=context_headers,
            json={"items": [{"menuItemId": "latte", "quantity": 1, "selectedOptions": {"Size": "Huge"}}]},
        )
        assert response.status_code == 400

    def test_payment_endpoint(self, client, seat_order, context_headers):
        seat_order("ORD-1", table_id="T2", total="10.80")

        response = client.post(
            f"{API}/orders/ORD-1/payment", headers=context_headers, json={"paymentMethod": "cash"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "paid"
        assert response.json()["paymentMethod"] == "cash"
        table = client.get(f"{API}/tables/T2", headers=context_headers).json()
        assert table["status"] == "cleaning"
        assert table["currentOrderId"] is None

    def test_payment_without_body(self, client, seat_order, context_headers):
        seat_order("ORD-1", table_id="T2")
        response = client.post(f"{API}/orders/ORD-1/payment", headers=context_headers)
        assert response.status_code == 200

    def test_paying_twice_conflicts(self, client, seat_order, context_headers):
        seat_order("ORD-2", table_id="T1", status=OrderStatus.PAID)

        response = client.post(f"{API}/orders/ORD-2/payment", headers=context_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "invalid_state"
        assert "detail" in response.json()

    def test_status_endpoint_refuses_paid(self, client, seat_order, context_headers):
        seat_order("ORD-1", table_id="T2")
        response = client.post(f"{API}/orders/ORD-1/status", headers=context_headers, json={"status": "paid"})
        assert response.status_code == 409

    def test_line_item_endpoints(self, client, seat_order, context_headers):
        seat_order("ORD-1", table_id="T2")

        added = client.post(
            f"{API}/orders/ORD-1/items",
            headers=context_headers,
            json={"items": [{"menuItemId": "croissant", "quantity": 1}]},
        )
        removed = client.delete(f"{API}/orders/ORD-1/items/ORD-1-line", headers=context_headers)

        assert added.status_code == 200
        assert len(added.json()["items"]) == 2
        assert removed.status_code == 200
        assert [i["menuItemId"] for i in removed.json()["items"]] == ["croissant"]

    def test_list_by_status(self, client, seat_order, context_headers):
        seat_order("ORD-1", table_id="T2")
        seat_order("ORD-2", status=OrderStatus.PAID)
        response = client.get(f"{API}/orders/", headers=context_headers, params={"status": "open"})
        assert [o["id"] for o in response.json()] == ["ORD-1"]

    def test_missing_order(self, client, cafe, context_headers):
        response = client.get(f"{API}/orders/nope", headers=context_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


class TestBranchContext:
    """Requests without a valid tenant/branch pair are rejected."""

    def test_missing_headers(self, client, cafe):
        response = client.get(f"{API}/orders/")
        assert response.status_code == 400
        assert response.json()["code"] == "missing_context"

    def test_branch_of_another_tenant(self, client, cafe):
        response = client.get(f"{API}/orders/", headers={"X-Tenant-Id": "tenant-1", "X-Branch-Id": "branch-2"})
        assert response.status_code == 400
        assert response.json()["code"] == "missing_context"

    def test_unknown_branch(self, client, cafe):
        response = client.get(f"{API}/orders/", headers={"X-Tenant-Id": "tenant-1", "X-Branch-Id": "nowhere"})
        assert response.status_code == 400
