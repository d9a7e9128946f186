"""Tests for customer cancellation."""

import pytest
from ordering.order.errors import InvalidStateError
from ordering.order.events import OrderCancelled, OrderStatusChanged
from ordering.order.order import Order, OrderItem
from protean.exceptions import ValidationError

ADDRESS = {
    "street": "1 Elm St",
    "city": "Portland",
    "state": "OR",
    "zip_code": "97201",
    "country": "US",
}


def _make_order(notes=None):
    order = Order.create(
        user_id="user-002",
        shipping_address=ADDRESS,
        billing_address=ADDRESS,
        shipping_method="express",
        notes=notes,
    )
    order.add_item(
        OrderItem.create(
            product_id="prod-002",
            product_name="Lamp",
            product_sku="LMP-001",
            quantity=1,
            unit_price=40.0,
        )
    )
    return order


class TestCancelOrder:
    def test_cancel_pending_order(self):
        order = _make_order()
        order.cancel("Changed my mind")
        assert order.status == "cancelled"

    def test_cancel_confirmed_order(self):
        order = _make_order()
        order.transition_status("confirmed")
        order.cancel("Found it cheaper")
        assert order.status == "cancelled"

    def test_reason_is_appended_to_notes(self):
        order = _make_order(notes="Leave at the door")
        order.cancel("Changed my mind")
        assert order.notes == "Leave at the door\nCancellation reason: Changed my mind"

    def test_reason_becomes_notes_when_empty(self):
        order = _make_order()
        order.cancel("Duplicate order")
        assert order.notes == "Cancellation reason: Duplicate order"

    def test_raises_status_changed_and_cancelled_events(self):
        order = _make_order()
        order._events.clear()
        order.cancel("Changed my mind")
        assert [type(e) for e in order._events] == [OrderStatusChanged, OrderCancelled]
        assert order._events[1].reason == "Changed my mind"

    @pytest.mark.parametrize("path", [["confirmed", "processing"], ["confirmed", "processing", "shipped"]])
    def test_cannot_cancel_once_processing_started(self, path):
        order = _make_order()
        for status in path:
            order.transition_status(status)
        with pytest.raises(InvalidStateError):
            order.cancel("Too late")
        assert order.status == path[-1]

    def test_cannot_cancel_twice(self):
        order = _make_order()
        order.cancel("Changed my mind")
        with pytest.raises(InvalidStateError):
            order.cancel("Again")

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_reason_is_required(self, reason):
        order = _make_order()
        with pytest.raises(ValidationError):
            order.cancel(reason)
        assert order.status == "pending"

    def test_processing_order_can_still_be_cancelled_administratively(self):
        order = _make_order()
        order.transition_status("confirmed")
        order.transition_status("processing")
        order.transition_status("cancelled")
        assert order.status == "cancelled"
