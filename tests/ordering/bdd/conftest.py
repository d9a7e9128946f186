"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from ordering.order.errors import InvalidStateError, InvalidTransitionError
from ordering.order.order import Order, OrderItem
from pytest_bdd import given, parsers, then, when

ADDRESS = {
    "street": "123 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
}


@pytest.fixture()
def error():
    """Container for the exception raised by a When step."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse("a pending order with shipping {shipping:f}, tax {tax:f} and discount {discount:f}"),
    target_fixture="order",
)
def _(shipping, tax, discount):
    order = Order.create(
        user_id="user-bdd-001",
        shipping_address=dict(ADDRESS),
        billing_address=dict(ADDRESS),
        shipping_method="standard",
        shipping_cost=shipping,
        tax_amount=tax,
        discount_amount=discount,
    )
    order._events.clear()
    return order


@given(parsers.cfparse("an item of {quantity:d} x {unit_price:f} with a discount of {discount:f}"))
def _(order, quantity, unit_price, discount):
    order.add_item(
        OrderItem.create(
            product_id="prod-bdd-001",
            product_name="Trail Running Shoe",
            product_sku="TRS-42-BLU",
            quantity=quantity,
            unit_price=unit_price,
            discount_amount=discount,
        )
    )


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the order moves to "{status}"'))
def _(order, error, status):
    try:
        order.transition_status(status)
    except (InvalidTransitionError, InvalidStateError) as exc:
        error["exc"] = exc


@when(parsers.cfparse('the order is shipped with tracking number "{tracking_number}"'))
def _(order, tracking_number):
    order.transition_status("shipped", tracking_number=tracking_number)


@when(parsers.cfparse("another item of {quantity:d} x {unit_price:f} is added"))
def _(order, error, quantity, unit_price):
    try:
        order.add_item(
            OrderItem.create(
                product_id="prod-bdd-002",
                product_name="Running Sock",
                product_sku="SCK-001",
                quantity=quantity,
                unit_price=unit_price,
            )
        )
    except InvalidStateError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the customer cancels with reason "{reason}"'))
def _(order, error, reason):
    try:
        order.cancel(reason)
    except InvalidStateError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert order.status == status


@then(parsers.cfparse("the order total is {total:f}"))
def _(order, total):
    assert order.total_amount == total


@then(parsers.cfparse("the item total is {total:f}"))
def _(order, total):
    assert order.items[0].total_price == total


@then(parsers.cfparse('the tracking number is "{tracking_number}"'))
def _(order, tracking_number):
    assert order.tracking_number == tracking_number


@then("the actual delivery date is set")
def _(order):
    assert order.actual_delivery_date is not None


@then(parsers.cfparse('the notes contain "{text}"'))
def _(order, text):
    assert text in order.notes


@then("the transition is rejected")
def _(error):
    assert isinstance(error["exc"], InvalidTransitionError)


@then("the change is rejected in the current status")
def _(error):
    assert isinstance(error["exc"], InvalidStateError)
