"""Domain events for the Order aggregate.

Events are immutable facts raised by the aggregate on every state change.
They are dispatched when the unit of work commits and feed the order
read models (summary and statistics projections).
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A new order was created in Pending status."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    shipping_method = String(required=True)
    total_amount = Float(required=True)
    currency = String(default="USD")
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderItemAdded:
    """A line item was added to a pending order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    product_sku = String(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    item_total = Float(required=True)
    new_total_amount = Float(required=True)


@ordering.event(part_of="Order")
class OrderItemRemoved:
    """A line item was removed from a pending order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_total_amount = Float(required=True)


@ordering.event(part_of="Order")
class OrderItemQuantityChanged:
    """The quantity of a line item on a pending order changed."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    new_total_amount = Float(required=True)


@ordering.event(part_of="Order")
class OrderChargesUpdated:
    """Shipping cost, tax or order-level discount changed on a pending order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    shipping_cost = Float(required=True)
    tax_amount = Float(required=True)
    discount_amount = Float(required=True)
    new_total_amount = Float(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along its status lifecycle."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    total_amount = Float(required=True)
    tracking_number = String()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The customer cancelled the order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    reason = Text(required=True)
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentRecorded:
    """A payment reference/status was recorded against the order.

    Recording a payment never changes the order status; the payment
    collaborator transitions the order separately.
    """

    __version__ = "v1"

    order_id = Identifier(required=True)
    payment_id = Identifier()
    payment_status = String(required=True)
    recorded_at = DateTime(required=True)
