"""Order placement — command and handler.

Builds the order and its items from a checkout payload whose item entries
already carry the catalogue snapshot (product id, name, SKU, unit price).
Order-level charges are applied after the items, so a discount is always
weighed against the full subtotal.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.errors import UniquenessConflict
from ordering.order.money import ZERO, to_float, to_money
from ordering.order.order import Order, OrderItem
from ordering.order.order_number import default_generator

logger = structlog.get_logger(__name__)

# Swappable in tests to force collisions
order_numbers = default_generator


@ordering.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item dicts
    shipping_address = Text(required=True)  # JSON: address dict
    billing_address = Text(required=True)  # JSON: address dict
    shipping_method = String(required=True, max_length=100)
    shipping_cost = Float(default=0.0)
    tax_amount = Float()  # Takes precedence over tax_rate
    tax_rate = Float()  # Fraction of (subtotal - discount + shipping)
    discount_amount = Float(default=0.0)
    currency = String(max_length=3, default="USD")
    notes = Text()
    estimated_delivery_date = DateTime()
    order_number = String(max_length=50)  # Optional: generated when absent


def _load_json(value):
    return json.loads(value) if isinstance(value, str) else value


def _is_order_number_conflict(exc):
    return isinstance(exc.messages, dict) and "order_number" in exc.messages


def _build_order(command, items_data, order_number):
    order = Order.create(
        user_id=command.user_id,
        shipping_address=_load_json(command.shipping_address),
        billing_address=_load_json(command.billing_address),
        shipping_method=command.shipping_method,
        currency=command.currency or "USD",
        order_number=order_number,
        notes=command.notes,
        estimated_delivery_date=command.estimated_delivery_date,
    )

    for item_data in items_data:
        order.add_item(
            OrderItem.create(
                product_id=item_data["product_id"],
                product_name=item_data["product_name"],
                product_sku=item_data["product_sku"],
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
                discount_amount=item_data.get("discount_amount", 0.0),
                product_variant=item_data.get("product_variant"),
            )
        )

    shipping_cost = command.shipping_cost or 0.0
    discount_amount = command.discount_amount or 0.0
    if command.tax_amount is not None:
        tax_amount = command.tax_amount
    elif command.tax_rate is not None:
        if command.tax_rate < 0:
            raise ValidationError({"tax_rate": ["Tax rate must be zero or greater"]})
        tax_amount = to_float(order.tax_at_rate(command.tax_rate, shipping_cost, discount_amount))
    else:
        tax_amount = 0.0

    if any(to_money(amount) != ZERO for amount in (shipping_cost, tax_amount, discount_amount)):
        order.update_charges(
            shipping_cost=shipping_cost,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
        )
    return order


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        """Persist a new pending order and return its id.

        An explicitly requested order number is never replaced. A generated
        number is regenerated exactly once when it collides, whether the
        collision is seen up front or when the order is saved; a second
        collision surfaces as ``UniquenessConflict`` for the client to retry.
        """
        items_data = _load_json(command.items) or []
        if not items_data:
            raise ValidationError({"items": ["At least one item is required"]})

        repo = current_domain.repository_for(Order)
        requested = command.order_number

        for attempt in range(2):
            order_number = requested or order_numbers.generate()
            if not repo.is_order_number_taken(order_number):
                order = _build_order(command, items_data, order_number)
                try:
                    repo.add(order)
                except ValidationError as exc:
                    if not _is_order_number_conflict(exc):
                        raise
                else:
                    break

            if requested:
                raise UniquenessConflict({"order_number": [f"Order number {requested} is already in use"]})
            if attempt == 0:
                logger.warning("Order number collision, regenerating", order_number=order_number)
        else:
            raise UniquenessConflict(
                {"order_number": [f"Order number {order_number} is already in use after retry"]}
            )

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id),
            item_count=len(order.items),
            total_amount=order.total_amount,
        )
        return str(order.id)
