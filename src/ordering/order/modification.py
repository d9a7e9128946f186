"""Order modification — commands and handler.

Handles item additions, removals, quantity updates and charge changes.
All modifications are only allowed while the order is PENDING.
"""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderItem


@ordering.command(part_of="Order")
class AddOrderItem:
    """Add a new line item to a pending order."""

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_sku = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    discount_amount = Float(default=0.0)
    product_variant = Text()  # JSON: attribute mapping


@ordering.command(part_of="Order")
class RemoveOrderItem:
    """Remove a line item from a pending order."""

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.command(part_of="Order")
class UpdateOrderItemQuantity:
    """Change the quantity of an existing line item."""

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="Order")
class UpdateOrderCharges:
    """Change shipping cost, tax or the order-level discount."""

    order_id = Identifier(required=True)
    shipping_cost = Float()
    tax_amount = Float()
    discount_amount = Float()


@ordering.command_handler(part_of=Order)
class ModifyOrderHandler:
    @handle(AddOrderItem)
    def add_item(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        item = order.add_item(
            OrderItem.create(
                product_id=command.product_id,
                product_name=command.product_name,
                product_sku=command.product_sku,
                quantity=command.quantity,
                unit_price=command.unit_price,
                discount_amount=command.discount_amount or 0.0,
                product_variant=json.loads(command.product_variant) if command.product_variant else None,
            )
        )
        repo.add(order)
        return str(item.id)

    @handle(RemoveOrderItem)
    def remove_item(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.remove_item(command.item_id)
        repo.add(order)

    @handle(UpdateOrderItemQuantity)
    def update_item_quantity(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.update_item_quantity(command.item_id, command.new_quantity)
        repo.add(order)

    @handle(UpdateOrderCharges)
    def update_charges(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.update_charges(
            shipping_cost=command.shipping_cost,
            tax_amount=command.tax_amount,
            discount_amount=command.discount_amount,
        )
        repo.add(order)
