"""Order lifecycle — commands and handler.

Status transitions are driven by collaborators (payment, fulfillment, admin
tooling) through TransitionOrderStatus. Customers cancel through CancelOrder,
which is only accepted before processing starts.
"""

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class TransitionOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, max_length=20)
    tracking_number = String(max_length=100)
    actual_delivery_date = DateTime()
    notes = Text()


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = Text(required=True)


@ordering.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(TransitionOrderStatus)
    def transition_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        previous_status = order.status
        order.transition_status(
            command.new_status,
            tracking_number=command.tracking_number,
            actual_delivery_date=command.actual_delivery_date,
            notes=command.notes,
        )
        repo.add(order)

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            previous_status=previous_status,
            new_status=order.status,
        )

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.cancel(command.reason)
        repo.add(order)

        logger.info("Order cancelled", order_id=str(order.id), reason=command.reason)
