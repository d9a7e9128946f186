"""Order payment — command and handler.

Records the payment reference and status reported by the payment service.
Recording a payment never moves the order along its lifecycle; the payment
collaborator issues a separate TransitionOrderStatus for that.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class RecordPayment:
    order_id = Identifier(required=True)
    payment_id = Identifier()
    payment_status = String(required=True, max_length=20)


@ordering.command_handler(part_of=Order)
class RecordPaymentHandler:
    @handle(RecordPayment)
    def record_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.record_payment(
            payment_id=command.payment_id,
            payment_status=command.payment_status,
        )
        repo.add(order)
