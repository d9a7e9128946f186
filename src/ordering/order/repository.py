"""Repository for the Order aggregate."""

from protean.exceptions import ObjectNotFoundError

from ordering.domain import ordering
from ordering.order.errors import NotFoundError
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    """Order persistence with order-number lookups.

    The base repository provides ``add``/``get``. Order numbers are also
    declared unique on the aggregate, so the provider rejects a duplicate
    that slips past ``is_order_number_taken``.
    """

    def load(self, order_id) -> Order:
        """Fetch an order, raising NotFoundError when it does not exist."""
        try:
            return self.get(order_id)
        except ObjectNotFoundError:
            raise NotFoundError({"order_id": [f"Order {order_id} not found"]}) from None

    def find_by_order_number(self, order_number: str) -> Order | None:
        results = self._dao.query.filter(order_number=order_number).all()
        return results.items[0] if results.items else None

    def is_order_number_taken(self, order_number: str) -> bool:
        return self.find_by_order_number(order_number) is not None
