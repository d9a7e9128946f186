"""Order statistics projection — counts and revenue for the admin dashboard.

Keeps one record for the whole store (scope ``all``) and one per customer
(scope = user id). Revenue counts only orders currently in DELIVERED status:
it grows when an order is delivered and shrinks when a delivered order is
refunded.
"""

import json

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import OrderPlaced, OrderStatusChanged
from ordering.order.money import to_float, to_money
from ordering.order.order import Order, OrderStatus

ALL_ORDERS = "all"


@ordering.projection
class OrderStatistics:
    scope = String(identifier=True, required=True, max_length=50)
    total_orders = Integer(default=0)
    total_revenue = Float(default=0.0)
    status_breakdown = Text(default="{}")  # JSON: {status: count}

    def breakdown(self):
        return json.loads(self.status_breakdown or "{}")

    def shift_status(self, previous_status, new_status):
        counts = self.breakdown()
        if previous_status:
            counts[previous_status] = max(counts.get(previous_status, 0) - 1, 0)
            if counts[previous_status] == 0:
                del counts[previous_status]
        counts[new_status] = counts.get(new_status, 0) + 1
        self.status_breakdown = json.dumps(counts, sort_keys=True)

    def add_revenue(self, amount):
        self.total_revenue = to_float(to_money(self.total_revenue) + to_money(amount))


def _get_or_create(scope):
    repo = current_domain.repository_for(OrderStatistics)
    try:
        return repo.get(scope)
    except ObjectNotFoundError:
        return OrderStatistics(scope=scope, total_orders=0, total_revenue=0.0, status_breakdown="{}")


def _scopes(user_id):
    return [ALL_ORDERS, str(user_id)]


@ordering.projector(projector_for=OrderStatistics, aggregates=[Order])
class OrderStatisticsProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        repo = current_domain.repository_for(OrderStatistics)
        for scope in _scopes(event.user_id):
            record = _get_or_create(scope)
            record.total_orders = (record.total_orders or 0) + 1
            record.shift_status(None, OrderStatus.PENDING.value)
            repo.add(record)

    @on(OrderStatusChanged)
    def on_status_changed(self, event):
        delivered = OrderStatus.DELIVERED.value
        repo = current_domain.repository_for(OrderStatistics)
        for scope in _scopes(event.user_id):
            record = _get_or_create(scope)
            record.shift_status(event.previous_status, event.new_status)
            if event.new_status == delivered:
                record.add_revenue(event.total_amount)
            elif event.previous_status == delivered:
                record.add_revenue(-to_money(event.total_amount))
            repo.add(record)


def order_statistics(user_id=None):
    """Return ``total_orders``, ``total_revenue`` and ``status_breakdown``.

    Scoped to a single customer when ``user_id`` is given, otherwise to the
    whole store. A scope with no orders yields zeroed statistics.
    """
    scope = str(user_id) if user_id else ALL_ORDERS
    try:
        record = current_domain.repository_for(OrderStatistics).get(scope)
    except ObjectNotFoundError:
        return {"total_orders": 0, "total_revenue": 0.0, "status_breakdown": {}}

    return {
        "total_orders": record.total_orders or 0,
        "total_revenue": record.total_revenue or 0.0,
        "status_breakdown": record.breakdown(),
    }
