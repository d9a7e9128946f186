"""Order summary — lightweight listing/history view.

One row per order, kept current by the order events. Backs the paginated
"orders for a customer" listing.
"""

import math

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import (
    OrderChargesUpdated,
    OrderItemAdded,
    OrderItemQuantityChanged,
    OrderItemRemoved,
    OrderPlaced,
    OrderStatusChanged,
    PaymentRecorded,
)
from ordering.order.order import Order

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@ordering.projection
class OrderSummary:
    order_id = Identifier(identifier=True, required=True)
    order_number = String(required=True, max_length=50)
    user_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    payment_status = String(default="pending", max_length=20)
    item_count = Integer(default=0)
    total_amount = Float(default=0.0)
    currency = String(default="USD", max_length=3)
    tracking_number = String(max_length=100)
    created_at = DateTime()
    updated_at = DateTime()


@ordering.projector(projector_for=OrderSummary, aggregates=[Order])
class OrderSummaryProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(OrderSummary).add(
            OrderSummary(
                order_id=event.order_id,
                order_number=event.order_number,
                user_id=event.user_id,
                status="pending",
                payment_status="pending",
                item_count=0,
                total_amount=event.total_amount,
                currency=event.currency or "USD",
                created_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    @on(OrderItemAdded)
    def on_item_added(self, event):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(event.order_id)
        summary.item_count = (summary.item_count or 0) + 1
        summary.total_amount = event.new_total_amount
        repo.add(summary)

    @on(OrderItemRemoved)
    def on_item_removed(self, event):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(event.order_id)
        summary.item_count = max((summary.item_count or 1) - 1, 0)
        summary.total_amount = event.new_total_amount
        repo.add(summary)

    @on(OrderItemQuantityChanged)
    def on_item_quantity_changed(self, event):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(event.order_id)
        summary.total_amount = event.new_total_amount
        repo.add(summary)

    @on(OrderChargesUpdated)
    def on_charges_updated(self, event):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(event.order_id)
        summary.total_amount = event.new_total_amount
        repo.add(summary)

    @on(OrderStatusChanged)
    def on_status_changed(self, event):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(event.order_id)
        summary.status = event.new_status
        summary.tracking_number = event.tracking_number
        summary.updated_at = event.changed_at
        repo.add(summary)

    @on(PaymentRecorded)
    def on_payment_recorded(self, event):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(event.order_id)
        summary.payment_status = event.payment_status
        summary.updated_at = event.recorded_at
        repo.add(summary)


def orders_for_user(user_id, page=1, limit=DEFAULT_PAGE_SIZE, status=None):
    """Return one page of a customer's orders, newest first.

    The result carries the page of ``OrderSummary`` records plus a
    ``pagination`` block with ``total``, ``page``, ``pages`` and ``limit``.
    """
    page = max(int(page or 1), 1)
    limit = min(max(int(limit or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)

    filters = {"user_id": str(user_id)}
    if status:
        filters["status"] = status

    repo = current_domain.repository_for(OrderSummary)
    results = (
        repo._dao.query.filter(**filters)
        .order_by("-created_at")
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "orders": results.items,
        "pagination": {
            "total": results.total,
            "page": page,
            "pages": math.ceil(results.total / limit) if results.total else 0,
            "limit": limit,
        },
    }
