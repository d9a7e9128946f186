"""FastAPI routes for the Ordering domain — orders."""

import json

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddItemRequest,
    CancelOrderRequest,
    ItemIdResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatisticsResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    RecordPaymentRequest,
    StatusResponse,
    UpdateChargesRequest,
    UpdateItemQuantityRequest,
    UpdateStatusRequest,
)
from ordering.order.creation import PlaceOrder
from ordering.order.lifecycle import CancelOrder, TransitionOrderStatus
from ordering.order.modification import (
    AddOrderItem,
    RemoveOrderItem,
    UpdateOrderCharges,
    UpdateOrderItemQuantity,
)
from ordering.order.order import Order
from ordering.order.payment import RecordPayment
from ordering.projections.order_statistics import order_statistics
from ordering.projections.order_summary import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, orders_for_user

order_router = APIRouter(prefix="/orders", tags=["orders"])


def _order_response(order) -> OrderResponse:
    return OrderResponse(
        id=str(order.id),
        order_number=order.order_number,
        user_id=str(order.user_id),
        status=order.status,
        payment_status=order.payment_status,
        items=[
            {
                "id": str(item.id),
                "product_id": str(item.product_id),
                "product_name": item.product_name,
                "product_sku": item.product_sku,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "discount_amount": item.discount_amount,
                "total_price": item.total_price,
                "product_variant": item.variant_attributes() or None,
            }
            for item in order.items
        ],
        shipping_address=order.shipping_address.to_dict(),
        billing_address=order.billing_address.to_dict(),
        shipping_method=order.shipping_method,
        shipping_cost=order.shipping_cost,
        tax_amount=order.tax_amount,
        discount_amount=order.discount_amount,
        total_amount=order.total_amount,
        currency=order.currency,
        payment_id=str(order.payment_id) if order.payment_id else None,
        notes=order.notes,
        estimated_delivery_date=order.estimated_delivery_date,
        actual_delivery_date=order.actual_delivery_date,
        tracking_number=order.tracking_number,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
@order_router.get("/admin/statistics", response_model=OrderStatisticsResponse)
async def get_order_statistics(user_id: str | None = None) -> OrderStatisticsResponse:
    return OrderStatisticsResponse(**order_statistics(user_id))


@order_router.get("/user/{user_id}", response_model=OrderListResponse)
async def list_user_orders(
    user_id: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status: str | None = None,
) -> OrderListResponse:
    result = orders_for_user(user_id, page=page, limit=limit, status=status)
    return OrderListResponse(
        orders=[
            {
                "order_id": str(summary.order_id),
                "order_number": summary.order_number,
                "status": summary.status,
                "payment_status": summary.payment_status,
                "item_count": summary.item_count,
                "total_amount": summary.total_amount,
                "currency": summary.currency,
                "tracking_number": summary.tracking_number,
                "created_at": summary.created_at,
                "updated_at": summary.updated_at,
            }
            for summary in result["orders"]
        ],
        pagination=result["pagination"],
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).load(order_id)
    return _order_response(order)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@order_router.post("", status_code=201, response_model=PlaceOrderResponse)
async def place_order(body: PlaceOrderRequest) -> PlaceOrderResponse:
    command = PlaceOrder(
        user_id=body.user_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        billing_address=json.dumps(body.billing_address.model_dump()),
        shipping_method=body.shipping_method,
        shipping_cost=body.shipping_cost,
        tax_amount=body.tax_amount,
        tax_rate=body.tax_rate,
        discount_amount=body.discount_amount,
        currency=body.currency,
        notes=body.notes,
        estimated_delivery_date=body.estimated_delivery_date,
    )
    order_id = current_domain.process(command, asynchronous=False)
    order = current_domain.repository_for(Order).load(order_id)
    return PlaceOrderResponse(order_id=order_id, order_number=order.order_number)


@order_router.patch("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateStatusRequest) -> StatusResponse:
    command = TransitionOrderStatus(
        order_id=order_id,
        new_status=body.status,
        tracking_number=body.tracking_number,
        actual_delivery_date=body.actual_delivery_date,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.patch("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/items", status_code=201, response_model=ItemIdResponse)
async def add_order_item(order_id: str, body: AddItemRequest) -> ItemIdResponse:
    command = AddOrderItem(
        order_id=order_id,
        product_id=body.product_id,
        product_name=body.product_name,
        product_sku=body.product_sku,
        quantity=body.quantity,
        unit_price=body.unit_price,
        discount_amount=body.discount_amount,
        product_variant=json.dumps(body.product_variant) if body.product_variant else None,
    )
    item_id = current_domain.process(command, asynchronous=False)
    return ItemIdResponse(item_id=item_id)


@order_router.put("/{order_id}/items/{item_id}", response_model=StatusResponse)
async def update_order_item_quantity(order_id: str, item_id: str, body: UpdateItemQuantityRequest) -> StatusResponse:
    command = UpdateOrderItemQuantity(
        order_id=order_id,
        item_id=item_id,
        new_quantity=body.new_quantity,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.delete("/{order_id}/items/{item_id}", response_model=StatusResponse)
async def remove_order_item(order_id: str, item_id: str) -> StatusResponse:
    command = RemoveOrderItem(
        order_id=order_id,
        item_id=item_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/charges", response_model=StatusResponse)
async def update_order_charges(order_id: str, body: UpdateChargesRequest) -> StatusResponse:
    command = UpdateOrderCharges(
        order_id=order_id,
        shipping_cost=body.shipping_cost,
        tax_amount=body.tax_amount,
        discount_amount=body.discount_amount,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/payment", response_model=StatusResponse)
async def record_order_payment(order_id: str, body: RecordPaymentRequest) -> StatusResponse:
    command = RecordPayment(
        order_id=order_id,
        payment_id=body.payment_id,
        payment_status=body.payment_status,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
