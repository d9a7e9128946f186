"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    # Completeness is a domain rule; blank or missing parts come back as 400
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


class OrderItemSchema(BaseModel):
    product_id: str
    product_name: str
    product_sku: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)
    discount_amount: float = Field(ge=0, default=0.0)
    product_variant: dict | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    user_id: str
    items: list[OrderItemSchema]
    shipping_address: AddressSchema
    billing_address: AddressSchema
    shipping_method: str
    shipping_cost: float = Field(ge=0, default=0.0)
    tax_amount: float | None = Field(ge=0, default=None)
    tax_rate: float | None = Field(ge=0, le=1, default=None)
    discount_amount: float = Field(ge=0, default=0.0)
    currency: str = "USD"
    notes: str | None = None
    estimated_delivery_date: datetime | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": "user-001",
                    "items": [
                        {
                            "product_id": "prod-001",
                            "product_name": "Trail Running Shoe",
                            "product_sku": "TRS-42-BLU",
                            "quantity": 2,
                            "unit_price": 10.0,
                            "discount_amount": 1.0,
                            "product_variant": {"size": "42", "color": "blue"},
                        }
                    ],
                    "shipping_address": {
                        "street": "123 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "zip_code": "62701",
                        "country": "US",
                    },
                    "billing_address": {
                        "street": "123 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "zip_code": "62701",
                        "country": "US",
                    },
                    "shipping_method": "standard",
                    "shipping_cost": 5.0,
                    "tax_amount": 2.0,
                    "discount_amount": 3.0,
                }
            ]
        }
    }


class AddItemRequest(OrderItemSchema):
    pass


class UpdateItemQuantityRequest(BaseModel):
    new_quantity: int = Field(ge=1)


class UpdateChargesRequest(BaseModel):
    shipping_cost: float | None = Field(ge=0, default=None)
    tax_amount: float | None = Field(ge=0, default=None)
    discount_amount: float | None = Field(ge=0, default=None)


class UpdateStatusRequest(BaseModel):
    status: str
    tracking_number: str | None = None
    actual_delivery_date: datetime | None = None
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "shipped",
                    "tracking_number": "1Z999AA10123456784",
                }
            ]
        }
    }


class CancelOrderRequest(BaseModel):
    reason: str = Field(min_length=1)


class RecordPaymentRequest(BaseModel):
    payment_id: str | None = None
    payment_status: str


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class PlaceOrderResponse(BaseModel):
    order_id: str
    order_number: str


class ItemIdResponse(BaseModel):
    item_id: str


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    product_name: str
    product_sku: str
    quantity: int
    unit_price: float
    discount_amount: float
    total_price: float
    product_variant: dict | None = None


class OrderResponse(BaseModel):
    id: str
    order_number: str
    user_id: str
    status: str
    payment_status: str
    items: list[OrderItemResponse]
    shipping_address: AddressSchema
    billing_address: AddressSchema
    shipping_method: str
    shipping_cost: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    currency: str
    payment_id: str | None = None
    notes: str | None = None
    estimated_delivery_date: datetime | None = None
    actual_delivery_date: datetime | None = None
    tracking_number: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderSummaryResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str
    item_count: int
    total_amount: float
    currency: str
    tracking_number: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PaginationResponse(BaseModel):
    total: int
    page: int
    pages: int
    limit: int


class OrderListResponse(BaseModel):
    orders: list[OrderSummaryResponse]
    pagination: PaginationResponse


class OrderStatisticsResponse(BaseModel):
    total_orders: int
    total_revenue: float
    status_breakdown: dict[str, int]
