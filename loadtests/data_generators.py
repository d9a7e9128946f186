"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the order domain's validation
rules (complete addresses, quantity >= 1, discount within line amount,
non-negative total) and match the field names expected by the API's
Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()

SHIPPING_METHODS = ["standard", "express", "overnight", "pickup"]


def user_id() -> str:
    """Generate user IDs like 'user-lt-a1b2c3d4'."""
    return f"user-lt-{uuid.uuid4().hex[:8]}"


def order_address() -> dict:
    """Generate an AddressSchema payload with every part present."""
    return {
        "street": fake.street_address()[:255],
        "city": fake.city()[:100],
        "state": fake.state_abbr(),
        "zip_code": fake.zipcode()[:20],
        "country": "US",
    }


def order_item() -> dict:
    """Generate an OrderItemSchema payload.

    The line discount never exceeds unit price times quantity.
    """
    quantity = random.randint(1, 4)
    unit_price = round(random.uniform(4.99, 199.99), 2)
    discount = round(random.uniform(0, unit_price * quantity * 0.2), 2) if random.random() < 0.3 else 0.0
    return {
        "product_id": f"prod-{uuid.uuid4().hex[:8]}",
        "product_name": fake.catch_phrase()[:255],
        "product_sku": f"SKU-{uuid.uuid4().hex[:8].upper()}",
        "quantity": quantity,
        "unit_price": unit_price,
        "discount_amount": discount,
        "product_variant": random.choice([None, {"size": random.choice(["S", "M", "L"])}]),
    }


def order_data(user: str | None = None, num_items: int = 2) -> dict:
    """Generate PlaceOrderRequest payload.

    The order-level discount stays below the shipping cost so the total can
    never go negative.
    """
    shipping_cost = round(random.uniform(0, 15.99), 2)
    address = order_address()
    return {
        "user_id": user or user_id(),
        "items": [order_item() for _ in range(num_items)],
        "shipping_address": address,
        "billing_address": random.choice([address, order_address()]),
        "shipping_method": random.choice(SHIPPING_METHODS),
        "shipping_cost": shipping_cost,
        "tax_amount": round(random.uniform(0, 25.0), 2),
        "discount_amount": round(random.uniform(0, shipping_cost), 2),
        "currency": "USD",
    }


def tracking_number() -> str:
    return f"TRK{uuid.uuid4().hex[:12].upper()}"


def cancellation_reason() -> str:
    return random.choice(
        [
            "Changed my mind",
            "Found a better price",
            "Ordered by mistake",
            "Delivery time too long",
        ]
    )
