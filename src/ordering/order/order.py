"""Order aggregate — line items, totals, status lifecycle and payment recording.

The Order is a standard CQRS aggregate (not event sourced). Every state
change raises a domain event that read models consume when the unit of
work commits.

Totals are never derived implicitly: each mutating operation calls the
explicit recomputation methods (``OrderItem.recompute_total`` and
``Order.recompute_total_amount``), and an invariant checks that the stored
``total_amount`` always matches its components.

State Machine (7 states):
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED → REFUNDED
    CANCELLED (from PENDING, CONFIRMED, PROCESSING)
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.errors import InvalidStateError, InvalidTransitionError, NotFoundError
from ordering.order.events import (
    OrderCancelled,
    OrderChargesUpdated,
    OrderItemAdded,
    OrderItemQuantityChanged,
    OrderItemRemoved,
    OrderPlaced,
    OrderStatusChanged,
    PaymentRecorded,
)
from ordering.order.money import ZERO, to_float, to_money, total_of
from ordering.order.order_number import default_generator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}

# States from which the customer may cancel on their own
_CUSTOMER_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

# States in which a tracking number is meaningful
_TRACKABLE_STATES = {OrderStatus.SHIPPED, OrderStatus.DELIVERED}

ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")


# ---------------------------------------------------------------------------
# Pricing helpers
# ---------------------------------------------------------------------------
def line_amounts(quantity, unit_price, discount_amount):
    """Validate the pricing inputs of one line.

    Returns ``(unit_price, discount_amount, total_price)`` as cent-precision
    Decimals. Raises ``ValidationError`` with every failing field.
    """
    errors = {}
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        errors["quantity"] = ["Quantity must be a whole number of at least 1"]

    price = to_money(unit_price) if unit_price is not None else None
    if price is None or price < ZERO:
        errors["unit_price"] = ["Unit price must be zero or greater"]

    discount = to_money(discount_amount)
    if discount < ZERO:
        errors["discount_amount"] = ["Discount must be zero or greater"]

    if not errors and discount > price * quantity:
        errors["discount_amount"] = ["Discount cannot exceed unit price times quantity"]

    if errors:
        raise ValidationError(errors)

    return price, discount, price * quantity - discount


def order_total(item_totals, shipping_cost, tax_amount, discount_amount):
    """Σ item totals + shipping + tax − order-level discount (may be negative)."""
    return total_of(item_totals) + to_money(shipping_cost) + to_money(tax_amount) - to_money(discount_amount)


def _charges(shipping_cost, tax_amount, discount_amount):
    values = {
        "shipping_cost": to_money(shipping_cost),
        "tax_amount": to_money(tax_amount),
        "discount_amount": to_money(discount_amount),
    }
    errors = {
        name: [f"{name.replace('_', ' ').capitalize()} must be zero or greater"]
        for name, amount in values.items()
        if amount < ZERO
    }
    if errors:
        raise ValidationError(errors)
    return values


def _ensure_non_negative(total):
    if total < ZERO:
        raise ValidationError({"total_amount": [f"Order total cannot be negative (computed {total})"]})


def _missing_address_parts(data):
    if isinstance(data, Address):
        data = data.to_dict()
    if not isinstance(data, dict):
        return list(ADDRESS_FIELDS)
    return [name for name in ADDRESS_FIELDS if not str(data.get(name) or "").strip()]


def _append_note(existing, note):
    return f"{existing}\n{note}" if existing else note


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Address:
    """A delivery or billing address captured when the order is placed.

    Every part is mandatory. Once recorded on an Order the address is
    immutable; it represents where the order was shipped and billed,
    regardless of later changes to the customer's address book.
    """

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)

    @invariant.post
    def no_blank_parts(self):
        blank = [name for name in ADDRESS_FIELDS if not str(getattr(self, name) or "").strip()]
        if blank:
            raise ValidationError({"address": [f"Address is missing: {', '.join(blank)}"]})

    @classmethod
    def from_dict(cls, data, field_name="address"):
        if isinstance(data, cls):
            return data
        missing = _missing_address_parts(data)
        if missing:
            raise ValidationError(
                {field_name: [f"Complete {field_name.replace('_', ' ')} is required (missing: {', '.join(missing)})"]}
            )
        return cls(**{name: str(data[name]).strip() for name in ADDRESS_FIELDS})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """One product line of an order.

    Product id, name and SKU are a snapshot of the catalogue at order time
    and never change afterwards. ``total_price`` is derived from quantity,
    unit price and line discount and is recomputed by every mutation.
    """

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_sku = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    total_price = Float(default=0.0, min_value=0.0)
    product_variant = Text()  # JSON: attribute mapping, e.g. {"size": "M"}
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def discount_cannot_exceed_line_amount(self):
        if self.quantity is None or self.unit_price is None:
            return
        if to_money(self.discount_amount) > to_money(self.unit_price) * self.quantity:
            raise ValidationError({"discount_amount": ["Discount cannot exceed unit price times quantity"]})

    @invariant.post
    def total_price_matches_line_amounts(self):
        if self.quantity is None or self.unit_price is None or self.total_price is None:
            return
        expected = to_money(self.unit_price) * self.quantity - to_money(self.discount_amount)
        if to_money(self.total_price) != expected:
            raise ValidationError(
                {"total_price": [f"Total price {self.total_price} does not match line amounts ({expected})"]}
            )

    @classmethod
    def create(
        cls,
        product_id,
        product_name,
        product_sku,
        quantity,
        unit_price,
        discount_amount=0.0,
        product_variant=None,
    ):
        price, discount, total = line_amounts(quantity, unit_price, discount_amount)
        now = datetime.now(UTC)
        return cls(
            product_id=product_id,
            product_name=product_name,
            product_sku=product_sku,
            quantity=quantity,
            unit_price=to_float(price),
            discount_amount=to_float(discount),
            total_price=to_float(total),
            product_variant=json.dumps(product_variant) if product_variant else None,
            created_at=now,
            updated_at=now,
        )

    def variant_attributes(self):
        return json.loads(self.product_variant) if self.product_variant else {}

    def recompute_total(self):
        """Set ``total_price = unit_price * quantity - discount_amount``."""
        _, _, total = line_amounts(self.quantity, self.unit_price, self.discount_amount)
        self.total_price = to_float(total)
        return self.total_price

    def _reprice(self, quantity, unit_price, discount_amount):
        price, discount, total = line_amounts(quantity, unit_price, discount_amount)
        # Inputs and total move together; the line invariants run once on exit
        with atomic_change(self):
            self.quantity = quantity
            self.unit_price = to_float(price)
            self.discount_amount = to_float(discount)
            self.total_price = to_float(total)
            self.updated_at = datetime.now(UTC)
        return self.total_price

    def change_quantity(self, quantity):
        return self._reprice(quantity, self.unit_price, self.discount_amount)

    def change_unit_price(self, unit_price):
        return self._reprice(self.quantity, unit_price, self.discount_amount)

    def apply_discount(self, discount_amount):
        return self._reprice(self.quantity, self.unit_price, discount_amount)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    order_number = String(required=True, max_length=50, unique=True)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    payment_status = String(
        choices=PaymentStatus,
        default=PaymentStatus.PENDING.value,
    )
    items = HasMany(OrderItem)
    shipping_address = ValueObject(Address, required=True)
    billing_address = ValueObject(Address, required=True)
    shipping_method = String(required=True, max_length=100)
    shipping_cost = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    total_amount = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="USD")
    payment_id = Identifier()
    notes = Text()
    estimated_delivery_date = DateTime()
    actual_delivery_date = DateTime()
    tracking_number = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_amount_matches_components(self):
        if self.total_amount is None:
            return
        expected = self.computed_total()
        if to_money(self.total_amount) != expected:
            raise ValidationError(
                {"total_amount": [f"Total {to_money(self.total_amount)} does not match items and charges ({expected})"]}
            )

    @invariant.post
    def currency_is_three_letter_code(self):
        if self.currency is not None and not (len(self.currency) == 3 and self.currency.isalpha()):
            raise ValidationError({"currency": ["Currency must be a 3-letter code"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        user_id,
        shipping_address,
        billing_address,
        shipping_method,
        currency="USD",
        order_number=None,
        shipping_cost=0.0,
        tax_amount=0.0,
        discount_amount=0.0,
        notes=None,
        estimated_delivery_date=None,
        number_generator=None,
    ):
        """Create a new pending order with no items.

        Charges given here are checked against an empty order, so an
        order-level discount larger than shipping plus tax belongs in
        ``update_charges`` after the items are added.

        Args:
            user_id: The purchasing account.
            shipping_address: Dict (or Address) with street, city, state, zip_code, country.
            billing_address: Dict (or Address) with the same parts.
            shipping_method: Carrier service name, e.g. "standard".
            order_number: Explicit number; generated when omitted.
            number_generator: Source of order numbers, defaults to the module generator.
        """
        errors = {}
        for field_name, data in (("shipping_address", shipping_address), ("billing_address", billing_address)):
            missing = _missing_address_parts(data)
            if missing:
                errors[field_name] = [
                    f"Complete {field_name.replace('_', ' ')} is required (missing: {', '.join(missing)})"
                ]
        if not shipping_method or not str(shipping_method).strip():
            errors["shipping_method"] = ["Shipping method is required"]
        if errors:
            raise ValidationError(errors)

        charges = _charges(shipping_cost, tax_amount, discount_amount)
        total = order_total([], **charges)
        _ensure_non_negative(total)

        now = datetime.now(UTC)
        generator = number_generator or default_generator

        order = cls(
            user_id=user_id,
            order_number=order_number or generator.generate(),
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            shipping_address=Address.from_dict(shipping_address, "shipping_address"),
            billing_address=Address.from_dict(billing_address, "billing_address"),
            shipping_method=str(shipping_method).strip(),
            shipping_cost=to_float(charges["shipping_cost"]),
            tax_amount=to_float(charges["tax_amount"]),
            discount_amount=to_float(charges["discount_amount"]),
            total_amount=to_float(total),
            currency=(currency or "USD").upper(),
            notes=notes,
            estimated_delivery_date=estimated_delivery_date,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id),
                shipping_method=order.shipping_method,
                total_amount=order.total_amount,
                currency=order.currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_pending(self, message):
        current = OrderStatus(self.status)
        if current != OrderStatus.PENDING:
            raise InvalidStateError({"status": [f"{message} (order is {current.value})"]})

    def _find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise NotFoundError({"item_id": [f"Item {item_id} not found on order {self.order_number}"]})
        return item

    def subtotal(self):
        """Sum of line totals as a Decimal."""
        return total_of(item.total_price for item in self.items)

    def tax_at_rate(self, rate, shipping_cost=0.0, discount_amount=0.0):
        """Tax on (subtotal − discount + shipping), never below zero."""
        base = self.subtotal() - to_money(discount_amount) + to_money(shipping_cost)
        return to_money(max(base, ZERO) * Decimal(str(rate)))

    def computed_total(self):
        return order_total(
            [item.total_price for item in self.items],
            self.shipping_cost,
            self.tax_amount,
            self.discount_amount,
        )

    def recompute_total_amount(self):
        """Set ``total_amount`` from items and charges.

        A negative result is a business-rule violation and raises
        ``ValidationError``; it is never clamped to zero.
        """
        total = self.computed_total()
        _ensure_non_negative(total)
        self.total_amount = to_float(total)
        return self.total_amount

    # -------------------------------------------------------------------
    # Item management (only in PENDING state)
    # -------------------------------------------------------------------
    def add_item(self, item):
        """Attach an OrderItem. Only allowed while the order is pending."""
        self._assert_pending("Items can only be added while the order is pending")

        item.recompute_total()
        projected = order_total(
            [i.total_price for i in self.items] + [item.total_price],
            self.shipping_cost,
            self.tax_amount,
            self.discount_amount,
        )
        _ensure_non_negative(projected)

        with atomic_change(self):
            self.add_items(item)
            self.recompute_total_amount()
            self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderItemAdded(
                order_id=str(self.id),
                item_id=str(item.id),
                product_id=str(item.product_id),
                product_sku=item.product_sku,
                quantity=item.quantity,
                unit_price=item.unit_price,
                item_total=item.total_price,
                new_total_amount=self.total_amount,
            )
        )
        return item

    def remove_item(self, item_id):
        """Detach an OrderItem. Only allowed while the order is pending."""
        self._assert_pending("Items can only be removed while the order is pending")
        item = self._find_item(item_id)

        projected = order_total(
            [i.total_price for i in self.items if str(i.id) != str(item.id)],
            self.shipping_cost,
            self.tax_amount,
            self.discount_amount,
        )
        _ensure_non_negative(projected)

        with atomic_change(self):
            self.remove_items(item)
            self.recompute_total_amount()
            self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderItemRemoved(
                order_id=str(self.id),
                item_id=str(item_id),
                new_total_amount=self.total_amount,
            )
        )

    def update_item_quantity(self, item_id, quantity):
        """Change a line's quantity. Only allowed while the order is pending."""
        self._assert_pending("Item quantities can only be changed while the order is pending")
        item = self._find_item(item_id)

        _, _, new_line_total = line_amounts(quantity, item.unit_price, item.discount_amount)
        projected = order_total(
            [new_line_total if str(i.id) == str(item.id) else i.total_price for i in self.items],
            self.shipping_cost,
            self.tax_amount,
            self.discount_amount,
        )
        _ensure_non_negative(projected)

        previous_quantity = item.quantity
        with atomic_change(self):
            item.change_quantity(quantity)
            self.recompute_total_amount()
            self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderItemQuantityChanged(
                order_id=str(self.id),
                item_id=str(item.id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
                new_total_amount=self.total_amount,
            )
        )

    def update_charges(self, shipping_cost=None, tax_amount=None, discount_amount=None):
        """Change shipping cost, tax or order-level discount while pending."""
        self._assert_pending("Charges can only be changed while the order is pending")

        charges = _charges(
            self.shipping_cost if shipping_cost is None else shipping_cost,
            self.tax_amount if tax_amount is None else tax_amount,
            self.discount_amount if discount_amount is None else discount_amount,
        )
        projected = order_total([i.total_price for i in self.items], **charges)
        _ensure_non_negative(projected)

        with atomic_change(self):
            self.shipping_cost = to_float(charges["shipping_cost"])
            self.tax_amount = to_float(charges["tax_amount"])
            self.discount_amount = to_float(charges["discount_amount"])
            self.recompute_total_amount()
            self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderChargesUpdated(
                order_id=str(self.id),
                shipping_cost=self.shipping_cost,
                tax_amount=self.tax_amount,
                discount_amount=self.discount_amount,
                new_total_amount=self.total_amount,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def transition_status(self, new_status, tracking_number=None, actual_delivery_date=None, notes=None):
        """Move the order along the status lifecycle.

        Raises InvalidTransitionError for any transition outside the table.
        Entering SHIPPED records the tracking number when supplied; entering
        DELIVERED stamps ``actual_delivery_date`` unless one is already set.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {new_status}"]}) from None

        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidTransitionError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

        if target == OrderStatus.CONFIRMED and not self.items:
            raise InvalidStateError({"items": ["An order must contain at least one item to be confirmed"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = target.value
            if tracking_number and target in _TRACKABLE_STATES:
                self.tracking_number = tracking_number
            if target == OrderStatus.DELIVERED and self.actual_delivery_date is None:
                self.actual_delivery_date = actual_delivery_date or now
            if notes:
                self.notes = _append_note(self.notes, notes)
            self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                user_id=str(self.user_id),
                previous_status=current.value,
                new_status=target.value,
                total_amount=self.total_amount,
                tracking_number=self.tracking_number,
                changed_at=now,
            )
        )

    def cancel(self, reason):
        """Customer cancellation, allowed only before processing starts."""
        if not reason or not str(reason).strip():
            raise ValidationError({"reason": ["Cancellation reason is required"]})

        current = OrderStatus(self.status)
        if current not in _CUSTOMER_CANCELLABLE_STATES:
            raise InvalidStateError({"status": [f"Order cannot be cancelled in {current.value} status"]})

        self.transition_status(OrderStatus.CANCELLED, notes=f"Cancellation reason: {reason}")
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                cancelled_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment(self, payment_id, payment_status):
        """Record the payment reference and status.

        Does not transition the order: the payment collaborator decides
        when to confirm (or cancel) via ``transition_status``.
        """
        try:
            status = PaymentStatus(payment_status)
        except ValueError:
            raise ValidationError({"payment_status": [f"Unknown payment status: {payment_status}"]}) from None

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_id = payment_id
            self.payment_status = status.value
            self.updated_at = now

        self.raise_(
            PaymentRecorded(
                order_id=str(self.id),
                payment_id=str(payment_id) if payment_id else None,
                payment_status=status.value,
                recorded_at=now,
            )
        )
