"""Application tests for order placement via domain.process()."""

import json

import pytest
from ordering.order import creation
from ordering.order.creation import PlaceOrder
from ordering.order.errors import UniquenessConflict
from ordering.order.order import Order, OrderStatus
from ordering.order.repository import OrderRepository
from protean import current_domain
from protean.exceptions import ValidationError

ADDRESS = {
    "street": "123 Main St",
    "city": "Anytown",
    "state": "CA",
    "zip_code": "90210",
    "country": "US",
}


class ScriptedNumbers:
    """Order number source that hands out a fixed sequence."""

    def __init__(self, *numbers):
        self.numbers = list(numbers)
        self.calls = 0

    def generate(self):
        self.calls += 1
        return self.numbers.pop(0) if len(self.numbers) > 1 else self.numbers[0]


def _place_order(**overrides):
    defaults = {
        "user_id": "user-001",
        "items": json.dumps(
            [
                {
                    "product_id": "prod-001",
                    "product_name": "Widget",
                    "product_sku": "WID-001",
                    "quantity": 2,
                    "unit_price": 10.0,
                    "discount_amount": 1.0,
                },
            ]
        ),
        "shipping_address": json.dumps(ADDRESS),
        "billing_address": json.dumps(ADDRESS),
        "shipping_method": "standard",
        "shipping_cost": 5.0,
        "tax_amount": 2.0,
        "discount_amount": 3.0,
    }
    defaults.update(overrides)
    return current_domain.process(PlaceOrder(**defaults), asynchronous=False)


class TestPlaceOrderFlow:
    def test_returns_order_id(self):
        assert _place_order() is not None

    def test_order_is_persisted(self):
        order_id = _place_order()
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.PENDING.value
        assert str(order.user_id) == "user-001"
        assert order.order_number.startswith("ORD-")

    def test_items_and_totals_are_persisted(self):
        order_id = _place_order()
        order = current_domain.repository_for(Order).get(order_id)
        assert len(order.items) == 1
        assert order.items[0].total_price == 19.0
        assert order.total_amount == 23.0

    def test_multiple_items(self):
        items = [
            {"product_id": "p1", "product_name": "A", "product_sku": "A-1", "quantity": 1, "unit_price": 0.1},
            {"product_id": "p2", "product_name": "B", "product_sku": "B-1", "quantity": 2, "unit_price": 0.2},
        ]
        order_id = _place_order(items=json.dumps(items), shipping_cost=0.0, tax_amount=0.0, discount_amount=0.0)
        order = current_domain.repository_for(Order).get(order_id)
        assert len(order.items) == 2
        assert order.total_amount == 0.5

    def test_product_variant_is_kept(self):
        items = [
            {
                "product_id": "p1",
                "product_name": "Shirt",
                "product_sku": "SH-M",
                "quantity": 1,
                "unit_price": 20.0,
                "product_variant": {"size": "M"},
            }
        ]
        order_id = _place_order(items=json.dumps(items))
        order = current_domain.repository_for(Order).get(order_id)
        assert order.items[0].variant_attributes() == {"size": "M"}

    def test_order_number_lookup(self):
        order_id = _place_order(order_number="ORD-1700000000000-001")
        repo = current_domain.repository_for(Order)
        assert str(repo.find_by_order_number("ORD-1700000000000-001").id) == order_id
        assert repo.is_order_number_taken("ORD-1700000000000-001")
        assert not repo.is_order_number_taken("ORD-0-000")


class TestPlaceOrderValidation:
    def test_empty_items(self):
        with pytest.raises(ValidationError) as exc:
            _place_order(items=json.dumps([]))
        assert "items" in exc.value.messages

    def test_incomplete_shipping_address(self):
        with pytest.raises(ValidationError) as exc:
            _place_order(shipping_address=json.dumps(dict(ADDRESS, street="")))
        assert "shipping_address" in exc.value.messages

    def test_invalid_item_quantity(self):
        items = [{"product_id": "p1", "product_name": "A", "product_sku": "A-1", "quantity": 0, "unit_price": 1.0}]
        with pytest.raises(ValidationError):
            _place_order(items=json.dumps(items))

    def test_negative_total(self):
        with pytest.raises(ValidationError) as exc:
            _place_order(discount_amount=100.0)
        assert "total_amount" in exc.value.messages

    def test_failed_placement_persists_nothing(self):
        with pytest.raises(ValidationError):
            _place_order(discount_amount=100.0)
        assert current_domain.repository_for(Order)._dao.query.all().total == 0


WIDGETS = json.dumps(
    [{"product_id": "p1", "product_name": "Widget", "product_sku": "WID-001", "quantity": 2, "unit_price": 50.0}]
)


class TestPlaceOrderCharges:
    def test_order_discount_is_weighed_against_items(self):
        order_id = _place_order(items=WIDGETS, shipping_cost=0.0, tax_amount=0.0, discount_amount=10.0)
        order = current_domain.repository_for(Order).get(order_id)
        assert order.discount_amount == 10.0
        assert order.total_amount == 90.0

    def test_charges_default_to_zero(self):
        order_id = _place_order(items=WIDGETS, shipping_cost=None, tax_amount=None, discount_amount=None)
        order = current_domain.repository_for(Order).get(order_id)
        assert (order.shipping_cost, order.tax_amount, order.discount_amount) == (0.0, 0.0, 0.0)
        assert order.total_amount == 100.0

    def test_tax_is_computed_from_rate(self):
        order_id = _place_order(
            items=WIDGETS, shipping_cost=5.0, tax_amount=None, tax_rate=0.08, discount_amount=10.0
        )
        order = current_domain.repository_for(Order).get(order_id)
        # (100 - 10 + 5) * 0.08
        assert order.tax_amount == 7.6
        assert order.total_amount == 102.6

    def test_tax_rate_rounds_half_up_to_cents(self):
        items = json.dumps(
            [{"product_id": "p1", "product_name": "A", "product_sku": "A-1", "quantity": 1, "unit_price": 0.5}]
        )
        order_id = _place_order(items=items, shipping_cost=0.0, tax_amount=None, tax_rate=0.25, discount_amount=0.0)
        order = current_domain.repository_for(Order).get(order_id)
        assert order.tax_amount == 0.13
        assert order.total_amount == 0.63

    def test_explicit_tax_amount_wins_over_rate(self):
        order_id = _place_order(items=WIDGETS, shipping_cost=0.0, tax_amount=3.0, tax_rate=0.08, discount_amount=0.0)
        order = current_domain.repository_for(Order).get(order_id)
        assert order.tax_amount == 3.0
        assert order.total_amount == 103.0

    def test_negative_tax_rate_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _place_order(items=WIDGETS, tax_amount=None, tax_rate=-0.1)
        assert "tax_rate" in exc.value.messages


class TestOrderNumberCollisions:
    def test_collision_is_retried_once(self, monkeypatch):
        _place_order(order_number="ORD-1-001")
        numbers = ScriptedNumbers("ORD-1-001", "ORD-2-002")
        monkeypatch.setattr(creation, "order_numbers", numbers)

        order_id = _place_order()

        order = current_domain.repository_for(Order).get(order_id)
        assert order.order_number == "ORD-2-002"
        assert numbers.calls == 2

    def test_second_collision_surfaces_conflict(self, monkeypatch):
        _place_order(order_number="ORD-1-001")
        numbers = ScriptedNumbers("ORD-1-001")
        monkeypatch.setattr(creation, "order_numbers", numbers)

        with pytest.raises(UniquenessConflict):
            _place_order()
        assert numbers.calls == 2

    def test_taken_explicit_number_is_not_regenerated(self, monkeypatch):
        _place_order(order_number="ORD-1-001")
        numbers = ScriptedNumbers("ORD-9-009")
        monkeypatch.setattr(creation, "order_numbers", numbers)

        with pytest.raises(UniquenessConflict):
            _place_order(order_number="ORD-1-001")
        assert numbers.calls == 0

    def test_distinct_orders_get_distinct_numbers(self, monkeypatch):
        monkeypatch.setattr(creation, "order_numbers", ScriptedNumbers("ORD-1-001", "ORD-2-002", "ORD-3-003"))
        first = current_domain.repository_for(Order).get(_place_order())
        second = current_domain.repository_for(Order).get(_place_order())
        assert first.order_number != second.order_number


class TestOrderNumberConflictsOnSave:
    """The lookup can miss a number another request saves in the meantime."""

    @pytest.fixture(autouse=True)
    def lookup_misses(self, monkeypatch):
        monkeypatch.setattr(OrderRepository, "is_order_number_taken", lambda self, order_number: False)

    def test_conflict_on_save_is_retried_with_new_number(self, monkeypatch):
        _place_order(order_number="ORD-1-001")
        numbers = ScriptedNumbers("ORD-1-001", "ORD-2-002")
        monkeypatch.setattr(creation, "order_numbers", numbers)

        order_id = _place_order()

        order = current_domain.repository_for(Order).get(order_id)
        assert order.order_number == "ORD-2-002"
        assert numbers.calls == 2

    def test_second_conflict_on_save_surfaces_conflict(self, monkeypatch):
        _place_order(order_number="ORD-1-001")
        numbers = ScriptedNumbers("ORD-1-001")
        monkeypatch.setattr(creation, "order_numbers", numbers)

        with pytest.raises(UniquenessConflict):
            _place_order()
        assert numbers.calls == 2
        assert current_domain.repository_for(Order)._dao.query.all().total == 1

    def test_explicit_number_conflict_on_save_surfaces_conflict(self):
        _place_order(order_number="ORD-1-001")

        with pytest.raises(UniquenessConflict):
            _place_order(order_number="ORD-1-001")
        assert current_domain.repository_for(Order)._dao.query.all().total == 1
