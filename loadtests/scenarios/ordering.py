"""Order service load test scenarios.

Three stateful SequentialTaskSet journeys: the full order lifecycle through
delivery, an order edited while pending and then cancelled by the customer,
and a customer browsing their order history.
"""

import random
import uuid

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import cancellation_reason, order_data, order_item, tracking_number, user_id
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import OrderState


class _OrderJourney(SequentialTaskSet):
    def on_start(self):
        self.state = OrderState(user_id=user_id())

    def place_order(self):
        with self.client.post(
            "/orders",
            json=order_data(user=self.state.user_id, num_items=random.randint(1, 3)),
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["order_id"]
                self.state.order_number = body["order_number"]
            else:
                resp.failure(f"Place order failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    def move_to(self, status, **extra):
        with self.client.patch(
            f"/orders/{self.state.order_id}/status",
            json={"status": status, **extra},
            catch_response=True,
            name="PATCH /orders/{id}/status",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = status
            else:
                resp.failure(f"Transition to {status} failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()


class OrderFullLifecycleJourney(_OrderJourney):
    """Place -> Pay -> Confirm -> Processing -> Ship -> Deliver.

    The happy path through the order state machine.
    """

    @task
    def place(self):
        self.place_order()

    @task
    def record_payment(self):
        with self.client.put(
            f"/orders/{self.state.order_id}/payment",
            json={"payment_id": f"pay-{uuid.uuid4().hex[:8]}", "payment_status": "paid"},
            catch_response=True,
            name="PUT /orders/{id}/payment",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Record payment failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def confirm(self):
        self.move_to("confirmed")

    @task
    def processing(self):
        self.move_to("processing")

    @task
    def ship(self):
        self.move_to("shipped", tracking_number=tracking_number())

    @task
    def deliver(self):
        self.move_to("delivered")

    @task
    def view(self):
        self.client.get(f"/orders/{self.state.order_id}", name="GET /orders/{id}")

    @task
    def done(self):
        self.interrupt()


class OrderEditAndCancelJourney(_OrderJourney):
    """Place -> Add Item -> Change Quantity -> Update Charges -> Cancel.

    A customer who edits a pending order and then changes their mind.
    """

    @task
    def place(self):
        self.place_order()

    @task
    def add_item(self):
        with self.client.post(
            f"/orders/{self.state.order_id}/items",
            json=order_item(),
            catch_response=True,
            name="POST /orders/{id}/items",
        ) as resp:
            if resp.status_code == 201:
                self.state.item_ids.append(resp.json()["item_id"])
            else:
                resp.failure(f"Add item failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def change_quantity(self):
        if not self.state.item_ids:
            return
        with self.client.put(
            f"/orders/{self.state.order_id}/items/{self.state.item_ids[-1]}",
            json={"new_quantity": random.randint(5, 8)},
            catch_response=True,
            name="PUT /orders/{id}/items/{item_id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Change quantity failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def update_charges(self):
        with self.client.put(
            f"/orders/{self.state.order_id}/charges",
            json={"tax_amount": round(random.uniform(0, 10.0), 2)},
            catch_response=True,
            name="PUT /orders/{id}/charges",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Update charges failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def cancel(self):
        with self.client.patch(
            f"/orders/{self.state.order_id}/cancel",
            json={"reason": cancellation_reason()},
            catch_response=True,
            name="PATCH /orders/{id}/cancel",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = "cancelled"
            else:
                resp.failure(f"Cancel failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class OrderHistoryJourney(_OrderJourney):
    """Place a few orders, then page through the history and statistics."""

    @task
    def place_first(self):
        self.place_order()

    @task
    def place_second(self):
        self.place_order()

    @task
    def list_orders(self):
        with self.client.get(
            f"/orders/user/{self.state.user_id}",
            params={"page": 1, "limit": 10},
            catch_response=True,
            name="GET /orders/user/{user_id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"List orders failed: {resp.status_code} — {extract_error_detail(resp)}")
            elif resp.json()["pagination"]["total"] < 2:
                resp.failure("Order history is missing placed orders")

    @task
    def statistics(self):
        self.client.get(
            "/orders/admin/statistics",
            params={"user_id": self.state.user_id},
            name="GET /orders/admin/statistics",
        )

    @task
    def done(self):
        self.interrupt()


class OrderingUser(HttpUser):
    """Weighted mix of the order journeys."""

    wait_time = between(1, 3)
    tasks = {
        OrderFullLifecycleJourney: 5,
        OrderEditAndCancelJourney: 3,
        OrderHistoryJourney: 2,
    }
