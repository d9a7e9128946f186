"""BDD tests for customer cancellation."""

from pytest_bdd import scenarios

scenarios("features/order_cancellation.feature")
