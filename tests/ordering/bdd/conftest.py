"""Shared BDD fixtures and step definitions for the Ordering context."""

from decimal import Decimal

import pytest
from pytest_bdd import given, parsers, then

from ordering.order.order import OrderStatus
from shared.errors import InsufficientStockError, InvalidStateTransitionError


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for the error a When step ran into."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse("a product priced {price} with {stock:d} units in stock"),
    target_fixture="product",
)
def product_in_stock(make_product, price, stock):
    return make_product(stock_quantity=stock, price=price)


@given("a pending order", target_fixture="order")
def pending_order(service, user):
    return service.create_order(user.id, shipping_address="1 Main St")


@given(parsers.cfparse("the order holds {quantity:d} units of the product"))
def order_holds_units(service, order, product, quantity):
    service.add_order_item(order.id, product.id, quantity)


@given(parsers.cfparse('the order status was set to "{status}"'))
def order_status_was_set(service, order, status):
    service.update_order_status(order.id, OrderStatus(status))


@given("the order has been cancelled")
def order_has_been_cancelled(service, order):
    service.cancel_order(order.id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order total is {total}"))
def order_total_is(service, order, total):
    assert service.get_order(order.id).total_amount == Decimal(total)


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(service, order, status):
    assert service.get_order(order.id).status == OrderStatus(status).value


@then("the order has no items")
def order_has_no_items(service, order):
    assert service.get_order(order.id).items == []


@then(parsers.cfparse("the product has {stock:d} units in stock"))
def product_has_stock(stock_of, product, stock):
    assert stock_of(product.id) == stock


@then(
    parsers.cfparse("the request fails for insufficient stock with {available:d} available and {requested:d} requested")
)
def fails_for_insufficient_stock(error, available, requested):
    assert isinstance(error["exc"], InsufficientStockError)
    assert (error["exc"].available, error["exc"].requested) == (available, requested)


@then(parsers.cfparse('the request fails with an invalid transition from "{from_status}" to "{to_status}"'))
def fails_with_invalid_transition(error, from_status, to_status):
    assert isinstance(error["exc"], InvalidStateTransitionError)
    assert error["exc"].to_dict() == {"from": from_status, "to": to_status}
