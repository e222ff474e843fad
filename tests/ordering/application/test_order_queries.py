"""Application tests for order lookups."""

import pytest

from identity.user.registration import register_user
from ordering.order.order import OrderStatus
from shared.errors import NotFoundError


@pytest.fixture
def other_user(database):
    with database.unit_of_work() as session:
        return register_user(session, username="asmith", email="asmith@example.com")


class TestOrderLookups:
    def test_get_order(self, service, order):
        assert service.get_order(order.id).order_number == order.order_number

    def test_get_missing_order(self, service):
        with pytest.raises(NotFoundError) as exc:
            service.get_order(31337)
        assert str(exc.value) == "Order not found with id: 31337"

    def test_get_by_number(self, service, order):
        assert service.get_order_by_number(order.order_number).id == order.id

    def test_get_by_missing_number(self, service):
        with pytest.raises(NotFoundError):
            service.get_order_by_number("ORD-0-NOPE00")

    def test_existence_checks(self, service, order):
        assert service.order_exists(order.id)
        assert not service.order_exists(order.id + 1)
        assert service.order_number_exists(order.order_number)
        assert not service.order_number_exists("ORD-0-NOPE00")


class TestOrderListings:
    def test_orders_for_user_newest_first(self, service, user, other_user):
        first = service.create_order(user.id)
        second = service.create_order(user.id)
        service.create_order(other_user.id)

        orders = service.orders_for_user(user.id)

        assert [o.id for o in orders] == [second.id, first.id]

    def test_count_orders_for_user(self, service, user, other_user):
        service.create_order(user.id)
        service.create_order(user.id)

        assert service.count_orders_for_user(user.id) == 2
        assert service.count_orders_for_user(other_user.id) == 0

    def test_orders_by_status(self, service, user):
        pending = service.create_order(user.id)
        shipped = service.create_order(user.id)
        service.update_order_status(shipped.id, OrderStatus.SHIPPED)

        assert [o.id for o in service.orders_by_status(OrderStatus.PENDING)] == [pending.id]
        assert [o.id for o in service.orders_by_status("Shipped")] == [shipped.id]
