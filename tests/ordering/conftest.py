import pytest

from ordering.order.lifecycle import OrderLifecycleService


@pytest.fixture
def service(database, settings):
    return OrderLifecycleService(database, settings)


@pytest.fixture
def order(service, user):
    return service.create_order(user.id, shipping_address="1 Main St", notes="Ring twice")
