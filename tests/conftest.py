from decimal import Decimal
from pathlib import Path

import pytest

from shared.config import Settings
from shared.database import Database, load_models


def pytest_configure(config):
    # Register every mapped class before the first mapper configuration
    load_models()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture
def settings(tmp_path):
    # A file database: every thread sees the same data, unlike :memory:
    return Settings(env="test", database_url=f"sqlite:///{tmp_path / 'orderdesk.db'}")


@pytest.fixture
def database(settings):
    database = Database.from_settings(settings)
    database.create_all()

    yield database

    database.drop_all()
    database.dispose()


@pytest.fixture
def user(database):
    from identity.user.registration import register_user

    with database.unit_of_work() as session:
        return register_user(session, username="jdoe", email="jdoe@example.com", full_name="Jane Doe")


@pytest.fixture
def make_product(database):
    """Factory for catalogue products with a given stock level."""
    from catalogue.product.management import add_product

    def _make(stock_quantity=10, price="19.99", name="Widget", **kwargs):
        with database.unit_of_work() as session:
            return add_product(
                session,
                name=name,
                price=Decimal(price),
                stock_quantity=stock_quantity,
                **kwargs,
            )

    return _make


@pytest.fixture
def stock_of(database):
    """Read a product's persisted stock level in a fresh transaction."""
    from catalogue.product.product import Product

    def _stock(product_id):
        with database.unit_of_work() as session:
            return session.get(Product, product_id).stock_quantity

    return _stock
