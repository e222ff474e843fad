import pytest
from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError

from identity.user.user import User
from shared.database import Database, duplicate_key_from


class _DriverError(Exception):
    pass


def _integrity_error(message):
    return IntegrityError("INSERT ...", {}, _DriverError(message))


class TestUnitOfWork:
    def test_commits_on_success(self, database):
        with database.unit_of_work() as session:
            session.add(User(username="a", email="a@example.com"))

        with database.unit_of_work() as session:
            assert session.scalars(select(User.username)).all() == ["a"]

    def test_rolls_back_on_error(self, database):
        with pytest.raises(RuntimeError):
            with database.unit_of_work() as session:
                session.add(User(username="a", email="a@example.com"))
                session.flush()
                raise RuntimeError("boom")

        with database.unit_of_work() as session:
            assert session.scalars(select(User)).all() == []

    def test_foreign_keys_enforced(self, database):
        from ordering.order.order import Order

        with pytest.raises(IntegrityError):
            with database.unit_of_work() as session:
                session.add(Order.create(user_id=999, order_number="ORD-1-FKFKFK"))


class TestSchema:
    def test_create_and_drop(self, tmp_path):
        database = Database(f"sqlite:///{tmp_path / 'schema.db'}")
        database.create_all()
        assert {"users", "categories", "products", "orders", "order_items"} <= set(
            inspect(database.engine).get_table_names()
        )

        database.drop_all()
        assert inspect(database.engine).get_table_names() == []
        database.dispose()


class TestDuplicateKeyFrom:
    def test_sqlite_message(self):
        error = duplicate_key_from(_integrity_error("UNIQUE constraint failed: users.email"), username="u", email="e")
        assert (error.field, error.value) == ("email", "e")

    def test_postgres_message(self):
        exc = _integrity_error(
            'duplicate key value violates unique constraint "uq_orders_order_number"\n'
            "DETAIL:  Key (order_number)=(ORD-1-AAAAAA) already exists."
        )
        error = duplicate_key_from(exc, order_number="ORD-1-AAAAAA")
        assert (error.field, error.value) == ("order_number", "ORD-1-AAAAAA")

    def test_other_constraint_is_not_a_duplicate(self):
        exc = _integrity_error("FOREIGN KEY constraint failed")
        assert duplicate_key_from(exc, order_number="x") is None

    def test_unrelated_unique_column(self):
        exc = _integrity_error("UNIQUE constraint failed: products.sku")
        assert duplicate_key_from(exc, order_number="x") is None
