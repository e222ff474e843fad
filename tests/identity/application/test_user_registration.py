"""Application tests for user registration and lookup."""

import pytest

from identity.user.registration import find_user, register_user
from identity.user.user import UserRole
from shared.errors import DuplicateKeyError, NotFoundError


class TestRegisterUser:
    def test_register_customer(self, database):
        with database.unit_of_work() as session:
            user = register_user(session, username="kim", email="kim@example.com", full_name="Kim Lee")

        assert user.id is not None
        assert user.role == UserRole.CUSTOMER.value

    def test_register_admin(self, database):
        with database.unit_of_work() as session:
            user = register_user(session, username="root", email="root@example.com", role=UserRole.ADMIN)
        assert user.role == UserRole.ADMIN.value

    def test_duplicate_username(self, database, user):
        with pytest.raises(DuplicateKeyError) as exc:
            with database.unit_of_work() as session:
                register_user(session, username=user.username, email="another@example.com")

        assert exc.value.field == "username"
        assert exc.value.value == user.username

    def test_duplicate_email(self, database, user):
        with pytest.raises(DuplicateKeyError) as exc:
            with database.unit_of_work() as session:
                register_user(session, username="someone_else", email=user.email)

        assert exc.value.field == "email"


class TestFindUser:
    def test_find(self, database, user):
        with database.unit_of_work() as session:
            assert find_user(session, user.id).username == "jdoe"

    def test_missing(self, database):
        with pytest.raises(NotFoundError) as exc:
            with database.unit_of_work() as session:
                find_user(session, 99)
        assert str(exc.value) == "User not found with id: 99"
