"""User registration and lookup."""

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from identity.user.user import User, UserRole
from shared.database import duplicate_key_from
from shared.errors import NotFoundError

logger = structlog.get_logger(__name__)


def register_user(session: Session, username, email, full_name=None, role=UserRole.CUSTOMER) -> User:
    """Create a user account; usernames and emails are unique."""
    user = User(
        username=username,
        email=email,
        full_name=full_name,
        role=UserRole(role).value,
    )
    session.add(user)
    try:
        session.flush()
    except IntegrityError as exc:
        duplicate = duplicate_key_from(exc, username=username, email=email)
        if duplicate is None:
            raise
        raise duplicate from exc

    logger.info("User registered", user_id=user.id, username=username)
    return user


def find_user(session: Session, user_id) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user
