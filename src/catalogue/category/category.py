"""Category record and its lookup/creation helpers."""

import structlog
from sqlalchemy import String, Text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from shared.database import Base, duplicate_key_from
from shared.errors import NotFoundError

logger = structlog.get_logger(__name__)


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True)
    description: Mapped[str | None] = mapped_column(Text)


def add_category(session: Session, name, description=None) -> Category:
    category = Category(name=name, description=description)
    session.add(category)
    try:
        session.flush()
    except IntegrityError as exc:
        duplicate = duplicate_key_from(exc, name=name)
        if duplicate is None:
            raise
        raise duplicate from exc

    logger.info("Category created", category_id=category.id, name=name)
    return category


def find_category(session: Session, category_id) -> Category:
    category = session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category
