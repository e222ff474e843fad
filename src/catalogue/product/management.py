"""Product administration — creation, lookup and detail edits.

Stock levels are deliberately absent from ``update_product_details``: after
creation, only the inventory ledger writes ``stock_quantity``.
"""

from decimal import Decimal
from uuid import uuid4

import structlog
from protean.exceptions import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from catalogue.category.category import find_category
from catalogue.product.product import Product
from shared.database import duplicate_key_from
from shared.errors import ConcurrentModificationError, NotFoundError

logger = structlog.get_logger(__name__)


def generate_sku() -> str:
    return "PRD-" + uuid4().hex[:8].upper()


def _validate_price(price) -> Decimal:
    price = Decimal(str(price))
    if price <= 0:
        raise ValidationError({"price": ["Price must be greater than 0"]})
    return price


def add_product(
    session: Session,
    name,
    price,
    stock_quantity=0,
    sku=None,
    description=None,
    category_id=None,
    is_active=True,
) -> Product:
    """Add a product to the catalogue, generating a SKU when none is given."""
    price = _validate_price(price)
    if stock_quantity < 0:
        raise ValidationError({"stock_quantity": ["Stock quantity cannot be negative"]})
    if category_id is not None:
        find_category(session, category_id)

    sku = sku.strip() if sku and sku.strip() else generate_sku()
    product = Product(
        name=name,
        description=description,
        sku=sku,
        price=price,
        stock_quantity=stock_quantity,
        is_active=is_active,
        category_id=category_id,
    )
    session.add(product)
    try:
        session.flush()
    except IntegrityError as exc:
        duplicate = duplicate_key_from(exc, sku=sku)
        if duplicate is None:
            raise
        raise duplicate from exc

    logger.info("Product created", product_id=product.id, sku=sku, stock_quantity=stock_quantity)
    return product


def find_product(session: Session, product_id) -> Product:
    product = session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def update_product_details(
    session: Session,
    product_id,
    name=None,
    description=None,
    price=None,
    is_active=None,
    category_id=None,
) -> Product:
    """Edit catalogue fields of a product.

    Price changes never reach existing order line items, which keep the unit
    price captured when their stock was reserved.
    """
    product = find_product(session, product_id)

    if name is not None:
        product.name = name
    if description is not None:
        product.description = description
    if price is not None:
        product.price = _validate_price(price)
    if is_active is not None:
        product.is_active = is_active
    if category_id is not None:
        find_category(session, category_id)
        product.category_id = category_id

    try:
        session.flush()
    except StaleDataError as exc:
        raise ConcurrentModificationError("Product", product_id) from exc

    logger.info("Product details updated", product_id=product_id)
    return product
