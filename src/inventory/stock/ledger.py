"""Inventory ledger — the only writer of product stock levels.

Every write is a compare-and-swap against the product row's version column:

    UPDATE products SET stock_quantity = :new, version = :seen + 1
    WHERE id = :id AND version = :seen

The stock rule is checked against a fresh read taken immediately before the
swap, and the swap only lands if nobody has written the row since that read.
A writer that loses the race re-reads and re-checks; after ``max_attempts``
lost races it gives up with ``ConcurrentModificationError``. The ledger never
commits: it writes inside the caller's unit of work, so a reservation rolls
back together with whatever else the transaction did.

    Reserve:   stock -= quantity   (order line items)
    Release:   stock += quantity   (cancellation, no upper bound)
    Increase:  stock += quantity   (administrative restock)
    Decrease:  stock -= quantity   (administrative write-off)
    Set:       stock  = quantity   (administrative count)

Decrements reject zero stock with ``OutOfStockError`` before looking at the
quantity, then reject a non-positive quantity or one above the current stock
with ``InsufficientStockError``.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from catalogue.product.product import Product
from shared.errors import (
    ConcurrentModificationError,
    InsufficientStockError,
    NotFoundError,
    OutOfStockError,
)

logger = structlog.get_logger(__name__)


class InventoryLedger:
    def __init__(self, session: Session, max_attempts: int = 5):
        self._session = session
        self._max_attempts = max_attempts

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def check_availability(self, product_id, quantity) -> bool:
        """Whether ``quantity`` units could be reserved right now."""
        product = self._load(product_id)
        return product.is_in_stock and quantity <= product.stock_quantity

    def low_stock_products(self, threshold: int) -> list[Product]:
        """Active products at or below ``threshold`` units, lowest first."""
        statement = (
            select(Product)
            .where(Product.is_active.is_(True), Product.stock_quantity <= threshold)
            .order_by(Product.stock_quantity, Product.id)
        )
        return list(self._session.scalars(statement))

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def reserve(self, product_id, quantity) -> Product:
        """Decrement stock by ``quantity`` for an order line item."""
        product = self._swap(product_id, _decrement(product_id, quantity))
        logger.info(
            "Stock reserved",
            product_id=product_id,
            quantity=quantity,
            remaining=product.stock_quantity,
        )
        return product

    def release(self, product_id, quantity) -> Product:
        """Return previously reserved units to stock."""
        product = self._swap(product_id, _increment(quantity))
        logger.info(
            "Stock released",
            product_id=product_id,
            quantity=quantity,
            remaining=product.stock_quantity,
        )
        return product

    def increase_stock(self, product_id, quantity) -> Product:
        """Add received units to stock."""
        product = self._swap(product_id, _increment(quantity))
        logger.info("Stock increased", product_id=product_id, quantity=quantity, stock_quantity=product.stock_quantity)
        return product

    def decrease_stock(self, product_id, quantity) -> Product:
        """Write units off stock. Fails rather than going below zero."""
        product = self._swap(product_id, _decrement(product_id, quantity))
        logger.info("Stock decreased", product_id=product_id, quantity=quantity, stock_quantity=product.stock_quantity)
        return product

    def set_stock(self, product_id, quantity) -> Product:
        """Overwrite the stock level after a physical count."""
        if quantity < 0:
            raise ValidationError({"quantity": ["Stock quantity cannot be negative"]})

        product = self._swap(product_id, lambda product: quantity)
        logger.info("Stock level set", product_id=product_id, stock_quantity=quantity)
        return product

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _load(self, product_id) -> Product:
        # populate_existing: never trust a copy already sitting in the session
        product = self._session.get(Product, product_id, populate_existing=True)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    def _swap(self, product_id, next_level) -> Product:
        for attempt in range(1, self._max_attempts + 1):
            product = self._load(product_id)
            new_level = next_level(product)
            if self._compare_and_swap(product, new_level):
                return product

            logger.warning(
                "Stock write lost a version race, retrying",
                product_id=product_id,
                attempt=attempt,
                seen_version=product.version,
            )

        logger.error("Stock write retry budget exhausted", product_id=product_id, attempts=self._max_attempts)
        raise ConcurrentModificationError("Product", product_id)

    def _compare_and_swap(self, product: Product, new_level: int) -> bool:
        result = self._session.execute(
            update(Product)
            .where(Product.id == product.id, Product.version == product.version)
            .values(
                stock_quantity=new_level,
                version=product.version + 1,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False

        self._session.refresh(product)
        return True


def _decrement(product_id, quantity):
    def next_level(product):
        available = product.stock_quantity
        if not product.is_in_stock:
            raise OutOfStockError(product_id)
        if quantity <= 0 or quantity > available:
            raise InsufficientStockError(product_id, available=available, requested=quantity)
        return available - quantity

    return next_level


def _increment(quantity):
    if quantity <= 0:
        raise ValidationError({"quantity": ["Quantity must be positive"]})
    return lambda product: product.stock_quantity + quantity
