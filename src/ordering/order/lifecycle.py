"""Order lifecycle service — creation, line items, cancellation and status.

Each command runs in exactly one unit of work: the ledger's stock writes and
the order's row changes commit together or not at all. Orders carry an
optimistic version, so a command that loses a race on the same order fails
its flush with ``StaleDataError``; the whole command is then replayed from a
fresh read, up to ``Settings.transaction_attempts`` times.
"""

import structlog
from protean.exceptions import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from catalogue.product.management import find_product
from identity.user.registration import find_user
from inventory.stock.ledger import InventoryLedger
from ordering.order.numbering import generate_order_number
from ordering.order.order import Order, OrderStatus
from shared.config import Settings
from shared.database import Database, duplicate_key_from
from shared.errors import ConcurrentModificationError, NotFoundError

logger = structlog.get_logger(__name__)


class OrderLifecycleService:
    def __init__(
        self,
        database: Database,
        settings: Settings | None = None,
        number_generator=generate_order_number,
    ):
        self._database = database
        self._settings = settings or Settings()
        self._number_generator = number_generator

    def _ledger(self, session: Session) -> InventoryLedger:
        return InventoryLedger(session, max_attempts=self._settings.cas_attempts)

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    def create_order(self, user_id, shipping_address=None, billing_address=None, notes=None) -> Order:
        """Open a new PENDING order for ``user_id``.

        A collision on the order number is retried with a fresh number; the
        last ``DuplicateKeyError`` is raised once the attempts run out.
        """
        duplicate = None
        for attempt in range(1, self._settings.order_number_attempts + 1):
            order_number = self._number_generator()
            try:
                with self._database.unit_of_work() as session:
                    find_user(session, user_id)
                    order = Order.create(
                        user_id=user_id,
                        order_number=order_number,
                        shipping_address=shipping_address,
                        billing_address=billing_address,
                        notes=notes,
                    )
                    session.add(order)
                    session.flush()
            except IntegrityError as exc:
                duplicate = duplicate_key_from(exc, order_number=order_number)
                if duplicate is None:
                    raise
                logger.warning(
                    "Order number collision, generating a new one",
                    order_number=order_number,
                    attempt=attempt,
                )
                continue

            logger.info("Order created", order_id=order.id, order_number=order.order_number, user_id=user_id)
            return order

        logger.error("Could not allocate a unique order number", attempts=self._settings.order_number_attempts)
        raise duplicate

    def add_order_item(self, order_id, product_id, quantity) -> Order:
        """Reserve ``quantity`` units of a product and append them to the order.

        The ledger decides whether the quantity can be reserved, so a zero or
        negative quantity fails the same way as one above the stock level.
        """

        def work(session):
            order = self._load_order(session, order_id)
            product = find_product(session, product_id)
            order.assert_can_add_items()
            if not product.is_active:
                raise ValidationError({"product_id": [f"Product {product_id} is not available for sale"]})

            product = self._ledger(session).reserve(product_id, quantity)
            item = order.add_line_item(product, quantity)
            session.flush()
            return order, item

        order, item = self._in_transaction(order_id, work)
        logger.info(
            "Order item added",
            order_id=order_id,
            item_id=item.id,
            product_id=product_id,
            quantity=quantity,
            unit_price=str(item.unit_price),
            total_amount=str(order.total_amount),
        )
        return order

    def cancel_order(self, order_id) -> Order:
        """Cancel the order and restore the stock of every reserved line item."""

        def work(session):
            order = self._load_order(session, order_id)
            released = order.cancel()
            ledger = self._ledger(session)
            for item in released:
                ledger.release(item.product_id, item.quantity)
            session.flush()
            return order, released

        order, released = self._in_transaction(order_id, work)
        logger.info("Order cancelled", order_id=order_id, released_items=len(released))
        return order

    def update_order_status(self, order_id, status) -> Order:
        """Administrative status change.

        Moving to CANCELLED is a cancellation and releases stock; every other
        transition leaves inventory untouched.
        """
        status = OrderStatus(status)

        def work(session):
            order = self._load_order(session, order_id)
            previous = order.status
            released = order.set_status(status)
            ledger = self._ledger(session)
            for item in released:
                ledger.release(item.product_id, item.quantity)
            session.flush()
            return order, previous, released

        order, previous, released = self._in_transaction(order_id, work)
        logger.info(
            "Order status changed",
            order_id=order_id,
            from_status=previous,
            to_status=status.value,
            released_items=len(released),
        )
        return order

    def update_order_details(self, order_id, shipping_address=None, billing_address=None, notes=None) -> Order:
        def work(session):
            order = self._load_order(session, order_id)
            order.update_details(shipping_address=shipping_address, billing_address=billing_address, notes=notes)
            session.flush()
            return order

        order = self._in_transaction(order_id, work)
        logger.info("Order details updated", order_id=order_id)
        return order

    def delete_order(self, order_id) -> None:
        """Delete an order and its line items.

        Refused while any line item still holds reserved stock; cancel the
        order first so the stock goes back to the ledger.
        """

        def work(session):
            order = self._load_order(session, order_id)
            order.assert_can_be_deleted()
            session.delete(order)
            session.flush()

        self._in_transaction(order_id, work)
        logger.info("Order deleted", order_id=order_id)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_order(self, order_id) -> Order:
        with self._database.unit_of_work() as session:
            return self._load_order(session, order_id)

    def get_order_by_number(self, order_number) -> Order:
        with self._database.unit_of_work() as session:
            order = session.scalars(select(Order).where(Order.order_number == order_number)).one_or_none()
            if order is None:
                raise NotFoundError("Order", order_number)
            return order

    def order_exists(self, order_id) -> bool:
        with self._database.unit_of_work() as session:
            return session.get(Order, order_id) is not None

    def order_number_exists(self, order_number) -> bool:
        with self._database.unit_of_work() as session:
            statement = select(Order.id).where(Order.order_number == order_number)
            return session.scalars(statement).first() is not None

    def orders_for_user(self, user_id) -> list[Order]:
        """Orders placed by ``user_id``, newest first."""
        with self._database.unit_of_work() as session:
            statement = select(Order).where(Order.user_id == user_id).order_by(Order.order_date.desc(), Order.id.desc())
            return list(session.scalars(statement))

    def orders_by_status(self, status) -> list[Order]:
        status = OrderStatus(status)
        with self._database.unit_of_work() as session:
            statement = select(Order).where(Order.status == status.value).order_by(Order.id)
            return list(session.scalars(statement))

    def orders_between(self, start, end) -> list[Order]:
        """Orders placed between ``start`` and ``end`` inclusive, oldest first."""
        if start > end:
            raise ValidationError({"start": ["Start of the range must not be after its end"]})
        with self._database.unit_of_work() as session:
            statement = (
                select(Order)
                .where(Order.order_date >= start, Order.order_date <= end)
                .order_by(Order.order_date, Order.id)
            )
            return list(session.scalars(statement))

    def count_orders_for_user(self, user_id) -> int:
        with self._database.unit_of_work() as session:
            return session.scalar(select(func.count(Order.id)).where(Order.user_id == user_id))

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    @staticmethod
    def _load_order(session: Session, order_id) -> Order:
        order = session.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def _in_transaction(self, order_id, work):
        """Run ``work(session)`` in a unit of work, replaying it on a stale order version."""
        attempts = self._settings.transaction_attempts
        for attempt in range(1, attempts + 1):
            try:
                with self._database.unit_of_work() as session:
                    return work(session)
            except StaleDataError:
                logger.warning("Order was modified concurrently, retrying", order_id=order_id, attempt=attempt)

        logger.error("Order retry budget exhausted", order_id=order_id, attempts=attempts)
        raise ConcurrentModificationError("Order", order_id)
