"""Order aggregate — an Order and the Line Items it exclusively owns.

The aggregate is pure state: it never talks to the inventory ledger. Line
items are appended only after the service has reserved their stock, and
cancellation hands back the reserved items so the service can release them.

State Machine:
    PENDING → PROCESSING → SHIPPED → DELIVERED
    CANCELLED (from PENDING, PROCESSING or SHIPPED)

Administrators may set any status, except that a DELIVERED order can never
be cancelled. Cancellation itself also refuses an already CANCELLED order.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean.exceptions import ValidationError
from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database import Base
from shared.errors import InvalidStateTransitionError


def _now():
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class ItemStatus(Enum):
    RESERVED = "Reserved"
    RELEASED = "Released"


# Orders in these states take no new line items
_CLOSED_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# States from which cancellation is allowed
_CANCELLABLE_STATES = {
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
class OrderItem(Base):
    """A line item: a product, a quantity and the unit price at reservation time.

    The unit price is a copy. Later catalogue price changes never reach it.
    A released item stays on the order for the record but no longer counts
    towards the total.
    """

    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"))
    product_name: Mapped[str] = mapped_column(String(200))
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    item_status: Mapped[str] = mapped_column(String(20), default=ItemStatus.RESERVED.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    order: Mapped["Order"] = relationship(back_populates="items")

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def is_reserved(self) -> bool:
        return ItemStatus(self.item_status) == ItemStatus.RESERVED


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (UniqueConstraint("order_number", name="uq_orders_order_number"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    order_number: Mapped[str] = mapped_column(String(50))
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    status: Mapped[str] = mapped_column(String(20), default=OrderStatus.PENDING.value, index=True)
    order_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    shipping_address: Mapped[str | None] = mapped_column(Text)
    billing_address: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    items: Mapped[list[OrderItem]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by=OrderItem.id,
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id, order_number, shipping_address=None, billing_address=None, notes=None):
        """Start a new, empty order in PENDING state."""
        now = _now()
        return cls(
            user_id=user_id,
            order_number=order_number,
            status=OrderStatus.PENDING.value,
            order_date=now,
            updated_at=now,
            shipping_address=shipping_address,
            billing_address=billing_address,
            notes=notes,
            total_amount=Decimal("0.00"),
            items=[],
        )

    def update_details(self, shipping_address=None, billing_address=None, notes=None):
        """Edit the free-text fields. ``None`` leaves a field unchanged."""
        if shipping_address is not None:
            self.shipping_address = shipping_address
        if billing_address is not None:
            self.billing_address = billing_address
        if notes is not None:
            self.notes = notes
        self.updated_at = _now()

    def assert_can_be_deleted(self):
        """An order may only be deleted once it holds no reserved stock."""
        if self.reserved_items:
            raise ValidationError(
                {"items": [f"Order holds {len(self.reserved_items)} reserved line item(s); cancel it before deleting"]}
            )

    # -------------------------------------------------------------------
    # Line items
    # -------------------------------------------------------------------
    def assert_can_add_items(self):
        current = OrderStatus(self.status)
        if current in _CLOSED_STATES:
            raise ValidationError({"status": [f"Items cannot be added to a {current.value} order"]})

    def add_line_item(self, product, quantity) -> OrderItem:
        """Append a line item for stock that has already been reserved.

        The product's current price is copied onto the item.
        """
        self.assert_can_add_items()
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        item = OrderItem(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price=product.price,
            item_status=ItemStatus.RESERVED.value,
        )
        self.items.append(item)
        self._recalculate_total()
        self.updated_at = _now()
        return item

    @property
    def reserved_items(self) -> list[OrderItem]:
        return [item for item in self.items if item.is_reserved]

    @property
    def total(self) -> Decimal:
        return sum((item.subtotal for item in self.reserved_items), Decimal("0.00"))

    def _recalculate_total(self):
        self.total_amount = self.total

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    def set_status(self, new_status: OrderStatus) -> list[OrderItem]:
        """Move the order to ``new_status``.

        Administrative transitions are unconditional apart from DELIVERED to
        CANCELLED. Moving into CANCELLED goes through ``cancel`` and returns
        the items whose stock must be released; every other transition
        returns ``[]``.
        """
        current = OrderStatus(self.status)
        if new_status == current:
            return []
        if new_status == OrderStatus.CANCELLED:
            return self.cancel()

        self.status = new_status.value
        self.updated_at = _now()
        return []

    def cancel(self) -> list[OrderItem]:
        """Cancel the order, marking every reserved line item as released.

        Returns the items that were released so their stock can be restored.
        """
        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATES:
            raise InvalidStateTransitionError(current, OrderStatus.CANCELLED)

        released = self.reserved_items
        for item in released:
            item.item_status = ItemStatus.RELEASED.value

        self.status = OrderStatus.CANCELLED.value
        self._recalculate_total()
        self.updated_at = _now()
        return released
