"""Error taxonomy shared by every bounded context.

Input and business-rule violations raise ``protean.exceptions.ValidationError``
with a ``{field: [messages]}`` dict. Missing records raise ``NotFoundError``,
which is a ``protean.exceptions.ObjectNotFoundError`` carrying the entity kind
and id. The stock, state-machine, uniqueness and concurrency errors below are
``OrderDeskError`` subclasses. All of these are recoverable at the caller's
discretion and are surfaced unchanged to the HTTP boundary, which maps each
kind to a response category.
"""

from typing import Any

from protean.exceptions import ObjectNotFoundError


class OrderDeskError(Exception):
    """Base class for domain errors that callers are expected to handle."""

    code = "error"

    def to_dict(self) -> dict[str, Any]:
        return {}


class NotFoundError(OrderDeskError, ObjectNotFoundError):
    code = "not_found"

    def __init__(self, entity_kind: str, entity_id: Any):
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        self.message = f"{entity_kind} not found with id: {entity_id}"
        super().__init__({"_entity": [self.message]})

    def __str__(self):
        return self.message

    def to_dict(self):
        return {"entity_kind": self.entity_kind, "id": self.entity_id}


class OutOfStockError(OrderDeskError):
    code = "out_of_stock"

    def __init__(self, product_id: Any):
        self.product_id = product_id
        super().__init__(f"Product {product_id} is out of stock")

    def to_dict(self):
        return {"product_id": self.product_id}


class InsufficientStockError(OrderDeskError):
    code = "insufficient_stock"

    def __init__(self, product_id: Any, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient stock for product {product_id}. Available: {available}, Requested: {requested}")

    def to_dict(self):
        return {"product_id": self.product_id, "available": self.available, "requested": self.requested}


class InvalidStateTransitionError(OrderDeskError):
    code = "invalid_state_transition"

    def __init__(self, from_status, to_status):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Cannot transition order from {_label(from_status)} to {_label(to_status)}")

    def to_dict(self):
        return {"from": _label(self.from_status), "to": _label(self.to_status)}


class DuplicateKeyError(OrderDeskError):
    code = "duplicate_key"

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"A record with {field} '{value}' already exists")

    def to_dict(self):
        return {"field": self.field, "value": self.value}


class ConcurrentModificationError(OrderDeskError):
    """An optimistic version check kept failing after the retry budget ran out."""

    code = "concurrent_modification"

    def __init__(self, entity_kind: str, entity_id: Any):
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        super().__init__(f"{entity_kind} {entity_id} was modified concurrently, please retry")

    def to_dict(self):
        return {"entity_kind": self.entity_kind, "id": self.entity_id}


def _label(status) -> str:
    return getattr(status, "value", status)
