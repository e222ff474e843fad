"""Pydantic request/response schemas for the Ordering API.

These are external contracts — separate from the ORM mapped classes.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from ordering.order.order import OrderStatus


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    user_id: int
    shipping_address: str | None = Field(default=None, max_length=1000)
    billing_address: str | None = Field(default=None, max_length=1000)
    notes: str | None = Field(default=None, max_length=2000)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": 1,
                    "shipping_address": "1 Main St, Springfield",
                    "billing_address": None,
                    "notes": "Leave at the door",
                }
            ]
        }
    }


class AddItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)


class UpdateOrderRequest(BaseModel):
    shipping_address: str | None = Field(default=None, max_length=1000)
    billing_address: str | None = Field(default=None, max_length=1000)
    notes: str | None = Field(default=None, max_length=2000)


class UpdateStatusRequest(BaseModel):
    status: OrderStatus


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    item_status: str


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    user_id: int
    status: str
    order_date: datetime
    shipping_address: str | None = None
    billing_address: str | None = None
    notes: str | None = None
    total_amount: Decimal
    version: int
    items: list[OrderItemResponse] = []


class OrderExistsResponse(BaseModel):
    exists: bool
