"""Pydantic request/response schemas for the Catalogue API."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Product Schemas
# ---------------------------------------------------------------------------
class CreateProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    stock_quantity: int = Field(default=0, ge=0)
    sku: str | None = Field(default=None, max_length=50)
    description: str | None = None
    category_id: int | None = None
    is_active: bool = True

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Wireless Mouse",
                    "price": "24.99",
                    "stock_quantity": 100,
                    "sku": None,
                    "description": "2.4GHz, USB receiver",
                    "category_id": None,
                }
            ]
        }
    }


class UpdateProductRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    price: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    is_active: bool | None = None
    category_id: int | None = None


class SetStockRequest(BaseModel):
    stock_quantity: int = Field(ge=0)


class AdjustStockRequest(BaseModel):
    quantity: int = Field(ge=1)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    sku: str
    price: Decimal
    stock_quantity: int
    is_active: bool
    category_id: int | None = None
    version: int
    updated_at: datetime


class AvailabilityResponse(BaseModel):
    product_id: int
    quantity: int
    available: bool


# ---------------------------------------------------------------------------
# Category Schemas
# ---------------------------------------------------------------------------
class CreateCategoryRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
