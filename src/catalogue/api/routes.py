"""FastAPI endpoints for the Catalogue context — products, their stock and categories."""

from fastapi import APIRouter, Depends, Query

from catalogue.api.schemas import (
    AdjustStockRequest,
    AvailabilityResponse,
    CategoryResponse,
    CreateCategoryRequest,
    CreateProductRequest,
    ProductResponse,
    SetStockRequest,
    UpdateProductRequest,
)
from catalogue.category.category import add_category, find_category
from catalogue.product.management import add_product, find_product, update_product_details
from inventory.stock.ledger import InventoryLedger
from shared.api import get_database, get_settings, require_admin

product_router = APIRouter(prefix="/products", tags=["products"])
category_router = APIRouter(prefix="/categories", tags=["categories"])


# --- Product endpoints ---


@product_router.post(
    "",
    status_code=201,
    response_model=ProductResponse,
    dependencies=[Depends(require_admin)],
)
def create_product(body: CreateProductRequest, database=Depends(get_database)):
    with database.unit_of_work() as session:
        return add_product(session, **body.model_dump())


# Declared before /{product_id} so "low-stock" is not parsed as an id
@product_router.get("/low-stock", response_model=list[ProductResponse])
def low_stock_products(
    threshold: int = Query(default=10, ge=0),
    database=Depends(get_database),
    settings=Depends(get_settings),
):
    with database.unit_of_work() as session:
        return InventoryLedger(session, max_attempts=settings.cas_attempts).low_stock_products(threshold)


@product_router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, database=Depends(get_database)):
    with database.unit_of_work() as session:
        return find_product(session, product_id)


@product_router.put(
    "/{product_id}",
    response_model=ProductResponse,
    dependencies=[Depends(require_admin)],
)
def update_product(product_id: int, body: UpdateProductRequest, database=Depends(get_database)):
    with database.unit_of_work() as session:
        return update_product_details(session, product_id, **body.model_dump(exclude_none=True))


@product_router.get("/{product_id}/availability", response_model=AvailabilityResponse)
def check_availability(
    product_id: int,
    quantity: int = Query(default=1),
    database=Depends(get_database),
    settings=Depends(get_settings),
):
    with database.unit_of_work() as session:
        available = InventoryLedger(session, max_attempts=settings.cas_attempts).check_availability(
            product_id, quantity
        )
    return AvailabilityResponse(product_id=product_id, quantity=quantity, available=available)


@product_router.put(
    "/{product_id}/stock",
    response_model=ProductResponse,
    dependencies=[Depends(require_admin)],
)
def set_stock(
    product_id: int,
    body: SetStockRequest,
    database=Depends(get_database),
    settings=Depends(get_settings),
):
    with database.unit_of_work() as session:
        return InventoryLedger(session, max_attempts=settings.cas_attempts).set_stock(
            product_id, body.stock_quantity
        )


@product_router.post(
    "/{product_id}/stock/increase",
    response_model=ProductResponse,
    dependencies=[Depends(require_admin)],
)
def increase_stock(
    product_id: int,
    body: AdjustStockRequest,
    database=Depends(get_database),
    settings=Depends(get_settings),
):
    with database.unit_of_work() as session:
        return InventoryLedger(session, max_attempts=settings.cas_attempts).increase_stock(product_id, body.quantity)


@product_router.post(
    "/{product_id}/stock/decrease",
    response_model=ProductResponse,
    dependencies=[Depends(require_admin)],
)
def decrease_stock(
    product_id: int,
    body: AdjustStockRequest,
    database=Depends(get_database),
    settings=Depends(get_settings),
):
    with database.unit_of_work() as session:
        return InventoryLedger(session, max_attempts=settings.cas_attempts).decrease_stock(product_id, body.quantity)


# --- Category endpoints ---


@category_router.post(
    "",
    status_code=201,
    response_model=CategoryResponse,
    dependencies=[Depends(require_admin)],
)
def create_category(body: CreateCategoryRequest, database=Depends(get_database)):
    with database.unit_of_work() as session:
        return add_category(session, body.name, description=body.description)


@category_router.get("/{category_id}", response_model=CategoryResponse)
def get_category(category_id: int, database=Depends(get_database)):
    with database.unit_of_work() as session:
        return find_category(session, category_id)
