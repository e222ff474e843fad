"""FastAPI routes for the Ordering context.

Handlers are plain ``def`` functions: the lifecycle service blocks on the
database, so FastAPI runs each request on its worker thread pool.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request

from ordering.api.schemas import (
    AddItemRequest,
    CreateOrderRequest,
    OrderExistsResponse,
    OrderResponse,
    UpdateOrderRequest,
    UpdateStatusRequest,
)
from ordering.order.lifecycle import OrderLifecycleService
from shared.api import require_admin


def get_order_service(request: Request) -> OrderLifecycleService:
    return request.app.state.order_service


order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
def create_order(
    body: CreateOrderRequest,
    service: OrderLifecycleService = Depends(get_order_service),
):
    return service.create_order(
        user_id=body.user_id,
        shipping_address=body.shipping_address,
        billing_address=body.billing_address,
        notes=body.notes,
    )


@order_router.get("/number/{order_number}", response_model=OrderResponse)
def get_order_by_number(order_number: str, service: OrderLifecycleService = Depends(get_order_service)):
    return service.get_order_by_number(order_number)


@order_router.get("/number/{order_number}/exists", response_model=OrderExistsResponse)
def order_number_exists(order_number: str, service: OrderLifecycleService = Depends(get_order_service)):
    return OrderExistsResponse(exists=service.order_number_exists(order_number))


@order_router.get("/user/{user_id}", response_model=list[OrderResponse])
def list_user_orders(user_id: int, service: OrderLifecycleService = Depends(get_order_service)):
    return service.orders_for_user(user_id)


# Declared before /{order_id} so "date-range" is not parsed as an id
@order_router.get(
    "/date-range",
    response_model=list[OrderResponse],
    dependencies=[Depends(require_admin)],
)
def list_orders_between(
    start: datetime = Query(),
    end: datetime = Query(),
    service: OrderLifecycleService = Depends(get_order_service),
):
    return service.orders_between(start, end)


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, service: OrderLifecycleService = Depends(get_order_service)):
    return service.get_order(order_id)


@order_router.put("/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: int,
    body: UpdateOrderRequest,
    service: OrderLifecycleService = Depends(get_order_service),
):
    return service.update_order_details(order_id, **body.model_dump())


@order_router.delete("/{order_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_order(order_id: int, service: OrderLifecycleService = Depends(get_order_service)):
    service.delete_order(order_id)


@order_router.post("/{order_id}/items", status_code=201, response_model=OrderResponse)
def add_order_item(
    order_id: int,
    body: AddItemRequest,
    service: OrderLifecycleService = Depends(get_order_service),
):
    return service.add_order_item(order_id, body.product_id, body.quantity)


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(order_id: int, service: OrderLifecycleService = Depends(get_order_service)):
    return service.cancel_order(order_id)


@order_router.put(
    "/{order_id}/status",
    response_model=OrderResponse,
    dependencies=[Depends(require_admin)],
)
def update_order_status(
    order_id: int,
    body: UpdateStatusRequest,
    service: OrderLifecycleService = Depends(get_order_service),
):
    return service.update_order_status(order_id, body.status)
