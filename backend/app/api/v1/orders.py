"""Order ledger API endpoints — list, create and patch pickup orders."""
import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.deps import get_order_repository
from app.schemas.order import Order, OrderCreate, OrderListResponse, OrderStatus, OrderUpdate
from app.services.order_store import DuplicateOrderError, OrderRepository

logger = logging.getLogger(__name__)
router = APIRouter()

Repo = Annotated[OrderRepository, Depends(get_order_repository)]


def _not_found(order_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Order {order_id} not found.")


@router.get("", response_model=OrderListResponse, summary="List orders, newest first")
def list_orders(
    repo: Repo,
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
):
    orders = repo.list()
    if status_filter is not None:
        orders = [o for o in orders if o.status == status_filter]
    return OrderListResponse(items=orders, total=len(orders))


@router.get("/{order_id}", response_model=Order, summary="Get one order")
def get_order(order_id: str, repo: Repo):
    order = repo.get(order_id)
    if order is None:
        raise _not_found(order_id)
    return order


@router.post("", response_model=Order, status_code=status.HTTP_201_CREATED, summary="Create an order")
def create_order(body: OrderCreate, repo: Repo):
    fields = body.model_dump(exclude={"id", "created_at"})
    fields["created_at"] = body.created_at or datetime.now(timezone.utc)
    try:
        return repo.create(fields, order_id=body.id)
    except DuplicateOrderError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Order {exc.order_id} already exists.",
        ) from None


@router.patch("/{order_id}", response_model=Order, summary="Partially update an order")
def update_order(order_id: str, body: OrderUpdate, repo: Repo):
    patch = body.model_dump(exclude_unset=True)
    if "status" in patch and patch["status"] is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="status cannot be null.",
        )
    if not patch:
        order = repo.get(order_id)
    else:
        order = repo.update(order_id, patch)
    if order is None:
        raise _not_found(order_id)
    return order
