# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, get_db, require_admin
from storefront.domain.enums import OrderStatus
from storefront.domain.schemas import (
    CurrentUser,
    Envelope,
    OrderCreate,
    OrderDetail,
    OrderOut,
    OrderStatusUpdate,
)
from storefront.services.order_service import OrderService
from storefront.utils.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.get("", response_model=Envelope[List[OrderOut]])
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status: OrderStatus | None = Query(None),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    result = svc.list_orders(user.id, page, limit, status)
    return Envelope(data=result.items, pagination=result.pagination)


@router.get("/{order_id}", response_model=Envelope[OrderDetail])
def get_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(data=svc.get_order(user.id, order_id))


@router.post("", response_model=Envelope[OrderDetail], status_code=201)
def create_order(
    payload: OrderCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Checkout: turns the caller's cart into an order and empties the cart.
    """
    svc = get_service(db)
    order = svc.create_order(
        user_id=user.id,
        shipping_address_id=payload.shipping_address_id,
        billing_address_id=payload.billing_address_id,
        payment_method=payload.payment_method,
        notes=payload.notes,
    )
    return Envelope(message="Order created successfully", data=order)


@router.put("/{order_id}/cancel", response_model=Envelope[OrderOut])
def cancel_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(message="Order cancelled successfully", data=svc.cancel(user.id, order_id))


@router.put("/{order_id}/status", response_model=Envelope[OrderOut])
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(message="Order status updated", data=svc.update_status(order_id, payload))
