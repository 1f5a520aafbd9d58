#storefront/api/routers/cart.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, get_db
from storefront.domain.schemas import (
    CartItemAdd,
    CartItemOut,
    CartItemUpdate,
    CartOut,
    CurrentUser,
    Envelope,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db=db)


@router.get("", response_model=Envelope[CartOut])
def get_cart(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(data=svc.get(user.id))


@router.post("/add", response_model=Envelope[CartItemOut])
def add_item(
    payload: CartItemAdd,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    item = svc.add(
        user_id=user.id,
        product_id=payload.product_id,
        variant_id=payload.variant_id,
        quantity=payload.quantity,
    )
    return Envelope(message="Item added to cart", data=item)


@router.put("/{item_id}", response_model=Envelope[CartItemOut])
def update_item(
    item_id: int,
    payload: CartItemUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    item = svc.update_quantity(user.id, item_id, payload.quantity)
    return Envelope(message="Cart item updated", data=item)


@router.delete("/{item_id}", response_model=Envelope[None])
def remove_item(
    item_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    svc.remove(user.id, item_id)
    return Envelope(message="Item removed from cart")


@router.delete("", response_model=Envelope[None])
def clear_cart(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    svc.clear(user.id)
    return Envelope(message="Cart cleared")
