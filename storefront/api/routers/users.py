from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, get_db, require_admin
from storefront.domain.enums import Role
from storefront.domain.schemas import (
    CurrentUser,
    Envelope,
    UserDetail,
    UserOut,
    UserUpdate,
    WishlistAdd,
    WishlistItemOut,
)
from storefront.services.user_service import UserService
from storefront.utils.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter(prefix="/users", tags=["users"])


def get_service(db: Session):
    return UserService(db)


# wishlist routes come first so /wishlist is not taken for a user id
@router.get("/wishlist", response_model=Envelope[List[WishlistItemOut]])
def get_wishlist(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(data=svc.get_wishlist(user.id))


@router.post("/wishlist", response_model=Envelope[WishlistItemOut], status_code=201)
def add_to_wishlist(
    payload: WishlistAdd,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(message="Product added to wishlist", data=svc.add_to_wishlist(user.id, payload.product_id))


@router.delete("/wishlist/{product_id}", response_model=Envelope[None])
def remove_from_wishlist(
    product_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    svc.remove_from_wishlist(user.id, product_id)
    return Envelope(message="Product removed from wishlist")


@router.get("", response_model=Envelope[List[UserOut]])
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: str | None = Query(None),
    role: Role | None = Query(None),
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    result = svc.list_users(page, limit, search=search, role=role.value if role else None)
    return Envelope(data=result.items, pagination=result.pagination)


@router.get("/{user_id}", response_model=Envelope[UserDetail])
def get_user(
    user_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(data=svc.get_user(user_id))


@router.put("/{user_id}", response_model=Envelope[UserOut])
def update_user(
    user_id: int,
    payload: UserUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(message="User updated successfully", data=svc.update_user(user_id, payload))


@router.delete("/{user_id}", response_model=Envelope[None])
def delete_user(
    user_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    svc.delete_user(user_id)
    return Envelope(message="User deactivated successfully")
