from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_db, require_admin
from storefront.domain.exceptions import ValidationError
from storefront.domain.schemas import (
    CategoryCreate,
    CategoryDetail,
    CategoryOut,
    CategoryUpdate,
    CurrentUser,
    Envelope,
)
from storefront.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


def get_service(db: Session):
    return CategoryService(db)


@router.get("", response_model=Envelope[List[CategoryOut]])
def list_categories(
    parent_id: str | None = Query(None, alias="parentId"),
    db: Session = Depends(get_db),
):
    """parentId=<id> lists subcategories, parentId=null lists top-level ones."""
    svc = get_service(db)
    if parent_id == "null":
        return Envelope(data=svc.list_categories(roots_only=True))
    if parent_id is not None and not parent_id.isdigit():
        raise ValidationError("parentId must be a category id or null")
    return Envelope(data=svc.list_categories(parent_id=int(parent_id) if parent_id else None))


@router.get("/{category_id}", response_model=Envelope[CategoryDetail])
def get_category(category_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    return Envelope(data=svc.get_category(category_id))


@router.post("", response_model=Envelope[CategoryOut], status_code=201)
def create_category(
    payload: CategoryCreate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(message="Category created successfully", data=svc.create_category(payload))


@router.put("/{category_id}", response_model=Envelope[CategoryOut])
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(message="Category updated successfully", data=svc.update_category(category_id, payload))


@router.delete("/{category_id}", response_model=Envelope[None])
def delete_category(
    category_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    svc.delete_category(category_id)
    return Envelope(message="Category deleted successfully")
