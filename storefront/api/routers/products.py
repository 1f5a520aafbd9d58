# storefront/api/routers/products.py
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_db, require_admin
from storefront.domain.enums import ProductSortField, SortOrder
from storefront.domain.schemas import (
    CurrentUser,
    Envelope,
    ProductCreate,
    ProductDetail,
    ProductOut,
    ProductQuery,
    ProductUpdate,
)
from storefront.services.catalog_service import CatalogService
from storefront.utils.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter(prefix="/products", tags=["products"])


def get_service(db: Session):
    return CatalogService(db)


def product_query(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    category: int | None = Query(None),
    search: str | None = Query(None),
    min_price: Decimal | None = Query(None, alias="minPrice", ge=0),
    max_price: Decimal | None = Query(None, alias="maxPrice", ge=0),
    sort_by: ProductSortField = Query(ProductSortField.CREATED_AT, alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.DESC, alias="sortOrder"),
    featured: bool | None = Query(None),
) -> ProductQuery:
    return ProductQuery(
        page=page,
        limit=limit,
        category=category,
        search=search,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        sort_order=sort_order,
        featured=featured,
    )


@router.get("", response_model=Envelope[List[ProductOut]])
def list_products(
    query: ProductQuery = Depends(product_query),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    result = svc.list_products(query)
    return Envelope(data=result.items, pagination=result.pagination)


@router.get("/search", response_model=Envelope[List[ProductOut]])
def search_products(
    q: str | None = Query(None),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(data=svc.search(q, limit))


@router.get("/featured", response_model=Envelope[List[ProductOut]])
def featured_products(
    limit: int = Query(8, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(data=svc.featured(limit))


@router.get("/{product_id}", response_model=Envelope[ProductDetail])
def get_product(product_id: int, db: Session = Depends(get_db)):
    svc = get_service(db)
    return Envelope(data=svc.get_product(product_id))


@router.post("", response_model=Envelope[ProductDetail], status_code=201)
def create_product(
    payload: ProductCreate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(message="Product created successfully", data=svc.create_product(payload))


@router.put("/{product_id}", response_model=Envelope[ProductDetail])
def update_product(
    product_id: int,
    payload: ProductUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(message="Product updated successfully", data=svc.update_product(product_id, payload))


@router.delete("/{product_id}", response_model=Envelope[None])
def delete_product(
    product_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    svc.delete_product(product_id)
    return Envelope(message="Product deleted successfully")
