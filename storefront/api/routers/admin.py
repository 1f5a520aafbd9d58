# storefront/api/routers/admin.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_db, require_admin
from storefront.domain.enums import OrderStatus
from storefront.domain.schemas import (
    AdminOrderOut,
    DashboardOut,
    Envelope,
    SalesReportOut,
    TopProductOut,
)
from storefront.services.report_service import ReportService
from storefront.utils.settings import MAX_PAGE_SIZE

# every admin route requires the ADMIN role
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def get_service(db: Session):
    return ReportService(db)


@router.get("/dashboard", response_model=Envelope[DashboardOut])
def dashboard(
    period: str = Query("30d"),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(data=svc.dashboard(period))


@router.get("/recent-orders", response_model=Envelope[List[AdminOrderOut]])
def recent_orders(
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    status: OrderStatus | None = Query(None),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(data=svc.recent_orders(limit, status.value if status else None))


@router.get("/top-products", response_model=Envelope[List[TopProductOut]])
def top_products(
    period: str = Query("30d"),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(data=svc.top_products(period, limit))


@router.get("/sales-report", response_model=Envelope[SalesReportOut])
def sales_report(
    period: str = Query("30d"),
    group_by: str = Query("day", alias="groupBy"),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return Envelope(data=svc.sales_report(period, group_by))
