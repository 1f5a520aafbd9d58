"""
Admin reporting.

Everything here reads the order and catalog tables, nothing writes. The
period / bucket helpers are plain functions so they can be exercised without
a database.
"""
import math
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.enums import GroupBy, Period
from storefront.domain.schemas import (
    AdminOrderOut,
    CategoryRef,
    DashboardOut,
    DashboardOverview,
    OrderStatusCount,
    SalesBucket,
    SalesReportOut,
    SalesSummary,
    TopProductOut,
    UserOut,
)
from storefront.repos.report_repo import ReportRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_PERIOD_DAYS = {
    Period.WEEK: 7,
    Period.MONTH: 30,
    Period.QUARTER: 90,
}

DASHBOARD_LIST_SIZE = 5


def parse_period(value: str | None) -> Period:
    """Unknown or missing values fall back to 30 days."""
    try:
        return Period(value)
    except ValueError:
        return Period.MONTH


def parse_group_by(value: str | None) -> GroupBy:
    try:
        return GroupBy(value)
    except ValueError:
        return GroupBy.DAY


def period_start(period: Period | str | None, now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    period = parse_period(period)

    if period == Period.YEAR:
        try:
            return now.replace(year=now.year - 1)
        except ValueError:
            # Feb 29 -> Feb 28
            return now.replace(year=now.year - 1, day=28)

    return now - timedelta(days=_PERIOD_DAYS[period])


def bucket_key(created_at: datetime, group_by: GroupBy | str | None) -> str:
    """
    day   -> 2024-03-09
    week  -> 2024-W2   (week of the month, ceil(day / 7), not the ISO week)
    month -> 2024-03
    """
    group_by = parse_group_by(group_by)

    if group_by == GroupBy.WEEK:
        week = math.ceil(created_at.day / 7)
        return f"{created_at.year}-W{week}"
    if group_by == GroupBy.MONTH:
        return f"{created_at.year}-{created_at.month:02d}"
    return created_at.date().isoformat()


def build_sales_report(orders: Iterable[OrderModel], group_by: GroupBy | str | None) -> SalesReportOut:
    """Bucket the orders (already sorted by creation time) and total them up."""
    buckets: dict[str, dict] = {}
    for order in orders:
        key = bucket_key(order.created_at, group_by)
        bucket = buckets.setdefault(key, {"total": Decimal("0"), "count": 0})
        bucket["total"] += Decimal(order.total)
        bucket["count"] += 1

    report_data = [
        SalesBucket(date=key, total=data["total"], count=data["count"])
        for key, data in buckets.items()
    ]

    total_revenue = sum((b.total for b in report_data), Decimal("0"))
    total_orders = sum(b.count for b in report_data)
    average = total_revenue / total_orders if total_orders else Decimal("0")

    return SalesReportOut(
        report_data=report_data,
        summary=SalesSummary(
            total_revenue=total_revenue,
            total_orders=total_orders,
            average_order_value=average,
        ),
    )


def to_top_product(product, order_count: int) -> TopProductOut:
    return TopProductOut(
        id=product.id,
        name=product.name,
        price=product.price,
        images=product.images or [],
        category=CategoryRef.model_validate(product.category) if product.category else None,
        order_count=order_count,
    )


class ReportService:
    def __init__(self, db: Session):
        self.repo = ReportRepo(db)

    def dashboard(self, period: str | None = None, now: datetime | None = None) -> DashboardOut:
        start = period_start(period, now)
        logger.info(f"Dashboard requested for period {parse_period(period).value} (since {start.isoformat()})")

        overview = DashboardOverview(
            total_users=self.repo.count_users_since(start),
            total_orders=self.repo.count_orders_since(start),
            total_products=self.repo.count_active_products(),
            total_revenue=self.repo.paid_revenue_since(start),
        )

        return DashboardOut(
            overview=overview,
            recent_users=[UserOut.model_validate(u) for u in self.repo.recent_users(DASHBOARD_LIST_SIZE)],
            recent_orders=[
                AdminOrderOut.model_validate(o) for o in self.repo.recent_orders(DASHBOARD_LIST_SIZE)
            ],
            top_products=[
                to_top_product(p, count) for p, count in self.repo.top_products(DASHBOARD_LIST_SIZE)
            ],
            order_stats=[
                OrderStatusCount(status=status, count=count)
                for status, count in self.repo.order_status_counts_since(start)
            ],
        )

    def recent_orders(self, limit: int = 10, status: str | None = None) -> list[AdminOrderOut]:
        return [AdminOrderOut.model_validate(o) for o in self.repo.recent_orders(limit, status)]

    def top_products(
        self,
        period: str | None = None,
        limit: int = 10,
        now: datetime | None = None,
    ) -> list[TopProductOut]:
        start = period_start(period, now)
        return [to_top_product(p, count) for p, count in self.repo.top_products(limit, start)]

    def sales_report(
        self,
        period: str | None = None,
        group_by: str | None = None,
        now: datetime | None = None,
    ) -> SalesReportOut:
        start = period_start(period, now)
        orders = self.repo.paid_orders_since(start)
        logger.info(
            f"Sales report: {len(orders)} paid orders since {start.isoformat()}, "
            f"grouped by {parse_group_by(group_by).value}"
        )
        return build_sales_report(orders, group_by)
