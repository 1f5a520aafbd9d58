# storefront/repos/report_repo.py
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.product import ProductModel
from storefront.data.models.user import UserModel
from storefront.domain.enums import PaymentStatus


class ReportRepo:
    """Read-only queries for the admin reports, nothing here writes."""

    def __init__(self, db: Session):
        self.db = db

    def count_users_since(self, start: datetime) -> int:
        return self.db.execute(
            select(func.count(UserModel.id)).where(UserModel.created_at >= start)
        ).scalar_one()

    def count_orders_since(self, start: datetime) -> int:
        return self.db.execute(
            select(func.count(OrderModel.id)).where(OrderModel.created_at >= start)
        ).scalar_one()

    def count_active_products(self) -> int:
        return self.db.execute(
            select(func.count(ProductModel.id)).where(ProductModel.is_active.is_(True))
        ).scalar_one()

    def paid_revenue_since(self, start: datetime) -> Decimal:
        value = self.db.execute(
            select(func.sum(OrderModel.total)).where(
                OrderModel.created_at >= start,
                OrderModel.payment_status == PaymentStatus.PAID.value,
            )
        ).scalar_one()
        return Decimal(str(value)) if value is not None else Decimal("0")

    def recent_users(self, limit: int) -> list[UserModel]:
        return list(
            self.db.execute(
                select(UserModel)
                .order_by(UserModel.created_at.desc(), UserModel.id.desc())
                .limit(limit)
            ).scalars().all()
        )

    def recent_orders(self, limit: int, status: str | None = None) -> list[OrderModel]:
        stmt = select(OrderModel)
        if status:
            stmt = stmt.where(OrderModel.status == status)
        stmt = (
            stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .limit(limit)
            .options(
                selectinload(OrderModel.user),
                selectinload(OrderModel.items).selectinload(OrderItemModel.product),
            )
        )
        return list(self.db.execute(stmt).scalars().all())

    def top_products(self, limit: int, start: datetime | None = None) -> list[tuple[ProductModel, int]]:
        """
        Active products ranked by how many order lines reference them.

        With ``start`` only lines of orders created since then are counted and
        products without such lines are left out.
        """
        lines = select(
            OrderItemModel.product_id.label("product_id"),
            func.count(OrderItemModel.id).label("order_count"),
        )
        if start is not None:
            lines = lines.join(OrderModel, OrderModel.id == OrderItemModel.order_id).where(
                OrderModel.created_at >= start
            )
        lines = lines.group_by(OrderItemModel.product_id).subquery()

        order_count = func.coalesce(lines.c.order_count, 0)
        stmt = select(ProductModel, order_count).where(ProductModel.is_active.is_(True))
        if start is not None:
            stmt = stmt.join(lines, lines.c.product_id == ProductModel.id)
        else:
            stmt = stmt.outerjoin(lines, lines.c.product_id == ProductModel.id)
        stmt = (
            stmt.order_by(order_count.desc(), ProductModel.id)
            .limit(limit)
            .options(selectinload(ProductModel.category))
        )
        return [(product, count) for product, count in self.db.execute(stmt).all()]

    def order_status_counts_since(self, start: datetime) -> list[tuple[str, int]]:
        rows = self.db.execute(
            select(OrderModel.status, func.count(OrderModel.id))
            .where(OrderModel.created_at >= start)
            .group_by(OrderModel.status)
            .order_by(OrderModel.status)
        ).all()
        return [(status, count) for status, count in rows]

    def paid_orders_since(self, start: datetime) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(
                    OrderModel.created_at >= start,
                    OrderModel.payment_status == PaymentStatus.PAID.value,
                )
                .order_by(OrderModel.created_at.asc(), OrderModel.id.asc())
            ).scalars().all()
        )
