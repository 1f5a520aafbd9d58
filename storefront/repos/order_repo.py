# storefront/repos/order_repo.py
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.address import AddressModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel


def _with_items():
    return (
        selectinload(OrderModel.items).selectinload(OrderItemModel.product),
        selectinload(OrderModel.items).selectinload(OrderItemModel.variant),
    )


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        stmt = (
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(
                *_with_items(),
                selectinload(OrderModel.shipping_address),
                selectinload(OrderModel.billing_address),
            )
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_user_order(self, user_id: int, order_id: int) -> OrderModel | None:
        order = self.get_order(order_id)
        if order is None or order.user_id != user_id:
            return None
        return order

    def list_user_orders(
        self,
        user_id: int,
        offset: int,
        limit: int,
        status: str | None = None,
    ) -> tuple[list[OrderModel], int]:
        conditions = [OrderModel.user_id == user_id]
        if status:
            conditions.append(OrderModel.status == status)

        total = self.db.execute(
            select(func.count(OrderModel.id)).where(*conditions)
        ).scalar_one()

        orders = self.db.execute(
            select(OrderModel)
            .where(*conditions)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
            .options(*_with_items())
        ).scalars().all()

        return list(orders), total

    def get_user_address(self, user_id: int, address_id: int) -> AddressModel | None:
        address = self.db.get(AddressModel, address_id)
        if address is None or address.user_id != user_id:
            return None
        return address

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
