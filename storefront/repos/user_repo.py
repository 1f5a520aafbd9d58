from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.data.models.review import ReviewModel
from storefront.data.models.user import UserModel
from storefront.data.models.wishlist import WishlistItemModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def list_users(
        self,
        offset: int,
        limit: int,
        search: str | None = None,
        role: str | None = None,
    ) -> tuple[list[UserModel], int]:
        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(UserModel.name.ilike(pattern), UserModel.email.ilike(pattern)))
        if role:
            conditions.append(UserModel.role == role)

        total = self.db.execute(
            select(func.count(UserModel.id)).where(*conditions)
        ).scalar_one()
        users = self.db.execute(
            select(UserModel)
            .where(*conditions)
            .order_by(UserModel.created_at.desc(), UserModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()
        return list(users), total

    def count_orders(self, user_id: int) -> int:
        return self.db.execute(
            select(func.count(OrderModel.id)).where(OrderModel.user_id == user_id)
        ).scalar_one()

    def count_reviews(self, user_id: int) -> int:
        return self.db.execute(
            select(func.count(ReviewModel.id)).where(ReviewModel.user_id == user_id)
        ).scalar_one()

    def recent_orders(self, user_id: int, limit: int = 5) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
                .limit(limit)
            ).scalars().all()
        )

    # wishlist
    def get_wishlist(self, user_id: int) -> list[WishlistItemModel]:
        return list(
            self.db.execute(
                select(WishlistItemModel)
                .where(WishlistItemModel.user_id == user_id)
                .order_by(WishlistItemModel.created_at.desc(), WishlistItemModel.id.desc())
                .options(selectinload(WishlistItemModel.product))
            ).scalars().all()
        )

    def get_wishlist_item(self, user_id: int, product_id: int) -> WishlistItemModel | None:
        return self.db.execute(
            select(WishlistItemModel).where(
                WishlistItemModel.user_id == user_id,
                WishlistItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def add_wishlist_item(self, item: WishlistItemModel) -> WishlistItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_wishlist_item(self, item: WishlistItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
