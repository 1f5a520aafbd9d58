from sqlalchemy.orm import Session

from storefront.data.models.wishlist import WishlistItemModel
from storefront.domain.exceptions import InvalidStateError, NotFoundError
from storefront.domain.schemas import (
    OrderBrief,
    Page,
    Pagination,
    UserDetail,
    UserOut,
    UserUpdate,
    WishlistItemOut,
)
from storefront.repos.product_repo import ProductRepo
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)
        self.products = ProductRepo(db)

    # =====================================================
    # WISHLIST
    # =====================================================
    def get_wishlist(self, user_id: int) -> list[WishlistItemOut]:
        return [WishlistItemOut.model_validate(i) for i in self.repo.get_wishlist(user_id)]

    def add_to_wishlist(self, user_id: int, product_id: int) -> WishlistItemOut:
        product = self.products.get_product(product_id)
        if not product or not product.is_active:
            raise NotFoundError("Product not found", {"product_id": product_id})

        if self.repo.get_wishlist_item(user_id, product_id):
            raise InvalidStateError("Product already in wishlist", {"product_id": product_id})

        try:
            item = self.repo.add_wishlist_item(WishlistItemModel(user_id=user_id, product_id=product_id))
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id} added to wishlist of user {user_id}")
        return WishlistItemOut.model_validate(item)

    def remove_from_wishlist(self, user_id: int, product_id: int) -> None:
        item = self.repo.get_wishlist_item(user_id, product_id)
        if not item:
            raise NotFoundError("Product not in wishlist", {"product_id": product_id})

        try:
            self.repo.delete_wishlist_item(item)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id} removed from wishlist of user {user_id}")

    # =====================================================
    # ADMIN
    # =====================================================
    def list_users(
        self,
        page: int,
        limit: int,
        search: str | None = None,
        role: str | None = None,
    ) -> Page[UserOut]:
        users, total = self.repo.list_users((page - 1) * limit, limit, search=search, role=role)
        return Page(
            items=[UserOut.model_validate(u) for u in users],
            pagination=Pagination.build(page, limit, total),
        )

    def get_user(self, user_id: int) -> UserDetail:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found", {"user_id": user_id})

        return UserDetail.model_validate(user).model_copy(
            update={
                "order_count": self.repo.count_orders(user_id),
                "review_count": self.repo.count_reviews(user_id),
                "recent_orders": [OrderBrief.model_validate(o) for o in self.repo.recent_orders(user_id)],
            }
        )

    def update_user(self, user_id: int, payload: UserUpdate) -> UserOut:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found", {"user_id": user_id})

        changes = payload.model_dump(exclude_unset=True)
        try:
            for field, value in changes.items():
                if value is None:
                    continue
                setattr(user, field, value.value if field == "role" else value)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"User {user_id} updated: {sorted(changes)}")
        return UserOut.model_validate(user)

    def delete_user(self, user_id: int) -> None:
        """Soft delete: the account is deactivated, orders keep their owner."""
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found", {"user_id": user_id})

        try:
            user.is_active = False
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"User {user_id} deactivated")
