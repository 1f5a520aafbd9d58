# storefront/repos/category_repo.py
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel


class CategoryRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_category(self, category_id: int) -> CategoryModel | None:
        stmt = (
            select(CategoryModel)
            .where(CategoryModel.id == category_id)
            .options(
                selectinload(CategoryModel.parent),
                selectinload(CategoryModel.children),
            )
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_slug(self, slug: str) -> CategoryModel | None:
        return self.db.execute(
            select(CategoryModel).where(CategoryModel.slug == slug)
        ).scalar_one_or_none()

    def list_active(self, parent_id: int | None = None, roots_only: bool = False) -> list[CategoryModel]:
        stmt = select(CategoryModel).where(CategoryModel.is_active.is_(True))
        if parent_id is not None:
            stmt = stmt.where(CategoryModel.parent_id == parent_id)
        elif roots_only:
            stmt = stmt.where(CategoryModel.parent_id.is_(None))
        stmt = stmt.order_by(CategoryModel.sort_order, CategoryModel.id).options(
            selectinload(CategoryModel.parent),
            selectinload(CategoryModel.children),
        )
        return list(self.db.execute(stmt).scalars().all())

    def active_product_counts(self, category_ids: list[int]) -> dict[int, int]:
        if not category_ids:
            return {}
        rows = self.db.execute(
            select(ProductModel.category_id, func.count(ProductModel.id))
            .where(
                ProductModel.category_id.in_(category_ids),
                ProductModel.is_active.is_(True),
            )
            .group_by(ProductModel.category_id)
        ).all()
        return {cid: count for cid, count in rows}

    def count_products(self, category_id: int) -> int:
        return self.db.execute(
            select(func.count(ProductModel.id)).where(ProductModel.category_id == category_id)
        ).scalar_one()

    def count_children(self, category_id: int) -> int:
        return self.db.execute(
            select(func.count(CategoryModel.id)).where(CategoryModel.parent_id == category_id)
        ).scalar_one()

    def add_category(self, category: CategoryModel) -> CategoryModel:
        self.db.add(category)
        self.db.flush()
        return category

    def delete_category(self, category: CategoryModel) -> None:
        self.db.delete(category)
        self.db.flush()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
