from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.category import CategoryModel
from storefront.domain.exceptions import InvalidStateError, NotFoundError, ValidationError
from storefront.domain.schemas import (
    CategoryBrief,
    CategoryCreate,
    CategoryDetail,
    CategoryOut,
    CategoryUpdate,
)
from storefront.repos.category_repo import CategoryRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.catalog_service import CatalogService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CategoryService:
    def __init__(self, db: Session):
        self.repo = CategoryRepo(db)
        self.products = ProductRepo(db)
        self.catalog = CatalogService(db)

    def list_categories(self, parent_id: int | None = None, roots_only: bool = False) -> list[CategoryOut]:
        categories = self.repo.list_active(parent_id=parent_id, roots_only=roots_only)
        counts = self.repo.active_product_counts([c.id for c in categories])
        return [self._to_out(c, counts.get(c.id, 0)) for c in categories]

    def get_category(self, category_id: int) -> CategoryDetail:
        category = self.repo.get_category(category_id)
        if not category or not category.is_active:
            raise NotFoundError("Category not found", {"category_id": category_id})

        products = self.catalog.with_ratings(self.products.active_products_in_category(category_id))
        out = self._to_out(category, len(products))
        return CategoryDetail(**out.model_dump(), products=products)

    def create_category(self, payload: CategoryCreate) -> CategoryOut:
        if self.repo.get_by_slug(payload.slug):
            raise ValidationError("Category slug already exists", {"slug": payload.slug})
        if payload.parent_id is not None and not self.repo.get_category(payload.parent_id):
            raise NotFoundError("Parent category not found", {"parent_id": payload.parent_id})

        category = CategoryModel(**payload.model_dump())
        try:
            self.repo.add_category(category)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Category {category.id} '{category.slug}' created")
        return self._to_out(self.repo.get_category(category.id), 0)

    def update_category(self, category_id: int, payload: CategoryUpdate) -> CategoryOut:
        category = self.repo.get_category(category_id)
        if not category:
            raise NotFoundError("Category not found", {"category_id": category_id})

        changes = payload.model_dump(exclude_unset=True)
        if "slug" in changes:
            clash = self.repo.get_by_slug(changes["slug"])
            if clash and clash.id != category_id:
                raise ValidationError("Category slug already exists", {"slug": changes["slug"]})
        if changes.get("parent_id") is not None:
            if changes["parent_id"] == category_id:
                raise ValidationError("Category cannot be its own parent")
            if not self.repo.get_category(changes["parent_id"]):
                raise NotFoundError("Parent category not found", {"parent_id": changes["parent_id"]})

        try:
            for field, value in changes.items():
                setattr(category, field, value)
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            raise ValidationError("Category slug already exists")
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Category {category_id} updated: {sorted(changes)}")
        counts = self.repo.active_product_counts([category_id])
        return self._to_out(category, counts.get(category_id, 0))

    def delete_category(self, category_id: int) -> None:
        category = self.repo.get_category(category_id)
        if not category:
            raise NotFoundError("Category not found", {"category_id": category_id})

        if self.repo.count_products(category_id) > 0:
            raise InvalidStateError("Cannot delete category with products", {"category_id": category_id})

        if self.repo.count_children(category_id) > 0:
            raise InvalidStateError(
                "Cannot delete category with subcategories", {"category_id": category_id}
            )

        try:
            self.repo.delete_category(category)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Category {category_id} deleted")

    @staticmethod
    def _to_out(category: CategoryModel, product_count: int) -> CategoryOut:
        children = sorted(
            (c for c in category.children if c.is_active),
            key=lambda c: (c.sort_order, c.id),
        )
        out = CategoryOut.model_validate(category)
        return out.model_copy(
            update={
                "children": [CategoryBrief.model_validate(c) for c in children],
                "product_count": product_count,
            }
        )
