# storefront/services/catalog_service.py
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel, ProductVariantModel
from storefront.domain.exceptions import InvalidStateError, NotFoundError, ValidationError
from storefront.domain.schemas import (
    Page,
    Pagination,
    ProductCreate,
    ProductDetail,
    ProductOut,
    ProductQuery,
    ProductUpdate,
)
from storefront.repos.category_repo import CategoryRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def round_rating(mean: float | None) -> float:
    """Mean rating rounded half-up to one decimal, 0 when there are no reviews."""
    if not mean:
        return 0.0
    return float(Decimal(str(mean)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class CatalogService:
    """Customer-facing product queries plus the admin product CRUD."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)
        self.categories = CategoryRepo(db)

    # =====================================================
    # QUERY
    # =====================================================
    def list_products(self, query: ProductQuery) -> Page[ProductOut]:
        if (
            query.min_price is not None
            and query.max_price is not None
            and query.min_price > query.max_price
        ):
            raise ValidationError("minPrice cannot be greater than maxPrice")

        products, total = self.repo.list_products(query)
        return Page(
            items=self.with_ratings(products),
            pagination=Pagination.build(query.page, query.limit, total),
        )

    def get_product(self, product_id: int) -> ProductDetail:
        product = self.repo.get_product_detail(product_id)
        if not product or not product.is_active:
            raise NotFoundError("Product not found", {"product_id": product_id})

        detail = ProductDetail.model_validate(product)
        ratings = [r.rating for r in product.reviews]
        mean = sum(ratings) / len(ratings) if ratings else None
        return detail.model_copy(
            update={
                "variants": [v for v in detail.variants if v.is_active],
                "reviews": sorted(detail.reviews, key=lambda r: r.created_at, reverse=True),
                "average_rating": round_rating(mean),
                "review_count": len(ratings),
            }
        )

    def search(self, q: str | None, limit: int = 10) -> list[ProductOut]:
        if not q or not q.strip():
            raise ValidationError("Search query is required")
        return self.with_ratings(self.repo.search_products(q.strip(), limit))

    def featured(self, limit: int = 8) -> list[ProductOut]:
        return self.with_ratings(self.repo.featured_products(limit))

    def with_ratings(self, products: list[ProductModel]) -> list[ProductOut]:
        stats = self.repo.rating_stats([p.id for p in products])
        result = []
        for product in products:
            mean, count = stats.get(product.id, (None, 0))
            result.append(
                ProductOut.model_validate(product).model_copy(
                    update={"average_rating": round_rating(mean), "review_count": count}
                )
            )
        return result

    # =====================================================
    # ADMIN COMMANDS
    # =====================================================
    def create_product(self, payload: ProductCreate) -> ProductDetail:
        if not self.categories.get_category(payload.category_id):
            raise NotFoundError("Category not found", {"category_id": payload.category_id})

        data = payload.model_dump(exclude={"variants"})
        product = ProductModel(**data)
        product.variants = [ProductVariantModel(**v.model_dump()) for v in payload.variants]

        try:
            self.repo.add_product(product)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Product {product.id} '{product.name}' created")
        return ProductDetail.model_validate(self.repo.get_product_detail(product.id))

    def update_product(self, product_id: int, payload: ProductUpdate) -> ProductDetail:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found", {"product_id": product_id})

        changes = payload.model_dump(exclude_unset=True)
        if changes.get("category_id") is not None and not self.categories.get_category(changes["category_id"]):
            raise NotFoundError("Category not found", {"category_id": changes["category_id"]})

        try:
            for field, value in changes.items():
                setattr(product, field, value)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id} updated: {sorted(changes)}")
        return ProductDetail.model_validate(self.repo.get_product_detail(product_id))

    def delete_product(self, product_id: int) -> None:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found", {"product_id": product_id})

        try:
            self.repo.delete_product(product)
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            raise InvalidStateError("Cannot delete product with orders", {"product_id": product_id})
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id} deleted")
