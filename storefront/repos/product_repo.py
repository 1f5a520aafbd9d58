# storefront/repos/product_repo.py
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.product import ProductModel, ProductVariantModel
from storefront.data.models.review import ReviewModel
from storefront.domain.enums import ProductSortField, SortOrder
from storefront.domain.schemas import ProductQuery

_SORT_COLUMNS = {
    ProductSortField.CREATED_AT: ProductModel.created_at,
    ProductSortField.UPDATED_AT: ProductModel.updated_at,
    ProductSortField.PRICE: ProductModel.price,
    ProductSortField.NAME: ProductModel.name,
}


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_condition(term: str):
    """Case-insensitive substring match on name, description or tags."""
    pattern = _like_pattern(term)
    return or_(
        ProductModel.name.ilike(pattern, escape="\\"),
        ProductModel.description.ilike(pattern, escape="\\"),
        #tag_index is already lowercased, so lowercase the term here
        ProductModel.tag_index.like(_like_pattern(term.lower()), escape="\\"),
    )


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_product_detail(self, product_id: int) -> ProductModel | None:
        stmt = (
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .options(
                selectinload(ProductModel.category),
                selectinload(ProductModel.variants),
                selectinload(ProductModel.reviews).selectinload(ReviewModel.user),
            )
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_variant(self, variant_id: int) -> ProductVariantModel | None:
        return self.db.get(ProductVariantModel, variant_id)

    def list_products(self, query: ProductQuery) -> tuple[list[ProductModel], int]:
        conditions = [ProductModel.is_active.is_(True)]

        if query.category is not None:
            conditions.append(ProductModel.category_id == query.category)
        if query.search:
            conditions.append(search_condition(query.search))
        if query.min_price is not None:
            conditions.append(ProductModel.price >= query.min_price)
        if query.max_price is not None:
            conditions.append(ProductModel.price <= query.max_price)
        if query.featured:
            conditions.append(ProductModel.is_featured.is_(True))

        total = self.db.execute(
            select(func.count(ProductModel.id)).where(*conditions)
        ).scalar_one()

        column = _SORT_COLUMNS[query.sort_by]
        ordering = column.asc() if query.sort_order == SortOrder.ASC else column.desc()

        products = self.db.execute(
            select(ProductModel)
            .where(*conditions)
            .order_by(ordering, ProductModel.id)
            .offset((query.page - 1) * query.limit)
            .limit(query.limit)
            .options(selectinload(ProductModel.category))
        ).scalars().all()

        return list(products), total

    def search_products(self, term: str, limit: int) -> list[ProductModel]:
        stmt = (
            select(ProductModel)
            .where(ProductModel.is_active.is_(True), search_condition(term))
            .order_by(ProductModel.id)
            .limit(limit)
            .options(selectinload(ProductModel.category))
        )
        return list(self.db.execute(stmt).scalars().all())

    def featured_products(self, limit: int) -> list[ProductModel]:
        stmt = (
            select(ProductModel)
            .where(ProductModel.is_active.is_(True), ProductModel.is_featured.is_(True))
            .order_by(ProductModel.id)
            .limit(limit)
            .options(selectinload(ProductModel.category))
        )
        return list(self.db.execute(stmt).scalars().all())

    def active_products_in_category(self, category_id: int) -> list[ProductModel]:
        stmt = (
            select(ProductModel)
            .where(ProductModel.is_active.is_(True), ProductModel.category_id == category_id)
            .order_by(ProductModel.id)
            .options(selectinload(ProductModel.category))
        )
        return list(self.db.execute(stmt).scalars().all())

    def rating_stats(self, product_ids: list[int]) -> dict[int, tuple[float, int]]:
        """{product_id: (mean rating, review count)} for products that have reviews."""
        if not product_ids:
            return {}
        rows = self.db.execute(
            select(
                ReviewModel.product_id,
                func.avg(ReviewModel.rating),
                func.count(ReviewModel.id),
            )
            .where(ReviewModel.product_id.in_(product_ids))
            .group_by(ReviewModel.product_id)
        ).all()
        return {pid: (float(avg), count) for pid, avg, count in rows}

    def add_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def delete_product(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.db.flush()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
