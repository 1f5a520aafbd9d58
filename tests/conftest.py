"""
Shared fixtures.

Every test gets its own SQLite file so request sessions and the seeding
session use separate connections, the same way they would against Postgres.
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from storefront.data.database import Database
from storefront.data.models import (
    AddressModel,
    CategoryModel,
    OrderItemModel,
    OrderModel,
    ProductModel,
    ProductVariantModel,
    ReviewModel,
    UserModel,
)
from storefront.domain.enums import OrderStatus, PaymentStatus, Role
from storefront.main import create_app


class Seeder:
    """Inserts fixtures through a short-lived session and commits right away."""

    def __init__(self, database: Database):
        self.database = database
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def _save(self, obj):
        db = self.database.session_factory()
        try:
            db.add(obj)
            db.commit()
            db.refresh(obj)
            db.expunge(obj)
            return obj
        finally:
            db.close()

    def user(self, role: Role = Role.CUSTOMER, is_active: bool = True, **kwargs) -> UserModel:
        n = self._next()
        return self._save(
            UserModel(
                email=kwargs.pop("email", f"user{n}@example.com"),
                name=kwargs.pop("name", f"User {n}"),
                role=role.value,
                is_active=is_active,
                **kwargs,
            )
        )

    def admin(self) -> UserModel:
        return self.user(role=Role.ADMIN)

    def address(self, user: UserModel) -> AddressModel:
        return self._save(
            AddressModel(
                user_id=user.id,
                full_name=user.name,
                line1="1 Market Street",
                city="Springfield",
                postal_code="12345",
                country="US",
            )
        )

    def category(self, **kwargs) -> CategoryModel:
        n = self._next()
        return self._save(
            CategoryModel(
                name=kwargs.pop("name", f"Category {n}"),
                slug=kwargs.pop("slug", f"category-{n}"),
                **kwargs,
            )
        )

    def product(self, category: CategoryModel, price="100.00", **kwargs) -> ProductModel:
        n = self._next()
        return self._save(
            ProductModel(
                name=kwargs.pop("name", f"Product {n}"),
                price=Decimal(str(price)),
                category_id=category.id,
                **kwargs,
            )
        )

    def variant(self, product: ProductModel, price="150.00", **kwargs) -> ProductVariantModel:
        n = self._next()
        return self._save(
            ProductVariantModel(
                product_id=product.id,
                name=kwargs.pop("name", f"Variant {n}"),
                price=Decimal(str(price)),
                **kwargs,
            )
        )

    def review(self, product: ProductModel, user: UserModel, rating: int) -> ReviewModel:
        return self._save(ReviewModel(product_id=product.id, user_id=user.id, rating=rating))

    def order(
        self,
        user: UserModel,
        total="100.00",
        status: OrderStatus = OrderStatus.PENDING,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        created_at: datetime | None = None,
        items: list[tuple[ProductModel, int]] | None = None,
    ) -> OrderModel:
        n = self._next()
        total = Decimal(str(total))
        order = OrderModel(
            order_number=f"TEST{n:06d}",
            user_id=user.id,
            payment_method="card",
            subtotal=total,
            tax=Decimal("0"),
            shipping=Decimal("0"),
            total=total,
            status=status.value,
            payment_status=payment_status.value,
            created_at=created_at or datetime.now(timezone.utc),
            items=[
                OrderItemModel(
                    product_id=product.id,
                    quantity=qty,
                    price=product.price,
                    total=product.price * qty,
                )
                for product, qty in (items or [])
            ],
        )
        return self._save(order)


@pytest.fixture
def database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'storefront.db'}")
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def session(database):
    db = database.session_factory()
    yield db
    db.close()


@pytest.fixture
def seed(database):
    return Seeder(database)


@pytest.fixture
def client(database):
    app = create_app(database)
    with TestClient(app) as test_client:
        yield test_client


def auth(user) -> dict:
    """Headers the upstream gateway would forward for this user."""
    return {"X-User-Id": str(user.id)}
