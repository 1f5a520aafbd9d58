# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from storefront.domain.enums import (
    OrderStatus,
    PaymentStatus,
    ProductSortField,
    Role,
    SortOrder,
)
from storefront.utils.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")

# money stays Decimal inside the service, goes out as a JSON number
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class Schema(BaseModel):
    """camelCase on the wire, snake_case in Python, readable from ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =====================================================
# ENVELOPE
# =====================================================
class Pagination(Schema):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        pages = (total + limit - 1) // limit if limit else 0
        return cls(page=page, limit=limit, total=total, pages=pages)


class Envelope(Schema, Generic[T]):
    """Every response body: {success, data?, message?, pagination?}."""

    success: bool = True
    message: str | None = None
    data: T | None = None
    pagination: Pagination | None = None


class Page(Generic[T]):
    """Service-level result of a paginated query."""

    def __init__(self, items: List[T], pagination: Pagination):
        self.items = items
        self.pagination = pagination


# =====================================================
# IDENTITY / USERS
# =====================================================
class CurrentUser(Schema):
    """Verified identity handed to the handlers by the auth layer."""

    id: int
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class UserRef(Schema):
    id: int
    name: str
    email: str


class UserOut(Schema):
    id: int
    email: str
    name: str
    phone: str | None = None
    role: Role
    is_active: bool
    created_at: datetime


class UserUpdate(Schema):
    name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=32)
    role: Role | None = None
    is_active: bool | None = None


class OrderBrief(Schema):
    id: int
    order_number: str
    status: OrderStatus
    total: Money
    created_at: datetime


class UserDetail(UserOut):
    order_count: int = 0
    review_count: int = 0
    recent_orders: List[OrderBrief] = []


class AddressOut(Schema):
    id: int
    full_name: str
    line1: str
    line2: str | None = None
    city: str
    postal_code: str
    country: str
    phone: str | None = None


# =====================================================
# CATALOG
# =====================================================
class CategoryRef(Schema):
    id: int
    name: str
    slug: str


class ProductRef(Schema):
    id: int
    name: str
    images: List[str] = []


class ProductBrief(ProductRef):
    price: Money
    is_active: bool


class VariantRef(Schema):
    id: int
    name: str
    attributes: dict = {}


class VariantOut(VariantRef):
    sku: str | None = None
    price: Money
    is_active: bool


class ReviewOut(Schema):
    id: int
    rating: int
    comment: str | None = None
    created_at: datetime
    user: UserRef | None = None


class ProductOut(Schema):
    id: int
    name: str
    description: str | None = None
    sku: str | None = None
    price: Money
    compare_price: Money | None = None
    tags: List[str] = []
    images: List[str] = []
    is_active: bool
    is_featured: bool
    category_id: int
    category: CategoryRef | None = None
    average_rating: float = 0
    review_count: int = 0
    created_at: datetime
    updated_at: datetime


class ProductDetail(ProductOut):
    variants: List[VariantOut] = []
    reviews: List[ReviewOut] = []


class ProductQuery(Schema):
    """Typed filter set for the product listing, validated at the boundary."""

    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    category: int | None = None
    search: str | None = None
    min_price: Decimal | None = Field(None, ge=0)
    max_price: Decimal | None = Field(None, ge=0)
    sort_by: ProductSortField = ProductSortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
    featured: bool | None = None


class VariantIn(Schema):
    name: str = Field(..., min_length=1, max_length=200)
    sku: str | None = None
    price: Decimal = Field(..., ge=0)
    attributes: dict = {}
    is_active: bool = True


class ProductCreate(Schema):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    sku: str | None = None
    price: Decimal = Field(..., ge=0)
    compare_price: Decimal | None = Field(None, ge=0)
    tags: List[str] = []
    images: List[str] = []
    is_active: bool = True
    is_featured: bool = False
    category_id: int = Field(..., gt=0)
    variants: List[VariantIn] = []


class ProductUpdate(Schema):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    sku: str | None = None
    price: Decimal | None = Field(None, ge=0)
    compare_price: Decimal | None = Field(None, ge=0)
    tags: List[str] | None = None
    images: List[str] | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    category_id: int | None = Field(None, gt=0)

    # omitted means unchanged, but these columns can never be cleared
    @field_validator("name", "price", "tags", "images", "is_active", "is_featured", "category_id")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class CategoryBrief(CategoryRef):
    description: str | None = None
    image: str | None = None
    parent_id: int | None = None
    sort_order: int
    is_active: bool


class CategoryOut(CategoryBrief):
    parent: CategoryRef | None = None
    children: List[CategoryBrief] = []
    product_count: int = 0


class CategoryDetail(CategoryOut):
    products: List[ProductOut] = []


class CategoryCreate(Schema):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=120, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    image: str | None = None
    parent_id: int | None = None
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdate(Schema):
    name: str | None = Field(None, min_length=1, max_length=100)
    slug: str | None = Field(None, min_length=1, max_length=120, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    image: str | None = None
    parent_id: int | None = None
    sort_order: int | None = None
    is_active: bool | None = None

    @field_validator("name", "slug", "sort_order", "is_active")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


# =====================================================
# CART
# =====================================================
class CartItemAdd(Schema):
    product_id: int = Field(..., gt=0)
    variant_id: int | None = Field(None, gt=0)
    quantity: int = Field(1, ge=1)


class CartItemUpdate(Schema):
    #range is checked by CartService so the message matches the rule
    quantity: int


class CartItemOut(Schema):
    id: int
    product_id: int
    variant_id: int | None = None
    quantity: int
    unit_price: Money
    line_total: Money
    product: ProductBrief
    variant: VariantRef | None = None


class CartOut(Schema):
    id: int
    user_id: int
    items: List[CartItemOut]
    subtotal: Money
    total_items: int


# =====================================================
# ORDERS
# =====================================================
class OrderCreate(Schema):
    shipping_address_id: int = Field(..., gt=0)
    billing_address_id: int = Field(..., gt=0)
    payment_method: str = Field(..., min_length=1, max_length=50)
    notes: str | None = Field(None, max_length=1000)


class OrderStatusUpdate(Schema):
    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None


class OrderItemOut(Schema):
    id: int
    product_id: int
    variant_id: int | None = None
    quantity: int
    price: Money
    total: Money
    product: ProductRef | None = None
    variant: VariantRef | None = None


class OrderOut(Schema):
    id: int
    order_number: str
    user_id: int
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: str
    subtotal: Money
    tax: Money
    shipping: Money
    total: Money
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemOut] = []


class OrderDetail(OrderOut):
    shipping_address: AddressOut | None = None
    billing_address: AddressOut | None = None


class AdminOrderOut(OrderOut):
    user: UserRef | None = None


# =====================================================
# WISHLIST
# =====================================================
class WishlistAdd(Schema):
    product_id: int = Field(..., gt=0)


class WishlistItemOut(Schema):
    id: int
    product_id: int
    created_at: datetime
    product: ProductBrief


# =====================================================
# REPORTING
# =====================================================
class DashboardOverview(Schema):
    total_users: int
    total_orders: int
    total_products: int
    total_revenue: Money


class OrderStatusCount(Schema):
    status: OrderStatus
    count: int


class TopProductOut(Schema):
    id: int
    name: str
    price: Money
    images: List[str] = []
    category: CategoryRef | None = None
    order_count: int


class DashboardOut(Schema):
    overview: DashboardOverview
    recent_users: List[UserOut]
    recent_orders: List[AdminOrderOut]
    top_products: List[TopProductOut]
    order_stats: List[OrderStatusCount]


class SalesBucket(Schema):
    date: str
    total: Money
    count: int


class SalesSummary(Schema):
    total_revenue: Money
    total_orders: int
    average_order_value: Money


class SalesReportOut(Schema):
    report_data: List[SalesBucket]
    summary: SalesSummary
