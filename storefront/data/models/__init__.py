#import all models so SQLAlchemy registers them in Base.metadata

from storefront.data.models.user import UserModel
from storefront.data.models.address import AddressModel
from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel, ProductVariantModel
from storefront.data.models.review import ReviewModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.wishlist import WishlistItemModel

__all__ = [
    "UserModel",
    "AddressModel",
    "CategoryModel",
    "ProductModel",
    "ProductVariantModel",
    "ReviewModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "WishlistItemModel",
]
