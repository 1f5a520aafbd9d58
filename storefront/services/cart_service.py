from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.exceptions import ConflictError, NotFoundError, ValidationError
from storefront.domain.schemas import CartItemOut, CartOut, ProductBrief, VariantRef
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services import pricing
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def priced_line(item: CartItemModel) -> pricing.PricedLine:
    """Price a cart line with the current product/variant price."""
    variant_price = item.variant.price if item.variant_id is not None and item.variant else None
    return pricing.PricedLine(
        unit_price=pricing.effective_unit_price(item.product.price, variant_price),
        quantity=item.quantity,
    )


def to_cart_item_out(item: CartItemModel) -> CartItemOut:
    line = priced_line(item)
    return CartItemOut(
        id=item.id,
        product_id=item.product_id,
        variant_id=item.variant_id,
        quantity=item.quantity,
        unit_price=line.unit_price,
        line_total=line.total,
        product=ProductBrief.model_validate(item.product),
        variant=VariantRef.model_validate(item.variant) if item.variant else None,
    )


class CartService:
    """
    Use cases for the per-user cart.

    commands (add, update_quantity, remove, clear) change the lines and bump
    the cart version in the same transaction, query (get) only reads apart
    from creating an empty cart on first access.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    # =====================================================
    # QUERY
    # =====================================================
    def get(self, user_id: int) -> CartOut:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            try:
                cart = self._get_or_create(user_id)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise
        return self._to_out(cart)

    # =====================================================
    # COMMANDS
    # =====================================================
    def add(
        self,
        user_id: int,
        product_id: int,
        variant_id: int | None = None,
        quantity: int = 1,
    ) -> CartItemOut:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        product = self.products.get_product(product_id)
        if not product or not product.is_active:
            logger.warning(f"Add to cart rejected, product {product_id} missing or inactive")
            raise NotFoundError("Product not found or inactive", {"product_id": product_id})

        if variant_id is not None:
            variant = self.products.get_variant(variant_id)
            if not variant or not variant.is_active or variant.product_id != product_id:
                logger.warning(f"Add to cart rejected, variant {variant_id} missing or inactive")
                raise NotFoundError("Product variant not found or inactive", {"variant_id": variant_id})

        try:
            cart = self._get_or_create(user_id)
            old_version = cart.version

            existing = self.repo.get_cart_item(cart.id, product_id, variant_id)
            if existing:
                logger.info(
                    f"Product {product_id} already in cart {cart.id}, quantity "
                    f"{existing.quantity} -> {existing.quantity + quantity}"
                )
                existing.quantity += quantity
                item = self.repo.add_cart_item(existing)
            else:
                logger.info(f"Adding product {product_id} (variant {variant_id}) to cart {cart.id}")
                item = self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart.id,
                        product_id=product_id,
                        variant_id=variant_id,
                        quantity=quantity,
                    )
                )

            self._bump_version(cart, old_version)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return to_cart_item_out(self.repo.get_user_cart_item(user_id, item.id))

    def update_quantity(self, user_id: int, item_id: int, quantity: int) -> CartItemOut:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        item = self.repo.get_user_cart_item(user_id, item_id)
        if not item:
            raise NotFoundError("Cart item not found", {"item_id": item_id})

        try:
            cart = item.cart
            old_version = cart.version
            item.quantity = quantity
            self.repo.add_cart_item(item)
            self._bump_version(cart, old_version)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart item {item_id} quantity set to {quantity}")
        return to_cart_item_out(item)

    def remove(self, user_id: int, item_id: int) -> None:
        item = self.repo.get_user_cart_item(user_id, item_id)
        if not item:
            raise NotFoundError("Cart item not found", {"item_id": item_id})

        try:
            cart = item.cart
            old_version = cart.version
            self.repo.delete_cart_item(item)
            self._bump_version(cart, old_version)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart item {item_id} removed from cart {cart.id}")

    def clear(self, user_id: int) -> None:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart or not cart.items:
            return

        try:
            old_version = cart.version
            removed = self.repo.clear_items(cart)
            self._bump_version(cart, old_version)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart {cart.id} cleared ({removed} lines)")

    # =====================================================
    # HELPERS
    # =====================================================
    def _get_or_create(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart
        cart = self.repo.create_cart(user_id)
        logger.info(f"Created cart {cart.id} for user {user_id}")
        return cart

    def _bump_version(self, cart: CartModel, old_version: int) -> None:
        # optimistic locking, UPDATE carts SET version = v + 1 WHERE id = :id AND version = v
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=old_version,
            new_data={
                "version": old_version + 1,
                "updated_at": datetime.now(timezone.utc),
            },
        )
        if rowcount == 0:
            logger.warning(f"Version conflict on cart {cart.id} (expected version {old_version})")
            raise ConflictError(
                "Cart was modified by another request, please retry",
                {"cart_id": cart.id, "version": old_version},
            )
        set_committed_value(cart, "version", old_version + 1)

    def _to_out(self, cart: CartModel) -> CartOut:
        items = [to_cart_item_out(item) for item in cart.items]
        lines = [priced_line(item) for item in cart.items]
        return CartOut(
            id=cart.id,
            user_id=cart.user_id,
            items=items,
            subtotal=pricing.subtotal(lines),
            total_items=sum(item.quantity for item in cart.items),
        )
