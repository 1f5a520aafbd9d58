# storefront/services/order_service.py
import secrets
import string
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.enums import OrderStatus, PaymentStatus
from storefront.domain.exceptions import ConflictError, InvalidStateError, NotFoundError
from storefront.domain.schemas import OrderDetail, OrderOut, OrderStatusUpdate, Page, Pagination
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services import pricing
from storefront.services.cart_service import priced_line
from storefront.utils.logging import get_logger
from storefront.utils.settings import ORDER_NUMBER_PREFIX

logger = get_logger(__name__)

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits

#orders in these states can no longer be cancelled by the customer
_NOT_CANCELLABLE = {OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value}


def generate_order_number(now: datetime | None = None, suffix_length: int = 4) -> str:
    """
    Human-readable order number: prefix + epoch milliseconds + random suffix.

    e.g. CH1760871234567X7QZ. The orders.order_number column is unique, a
    collision fails the insert instead of producing a duplicate.
    """
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(suffix_length))
    return f"{ORDER_NUMBER_PREFIX}{millis}{suffix}".upper()


class OrderService:
    """
    Checkout and order lifecycle.

    Checkout turns the caller's cart into an order with frozen prices and
    empties the cart; both writes commit together or not at all.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)

    def create_order(
        self,
        user_id: int,
        shipping_address_id: int,
        billing_address_id: int,
        payment_method: str,
        notes: str | None = None,
    ) -> OrderDetail:
        """
        Use Case: checkout.

        1. Loads the cart, an empty cart is rejected
        2. Snapshots the current unit price of every line
        3. Prices subtotal, tax, shipping and total
        4. Inserts order + items, clears the cart, single commit
        """
        cart = self.carts.get_cart_by_user(user_id)
        if not cart or not cart.items:
            logger.warning(f"Checkout rejected for user {user_id}: cart is empty")
            raise InvalidStateError("Cart is empty", {"user_id": user_id})

        for address_id in {shipping_address_id, billing_address_id}:
            if not self.repo.get_user_address(user_id, address_id):
                raise NotFoundError("Address not found", {"address_id": address_id})

        order_items = []
        lines = []
        for item in cart.items:
            line = priced_line(item)
            lines.append(line)
            order_items.append(
                OrderItemModel(
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    quantity=line.quantity,
                    price=line.unit_price,
                    total=line.total,
                )
            )

        breakdown = pricing.price_lines(lines)

        order = OrderModel(
            order_number=generate_order_number(),
            user_id=user_id,
            shipping_address_id=shipping_address_id,
            billing_address_id=billing_address_id,
            payment_method=payment_method,
            subtotal=breakdown.subtotal,
            tax=breakdown.tax,
            shipping=breakdown.shipping,
            total=breakdown.total,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            notes=notes,
            items=order_items,
        )

        try:
            self.repo.add_order(order)
            self.carts.clear_items(cart)

            # the cart version guards against a concurrent add landing between
            # reading the cart and clearing it
            rowcount = self.carts.update_cart_version(
                cart_id=cart.id,
                old_version=cart.version,
                new_data={
                    "version": cart.version + 1,
                    "updated_at": datetime.now(timezone.utc),
                },
            )
            if rowcount == 0:
                raise ConflictError(
                    "Cart was modified during checkout, please retry",
                    {"cart_id": cart.id},
                )

            self.repo.commit()
        except Exception as e:
            logger.error(f"Checkout failed for user {user_id}, rolling back: {e}")
            self.repo.rollback()
            raise

        logger.info(
            f"Order {order.order_number} (id {order.id}) created for user {user_id}: "
            f"subtotal={breakdown.subtotal} tax={breakdown.tax} "
            f"shipping={breakdown.shipping} total={breakdown.total}"
        )

        return OrderDetail.model_validate(self.repo.get_order(order.id))

    def list_orders(
        self,
        user_id: int,
        page: int,
        limit: int,
        status: OrderStatus | None = None,
    ) -> Page[OrderOut]:
        orders, total = self.repo.list_user_orders(
            user_id=user_id,
            offset=(page - 1) * limit,
            limit=limit,
            status=status.value if status else None,
        )
        return Page(
            items=[OrderOut.model_validate(o) for o in orders],
            pagination=Pagination.build(page, limit, total),
        )

    def get_order(self, user_id: int, order_id: int) -> OrderDetail:
        order = self.repo.get_user_order(user_id, order_id)
        if not order:
            raise NotFoundError("Order not found", {"order_id": order_id})
        return OrderDetail.model_validate(order)

    def update_status(self, order_id: int, payload: OrderStatusUpdate) -> OrderOut:
        """
        Admin override: partial update, no transition rules.
        """
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found", {"order_id": order_id})

        try:
            if payload.status is not None:
                order.status = payload.status.value
            if payload.payment_status is not None:
                order.payment_status = payload.payment_status.value
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Order {order.order_number} updated: status={order.status} "
            f"payment_status={order.payment_status}"
        )
        return OrderOut.model_validate(order)

    def cancel(self, user_id: int, order_id: int) -> OrderOut:
        order = self.repo.get_user_order(user_id, order_id)
        if not order:
            raise NotFoundError("Order not found", {"order_id": order_id})

        if order.status == OrderStatus.CANCELLED.value:
            raise InvalidStateError("Order is already cancelled", {"order_id": order_id})

        if order.status in _NOT_CANCELLABLE:
            raise InvalidStateError(
                "Cannot cancel shipped or delivered order",
                {"order_id": order_id, "status": order.status},
            )

        try:
            order.status = OrderStatus.CANCELLED.value
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order.order_number} cancelled by user {user_id}")
        return OrderOut.model_validate(order)
