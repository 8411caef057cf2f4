"""Order workflow: validate against the user and product services, price the
items, persist the aggregate, and accept status overwrites afterwards.

Stock is read, not reserved. Two concurrent create_order calls for the same
product can both see enough stock and both succeed.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List

from sqlalchemy.ext.asyncio import AsyncSession

from interservice import InsufficientStock, OrderNotFound
from orders_service import crud
from orders_service.collaborators import ProductCatalog, UserDirectory
from orders_service.models import Order, OrderItem, OrderStatus, is_payment_transition
from orders_service.schemas import OrderItemRequest

CENTS = Decimal("0.01")

logger = logging.getLogger("orders.service")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderWorkflowCoordinator:

    def __init__(
        self,
        session: AsyncSession,
        users: UserDirectory,
        products: ProductCatalog,
    ):
        self.session = session
        self.users = users
        self.products = products

    async def create_order(self, user_id: int, items: Iterable[OrderItemRequest]) -> Order:
        logger.info("[Orders] Attempting to create order for user %s", user_id)

        await self.users.get_user(user_id)
        logger.info("[Orders] User %s validated", user_id)

        order_items: List[OrderItem] = []
        for item in items:
            product = await self.products.get_product(item.product_id)
            if item.quantity > product.stock_quantity:
                logger.warning(
                    "[Orders] Insufficient stock for product %s: requested %s, available %s",
                    product.id, item.quantity, product.stock_quantity,
                )
                raise InsufficientStock(
                    f"Insufficient stock for product: {product.name}. "
                    f"Available: {product.stock_quantity}"
                )
            order_items.append(
                OrderItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=product.price,
                    subtotal=(product.price * item.quantity).quantize(CENTS),
                )
            )

        total_amount = sum((i.subtotal for i in order_items), Decimal("0"))
        now = utcnow()
        order = Order(
            user_id=user_id,
            status=OrderStatus.PENDING,
            total_amount=total_amount,
            order_date=now,
            last_updated=now,
            order_items=order_items,
        )
        await crud.add_order(order, self.session)
        logger.info(
            "[Orders] Order %s created for user %s, total %s",
            order.id, order.user_id, order.total_amount,
        )
        return order

    async def get_order(self, order_id: int) -> Order:
        order = await crud.get_order(order_id, self.session)
        if order is None:
            raise OrderNotFound(f"Order not found with ID: {order_id}")
        return order

    async def list_orders_by_user(self, user_id: int) -> List[Order]:
        orders = await crud.get_orders_by_user(user_id, self.session)
        logger.info("[Orders] Fetched %d orders for user %s", len(orders), user_id)
        return orders

    async def update_order_status(self, order_id: int, new_status: OrderStatus) -> Order:
        """Overwrite the status. No transition check is made."""
        order = await self.get_order(order_id)
        current = OrderStatus(order.status)
        if current != new_status and not is_payment_transition(current, new_status):
            logger.warning(
                "[Orders] Order %s moved %s -> %s outside the payment transitions",
                order_id, current.value, new_status.value,
            )
        await crud.set_order_status(order, new_status, utcnow(), self.session)
        logger.info("[Orders] Order %s status updated to %s", order_id, new_status.value)
        return order

    async def delete_order(self, order_id: int) -> None:
        order = await self.get_order(order_id)
        await crud.delete_order(order, self.session)
        logger.info("[Orders] Order %s deleted", order_id)
