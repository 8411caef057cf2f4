from datetime import datetime
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from orders_service.models import Order, OrderStatus


async def add_order(
    order: Order,
    session: AsyncSession
) -> Order:
    """
    Persists the order together with all of its items in one transaction.
    """
    session.add(order)
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    return order

async def get_order(
    order_id: int,
    session: AsyncSession
) -> Order | None:
    return await session.get(Order, order_id)

async def get_orders_by_user(
    user_id: int,
    session: AsyncSession
) -> List[Order]:
    result = await session.execute(
        select(Order).where(Order.user_id == user_id).order_by(Order.id)
    )
    return list(result.scalars().all())

async def set_order_status(
    order: Order,
    new_status: OrderStatus,
    updated_at: datetime,
    session: AsyncSession
) -> Order:
    order.status = new_status
    order.last_updated = updated_at
    session.add(order)
    await session.commit()
    return order

async def delete_order(
    order: Order,
    session: AsyncSession
) -> None:
    # items go with the order (delete-orphan cascade)
    await session.delete(order)
    await session.commit()
