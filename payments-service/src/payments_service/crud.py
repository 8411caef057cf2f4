from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from interservice import PaymentAlreadyExists
from payments_service.models import Payment, PaymentStatus, ReconciliationOutbox


async def add_payment(
    payment: Payment,
    outbox_entry: ReconciliationOutbox,
    session: AsyncSession
) -> Payment:
    """
    Writes the payment and its reconciliation entry in one transaction.
    The unique order_id column turns a concurrent duplicate into PaymentAlreadyExists.
    """
    session.add(payment)
    try:
        await session.flush()  # payment.id for the outbox row
        outbox_entry.payment_id = payment.id
        session.add(outbox_entry)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise PaymentAlreadyExists(
            f"Payment already exists for order ID: {payment.order_id}"
        )
    return payment

async def payment_exists_for_order(
    order_id: int,
    session: AsyncSession
) -> bool:
    result = await session.execute(
        select(Payment.id).where(Payment.order_id == order_id)
    )
    return result.first() is not None

async def get_payment(
    payment_id: int,
    session: AsyncSession
) -> Payment | None:
    return await session.get(Payment, payment_id)

async def get_payment_by_order_id(
    order_id: int,
    session: AsyncSession
) -> Payment | None:
    result = await session.execute(select(Payment).where(Payment.order_id == order_id))
    return result.scalar_one_or_none()

async def list_payments(session: AsyncSession) -> List[Payment]:
    result = await session.execute(select(Payment).order_by(Payment.id))
    return list(result.scalars().all())

async def set_payment_status(
    payment: Payment,
    new_status: PaymentStatus,
    updated_at: datetime,
    session: AsyncSession
) -> Payment:
    payment.status = new_status
    payment.last_updated = updated_at
    session.add(payment)
    await session.commit()
    return payment

async def delete_payment(
    payment: Payment,
    deleted_at: datetime,
    session: AsyncSession
) -> int:
    """
    Deletes the payment and abandons its undelivered reconciliation entries
    in the same transaction. Returns how many entries were abandoned.
    """
    result = await session.execute(
        select(ReconciliationOutbox).where(
            ReconciliationOutbox.payment_id == payment.id,
            ReconciliationOutbox.delivered_at.is_(None),
            ReconciliationOutbox.abandoned_at.is_(None),
        )
    )
    entries = list(result.scalars().all())
    for entry in entries:
        entry.abandoned_at = deleted_at
        entry.last_error = "payment deleted"
    await session.delete(payment)
    await session.commit()
    return len(entries)

async def pending_reconciliations(
    now: datetime,
    session: AsyncSession
) -> List[ReconciliationOutbox]:
    stmt = (
        select(ReconciliationOutbox)
        .where(
            ReconciliationOutbox.delivered_at.is_(None),
            ReconciliationOutbox.abandoned_at.is_(None),
            ReconciliationOutbox.next_attempt_at <= now,
        )
        .order_by(ReconciliationOutbox.id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
