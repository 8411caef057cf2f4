import asyncio
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from interservice import CommunicationFailure
from payments_service import crud
from payments_service.collaborators import OrderService, get_order_service
from payments_service.config import settings
from payments_service.db import get_session
from payments_service.models import ReconciliationOutbox

logger = logging.getLogger("payments.workers")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Reconciler:
    """Delivers order-status callbacks recorded in the reconciliation outbox.

    The callback is an idempotent overwrite, so an entry may be delivered more
    than once. Failed deliveries are rescheduled with exponential backoff and
    abandoned after ``max_attempts``; the payment itself is never touched.
    """

    def __init__(
        self,
        orders: OrderService,
        max_attempts: int = settings.RECONCILIATION_MAX_ATTEMPTS,
        backoff_seconds: float = settings.RECONCILIATION_BACKOFF_SECONDS,
        backoff_max_seconds: float = settings.RECONCILIATION_BACKOFF_MAX_SECONDS,
    ):
        self.orders = orders
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.backoff_max_seconds = backoff_max_seconds

    def backoff(self, attempts: int) -> timedelta:
        delay = self.backoff_seconds * (2 ** max(attempts - 1, 0))
        return timedelta(seconds=min(delay, self.backoff_max_seconds))

    async def deliver(self, entry: ReconciliationOutbox, session: AsyncSession) -> bool:
        now = utcnow()
        entry.attempts = (entry.attempts or 0) + 1
        try:
            await self.orders.update_order_status(entry.order_id, entry.target_status)
        except CommunicationFailure as e:
            entry.last_error = e.message
            if entry.attempts >= self.max_attempts:
                entry.abandoned_at = now
                logger.critical(
                    "[Payments] Giving up on order %s -> %s after %d attempts; "
                    "payment %s and order status are out of sync: %s",
                    entry.order_id, entry.target_status, entry.attempts,
                    entry.payment_id, e.message,
                )
            else:
                entry.next_attempt_at = now + self.backoff(entry.attempts)
                logger.error(
                    "[Payments] Reconciliation of order %s -> %s failed (attempt %d/%d): %s",
                    entry.order_id, entry.target_status, entry.attempts,
                    self.max_attempts, e.message,
                )
            session.add(entry)
            await session.commit()
            return False

        entry.delivered_at = now
        entry.last_error = None
        session.add(entry)
        await session.commit()
        logger.info(
            "[Payments] Order %s reconciled to %s (attempt %d)",
            entry.order_id, entry.target_status, entry.attempts,
        )
        return True


async def reconcile_pending(session: AsyncSession, reconciler: Reconciler) -> int:
    """One pass over due entries. Returns how many were delivered."""
    entries = await crud.pending_reconciliations(utcnow(), session)
    if entries:
        logger.info("[Payments] Pending reconciliation entries: %d", len(entries))
    delivered = 0
    for entry in entries:
        if await reconciler.deliver(entry, session):
            delivered += 1
    return delivered


async def reconciliation_publisher():
    INTERVAL = settings.RECONCILIATION_POLL_INTERVAL

    logger.info("[Payments] Starting reconciliation_publisher, every %ss", INTERVAL)
    while True:
        reconciler = Reconciler(get_order_service())
        async for session in get_session():
            try:
                await reconcile_pending(session, reconciler)
            except Exception as e:
                logger.error("[Payments] Reconciliation pass failed: %s", e)

        await asyncio.sleep(INTERVAL)
