"""Payment workflow: at most one payment per order, validated against the
order service, decided by the gateway, then reconciled back onto the order.

The payment row and its reconciliation entry commit together. The status
callback to the order service runs after that commit; when it fails the
payment stays committed and the entry is retried by the reconciliation
worker. Nothing is rolled back or compensated.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from interservice import (
    AmountMismatch,
    OrderStateMismatch,
    PaymentAlreadyExists,
    PaymentNotFound,
)
from payments_service import crud
from payments_service.collaborators import OrderService
from payments_service.gateway import PaymentGateway
from payments_service.models import Payment, PaymentStatus, ReconciliationOutbox
from payments_service.workers import Reconciler

logger = logging.getLogger("payments.service")

ORDER_PENDING = "PENDING"
ORDER_PROCESSING = "PROCESSING"
ORDER_PAYMENT_FAILED = "PAYMENT_FAILED"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def order_status_for(payment_status: PaymentStatus) -> str:
    if payment_status == PaymentStatus.COMPLETED:
        return ORDER_PROCESSING
    return ORDER_PAYMENT_FAILED


class PaymentWorkflowCoordinator:

    def __init__(
        self,
        session: AsyncSession,
        orders: OrderService,
        gateway: PaymentGateway,
        reconciler: Reconciler,
    ):
        self.session = session
        self.orders = orders
        self.gateway = gateway
        self.reconciler = reconciler

    async def process_payment(
        self,
        order_id: int,
        payment_method: str,
        amount: Decimal,
    ) -> Payment:
        logger.info("[Payments] Attempting to process payment for order %s", order_id)

        if await crud.payment_exists_for_order(order_id, self.session):
            logger.warning("[Payments] Payment already exists for order %s", order_id)
            raise PaymentAlreadyExists(f"Payment already exists for order ID: {order_id}")

        order = await self.orders.get_order(order_id)

        if order.status.upper() != ORDER_PENDING:
            logger.warning(
                "[Payments] Order %s is in status %s, expected %s",
                order.id, order.status, ORDER_PENDING,
            )
            raise OrderStateMismatch(
                f"Order with ID {order.id} is not in PENDING status. "
                f"Current status: {order.status}"
            )

        if order.total_amount != amount:
            logger.warning(
                "[Payments] Mismatched amount for order %s. Expected: %s, Received: %s",
                order_id, order.total_amount, amount,
            )
            raise AmountMismatch(f"Payment amount mismatch for order ID: {order.id}")

        result = self.gateway.charge(order.id, amount, payment_method)

        now = utcnow()
        payment = Payment(
            order_id=order_id,
            user_id=order.user_id,
            amount=amount,
            payment_method=payment_method,
            status=result.status,
            transaction_id=result.transaction_id,
            payment_date=now,
            last_updated=now,
        )
        entry = ReconciliationOutbox(
            order_id=order_id,
            target_status=order_status_for(result.status),
            attempts=0,
            created_at=now,
            # the inline delivery below owns the first attempt
            next_attempt_at=now + self.reconciler.backoff(1),
        )
        await crud.add_payment(payment, entry, self.session)
        logger.info(
            "[Payments] Payment %s for order %s stored with status %s, transaction %s",
            payment.id, order_id, payment.status.value, payment.transaction_id,
        )

        # a failed callback leaves the entry for the reconciliation worker
        await self.reconciler.deliver(entry, self.session)
        return payment

    async def get_payment(self, payment_id: int) -> Payment:
        payment = await crud.get_payment(payment_id, self.session)
        if payment is None:
            raise PaymentNotFound(f"Payment not found with ID: {payment_id}")
        return payment

    async def get_payment_by_order_id(self, order_id: int) -> Payment:
        payment = await crud.get_payment_by_order_id(order_id, self.session)
        if payment is None:
            raise PaymentNotFound(f"Payment not found for order ID: {order_id}")
        return payment

    async def list_payments(self) -> List[Payment]:
        payments = await crud.list_payments(self.session)
        logger.info("[Payments] Fetched %d payments", len(payments))
        return payments

    async def update_payment_status(self, payment_id: int, new_status: PaymentStatus) -> Payment:
        """Overwrite the status. No business validation is applied."""
        payment = await self.get_payment(payment_id)
        await crud.set_payment_status(payment, new_status, utcnow(), self.session)
        logger.info("[Payments] Payment %s status updated to %s", payment_id, new_status.value)
        return payment

    async def delete_payment(self, payment_id: int) -> None:
        payment = await self.get_payment(payment_id)
        retired = await crud.delete_payment(payment, utcnow(), self.session)
        if retired:
            logger.warning(
                "[Payments] Payment %s deleted with %d undelivered reconciliation entries; "
                "order %s keeps its current status",
                payment_id, retired, payment.order_id,
            )
        logger.info("[Payments] Payment %s deleted", payment_id)
