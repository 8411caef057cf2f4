"""Payment gateway capability.

The gateway decides the outcome of a charge and hands back an opaque
transaction id. ``SimulatedGateway`` is the default: it completes any positive
amount. Swap it with ``set_gateway()`` (tests, a real provider integration).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from uuid import uuid4

from payments_service.models import PaymentStatus

logger = logging.getLogger("payments.gateway")


@dataclass(frozen=True)
class ChargeResult:
    status: PaymentStatus
    transaction_id: str


class PaymentGateway(ABC):

    @abstractmethod
    def charge(self, order_id: int, amount: Decimal, payment_method: str) -> ChargeResult:
        ...


def new_transaction_id() -> str:
    return f"TXN-{uuid4().hex[:8].upper()}"


class SimulatedGateway(PaymentGateway):

    def charge(self, order_id: int, amount: Decimal, payment_method: str) -> ChargeResult:
        transaction_id = new_transaction_id()
        if amount > 0:
            logger.info("[Payments] Simulating successful payment for amount %s", amount)
            return ChargeResult(PaymentStatus.COMPLETED, transaction_id)
        # unreachable for requests that pass validation (amount >= 0.01)
        logger.warning("[Payments] Simulating failed payment for amount %s", amount)
        return ChargeResult(PaymentStatus.FAILED, transaction_id)


_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = SimulatedGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
