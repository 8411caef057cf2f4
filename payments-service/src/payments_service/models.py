import enum
from sqlalchemy import Column, DateTime, Enum, Integer, Numeric, String, Text
from payments_service.db import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # one payment per order, enforced by the database as well
    order_id = Column(Integer, nullable=False, unique=True)
    user_id = Column(Integer, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(50), nullable=False)
    status = Column(
        Enum(PaymentStatus, native_enum=False, length=20),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    transaction_id = Column(String(64), nullable=True)
    payment_date = Column(DateTime(timezone=True), nullable=False)
    last_updated = Column(DateTime(timezone=True), nullable=False)

    def __init__(self, **kwargs):
        kwargs.setdefault("status", PaymentStatus.PENDING)
        super().__init__(**kwargs)


class ReconciliationOutbox(Base):
    """Pending order-status callbacks, written in the payment's transaction."""

    __tablename__ = "reconciliation_outbox"

    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_id = Column(Integer, nullable=False, index=True)
    order_id = Column(Integer, nullable=False)
    target_status = Column(String(20), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    next_attempt_at = Column(DateTime(timezone=True), nullable=False)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    abandoned_at = Column(DateTime(timezone=True), nullable=True)
