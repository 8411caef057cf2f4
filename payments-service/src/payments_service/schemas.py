from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from payments_service.models import PaymentStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaymentRequest(CamelModel):
    order_id: int = Field(..., ge=1, description="Order being paid (positive)")
    payment_method: str = Field(..., min_length=1, max_length=50, pattern=r"\S")
    amount: Decimal = Field(..., ge=Decimal("0.01"), decimal_places=2)


class PaymentRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    user_id: int
    amount: Decimal
    payment_method: str
    status: PaymentStatus
    transaction_id: str | None
    payment_date: datetime
    last_updated: datetime


class OrderDetails(CamelModel):
    """What the payment flow reads from ``GET /orders/{id}``."""

    model_config = ConfigDict(extra="ignore")

    id: int
    user_id: int
    status: str
    total_amount: Decimal
