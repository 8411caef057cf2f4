from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from orders_service.models import OrderStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderItemRequest(CamelModel):
    product_id: int = Field(..., ge=1, description="Product identifier (positive)")
    quantity: int = Field(..., ge=1, description="Quantity, at least 1")


class OrderCreateRequest(CamelModel):
    user_id: int = Field(..., ge=1, description="Identifier of the ordering user")
    order_items: List[OrderItemRequest] = Field(..., min_length=1)


class OrderItemRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class OrderRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    status: OrderStatus
    total_amount: Decimal
    order_date: datetime
    last_updated: datetime
    order_items: List[OrderItemRead]


# Collaborator payloads, only the fields this service needs

class UserDetails(CamelModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    username: str | None = None


class ProductDetails(CamelModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    price: Decimal
    stock_quantity: int
