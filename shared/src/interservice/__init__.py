"""Shared plumbing for calls between the order and payment services."""

from interservice.client import InterServiceClient
from interservice.errors import (
    AmountMismatch,
    CommunicationFailure,
    Conflict,
    InsufficientStock,
    MalformedRequest,
    NotFound,
    OrderNotFound,
    OrderStateMismatch,
    PaymentAlreadyExists,
    PaymentNotFound,
    ProductNotFound,
    ServiceError,
    UserNotFound,
    ValidationFailure,
)
from interservice.handlers import install_error_handlers

__all__ = [
    "InterServiceClient",
    "install_error_handlers",
    "ServiceError",
    "NotFound",
    "UserNotFound",
    "ProductNotFound",
    "OrderNotFound",
    "PaymentNotFound",
    "Conflict",
    "PaymentAlreadyExists",
    "ValidationFailure",
    "InsufficientStock",
    "AmountMismatch",
    "OrderStateMismatch",
    "MalformedRequest",
    "CommunicationFailure",
]
