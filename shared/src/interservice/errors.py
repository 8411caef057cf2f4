from http import HTTPStatus


class ServiceError(Exception):
    """Base for every error a workflow surfaces to its caller."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def reason(self) -> str:
        return HTTPStatus(self.status_code).phrase


class NotFound(ServiceError):
    status_code = HTTPStatus.NOT_FOUND


class UserNotFound(NotFound):
    pass


class ProductNotFound(NotFound):
    pass


class OrderNotFound(NotFound):
    pass


class PaymentNotFound(NotFound):
    pass


class Conflict(ServiceError):
    status_code = HTTPStatus.CONFLICT


class PaymentAlreadyExists(Conflict):
    pass


class ValidationFailure(ServiceError):
    status_code = HTTPStatus.BAD_REQUEST


class InsufficientStock(ValidationFailure):
    pass


class AmountMismatch(ValidationFailure):
    pass


class OrderStateMismatch(ValidationFailure):
    pass


class MalformedRequest(ValidationFailure):
    pass


class CommunicationFailure(ServiceError):
    """A collaborator could not be reached or answered with an unexpected error.

    ``downstream_status`` and ``downstream_body`` are set when the collaborator
    did answer; both stay ``None`` for transport failures (refused, timeout).
    """

    status_code = HTTPStatus.SERVICE_UNAVAILABLE

    def __init__(
        self,
        service: str,
        message: str,
        downstream_status: int | None = None,
        downstream_body: str | None = None,
    ):
        super().__init__(message)
        self.service = service
        self.downstream_status = downstream_status
        self.downstream_body = downstream_body
