import logging
from decimal import Decimal
from typing import Any, Callable, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from interservice.errors import CommunicationFailure, ServiceError

logger = logging.getLogger("interservice.client")

DEFAULT_TIMEOUT_SECONDS = 5.0

ModelT = TypeVar("ModelT", bound=BaseModel)


class InterServiceClient:
    """One request/response exchange per call against a collaborator service.

    Outcomes are classified as follows: 404 raises the error built by the
    caller's ``not_found`` factory (or a ``CommunicationFailure`` when the
    caller gave none), any other 4xx/5xx and any transport error raise
    ``CommunicationFailure``. There is no retry.
    """

    def __init__(
        self,
        service: str,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.service = service
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return str(self._http.base_url)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        not_found: Callable[[], ServiceError] | None = None,
    ) -> httpx.Response:
        try:
            resp = await self._http.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            logger.error("[%s] %s %s failed: %r", self.service, method, path, e)
            raise CommunicationFailure(
                self.service,
                f"{self.service} is unavailable: {e!r}",
            ) from e

        if resp.status_code == 404 and not_found is not None:
            logger.info("[%s] %s %s -> 404", self.service, method, path)
            raise not_found()

        if resp.is_error:
            logger.error(
                "[%s] %s %s returned %d: %s",
                self.service, method, path, resp.status_code, resp.text,
            )
            raise CommunicationFailure(
                self.service,
                f"Error from {self.service}: {resp.status_code} - {resp.text}",
                downstream_status=resp.status_code,
                downstream_body=resp.text,
            )
        return resp

    async def get_json(
        self,
        path: str,
        *,
        not_found: Callable[[], ServiceError] | None = None,
    ) -> Any:
        resp = await self.request("GET", path, not_found=not_found)
        try:
            # money travels as JSON numbers; keep it exact
            return resp.json(parse_float=Decimal)
        except ValueError as e:
            raise CommunicationFailure(
                self.service,
                f"Malformed response from {self.service}: {resp.text[:200]}",
                downstream_status=resp.status_code,
                downstream_body=resp.text,
            ) from e

    async def get_model(
        self,
        path: str,
        model: Type[ModelT],
        *,
        not_found: Callable[[], ServiceError] | None = None,
    ) -> ModelT:
        """GET ``path`` and validate the body as ``model``.

        A body that does not validate raises ``CommunicationFailure``.
        """
        data = await self.get_json(path, not_found=not_found)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error("[%s] GET %s returned an unexpected body: %s", self.service, path, e)
            raise CommunicationFailure(
                self.service,
                f"Unexpected response from {self.service}: {e.error_count()} invalid field(s)",
                downstream_status=200,
                downstream_body=repr(data)[:200],
            ) from e

    async def aclose(self) -> None:
        await self._http.aclose()
