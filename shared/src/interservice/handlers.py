from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from interservice.errors import MalformedRequest, ServiceError


def error_body(exc: ServiceError, path: str) -> dict:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": int(exc.status_code),
        "error": exc.reason,
        "message": exc.message,
        "path": path,
    }


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=int(exc.status_code),
        content=error_body(exc, request.url.path),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return await service_error_handler(request, MalformedRequest(details or "Malformed request"))


def install_error_handlers(app: FastAPI) -> None:
    """Render workflow errors as ``{timestamp, status, error, message, path}``."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
