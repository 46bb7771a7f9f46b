"""Exception handlers that turn ordering errors into HTTP responses.

Customers get the error's public message and code. Routes under
``/admin`` also get the internal detail for support and reconciliation.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from ordering.errors import OrderingError

logger = structlog.get_logger(__name__)

ADMIN_PREFIX = "/admin"


async def ordering_error_handler(request: Request, exc: OrderingError) -> JSONResponse:
    is_admin = request.url.path.startswith(ADMIN_PREFIX)
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request failed",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
        detail=exc.detail,
        context={k: str(v) for k, v in exc.context.items()},
    )
    payload = exc.to_dict(include_detail=is_admin)
    payload["retryable"] = exc.retryable
    return JSONResponse(status_code=exc.status_code, content=payload)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body") or "body"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return JSONResponse(status_code=400, content={"error": "Invalid request", "code": "invalid_request", "errors": errors})


def register_error_handlers(app: FastAPI) -> None:
    """Install protean's handlers plus the ordering-specific ones on ``app``."""
    register_exception_handlers(app)
    app.add_exception_handler(OrderingError, ordering_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
