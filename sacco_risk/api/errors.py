"""Map domain exceptions to HTTP responses with an {"error": ...} body"""

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sacco_risk.domain.exceptions import (
    DomainException,
    ValidationError,
    NotFoundError,
    StoreError,
    ConcurrentUpdateError,
    ComputationError,
)

logger = logging.getLogger(__name__)


def status_for(exc: DomainException) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConcurrentUpdateError):
        return 409
    if isinstance(exc, StoreError):
        return 503
    return 500


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers so every non-2xx response carries {"error": message}"""

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        status_code = status_for(exc)
        request_id = getattr(request.state, "request_id", None)
        if status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc}", extra={"request_id": request_id})
        else:
            logger.warning(f"{exc.__class__.__name__}: {exc}", extra={"request_id": request_id})

        # Store and computation details stay in the logs
        if isinstance(exc, ConcurrentUpdateError):
            message = "Loan was updated concurrently, retry the payment"
        elif isinstance(exc, StoreError):
            message = "Record store unavailable"
        elif isinstance(exc, ComputationError):
            message = "Internal server error"
        else:
            message = str(exc)
        return error_response(status_code, message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid request')}" if location else first.get("msg", "invalid request")
        return error_response(422, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None)
        logger.exception(f"Unexpected error: {exc}", extra={"request_id": request_id})
        return error_response(500, "Internal server error")
