"""Exception handlers rendering domain errors as ``{error, ...}`` JSON bodies."""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cryptotracker.core.exceptions import (
    DataUnavailableError,
    StoreError,
    TokenNotFoundError,
    ValidationError,
)

log = structlog.get_logger(__name__)


async def data_unavailable_handler(_request: Request, exc: DataUnavailableError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": exc.message, "retry_after": exc.retry_after},
        headers={"Retry-After": str(exc.retry_after)},
    )


async def token_not_found_handler(_request: Request, exc: TokenNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": exc.message},
    )


async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": str(exc)},
    )


async def request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Report the first problem only, in the same {error} shape as the rest
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"{location}: {message}" if location else message},
    )


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    log.error("store_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Database error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain exception handlers to ``app``."""
    app.add_exception_handler(DataUnavailableError, data_unavailable_handler)  # type: ignore[arg-type]
    app.add_exception_handler(TokenNotFoundError, token_not_found_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StoreError, store_error_handler)  # type: ignore[arg-type]
