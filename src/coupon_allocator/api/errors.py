"""Mapping of allocator errors to HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from coupon_allocator.schemas import ErrorResponse
from coupon_allocator.services.allocator import (
    ClaimConflictError,
    ClaimDeniedError,
    DuplicateCouponError,
    InvalidRequesterError,
    RateLimitedError,
    StorageUnavailableError,
)

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error"


def _error_response(
    status_code: int,
    message: str,
    error: str,
    *,
    retry_after_seconds: int | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(message=message, error=error, retry_after_seconds=retry_after_seconds)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def claim_denied_response(exc: ClaimDeniedError) -> JSONResponse:
    """Build the 429 or 409 response for a refused claim."""
    if isinstance(exc, RateLimitedError):
        return _error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            str(exc),
            exc.reason.value,
            retry_after_seconds=exc.retry_after_seconds,
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )
    return _error_response(status.HTTP_409_CONFLICT, str(exc), exc.reason.value)


async def _claim_denied(request: Request, exc: ClaimDeniedError) -> JSONResponse:
    return claim_denied_response(exc)


async def _claim_conflict(request: Request, exc: ClaimConflictError) -> JSONResponse:
    return _error_response(
        status.HTTP_409_CONFLICT,
        "Coupon was claimed by another request, please try again",
        "claim_conflict",
    )


async def _invalid_requester(request: Request, exc: InvalidRequesterError) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc), "invalid_request")


async def _duplicate_coupon(request: Request, exc: DuplicateCouponError) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, str(exc), "duplicate_coupon")


async def _storage_unavailable(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, StorageUnavailableError):
        logger.error("Unhandled storage error on %s: %s", request.url.path, exc, exc_info=exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        SERVER_ERROR_MESSAGE,
        "storage_unavailable",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers translating service errors into JSON error bodies."""
    app.add_exception_handler(ClaimDeniedError, _claim_denied)  # type: ignore[arg-type]
    app.add_exception_handler(ClaimConflictError, _claim_conflict)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidRequesterError, _invalid_requester)  # type: ignore[arg-type]
    app.add_exception_handler(DuplicateCouponError, _duplicate_coupon)  # type: ignore[arg-type]
    app.add_exception_handler(StorageUnavailableError, _storage_unavailable)
    app.add_exception_handler(SQLAlchemyError, _storage_unavailable)
