# src/coupon_allocator/main.py
"""Main entry point for the Coupon Allocator application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coupon_allocator.api import admin_router, coupons_router
from coupon_allocator.api.errors import register_exception_handlers
from coupon_allocator.core.settings import settings
from coupon_allocator.db.session import SessionLocal, create_tables
from coupon_allocator.middleware import RequestLoggingMiddleware
from coupon_allocator.services.allocator import get_allocator_service

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Round-robin coupon distribution with per-requester rate limiting",
    version=settings.app_version,
)

# Add CORS middleware; credentials are required for the requester cookie
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

# Include API routers
app.include_router(coupons_router)
app.include_router(admin_router)


@app.on_event("startup")
async def on_startup() -> None:
    if settings.admin_endpoints_enabled and not settings.admin_token:
        logger.warning("Admin endpoints enabled without ADMIN_TOKEN; loopback callers only")
    if not settings.auto_create_tables:
        return
    create_tables()
    with SessionLocal() as db:
        get_allocator_service().ensure_cursor(db)
    logger.info("Database schema ready")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("coupon_allocator.main:app", host="0.0.0.0", port=5000, reload=settings.debug)
