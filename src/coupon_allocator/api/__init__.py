"""HTTP API for the Coupon Allocator."""

from .endpoints import admin_router, coupons_router

__all__ = [
    "admin_router",
    "coupons_router",
]
