"""API endpoint modules."""

from .admin import router as admin_router
from .coupons import router as coupons_router

__all__ = [
    "admin_router",
    "coupons_router",
]
