# src/coupon_allocator/models/__init__.py
"""SQLAlchemy models for the Coupon Allocator."""

from .allocation_cursor import CURSOR_ROW_ID, AllocationCursor
from .claim import Claim
from .coupon import Coupon

__all__ = [
    "AllocationCursor", "CURSOR_ROW_ID",
    "Claim",
    "Coupon",
]
