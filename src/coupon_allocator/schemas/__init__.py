"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .claim import ClaimResponse, ClaimResult
from .common import ErrorResponse, MessageResponse
from .coupon import CouponCreate, CouponResponse

__all__ = [
    "ClaimResponse", "ClaimResult",
    "ErrorResponse", "MessageResponse",
    "CouponCreate", "CouponResponse",
]
