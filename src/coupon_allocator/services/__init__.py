# src/coupon_allocator/services/__init__.py
"""Business logic services for the Coupon Allocator."""

from .allocator import AllocatorService, get_allocator_service
from .identity import RequesterIdentity, resolve_identity

__all__ = [
    "AllocatorService",
    "get_allocator_service",
    "RequesterIdentity",
    "resolve_identity",
]
