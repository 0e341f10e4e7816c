"""ASGI middleware for the Coupon Allocator."""

from .logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
