"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain confirmation message shown to the user."""

    message: str


class ErrorResponse(BaseModel):
    """Failure body carrying both a user-facing message and a machine-readable kind."""

    message: str
    error: str = Field(..., description="Error kind, e.g. rate_limited or exhausted")
    retry_after_seconds: int | None = Field(
        None,
        description="Seconds until the requester may claim again (rate_limited only)",
    )
