"""Claim-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from coupon_allocator.db.time import as_utc


class ClaimResponse(BaseModel):
    """Schema for claim records returned by the audit endpoint."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    coupon_id: int
    requester_token: str
    requester_origin: str
    claimed_at: datetime

    @field_validator("claimed_at")
    @classmethod
    def _normalize_timezone(cls, value: datetime) -> datetime:
        return as_utc(value)


class ClaimResult(BaseModel):
    """Body returned after a successful claim."""

    message: str
    code: str
    coupon_id: int
