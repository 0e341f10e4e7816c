"""Coupon-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class CouponCreate(BaseModel):
    """Schema for loading a new coupon."""

    code: str = Field(..., min_length=1, max_length=64, description="Code redeemed by the claimer")
    title: str = Field("", max_length=200)
    description: str = Field("", max_length=2000)
    discount: str = Field("", max_length=100, description="Display text, e.g. '20% off'")


class CouponResponse(BaseModel):
    """Schema for coupon information returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    title: str
    description: str
    discount: str
    claimed: bool
