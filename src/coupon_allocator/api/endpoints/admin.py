"""Administrative endpoints: audit, resets and coupon loading.

Every route here sits behind ``require_admin``.
"""

from fastapi import APIRouter, Depends, status

from coupon_allocator.schemas import ClaimResponse, CouponCreate, CouponResponse, MessageResponse

from ..dependencies import AllocatorDep, SessionDep, require_admin

router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/claims", response_model=list[ClaimResponse])
def list_claims(db: SessionDep, allocator: AllocatorDep) -> list[ClaimResponse]:
    """Return every claim record."""
    return [ClaimResponse.model_validate(claim) for claim in allocator.list_claims(db)]


@router.post("/reset-claims", response_model=MessageResponse)
def reset_claims(db: SessionDep, allocator: AllocatorDep) -> MessageResponse:
    """Delete all claims; the coupons they held become claimable again."""
    allocator.reset_all(db)
    return MessageResponse(message="All claims reset")


@router.post("/reset-coupons", response_model=MessageResponse)
def reset_coupons(db: SessionDep, allocator: AllocatorDep) -> MessageResponse:
    """Mark all coupons unclaimed; their claim records are removed with them."""
    allocator.reset_all(db)
    return MessageResponse(message="All coupons reset")


@router.post(
    "/coupons",
    response_model=list[CouponResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_coupons(
    payload: list[CouponCreate],
    db: SessionDep,
    allocator: AllocatorDep,
) -> list[CouponResponse]:
    """Load new coupons at the end of the rotation."""
    created = allocator.add_coupons(db, payload)
    return [CouponResponse.model_validate(coupon) for coupon in created]
