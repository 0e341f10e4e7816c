"""Public coupon endpoints: listing and claiming."""

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

from coupon_allocator.core.settings import Settings
from coupon_allocator.schemas import ClaimResult, CouponResponse, ErrorResponse
from coupon_allocator.services.allocator import ClaimDeniedError
from coupon_allocator.services.identity import resolve_identity

from ..dependencies import AllocatorDep, SessionDep, SettingsDep, client_origin
from ..errors import claim_denied_response

router = APIRouter(tags=["coupons"])


def _set_requester_cookie(response: Response, token: str, config: Settings) -> None:
    response.set_cookie(
        key=config.requester_cookie_name,
        value=token,
        max_age=config.requester_cookie_max_age,
        httponly=True,
        samesite="lax",
        secure=config.requester_cookie_secure,
    )


@router.get("/coupons", response_model=list[CouponResponse])
def list_coupons(db: SessionDep, allocator: AllocatorDep) -> list[CouponResponse]:
    """Return all coupons that can still be claimed."""
    coupons = allocator.list_available_coupons(db)
    return [CouponResponse.model_validate(coupon) for coupon in coupons]


@router.post(
    "/claim-coupon",
    response_model=ClaimResult,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_409_CONFLICT: {"model": ErrorResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
def claim_coupon(
    request: Request,
    response: Response,
    db: SessionDep,
    allocator: AllocatorDep,
    config: SettingsDep,
) -> ClaimResult | JSONResponse:
    """Claim the next coupon in rotation for the calling requester.

    The requester token is read from the cookie and minted when absent. It is
    written back on grants and refusals alike so the client keeps presenting
    the same identity.
    """
    identity = resolve_identity(
        request.cookies.get(config.requester_cookie_name),
        client_origin(request),
    )
    try:
        claimed = allocator.attempt_claim(db, identity)
    except ClaimDeniedError as exc:
        denied = claim_denied_response(exc)
        _set_requester_cookie(denied, identity.token, config)
        return denied

    _set_requester_cookie(response, claimed.requester_token, config)
    return ClaimResult(
        message=f"Coupon claimed: {claimed.code}",
        code=claimed.code,
        coupon_id=claimed.coupon.id,
    )
