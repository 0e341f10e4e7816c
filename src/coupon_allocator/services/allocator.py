"""Claim allocation for the Coupon Allocator.

This module provides the AllocatorService class which owns every mutation of
coupon and claim state:

- Round-robin coupon selection driven by a durable cursor
- Per-requester rate limiting over a trailing window
- Administrative reset and coupon loading

Each claim runs as a single transaction whose first statement bumps the
allocation cursor row. That write takes the row lock (PostgreSQL, MySQL) or
the database write lock (SQLite), so concurrent claims are serialized and
the rate check, coupon selection and claim insert can never interleave.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from coupon_allocator.core.settings import Settings, settings
from coupon_allocator.db.time import as_utc, utcnow
from coupon_allocator.models import CURSOR_ROW_ID, AllocationCursor, Claim, Coupon

if TYPE_CHECKING:
    from coupon_allocator.schemas.coupon import CouponCreate
    from coupon_allocator.services.identity import RequesterIdentity

# Configure logger for this module
logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "You can only claim a coupon once per hour."
EXHAUSTED_MESSAGE = "No coupons available"


class DenialReason(str, Enum):
    """Why a claim attempt was refused."""

    RATE_LIMITED = "rate_limited"
    EXHAUSTED = "exhausted"


class AllocatorError(RuntimeError):
    """Base exception raised for allocation failures."""


class StorageUnavailableError(AllocatorError):
    """Raised when the store cannot be reached or a transaction cannot commit.

    The session has already been rolled back when this is raised; callers may
    retry with backoff.
    """


class InvalidRequesterError(AllocatorError):
    """Raised when the client presents a malformed requester token."""


class DuplicateCouponError(AllocatorError):
    """Raised when a coupon code being added already exists."""


class ClaimConflictError(AllocatorError):
    """Raised when the selected coupon was taken by another transaction.

    Nothing was written; the caller may simply retry the claim.
    """


class ClaimDeniedError(AllocatorError):
    """Raised when a claim is refused without any state change."""

    def __init__(self, message: str, reason: DenialReason) -> None:
        super().__init__(message)
        self.reason = reason


class RateLimitedError(ClaimDeniedError):
    """The requester already holds a claim inside the rate-limit window."""

    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__(RATE_LIMITED_MESSAGE, DenialReason.RATE_LIMITED)
        self.retry_after_seconds = retry_after_seconds


class CouponsExhaustedError(ClaimDeniedError):
    """No unclaimed coupon remains."""

    def __init__(self) -> None:
        super().__init__(EXHAUSTED_MESSAGE, DenialReason.EXHAUSTED)


@dataclass(frozen=True)
class ClaimedCoupon:
    """Successful claim outcome returned to the HTTP layer."""

    coupon: Coupon
    claim: Claim
    requester_token: str

    @property
    def code(self) -> str:
        return self.coupon.code


class AllocatorService:
    """Service handling coupon listing, claiming and resets."""

    def __init__(self, *, window_seconds: int = 3600, limit_by_origin: bool = False) -> None:
        self.window_seconds = window_seconds
        self.limit_by_origin = limit_by_origin

    @classmethod
    def from_settings(cls, config: Settings) -> AllocatorService:
        """Build a service using the configured rate-limit policy."""
        return cls(
            window_seconds=config.claim_window_seconds,
            limit_by_origin=config.rate_limit_by_origin,
        )

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.window_seconds)

    # --- Reads ----------------------------------------------------------------------
    def list_available_coupons(self, db: Session) -> Sequence[Coupon]:
        """Return every unclaimed coupon in serving order."""
        stmt = select(Coupon).where(Coupon.claimed.is_(False)).order_by(Coupon.id)
        try:
            return db.scalars(stmt).all()
        except SQLAlchemyError as err:
            raise self._storage_failure(db, "listing coupons", err) from err

    def list_claims(self, db: Session) -> Sequence[Claim]:
        """Return all claims for auditing, oldest first."""
        try:
            return db.scalars(select(Claim).order_by(Claim.id)).all()
        except SQLAlchemyError as err:
            raise self._storage_failure(db, "listing claims", err) from err

    # --- Claiming -------------------------------------------------------------------
    def attempt_claim(
        self,
        db: Session,
        identity: RequesterIdentity,
        *,
        now: datetime | None = None,
    ) -> ClaimedCoupon:
        """Serve the next coupon in round-robin order to a requester.

        Args:
            db: Database session; must not have a write transaction in progress
            identity: Resolved requester identity
            now: Claim time, defaults to the current UTC time

        Returns:
            The claimed coupon, its claim record and the requester token

        Raises:
            RateLimitedError: If the requester claimed inside the window
            CouponsExhaustedError: If every coupon is already claimed
            ClaimConflictError: If the selected coupon was taken concurrently
            StorageUnavailableError: If the transaction could not be completed
        """
        claimed_at = as_utc(now) if now is not None else utcnow()
        try:
            cursor = self._lock_cursor(db)

            latest = self._latest_claim_in_window(db, identity, claimed_at)
            if latest is not None:
                db.rollback()
                retry_after = self._retry_after(latest, claimed_at)
                logger.info(
                    "Claim denied for requester from %s: rate limited for %ds",
                    identity.origin,
                    retry_after,
                )
                raise RateLimitedError(retry_after)

            if not self.limit_by_origin:
                self._warn_on_shared_origin(db, identity, claimed_at)

            coupon = self._next_coupon(db, cursor.last_coupon_id)
            if coupon is None:
                db.rollback()
                logger.info("Claim denied for requester from %s: no coupons left", identity.origin)
                raise CouponsExhaustedError()

            self._mark_claimed(db, coupon)
            claim = Claim(
                requester_token=identity.token,
                requester_origin=identity.origin,
                coupon_id=coupon.id,
                claimed_at=claimed_at,
            )
            db.add(claim)
            cursor.last_coupon_id = coupon.id
            db.commit()
        except SQLAlchemyError as err:
            raise self._storage_failure(db, "claiming a coupon", err) from err

        logger.info("Coupon %d claimed by requester from %s", coupon.id, identity.origin)
        return ClaimedCoupon(coupon=coupon, claim=claim, requester_token=identity.token)

    def _lock_cursor(self, db: Session) -> AllocationCursor:
        result = db.execute(
            update(AllocationCursor)
            .where(AllocationCursor.id == CURSOR_ROW_ID)
            .values(revision=AllocationCursor.revision + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # First claim against a fresh schema; a concurrent creator loses on the primary key.
            db.add(AllocationCursor(id=CURSOR_ROW_ID, last_coupon_id=0, revision=1))
            db.flush()
        cursor = db.get(AllocationCursor, CURSOR_ROW_ID, populate_existing=True)
        if cursor is None:  # pragma: no cover - row created above
            raise StorageUnavailableError("Allocation cursor is missing")
        return cursor

    def _latest_claim_in_window(
        self,
        db: Session,
        identity: RequesterIdentity,
        now: datetime,
    ) -> datetime | None:
        criteria = [Claim.requester_token == identity.token]
        if self.limit_by_origin:
            criteria.append(Claim.requester_origin == identity.origin)
        stmt = select(func.max(Claim.claimed_at)).where(
            or_(*criteria),
            Claim.claimed_at > now - self.window,
        )
        return db.execute(stmt).scalar_one_or_none()

    def _warn_on_shared_origin(
        self,
        db: Session,
        identity: RequesterIdentity,
        now: datetime,
    ) -> None:
        stmt = select(func.count()).select_from(Claim).where(
            Claim.requester_origin == identity.origin,
            Claim.requester_token != identity.token,
            Claim.claimed_at > now - self.window,
        )
        others = db.execute(stmt).scalar_one()
        if others:
            logger.warning(
                "Origin %s already holds %d claim(s) in the window under other tokens",
                identity.origin,
                others,
            )

    def _retry_after(self, latest: datetime, now: datetime) -> int:
        remaining = (as_utc(latest) + self.window - now).total_seconds()
        return max(1, math.ceil(remaining))

    @staticmethod
    def _next_coupon(db: Session, last_coupon_id: int) -> Coupon | None:
        unclaimed = select(Coupon).where(Coupon.claimed.is_(False)).order_by(Coupon.id).limit(1)
        coupon = db.scalars(unclaimed.where(Coupon.id > last_coupon_id)).first()
        if coupon is None and last_coupon_id:
            # Wrap around to the start of the cycle.
            coupon = db.scalars(unclaimed).first()
        return coupon

    @staticmethod
    def _mark_claimed(db: Session, coupon: Coupon) -> None:
        result = db.execute(
            update(Coupon)
            .where(Coupon.id == coupon.id, Coupon.claimed.is_(False))
            .values(claimed=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            logger.warning("Coupon %d was already claimed; claim aborted", coupon.id)
            raise ClaimConflictError(f"Coupon {coupon.id} was claimed concurrently")
        set_committed_value(coupon, "claimed", True)

    # --- Administration -------------------------------------------------------------
    def reset_all(self, db: Session) -> None:
        """Delete all claims and release every coupon.

        The cursor keeps its position so the next cycle resumes after the
        last coupon served instead of starting over at the lowest id.
        """
        try:
            db.execute(delete(Claim))
            db.execute(update(Coupon).values(claimed=False))
            db.commit()
        except SQLAlchemyError as err:
            raise self._storage_failure(db, "resetting claims", err) from err
        logger.warning("All claims reset and coupons released")

    def add_coupons(self, db: Session, coupons: Iterable[CouponCreate]) -> list[Coupon]:
        """Insert new unclaimed coupons in a single transaction.

        Raises:
            DuplicateCouponError: If a code repeats within the batch or already exists
            StorageUnavailableError: If the insert could not be committed
        """
        created = [
            Coupon(
                code=item.code,
                title=item.title,
                description=item.description,
                discount=item.discount,
                claimed=False,
            )
            for item in coupons
        ]
        codes = [coupon.code for coupon in created]
        if len(set(codes)) != len(codes):
            raise DuplicateCouponError("Duplicate coupon code in request")

        try:
            db.add_all(created)
            db.commit()
        except IntegrityError as err:
            db.rollback()
            raise DuplicateCouponError("Coupon code already exists") from err
        except SQLAlchemyError as err:
            raise self._storage_failure(db, "adding coupons", err) from err

        logger.info("Added %d coupons", len(created))
        return created

    def ensure_cursor(self, db: Session) -> None:
        """Create the allocation cursor row if it does not exist yet."""
        try:
            if db.get(AllocationCursor, CURSOR_ROW_ID) is None:
                db.add(AllocationCursor(id=CURSOR_ROW_ID, last_coupon_id=0, revision=0))
                db.commit()
        except SQLAlchemyError as err:
            raise self._storage_failure(db, "creating the allocation cursor", err) from err

    @staticmethod
    def _storage_failure(db: Session, action: str, err: SQLAlchemyError) -> StorageUnavailableError:
        db.rollback()
        logger.error("Storage failure while %s: %s", action, err, exc_info=True)
        return StorageUnavailableError(f"Storage unavailable while {action}")


def get_allocator_service() -> AllocatorService:
    """Return an allocator configured from the process settings."""
    return AllocatorService.from_settings(settings)
