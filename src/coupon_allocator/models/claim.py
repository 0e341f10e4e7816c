# src/coupon_allocator/models/claim.py
"""SQLAlchemy model for coupon claims."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coupon_allocator.db.session import Base
from coupon_allocator.db.time import utcnow

from .coupon import Coupon


class Claim(Base):
    """Binds a requester identity to the coupon it was served."""

    __tablename__ = "claims"
    __table_args__ = (
        Index("ix_claims_token_claimed_at", "requester_token", "claimed_at"),
        Index("ix_claims_origin_claimed_at", "requester_origin", "claimed_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    requester_token: Mapped[str] = mapped_column(Text, nullable=False)
    requester_origin: Mapped[str] = mapped_column(Text, nullable=False)
    # Unique: a coupon is served at most once between resets.
    coupon_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("coupons.id"),
        nullable=False,
        unique=True,
    )
    claimed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    coupon: Mapped[Coupon] = relationship(Coupon, lazy="joined")
