# src/coupon_allocator/models/coupon.py
"""SQLAlchemy model for distributable coupons."""

from sqlalchemy import Boolean, Integer, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from coupon_allocator.db.session import Base


class Coupon(Base):
    """A coupon that can be handed out to exactly one requester.

    Ascending ``id`` is the round-robin serving order.
    """

    __tablename__ = "coupons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    # Display metadata; never changes after creation.
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    discount: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # True iff exactly one claim references this coupon.
    claimed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        index=True,
    )
