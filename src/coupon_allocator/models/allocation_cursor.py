# src/coupon_allocator/models/allocation_cursor.py
"""Durable round-robin position shared by every allocator process."""

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import Mapped, mapped_column

from coupon_allocator.db.session import Base

CURSOR_ROW_ID = 1


class AllocationCursor(Base):
    """Single-row table recording the last coupon served.

    Claim transactions bump ``revision`` as their first statement, which takes
    the row (or database) write lock and serializes concurrent allocations.
    """

    __tablename__ = "allocation_cursor"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=CURSOR_ROW_ID)
    last_coupon_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    revision: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
