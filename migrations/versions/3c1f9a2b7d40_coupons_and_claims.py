"""coupons and claims

Revision ID: 3c1f9a2b7d40
Revises:
Create Date: 2026-10-19 09:12:44.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f9a2b7d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create coupon, claim and allocation cursor tables."""
    op.create_table(
        "coupons",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("discount", sa.Text(), nullable=False),
        sa.Column("claimed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_coupons_claimed", "coupons", ["claimed"])

    op.create_table(
        "claims",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("requester_token", sa.Text(), nullable=False),
        sa.Column("requester_origin", sa.Text(), nullable=False),
        sa.Column("coupon_id", sa.Integer(), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["coupon_id"], ["coupons.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("coupon_id"),
    )
    op.create_index("ix_claims_token_claimed_at", "claims", ["requester_token", "claimed_at"])
    op.create_index("ix_claims_origin_claimed_at", "claims", ["requester_origin", "claimed_at"])

    allocation_cursor = op.create_table(
        "allocation_cursor",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("last_coupon_id", sa.Integer(), nullable=False),
        sa.Column("revision", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.bulk_insert(allocation_cursor, [{"id": 1, "last_coupon_id": 0, "revision": 0}])


def downgrade() -> None:
    """Drop coupon, claim and allocation cursor tables."""
    op.drop_table("allocation_cursor")
    op.drop_index("ix_claims_origin_claimed_at", table_name="claims")
    op.drop_index("ix_claims_token_claimed_at", table_name="claims")
    op.drop_table("claims")
    op.drop_index("ix_coupons_claimed", table_name="coupons")
    op.drop_table("coupons")
