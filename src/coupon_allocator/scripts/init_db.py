"""Utility script to create the schema and load coupons into the configured database."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from coupon_allocator.db.session import SessionLocal, create_tables, drop_tables
from coupon_allocator.schemas import CouponCreate
from coupon_allocator.services.allocator import AllocatorError, get_allocator_service

DEMO_COUPONS: list[dict[str, str]] = [
    {"code": "SAVE10", "title": "10% Off", "description": "Any order", "discount": "10%"},
    {"code": "SAVE20", "title": "20% Off", "description": "Orders over $50", "discount": "20%"},
    {"code": "FREESHIP", "title": "Free Shipping", "description": "No minimum", "discount": "Free shipping"},
    {"code": "BOGO", "title": "Buy One Get One", "description": "Selected items", "discount": "BOGO"},
    {"code": "FLAT5", "title": "$5 Off", "description": "Orders over $25", "discount": "$5"},
]

_COUPON_LIST = TypeAdapter(list[CouponCreate])


def load_coupon_file(path: Path) -> list[CouponCreate]:
    """Parse a JSON array of coupon objects."""
    return _COUPON_LIST.validate_python(json.loads(path.read_text(encoding="utf-8")))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create tables and seed coupons")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop all tables before creating them again.",
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Load the built-in demo coupons.",
    )
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Load coupons from a JSON array of {code, title, description, discount}.",
    )
    args = parser.parse_args(argv)

    allocator = get_allocator_service()
    try:
        if args.reset:
            drop_tables()
            print("[init_db] dropped all tables")
        create_tables()

        coupons: list[CouponCreate] = []
        if args.seed:
            coupons.extend(_COUPON_LIST.validate_python(DEMO_COUPONS))
        if args.file is not None:
            coupons.extend(load_coupon_file(args.file))

        with SessionLocal() as db:
            allocator.ensure_cursor(db)
            if coupons:
                created = allocator.add_coupons(db, coupons)
                print(f"[init_db] loaded {len(created)} coupons")
    except (AllocatorError, OSError, ValueError, ValidationError) as exc:
        print(f"[init_db] ERROR: {exc}", file=sys.stderr)
        return 1

    print("[init_db] database ready")
    return 0


if __name__ == "__main__":
    sys.exit(main())
