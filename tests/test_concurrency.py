"""Concurrent claim tests against a file-backed SQLite database.

The shared in-memory engine used elsewhere has a single connection, so these
tests build their own engine where every worker thread gets a real connection
and the allocator's locking is actually contended.
"""

from __future__ import annotations

import sqlite3
import threading
import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from coupon_allocator.db.session import Base, engine_options
from coupon_allocator.models import Claim, Coupon
from coupon_allocator.schemas import CouponCreate
from coupon_allocator.services.allocator import (
    AllocatorService,
    ClaimDeniedError,
    CouponsExhaustedError,
    RateLimitedError,
    StorageUnavailableError,
)
from coupon_allocator.services.identity import RequesterIdentity

WORKERS = 12
COUPON_COUNT = 5


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "coupons.db"


@pytest.fixture()
def file_sessionmaker(db_path: Path) -> Iterator[sessionmaker]:
    url = f"sqlite:///{db_path}"
    engine = create_engine(url, **engine_options(url, 10.0))
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    allocator = AllocatorService()
    with factory() as db:
        allocator.ensure_cursor(db)
        allocator.add_coupons(db, [CouponCreate(code=f"C{i}") for i in range(COUPON_COUNT)])
    try:
        yield factory
    finally:
        engine.dispose()


def _run_concurrently(factory: sessionmaker, identities: list[RequesterIdentity]) -> list[object]:
    allocator = AllocatorService()
    barrier = threading.Barrier(len(identities))

    def claim(identity: RequesterIdentity) -> object:
        barrier.wait()
        with factory() as db:
            try:
                return allocator.attempt_claim(db, identity).coupon.id
            except ClaimDeniedError as exc:
                return exc

    with ThreadPoolExecutor(max_workers=len(identities)) as pool:
        return list(pool.map(claim, identities))


def test_concurrent_claims_never_share_a_coupon(file_sessionmaker) -> None:
    identities = [
        RequesterIdentity(token=f"user_worker{index:02d}", origin="10.0.0.1")
        for index in range(WORKERS)
    ]

    results = _run_concurrently(file_sessionmaker, identities)

    granted = [result for result in results if isinstance(result, int)]
    denied = [result for result in results if not isinstance(result, int)]
    assert len(granted) == COUPON_COUNT
    assert len(set(granted)) == COUPON_COUNT
    assert all(isinstance(result, CouponsExhaustedError) for result in denied)

    with file_sessionmaker() as db:
        claimed = db.scalar(select(func.count()).select_from(Coupon).where(Coupon.claimed.is_(True)))
        claims = db.scalar(select(func.count()).select_from(Claim))
    assert claimed == claims == COUPON_COUNT


def test_concurrent_claims_for_one_requester_grant_once(file_sessionmaker) -> None:
    identity = RequesterIdentity(token="user_sameperson", origin="10.0.0.1")

    results = _run_concurrently(file_sessionmaker, [identity] * 8)

    granted = [result for result in results if isinstance(result, int)]
    assert len(granted) == 1
    assert all(
        isinstance(result, RateLimitedError)
        for result in results
        if not isinstance(result, int)
    )


def test_locked_database_fails_within_storage_timeout(db_path, file_sessionmaker) -> None:
    """A claim blocked by another writer gives up after the configured timeout."""
    url = f"sqlite:///{db_path}"
    engine = create_engine(url, **engine_options(url, 0.5))
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    identity = RequesterIdentity(token="user_blockedone", origin="10.0.0.1")

    blocker = sqlite3.connect(db_path, isolation_level=None)
    blocker.execute("BEGIN IMMEDIATE")
    try:
        with factory() as db:
            started = time.monotonic()
            with pytest.raises(StorageUnavailableError):
                AllocatorService().attempt_claim(db, identity)
            elapsed = time.monotonic() - started
    finally:
        blocker.execute("ROLLBACK")
        blocker.close()
        engine.dispose()

    assert 0.3 <= elapsed < 5.0
    with file_sessionmaker() as db:
        assert db.scalar(select(func.count()).select_from(Claim)) == 0
