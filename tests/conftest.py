# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from coupon_allocator.core.settings import Settings, get_settings
from coupon_allocator.db.session import Base
from coupon_allocator.db.session import get_db as app_get_session
from coupon_allocator.main import app as fastapi_app
from coupon_allocator.models import Coupon
from coupon_allocator.schemas import CouponCreate
from coupon_allocator.services.allocator import AllocatorService
from coupon_allocator.services.identity import RequesterIdentity

TEST_DB_URL = "sqlite://"
ADMIN_TOKEN = "test-admin-token"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Allocator operations commit, so every test starts from empty tables.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def test_settings() -> Settings:
    """Settings with admin endpoints enabled behind a known token."""
    return Settings(
        admin_endpoints_enabled=True,
        admin_token=ADMIN_TOKEN,
        auto_create_tables=False,
    )


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    test_settings: Settings,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_settings] = lambda: test_settings
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_settings, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Token": ADMIN_TOKEN}


@pytest.fixture()
def allocator() -> AllocatorService:
    return AllocatorService(window_seconds=3600)


@pytest.fixture()
def make_identity() -> Callable[..., RequesterIdentity]:
    """Build requester identities with readable tokens."""

    def _make(name: str, origin: str = "10.0.0.1") -> RequesterIdentity:
        return RequesterIdentity(token=f"user_{name}", origin=origin)

    return _make


@pytest.fixture()
def seed_coupons(db_session: Session, allocator: AllocatorService) -> Callable[..., list[Coupon]]:
    """Insert coupons with the given codes and return them in id order."""

    def _seed(*codes: str) -> list[Coupon]:
        payload = [
            CouponCreate(code=code, title=f"{code} title", description="", discount="10%")
            for code in codes
        ]
        return allocator.add_coupons(db_session, payload)

    return _seed


@pytest.fixture()
def three_coupons(seed_coupons: Callable[..., list[Coupon]]) -> list[Coupon]:
    return seed_coupons("C1", "C2", "C3")
