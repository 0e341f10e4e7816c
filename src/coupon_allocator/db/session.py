"""Database session configuration."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from coupon_allocator.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import coupon_allocator.models  # noqa: E402,F401


def engine_options(url: str, timeout_seconds: float) -> dict[str, Any]:
    """Return create_engine keyword arguments bounding every storage call.

    Each backend gets its own driver-level timeout so that a locked row or an
    unreachable server fails the request instead of hanging it.
    """
    backend = make_url(url).get_backend_name()
    options: dict[str, Any] = {"pool_pre_ping": True}

    if backend == "sqlite":
        # busy timeout: how long a writer waits for the database lock
        options["connect_args"] = {"timeout": timeout_seconds, "check_same_thread": False}
        return options

    options["pool_timeout"] = timeout_seconds
    timeout_ms = int(timeout_seconds * 1000)
    if backend == "postgresql":
        options["connect_args"] = {
            "connect_timeout": max(1, int(timeout_seconds)),
            "options": f"-c statement_timeout={timeout_ms} -c lock_timeout={timeout_ms}",
        }
    elif backend in {"mysql", "mariadb"}:
        seconds = max(1, int(timeout_seconds))
        options["connect_args"] = {
            "connect_timeout": seconds,
            "read_timeout": seconds,
            "write_timeout": seconds,
        }
    return options


engine = create_engine(
    settings.effective_database_url,
    echo=settings.sql_debug,
    **engine_options(settings.effective_database_url, settings.storage_timeout_seconds),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=engine)
