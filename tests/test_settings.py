"""Tests for settings and storage engine options."""

from coupon_allocator.core.settings import Settings
from coupon_allocator.db.session import engine_options


def test_defaults() -> None:
    config = Settings()
    assert config.claim_window_seconds == 3600
    assert config.requester_cookie_name == "user_id"
    assert config.rate_limit_by_origin is False


def test_effective_database_url_prefers_test_database() -> None:
    config = Settings(
        database_url="sqlite:///./prod.db",
        test_database_url="sqlite:///./test.db",
        use_testing_database=True,
    )
    assert config.effective_database_url == "sqlite:///./test.db"

    config.use_testing_database = False
    assert config.effective_database_url == "sqlite:///./prod.db"


def test_database_url_sync_converts_asyncpg() -> None:
    config = Settings(database_url="postgresql+asyncpg://u:p@db/coupons")
    assert config.database_url_sync == "postgresql+psycopg://u:p@db/coupons"


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("CLAIM_WINDOW_SECONDS", "120")
    monkeypatch.setenv("ADMIN_ENDPOINTS_ENABLED", "true")
    config = Settings()
    assert config.claim_window_seconds == 120
    assert config.admin_endpoints_enabled is True


def test_sqlite_engine_options_use_busy_timeout() -> None:
    options = engine_options("sqlite:///./coupons.db", 2.5)
    assert options["connect_args"]["timeout"] == 2.5
    assert "pool_timeout" not in options


def test_postgres_engine_options_bound_statements() -> None:
    options = engine_options("postgresql+psycopg://u:p@db/coupons", 3.0)
    assert options["pool_timeout"] == 3.0
    assert options["connect_args"]["connect_timeout"] == 3
    assert "statement_timeout=3000" in options["connect_args"]["options"]
    assert "lock_timeout=3000" in options["connect_args"]["options"]


def test_mysql_engine_options_bound_reads_and_writes() -> None:
    options = engine_options("mysql+pymysql://u:p@db/coupons", 4.0)
    assert options["connect_args"] == {
        "connect_timeout": 4,
        "read_timeout": 4,
        "write_timeout": 4,
    }
