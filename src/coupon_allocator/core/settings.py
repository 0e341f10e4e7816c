"""Application settings and configuration.

This module defines all configuration options for the Coupon Allocator service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Coupon Allocator", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./coupons.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    # Upper bound for connecting, lock waits and statement execution.
    storage_timeout_seconds: float = Field(default=5.0, gt=0, alias="STORAGE_TIMEOUT_SECONDS")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Claim rate limiting
    claim_window_seconds: int = Field(default=3600, gt=0, alias="CLAIM_WINDOW_SECONDS")
    rate_limit_by_origin: bool = Field(default=False, alias="RATE_LIMIT_BY_ORIGIN")

    # Requester cookie
    requester_cookie_name: str = Field(default="user_id", alias="REQUESTER_COOKIE_NAME")
    requester_cookie_max_age: int = Field(default=3600, alias="REQUESTER_COOKIE_MAX_AGE")
    requester_cookie_secure: bool = Field(default=False, alias="REQUESTER_COOKIE_SECURE")

    # Administrative endpoints (reset, audit, coupon loading)
    admin_endpoints_enabled: bool = Field(default=False, alias="ADMIN_ENDPOINTS_ENABLED")
    admin_token: str | None = Field(default=None, alias="ADMIN_TOKEN")

    # CORS configuration for the web frontend
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings for dependency injection."""
    return settings
