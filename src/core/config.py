"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Account Invitations API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/invitations",
        description="Database connection URL (asyncpg in production, aiosqlite in tests)",
    )

    # Invitation lifecycle
    invitation_expiry_days: int = Field(
        default=14,
        ge=1,
        description="Days between sending an invitation and its expiry",
    )
    store_timeout_seconds: float | None = Field(
        default=5.0,
        description="Upper bound for a single store round-trip; unset disables the bound",
    )
    expired_invitation_report_interval_seconds: int = Field(
        default=86400,
        ge=0,
        description="How often expired, unresolved invitations are logged (0 disables)",
    )

    # JWT Authentication
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="Secret key for HS256 token signing and verification",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_minutes: int = Field(default=30)
    jwt_jwks_url: str = Field(
        default="",
        description="JWKS endpoint of the identity provider for ES256/RS256 tokens",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(
        default="console",
        description="Either 'console' (human readable) or 'json'",
    )

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure a plain ``postgresql://`` URL uses the asyncpg driver scheme."""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
