"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Placeholder signing secret; refused in production by Settings validation
DEFAULT_JWT_SECRET = "change-me"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=10, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")
    create_tables_on_startup: bool = Field(
        default=True, validation_alias="CREATE_TABLES_ON_STARTUP",
    )

    # Runtime environment - "production" turns on Secure cookies and secret checks
    app_env: str = Field(default="development", validation_alias="APP_ENV")

    # Sessions
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET, validation_alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    session_expire_days: int = Field(default=7, validation_alias="SESSION_EXPIRE_DAYS")
    reset_authorization_minutes: int = Field(
        default=15, validation_alias="RESET_AUTHORIZATION_MINUTES",
    )

    # One-time codes
    otp_expire_minutes: int = Field(default=10, validation_alias="OTP_EXPIRE_MINUTES")

    # Mail (Resend). An empty API key logs messages instead of sending them.
    resend_api_key: str = Field(default="", validation_alias="RESEND_API_KEY")
    resend_from_email: str = Field(
        default="no-reply@localhost", validation_alias="RESEND_FROM_EMAIL",
    )
    resend_api_url: str = Field(
        default="https://api.resend.com/emails", validation_alias="RESEND_API_URL",
    )
    mail_from_name: str = Field(default="TrackMyHomeschool", validation_alias="MAIL_FROM_NAME")
    mail_timeout_seconds: float = Field(default=10.0, validation_alias="MAIL_TIMEOUT_SECONDS")

    # Admin console - password is stored as a bcrypt hash, never plaintext
    admin_username: str = Field(default="admin", validation_alias="ADMIN_USERNAME")
    admin_password_hash: str = Field(default="", validation_alias="ADMIN_PASSWORD_HASH")
    admin_session_hours: int = Field(default=8, validation_alias="ADMIN_SESSION_HOURS")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )

    # Redis - for rate limiting code requests
    redis_url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL")
    redis_enabled: bool = Field(default=True, validation_alias="REDIS_ENABLED")
    redis_pool_size: int = Field(default=20, validation_alias="REDIS_POOL_SIZE")

    # Server
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=5000, validation_alias="PORT")

    # Cleanup task
    daily_log_retention_days: int = Field(
        default=365, validation_alias="DAILY_LOG_RETENTION_DAYS",
    )

    @model_validator(mode="after")
    def validate_production_secret(self) -> "Settings":
        """
        Refuse to run in production with the placeholder signing secret.

        Anyone who knows the placeholder could mint valid session tokens.
        """
        if self.is_production and self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be set when APP_ENV is production.")
        return self

    @property
    def is_production(self) -> bool:
        """True when running with APP_ENV=production."""
        return self.app_env.strip().lower() == "production"

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def mail_from(self) -> str:
        """Formatted sender address, e.g. 'TrackMyHomeschool <no-reply@example.com>'."""
        return f"{self.mail_from_name} <{self.resend_from_email}>"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
