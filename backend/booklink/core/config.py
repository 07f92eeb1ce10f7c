"""Application configuration loaded from environment variables.

Settings for the database, public URLs used to build magic links and
redirects, SMS delivery, and rate limiting. Uses pydantic-settings for
validation and .env file support.
"""

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "booklink_dev_password"  # nosec B105


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "booklink"
    database_user: str = "booklink_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD
    # Full SQLAlchemy URL; takes precedence over the discrete fields above
    # (e.g. "sqlite+aiosqlite:///./booklink.db" for local experiments)
    database_url_override: str = ""

    # CORS (Security)
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Public URLs
    # frontend_base_url: where resolved magic links land (/booking/{bookingId})
    # magic_link_base_url: host that serves /appt/{magicLinkId}
    frontend_base_url: str = "https://usetextbook.com"
    magic_link_base_url: str = "https://tbook.me"

    # SMS delivery of magic links. Empty gateway URL = log only.
    sms_gateway_url: str = ""
    sms_api_key: SecretStr = SecretStr("")
    sms_sender: str = "Textbook"

    # Rate Limiting (Security)
    # Format: "count/period" (e.g., "10/minute", "100/15minutes")
    rate_limit_enabled: bool = True
    rate_limit_default: str = "100/15minutes"
    rate_limit_create: str = "20/minute"
    rate_limit_track: str = "60/minute"

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate production security requirements.

        Checks:
        - CORS must not use wildcard origin (incompatible with credentials)
        - Database password must not be the default in production
        - Public URLs must be absolute http(s) URLs
        """
        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "CORS is configured with credentials, which browsers "
                "reject alongside a wildcard origin."
            )
            raise ValueError(msg)

        for name in ("frontend_base_url", "magic_link_base_url"):
            value = getattr(self, name)
            if not value.startswith(("http://", "https://")):
                msg = f"{name.upper()} must be an absolute http(s) URL. Got: {value!r}"
                raise ValueError(msg)

        if (
            self.environment == "production"
            and not self.database_url_override
            and self.database_password == _INSECURE_DEFAULT_PASSWORD
        ):
            msg = (
                "Cannot use default database password in production. "
                "Set DATABASE_PASSWORD environment variable to a secure value."
            )
            raise ValueError(msg)

        return self


settings = Settings()
