"""Tests for application configuration.

Settings for the database, public URLs, SMS delivery and rate limiting.
Tests cover defaults, URL building and production security validation.
"""

import pytest
from pydantic import ValidationError

from booklink.core.config import _INSECURE_DEFAULT_PASSWORD, Settings

# Reusable test constants
_SECURE_DB_PASSWORD = "my-secure-production-password-123!"
_PRODUCTION = "production"


class TestDefaults:
    """Tests for default values of settings that shape public behavior."""

    def test_public_url_defaults(self):
        """Links point at the short host, redirects at the frontend."""
        s = Settings(_env_file=None)
        assert s.magic_link_base_url == "https://tbook.me"
        assert s.frontend_base_url == "https://usetextbook.com"

    def test_default_rate_limit_is_100_per_15_minutes(self):
        """Global per-IP limit matches the public API contract."""
        s = Settings(_env_file=None)
        assert s.rate_limit_default == "100/15minutes"

    def test_sms_gateway_unconfigured_by_default(self):
        """Without a gateway URL the notifier only logs."""
        s = Settings(_env_file=None)
        assert s.sms_gateway_url == ""


class TestDatabaseUrl:
    """Tests for database URL assembly."""

    def test_builds_asyncpg_url_from_parts(self):
        """Discrete fields produce a postgresql+asyncpg URL."""
        s = Settings(
            _env_file=None,
            database_host="db",
            database_port=5433,
            database_name="bookings",
            database_user="svc",
            database_password="pw",
        )
        assert s.database_url == "postgresql+asyncpg://svc:pw@db:5433/bookings"

    def test_override_takes_precedence(self):
        """A full URL override wins over the discrete fields."""
        s = Settings(
            _env_file=None,
            database_url_override="sqlite+aiosqlite:///./booklink.db",
        )
        assert s.database_url == "sqlite+aiosqlite:///./booklink.db"


class TestProductionSecurityValidation:
    """Tests for production security requirements."""

    def test_allows_default_password_in_development(self):
        """Default password is allowed in development environment."""
        s = Settings(
            _env_file=None,
            environment="development",
            database_password=_INSECURE_DEFAULT_PASSWORD,
        )
        assert s.database_password == _INSECURE_DEFAULT_PASSWORD

    def test_rejects_default_password_in_production(self):
        """Default password is rejected in production environment."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(
                _env_file=None,
                environment=_PRODUCTION,
                database_password=_INSECURE_DEFAULT_PASSWORD,
            )

        errors = exc_info.value.errors()
        assert len(errors) == 1
        assert "Cannot use default database password in production" in str(
            errors[0]["msg"]
        )

    def test_allows_custom_password_in_production(self):
        """Custom password is allowed in production environment."""
        s = Settings(
            _env_file=None,
            environment=_PRODUCTION,
            database_password=_SECURE_DB_PASSWORD,
        )
        assert s.database_password == _SECURE_DB_PASSWORD

    def test_allows_default_password_with_url_override_in_production(self):
        """An explicit database URL makes the discrete password irrelevant."""
        s = Settings(
            _env_file=None,
            environment=_PRODUCTION,
            database_url_override="postgresql+asyncpg://u:secret@db/booklink",
        )
        assert s.environment == _PRODUCTION

    def test_rejects_wildcard_cors_origin(self):
        """Wildcard origins are incompatible with credentialed CORS."""
        with pytest.raises(ValidationError, match="ALLOWED_ORIGINS"):
            Settings(_env_file=None, allowed_origins=["*"])

    @pytest.mark.parametrize(
        "field", ["frontend_base_url", "magic_link_base_url"]
    )
    def test_rejects_non_http_public_urls(self, field):
        """Public URLs must be absolute so links and redirects resolve."""
        with pytest.raises(ValidationError, match=field.upper()):
            Settings(_env_file=None, **{field: "tbook.me"})
