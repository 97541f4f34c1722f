"""
Unit tests for application settings.

Tests verify:
- Production refuses the default or a short JWT signing secret
- Other environments keep working with the development default
- The reset-token lifetime is not exposed as a setting
"""

import pytest
from pydantic import ValidationError

from src.config.settings import DEFAULT_JWT_SECRET, Settings
from tests.helpers import TEST_SECRET


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's shell from leaking into Settings()."""
    for name in ("ENVIRONMENT", "JWT_SECRET"):
        monkeypatch.delenv(name, raising=False)


class TestProductionSecret:
    """Tests for the production JWT secret check."""

    def test_default_secret_rejected_in_production(self) -> None:
        with pytest.raises(ValidationError, match="JWT_SECRET"):
            Settings(environment="production", _env_file=None)

    def test_environment_name_is_case_insensitive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(environment=" Production ", _env_file=None)

    def test_short_secret_rejected_in_production(self) -> None:
        with pytest.raises(ValidationError):
            Settings(environment="production", jwt_secret="x" * 31, _env_file=None)

    def test_secret_from_environment_is_checked(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("JWT_SECRET", DEFAULT_JWT_SECRET)

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_long_secret_accepted_in_production(self) -> None:
        settings = Settings(environment="production", jwt_secret=TEST_SECRET, _env_file=None)

        assert settings.is_production is True
        assert settings.jwt_secret == TEST_SECRET

    @pytest.mark.parametrize("environment", ["development", "test"])
    def test_default_secret_allowed_outside_production(self, environment: str) -> None:
        settings = Settings(environment=environment, _env_file=None)

        assert settings.jwt_secret == DEFAULT_JWT_SECRET


class TestTokenLifetimes:
    """Tests for token lifetime settings."""

    def test_reset_token_lifetime_not_configurable(self) -> None:
        assert "reset_token_ttl_seconds" not in Settings.model_fields

    def test_session_lifetime_defaults_to_seven_days(self) -> None:
        assert Settings(_env_file=None).session_ttl_seconds == 7 * 24 * 60 * 60
