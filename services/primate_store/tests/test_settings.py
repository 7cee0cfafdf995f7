"""
Tests for settings loading and validation.
"""

import pytest
from pydantic import ValidationError

from services.primate_store.settings import Settings, get_settings


class TestSettingsDefaults:
    """Test defaults and helper methods."""

    def test_defaults(self, monkeypatch):
        for var in (
            "DB_HOST", "DB_PORT", "DB_NAME", "DB_USER",
            "DB_POOL_MIN_SIZE", "DB_POOL_MAX_SIZE", "LOG_LEVEL", "ENVIRONMENT",
        ):
            monkeypatch.delenv(var, raising=False)

        config = Settings(_env_file=None)

        assert config.db_host == "localhost"
        assert config.db_port == 5432
        assert config.db_name == "primates"
        assert config.db_pool_min_size == 1
        assert config.db_pool_max_size == 5
        assert config.log_level == "INFO"
        assert config.environment == "development"

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("DB_HOST", "db.internal")
        monkeypatch.setenv("DB_PORT", "6543")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = Settings(_env_file=None)

        assert config.db_host == "db.internal"
        assert config.db_port == 6543
        assert config.log_level == "DEBUG"

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()

        assert get_settings() is get_settings()


class TestSettingsValidation:
    """Test that pydantic validation is working."""

    @pytest.mark.parametrize("overrides", [
        {"environment": "invalid_env"},
        {"log_level": "VERBOSE"},
        {"log_format": "xml"},
        {"db_port": 0},
        {"db_port": 70000},
        {"db_host": "   "},
        {"db_name": ""},
        {"db_pool_min_size": 0},
        {"db_connect_timeout": 0.5},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **overrides)

    def test_pool_max_below_min(self):
        with pytest.raises(ValidationError, match="db_pool_max_size must be >= db_pool_min_size"):
            Settings(_env_file=None, db_pool_min_size=4, db_pool_max_size=2)


class TestConninfo:
    """Test the libpq connection string."""

    def test_conninfo_contains_connection_parameters(self):
        config = Settings(
            _env_file=None,
            db_host="db.internal",
            db_port=6543,
            db_user="redlist",
            db_password="s3cret",
            db_name="primates",
        )

        conninfo = config.conninfo()

        assert "host=db.internal" in conninfo
        assert "port=6543" in conninfo
        assert "user=redlist" in conninfo
        assert "password=s3cret" in conninfo
        assert "dbname=primates" in conninfo
        assert "application_name=primate-store" in conninfo

    def test_conninfo_without_password(self):
        config = Settings(_env_file=None, db_password="")

        assert "password" not in config.conninfo()
