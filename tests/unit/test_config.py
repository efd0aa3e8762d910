"""Unit tests for configuration management."""
import os
import pytest
from pydantic import ValidationError
from gridrunner.config import Settings, get_settings


class TestSettings:
    """Test Settings configuration class."""

    def test_settings_has_default_values(self, monkeypatch):
        """Test Settings provides default values for every option."""
        monkeypatch.delenv("BROWSER", raising=False)
        monkeypatch.delenv("ELASTICSEARCH_ENABLED", raising=False)

        settings = Settings(_env_file=None)

        assert settings.APP_NAME == "Gridrunner"
        assert settings.BROWSER == "chrome"
        assert settings.ELASTICSEARCH_ENABLED is False
        assert settings.SCENARIO_DEADLINE is None

    def test_settings_timeout_defaults(self):
        """Test session timeouts default to 10s/60s/30s."""
        settings = Settings(_env_file=None)

        assert settings.IMPLICIT_WAIT == 10
        assert settings.PAGE_LOAD_TIMEOUT == 60
        assert settings.SCRIPT_TIMEOUT == 30

    def test_settings_loads_from_environment(self, monkeypatch):
        """Test Settings reads grid and Elasticsearch options from environment."""
        monkeypatch.setenv("GRID_URL", "http://grid:4444/wd/hub")
        monkeypatch.setenv("BROWSER", "firefox")
        monkeypatch.setenv("HEADLESS", "true")
        monkeypatch.setenv("ELASTICSEARCH_ENABLED", "true")
        monkeypatch.setenv("ELASTICSEARCH_PORT", "9201")

        settings = Settings(_env_file=None)

        assert settings.GRID_URL == "http://grid:4444/wd/hub"
        assert settings.BROWSER == "firefox"
        assert settings.HEADLESS is True
        assert settings.ELASTICSEARCH_ENABLED is True
        assert settings.ELASTICSEARCH_PORT == 9201

    def test_settings_rejects_invalid_port(self, monkeypatch):
        """Test a non-numeric port fails validation."""
        monkeypatch.setenv("ELASTICSEARCH_PORT", "not-a-port")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_elasticsearch_url(self):
        """Test elasticsearch_url joins host and port."""
        settings = Settings(_env_file=None, ELASTICSEARCH_HOST="es", ELASTICSEARCH_PORT=9300)

        assert settings.elasticsearch_url == "http://es:9300"

    def test_get_settings_returns_cached_instance(self):
        """Test get_settings returns cached Settings instance."""
        settings1 = get_settings()
        settings2 = get_settings()

        assert settings1 is settings2
