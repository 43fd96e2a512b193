"""Tests for the ChronoStudy configuration system."""

import pytest
from pydantic import ValidationError

from chronostudy.config import ChronoConfig


class TestChronoConfigDefaults:
    def test_default_values(self):
        config = ChronoConfig()
        assert config.api_base_url == "http://localhost:5000/api"
        assert config.request_timeout == 10.0
        assert config.poll_interval == 1.0
        assert config.tick_interval == 1.0
        assert config.session_file == "~/.chronostudy/session.json"
        assert config.desktop_notifications is True
        assert config.log_level == "INFO"


class TestChronoConfigFromEnv:
    def test_loads_from_env_vars(self, monkeypatch):
        monkeypatch.setenv("CHRONO_API_BASE_URL", "https://study.example.com/api")
        monkeypatch.setenv("CHRONO_POLL_INTERVAL", "2.5")
        monkeypatch.setenv("CHRONO_DESKTOP_NOTIFICATIONS", "false")
        monkeypatch.setenv("CHRONO_LOG_LEVEL", "DEBUG")

        config = ChronoConfig()
        assert config.api_base_url == "https://study.example.com/api"
        assert config.poll_interval == 2.5
        assert config.desktop_notifications is False
        assert config.log_level == "DEBUG"


class TestValidation:
    def test_trailing_slash_stripped(self):
        config = ChronoConfig(api_base_url="http://backend.test/api/")
        assert config.api_base_url == "http://backend.test/api"

    @pytest.mark.parametrize("field", ["poll_interval", "tick_interval", "request_timeout"])
    def test_non_positive_interval_rejected(self, field):
        with pytest.raises(ValidationError, match="must be greater than 0"):
            ChronoConfig(**{field: 0})


class TestGetConfigSingleton:
    def test_returns_same_instance(self):
        import chronostudy.config as cfg

        cfg._config_instance = None
        c1 = cfg.get_config()
        c2 = cfg.get_config()
        assert c1 is c2

        cfg._config_instance = None
