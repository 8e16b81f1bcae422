"""
Unit tests for the configuration settings module.

Tests cover:
- Defaults for a local run without any configuration
- DD_* variable names and their fallbacks
- Invalid field format validation
- Settings caching
"""

import os
from unittest.mock import patch

import pytest

import config.settings as settings_module
from config.settings import (
    SERVICE_VERSION,
    ConfigurationError,
    Settings,
    get_settings,
    load_settings,
)


class TestSettings:
    """Tests for the Settings class."""

    def test_defaults_without_configuration(self):
        """Test that the service starts with no environment at all."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

            assert settings.service_name == "trace-correlation-demo"
            assert settings.service_version == SERVICE_VERSION
            assert settings.environment == "development"
            assert settings.agent_host == "localhost"
            assert settings.agent_otlp_port == 4317
            assert settings.trace_enabled is True
            assert settings.log_level == "INFO"
            assert settings.port == 8080
            assert settings.shutdown_drain_timeout_seconds == 10.0
            assert settings.simulated_timeout_seconds == 30.0
            assert settings.cors_origins == ["*"]

    def test_datadog_variables_are_read(self):
        """Test that the DD_* unified service tags are used."""
        env_vars = {
            "DD_SERVICE": "orders-api",
            "DD_VERSION": "2.0.1",
            "DD_ENV": "staging",
            "DD_AGENT_HOST": "datadog-agent",
            "DD_OTLP_GRPC_PORT": "14317",
            "DD_TRACE_ENABLED": "false",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

            assert settings.service_name == "orders-api"
            assert settings.service_version == "2.0.1"
            assert settings.environment == "staging"
            assert settings.agent_host == "datadog-agent"
            assert settings.agent_otlp_port == 14317
            assert settings.trace_enabled is False

    def test_host_ip_used_when_agent_host_missing(self):
        """Test the HOST_IP fallback used when the agent runs as a daemonset."""
        with patch.dict(os.environ, {"HOST_IP": "10.0.0.7"}, clear=True):
            settings = Settings(_env_file=None)

            assert settings.agent_host == "10.0.0.7"

    def test_agent_host_wins_over_host_ip(self):
        env_vars = {"DD_AGENT_HOST": "agent", "HOST_IP": "10.0.0.7"}

        with patch.dict(os.environ, env_vars, clear=True):
            settings = Settings(_env_file=None)

            assert settings.agent_host == "agent"

    def test_otlp_endpoint(self):
        settings = Settings(_env_file=None, agent_host="agent", agent_otlp_port=4317)

        assert settings.otlp_endpoint == "http://agent:4317"

    def test_log_level_is_normalized(self):
        with patch.dict(os.environ, {"LOG_LEVEL": " debug "}, clear=True):
            settings = Settings(_env_file=None)

            assert settings.log_level == "DEBUG"

    def test_invalid_log_level_raises_error(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "VERBOSE"}, clear=True):
            with pytest.raises(Exception) as exc_info:
                Settings(_env_file=None)

            assert "log_level" in str(exc_info.value).lower()

    def test_blank_service_name_raises_error(self):
        with patch.dict(os.environ, {"DD_SERVICE": "   "}, clear=True):
            with pytest.raises(Exception):
                Settings(_env_file=None)

    def test_invalid_port_raises_error(self):
        with patch.dict(os.environ, {"DD_OTLP_GRPC_PORT": "70000"}, clear=True):
            with pytest.raises(Exception):
                Settings(_env_file=None)

    def test_invalid_cors_origin_raises_error(self):
        with pytest.raises(Exception) as exc_info:
            Settings(_env_file=None, cors_origins=["example.com"])

        assert "Invalid CORS origin format" in str(exc_info.value)

    def test_explicit_cors_origins_accepted(self):
        settings = Settings(_env_file=None, cors_origins=["https://app.example.com"])

        assert settings.cors_origins == ["https://app.example.com"]


class TestLoadSettings:
    """Tests for load_settings and ConfigurationError."""

    def test_invalid_values_raise_configuration_error(self):
        env_vars = {"LOG_LEVEL": "LOUD", "PORT": "not-a-port"}

        with patch.dict(os.environ, env_vars, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                load_settings(_env_file=None)

        error = exc_info.value
        assert "log_level" in error.invalid_fields
        assert "port" in error.invalid_fields
        assert "Invalid field values" in str(error)

    def test_overrides_take_precedence(self):
        with patch.dict(os.environ, {"DD_ENV": "production"}, clear=True):
            settings = load_settings(_env_file=None, environment="test")

        assert settings.environment == "test"


class TestConfigurationError:
    """Tests for ConfigurationError message formatting."""

    def test_message_lists_missing_and_invalid_fields(self):
        error = ConfigurationError(
            "Failed to load configuration",
            missing_fields=["service_name"],
            invalid_fields={"port": "must be an integer"},
        )

        message = str(error)
        assert "Missing required fields: service_name" in message
        assert "  - port: must be an integer" in message


class TestGetSettings:
    """Tests for the cached settings accessor."""

    def test_settings_are_cached(self, monkeypatch):
        monkeypatch.setattr(settings_module, "_settings_cache", None)

        with patch.dict(os.environ, {"DD_SERVICE": "cached"}, clear=True):
            first = get_settings()
        with patch.dict(os.environ, {"DD_SERVICE": "changed"}, clear=True):
            second = get_settings()

        assert first is second
        assert second.service_name == "cached"
