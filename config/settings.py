"""
Configuration management for the trace correlation demo service.

This module provides centralized configuration loading and validation using
Pydantic settings. Values are read once at startup from environment variables
or a .env file, using the same DD_* variable names the Datadog agent and
tracers understand.

Requirements:
- Service metadata (service, version, environment) read once and immutable
- Agent address for span export (DD_AGENT_HOST, falling back to HOST_IP)
- Fail startup with a descriptive error message listing invalid values
"""

from typing import List, Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SERVICE_VERSION = "0.1.0"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field has a default that is safe for local development, so the
    service starts without any configuration and without a live agent.
    """

    # Unified service tagging
    service_name: str = Field(
        default="trace-correlation-demo",
        validation_alias=AliasChoices("DD_SERVICE", "SERVICE_NAME"),
        description="Service name attached to every span and log line",
    )
    service_version: str = Field(
        default=SERVICE_VERSION,
        validation_alias=AliasChoices("DD_VERSION", "SERVICE_VERSION"),
        description="Service version attached to every span and log line",
    )
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("DD_ENV", "ENVIRONMENT"),
        description="Deployment environment (development, staging, production, ...)",
    )

    # Trace export
    agent_host: str = Field(
        default="localhost",
        validation_alias=AliasChoices("DD_AGENT_HOST", "HOST_IP"),
        description="Host of the Datadog agent receiving OTLP traces",
    )
    agent_otlp_port: int = Field(
        default=4317,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("DD_OTLP_GRPC_PORT", "AGENT_OTLP_PORT"),
        description="OTLP gRPC port of the agent",
    )
    trace_enabled: bool = Field(
        default=True,
        validation_alias=AliasChoices("DD_TRACE_ENABLED", "TRACE_ENABLED"),
        description="Export spans to the agent; spans are still created when disabled",
    )
    agent_probe_timeout_seconds: float = Field(
        default=1.0,
        gt=0,
        le=30,
        description="Timeout of the startup reachability probe against the agent",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # HTTP listener
    host: str = Field(default="0.0.0.0", description="Listener bind address")
    port: int = Field(default=8080, ge=0, le=65535, description="Listener port")
    shutdown_drain_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="Upper bound for draining in-flight requests on shutdown",
    )

    # Workload simulation
    simulated_timeout_seconds: float = Field(
        default=30.0,
        ge=0,
        le=300,
        description="Delay applied by the 'timeout' error scenario before responding",
    )

    # CORS Configuration
    cors_origins: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("service_name", "service_version", "environment", "agent_host")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject blank identity and address values."""
        if not v or not v.strip():
            raise ValueError("value cannot be empty")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: List[str]) -> List[str]:
        """Validate CORS origins format; '*' alone allows every origin."""
        validated_origins = []
        for origin in v:
            origin = origin.strip()
            if origin != "*" and not (origin.startswith("http://") or origin.startswith("https://")):
                raise ValueError(
                    f"Invalid CORS origin format: {origin}. "
                    "Must be '*' or start with http:// or https://"
                )
            validated_origins.append(origin)
        return validated_origins

    @property
    def otlp_endpoint(self) -> str:
        """gRPC endpoint of the agent's OTLP intake."""
        return f"http://{self.agent_host}:{self.agent_otlp_port}"


class ConfigurationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())

    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]

        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")

        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append("\nInvalid field values:\n" + "\n".join(invalid_parts))

        return "".join(parts)


def load_settings(**overrides) -> Settings:
    """
    Load and validate settings from the environment.

    Args:
        **overrides: Field values taking precedence over the environment

    Returns:
        Settings: The validated settings.

    Raises:
        ConfigurationError: If any value is missing or invalid.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        missing_fields = []
        invalid_fields = {}

        for error in e.errors():
            field_name = '.'.join(str(loc) for loc in error.get('loc', []))
            if error.get('type') == 'missing':
                missing_fields.append(field_name)
            else:
                invalid_fields[field_name] = error.get('msg', str(error))

        raise ConfigurationError(
            "Failed to load configuration",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields,
        ) from e


# Global settings cache
_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Settings are loaded once and cached for subsequent calls.

    Raises:
        ConfigurationError: If settings are invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = load_settings()

    return _settings_cache
