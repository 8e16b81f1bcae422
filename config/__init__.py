# Configuration module for the trace correlation demo service
from .settings import (
    SERVICE_VERSION,
    ConfigurationError,
    Settings,
    get_settings,
    load_settings,
)

__all__ = [
    "SERVICE_VERSION",
    "ConfigurationError",
    "Settings",
    "get_settings",
    "load_settings",
]
