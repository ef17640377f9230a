"""Configuration management module for the notification engine."""

from .duration import DurationParseError, parse_duration
from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config
from .models import (
    AppConfig,
    HistoryConfig,
    LinksConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    StorageConfig,
    SweeperConfig,
    TransportConfig,
    TransportType,
)

__all__ = [
    # Main loader functions
    "load_config",
    "parse_app_config",
    "load_environment_config",
    "parse_duration",
    # Configuration models
    "AppConfig",
    "TransportConfig",
    "HistoryConfig",
    "LinksConfig",
    "StorageConfig",
    "SweeperConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "TransportType",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
    "DurationParseError",
]
