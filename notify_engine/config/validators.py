"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List

from .environment import EnvironmentConfig
from .exceptions import ConfigurationError
from .models import AppConfig, TransportType


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    transport = config_dict.get("transport", {})
    if isinstance(transport, dict):
        if transport.get("type") == TransportType.SIMULATED.value:
            warning_messages.append(
                "Simulated transport is configured: messages are not delivered and "
                "some sends will fail at random"
            )

        timeout = transport.get("timeout_seconds")
        if isinstance(timeout, (int, float)) and 0 < timeout < 5:
            warning_messages.append(
                f"Short transport timeout_seconds ({timeout}) may leave records pending "
                "when the provider is slow"
            )

    history = config_dict.get("history", {})
    if isinstance(history, dict):
        limit = history.get("default_limit")
        if isinstance(limit, int) and limit > 500:
            warning_messages.append(
                f"Large history default_limit ({limit}) may make history queries slow"
            )

    storage = config_dict.get("storage", {})
    if isinstance(storage, dict):
        database_url = storage.get("database_url")
        if isinstance(database_url, str) and ":memory:" in database_url:
            warning_messages.append(
                "In-memory SQLite database_url loses history when the process exits"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)


def check_transport_requirements(app_config: AppConfig, env_config: EnvironmentConfig) -> None:
    """
    Check that the selected transport has the settings it needs.

    Raises:
        ConfigurationError: If required settings are missing
    """
    errors = []
    suggestions = []

    transport_type = app_config.transport.type

    if transport_type == TransportType.SMTP.value:
        if not env_config.smtp_host:
            errors.append("Missing required environment variable for smtp transport: SMTP_HOST")
        if not env_config.smtp_port:
            errors.append("Missing required environment variable for smtp transport: SMTP_PORT")
        suggestions.append("Set SMTP_HOST and SMTP_PORT in .env")

    elif transport_type == TransportType.HTTP.value:
        if not (app_config.transport.endpoint or env_config.api_url):
            errors.append(
                "http transport requires transport.endpoint in the config file "
                "or the NOTIFY_API_URL environment variable"
            )
        suggestions.append("Set NOTIFY_API_URL (and NOTIFY_API_KEY if the provider needs one)")

    if errors:
        suggestions.append("Use transport.type 'log' for local development")
        raise ConfigurationError(
            f"Transport '{transport_type}' is not fully configured",
            errors=errors,
            suggestions=suggestions,
        )
