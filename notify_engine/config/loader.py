"""Build validated settings from a YAML file and the environment.

Without an explicit path the file is looked up as ``config.yaml`` and then
``config/config.yaml`` in the working directory. An empty file selects all
defaults.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, check_transport_requirements, emit_warnings

DEFAULT_LOCATIONS = (Path("config.yaml"), Path("config") / "config.yaml")
EXAMPLE_HINT = "Copy config.example.yaml to config.yaml"


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load the application settings and the environment secrets.

    DATABASE_URL and LOG_LEVEL from the environment take precedence over
    ``storage.database_url`` and ``logging.level`` in the file.

    Args:
        config_path: Explicit configuration file, or None to search the defaults

    Returns:
        Tuple of (AppConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If the file is missing or unreadable, a value is
            invalid, or the selected transport lacks its settings
    """
    document = _read_document(_locate(config_path))
    emit_warnings(check_for_warnings(document))

    app_config = parse_app_config(document)
    env_config = load_environment_config()

    if env_config.database_url:
        app_config.storage.database_url = env_config.database_url
    if env_config.log_level:
        app_config.logging.level = env_config.log_level

    check_transport_requirements(app_config, env_config)
    return app_config, env_config


def parse_app_config(config_dict: Dict[str, Any]) -> AppConfig:
    """
    Validate a configuration mapping.

    Raises:
        ConfigurationError: Listing every invalid field as ``path -> to -> field: reason``
    """
    try:
        return AppConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            "Configuration validation failed",
            errors=[
                f"{' -> '.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}"
                for error in e.errors()
            ],
            suggestions=["Compare the file with config.example.yaml"],
        ) from e


def _locate(config_path: Optional[Path]) -> Path:
    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(
                f"Specified configuration file not found: {path}",
                suggestions=["Check the --config path", EXAMPLE_HINT],
            )
        return path

    for candidate in DEFAULT_LOCATIONS:
        if candidate.is_file():
            return candidate

    raise ConfigurationError(
        "Configuration file not found",
        errors=[f"Tried: {candidate.as_posix()}" for candidate in DEFAULT_LOCATIONS],
        suggestions=[EXAMPLE_HINT, "Pass --config with the file location"],
    )


def _read_document(path: Path) -> Dict[str, Any]:
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML in {path}: {e}",
            suggestions=["Indent with spaces, not tabs"],
        ) from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read {path}: {e}") from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigurationError(
            f"{path} must contain a mapping at the top level",
            suggestions=["Compare the file with config.example.yaml"],
        )
    return document
