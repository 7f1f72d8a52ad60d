# settings/config_loader.py
# -*- coding: utf-8 -*-
"""
Configuration loader for the workstation bootstrap.

Handles loading settings from Pydantic model defaults, environment variables,
a YAML file, and command-line arguments, applying a specific order of
precedence:
1. Pydantic Model Defaults
2. Environment Variables (via Pydantic's BaseSettings initialization)
3. YAML Configuration File
4. Command-Line Arguments
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from .config_models import CONFIG_FILE_DEFAULT, AppSettings

module_logger = logging.getLogger(__name__)

CONFIG_FILE_ENV_VAR = "WORKSTATION_CONFIG"

# CLI option names that map onto nested settings groups.
NESTED_CLI_KEYS: Dict[str, tuple] = {
    "check_mode": ("playbook", "check_mode"),
}


def _deep_update(
    source: Dict[str, Any], overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Recursively updates a dictionary `source` with values from another
    dictionary `overrides`. Nested dictionaries are merged key by key;
    `None` values in `overrides` never replace an existing value.

    Parameters:
        source: The dictionary to be updated in place.
        overrides: The dictionary containing values to update or add.

    Returns:
        The updated `source` dictionary.
    """
    for key, value in overrides.items():
        if (
            isinstance(value, dict)
            and key in source
            and isinstance(source[key], dict)
        ):
            source[key] = _deep_update(source[key], value)
        elif value is not None:
            source[key] = value
        elif key not in source:
            source[key] = value
    return source


def resolve_config_path(
    config_file_path: Optional[Union[str, Path]] = None,
) -> Path:
    """Explicit path, then $WORKSTATION_CONFIG, then the default location."""
    if config_file_path:
        return Path(config_file_path).expanduser()
    env_path = os.environ.get(CONFIG_FILE_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return CONFIG_FILE_DEFAULT


def load_yaml_config(
    yaml_config_path: Path,
    current_logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """
    Reads a YAML settings file.

    A missing, unreadable, or malformed file is not fatal: a warning is
    logged and an empty dictionary returned so that defaults and the
    environment still apply.
    """
    logger_to_use = current_logger if current_logger else module_logger

    if not (yaml_config_path.exists() and yaml_config_path.is_file()):
        logger_to_use.info(
            f"Configuration file '{yaml_config_path}' not found. Using defaults, environment variables, and CLI args."
        )
        return {}

    try:
        with open(yaml_config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger_to_use.warning(
            f"Could not parse YAML config file '{yaml_config_path}': {e}. Using defaults and environment variables."
        )
        return {}
    except IOError as e:
        logger_to_use.warning(
            f"Could not read config file '{yaml_config_path}': {e}. Using defaults and environment variables."
        )
        return {}

    if yaml_data is None:
        return {}
    if not isinstance(yaml_data, dict):
        logger_to_use.warning(
            f"Config file '{yaml_config_path}' does not contain a valid YAML dictionary. Ignoring."
        )
        return {}

    logger_to_use.info(f"Loaded configuration from {yaml_config_path}")
    return yaml_data


def _map_cli_overrides(cli_overrides: Dict[str, Any]) -> Dict[str, Any]:
    mapped: Dict[str, Any] = {}
    for cli_key, cli_value in cli_overrides.items():
        if cli_value is None:
            continue
        if cli_key in NESTED_CLI_KEYS:
            group, field = NESTED_CLI_KEYS[cli_key]
            mapped.setdefault(group, {})[field] = cli_value
        else:
            mapped[cli_key] = cli_value
    return mapped


def load_app_settings(
    cli_overrides: Optional[Dict[str, Any]] = None,
    config_file_path: Optional[Union[str, Path]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> AppSettings:
    """
    Loads application settings with the following precedence:
    1. Pydantic Model Defaults.
    2. Environment Variables (Pydantic BaseSettings loads these, e.g.
       DOTFILES_URL, BOOTSTRAP_HOME, BREW_TAPS, PLAYBOOK_CHECK_MODE).
    3. Values from the YAML configuration file.
    4. Command-Line Arguments (highest precedence, overrides all else).
       Keys whose value is None are treated as "not given".

    Args:
        cli_overrides: Mapping of setting names to values from the CLI.
        config_file_path: Path to the YAML configuration file. Falls back to
            $WORKSTATION_CONFIG and then ~/.config/workstation/config.yaml.
        current_logger: Optional logger to use instead of the module logger.

    Returns:
        An instance of AppSettings with the fully resolved configuration.

    Raises:
        SystemExit: If the merged configuration fails validation.
    """
    logger_to_use = current_logger if current_logger else module_logger

    try:
        settings_after_env_and_defaults = AppSettings()
    except ValidationError as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise SystemExit(f"Configuration error: {e}") from e

    current_values_dict = settings_after_env_and_defaults.model_dump(
        exclude_defaults=False
    )

    yaml_config_path = resolve_config_path(config_file_path)
    yaml_data = load_yaml_config(yaml_config_path, logger_to_use)
    if yaml_data:
        current_values_dict = _deep_update(current_values_dict, yaml_data)

    if cli_overrides:
        current_values_dict = _deep_update(
            current_values_dict, _map_cli_overrides(cli_overrides)
        )

    try:
        final_settings = AppSettings(**current_values_dict)
    except ValidationError as e:
        logger_to_use.error(f"Configuration validation failed: {e}")
        raise SystemExit(f"Configuration error: {e}") from e

    logger_to_use.debug(
        "Successfully loaded and validated application settings"
    )
    return final_settings
