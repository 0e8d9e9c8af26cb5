"""
Configuration loading utilities for the API schema editor.

This module loads config.yaml, merges it over built-in defaults and exposes
the resulting values (storage directory, editor defaults, UI title, logging
level) to the rest of the application.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging
from copy import deepcopy

from .schema_node import BodyType, RequestMethod

logger = logging.getLogger(__name__)

_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

_config_cache: Optional[Dict[str, Any]] = None


def deep_merge(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries, with update_dict taking precedence.

    Args:
        base_dict: Base dictionary (defaults)
        update_dict: Dictionary to merge in (user config)

    Returns:
        Merged dictionary
    """
    result = deepcopy(base_dict)

    for key, value in update_dict.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)

    return result


def get_default_config() -> Dict[str, Any]:
    """
    Get the built-in configuration.

    Returns:
        Dictionary with default configuration
    """
    return {
        'app': {
            'name': 'API Schema Editor',
            'version': '1.0.0',
            'debug': False
        },
        'storage': {
            'api_dir': 'apis'
        },
        'editor': {
            'default_method': RequestMethod.GET.value,
            'default_body_type': BodyType.FORM.value
        },
        'ui': {
            'page_title': 'API Schema Editor'
        },
        'logging': {
            'level': 'INFO'
        }
    }


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load application configuration.

    A missing, empty or unreadable file falls back to the defaults.

    Args:
        config_path: Optional path to config file (defaults to config.yaml)

    Returns:
        Complete configuration dictionary
    """
    if config_path is None:
        config_path = Path("config.yaml")

    default_config = get_default_config()

    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}")
        logger.info("Using default configuration")
        return default_config

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config
    except (IOError, OSError) as e:
        logger.error(f"Failed to read configuration file {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config

    if user_config is None:
        logger.warning(f"Configuration file is empty: {config_path}")
        return default_config

    if not isinstance(user_config, dict):
        logger.error(f"Configuration file is not a valid dictionary: {config_path}")
        logger.info("Using default configuration")
        return default_config

    config = deep_merge(default_config, user_config)
    if not validate_config(config):
        logger.warning(f"Configuration in {config_path} is invalid, using defaults")
        return default_config

    logger.info(f"Successfully loaded configuration from {config_path}")
    return config


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary to validate

    Returns:
        True if configuration is valid, False otherwise
    """
    for section in ('app', 'storage', 'editor', 'ui', 'logging'):
        if not isinstance(config.get(section), dict):
            logger.warning(f"Missing required configuration section: {section}")
            return False

    api_dir = config['storage'].get('api_dir')
    if not isinstance(api_dir, str) or not api_dir.strip():
        logger.warning("storage.api_dir must be a non-empty string")
        return False

    editor = config['editor']
    if editor.get('default_method') not in [method.value for method in RequestMethod]:
        logger.warning(f"Unknown editor.default_method: {editor.get('default_method')}")
        return False
    if editor.get('default_body_type') not in [body_type.value for body_type in BodyType]:
        logger.warning(f"Unknown editor.default_body_type: {editor.get('default_body_type')}")
        return False

    level = config['logging'].get('level')
    if not isinstance(level, str) or level.upper() not in _LOG_LEVELS:
        logger.warning(f"Unknown logging.level: {level}")
        return False

    return True


def get_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Return the cached configuration, loading it on first use."""
    global _config_cache
    if _config_cache is None:
        _config_cache = load_config(config_path)
    return _config_cache


def reload_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Drop the cached configuration and load it again."""
    global _config_cache
    _config_cache = None
    return get_config(config_path)


def get_config_value(section: str, key: str, default: Any = None) -> Any:
    """
    Look up one configuration value.

    Args:
        section: Top-level section name, e.g. 'editor'
        key: Key inside the section
        default: Returned when the section or key is missing

    Returns:
        Configured value or default
    """
    return get_config().get(section, {}).get(key, default)


def get_logging_level() -> int:
    """Return the configured logging level as a logging module constant."""
    level = str(get_config_value('logging', 'level', 'INFO')).upper()
    return getattr(logging, level, logging.INFO)
