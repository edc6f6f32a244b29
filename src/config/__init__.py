"""
Configuration Module.

This module provides configuration loading for the validation service.
Configuration is read from config.yml; any section or key the file leaves
out falls back to the defaults from get_default_config().

Sections:
    validation: Engine options (debug, log_schema_errors)
    cors: Cross-origin settings for the HTTP API (enabled, origins)
    server: Gunicorn bind address, worker count and log file

Usage:
    >>> from config import load_config
    >>> config = load_config()
    >>> if config["validation"]["debug"]:
    ...     # Raw errors are attached to every result
"""
import copy
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional


logger = logging.getLogger(__name__)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from config.yml file.

    Args:
        config_path: Path to config.yml file. If None, looks in current directory
                    and parent directories.

    Returns:
        Dictionary containing configuration settings, merged over the defaults

    Example:
        >>> config = load_config()
        >>> origins = config["cors"]["origins"]
    """
    if config_path is None:
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            candidate = parent / "config.yml"
            if candidate.exists():
                config_path = str(candidate)
                break

    if config_path is None:
        logger.warning("config.yml not found, using default configuration")
        return get_default_config()

    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning(f"Configuration file not found: {config_path}")
        return get_default_config()
    except yaml.YAMLError as e:
        logger.error(f"Error parsing configuration file: {e}")
        return get_default_config()

    if config is None:
        config = {}
    if not isinstance(config, dict):
        logger.warning("Configuration root must be a mapping, using default configuration")
        return get_default_config()

    logger.info(f"Loaded configuration from {config_path}")
    return merge_config(get_default_config(), config)


def get_default_config() -> Dict[str, Any]:
    """Return default configuration when config.yml is not available.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "validation": {
            "debug": False,
            "log_schema_errors": True
        },
        "cors": {
            "enabled": False,
            "origins": []
        },
        "server": {
            "bind": "0.0.0.0:5000",
            "workers": 1,
            "log_file": "/tmp/validation.log"
        }
    }


def merge_config(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``overrides`` into a copy of ``defaults``.

    A section with the wrong shape (e.g. ``cors: yes``) is ignored with a
    warning and the default section is kept.
    """
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        default = merged.get(key)
        if isinstance(default, dict):
            if not isinstance(value, dict):
                logger.warning(f"Configuration section '{key}' must be a mapping, using defaults")
                continue
            merged[key] = merge_config(default, value)
        else:
            merged[key] = value
    return merged
