# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Configuration management utilities for the web_accessibility_utility package.

This module provides a centralized configuration system that manages default
options, user-provided settings, and environment variables across all modules.
"""

import os
import yaml
import json
from pathlib import Path
from typing import Dict, Any, Optional
from copy import deepcopy

from web_accessibility_utility.utils.logging_helper import setup_logger, ConfigurationError

# Configure module-level logger
logger = setup_logger(__name__)


class ConfigManager:
    """
    Centralized configuration manager for the scan pipeline.

    This class handles:
    - Default options
    - User-provided options
    - Environment variables
    - Option merging and cascade
    """

    def __init__(
        self, defaults: Dict[str, Any] = None, env_prefix: str = "WEB_ACCESS_"
    ):
        """
        Initialize a configuration manager.

        Args:
            defaults: Dictionary of default options
            env_prefix: Prefix for environment variables
        """
        self.defaults = defaults or {}
        self.env_prefix = env_prefix
        self.user_config = {}

    def get_config(
        self, user_options: Dict[str, Any] = None, section: str = None
    ) -> Dict[str, Any]:
        """
        Get the resolved configuration with defaults, environment vars, and user options.

        Args:
            user_options: User-provided option overrides
            section: Optional section name to retrieve (e.g., 'navigation', 'alt_text')

        Returns:
            Dict with the resolved configuration options
        """
        if section and section in self.defaults:
            config = deepcopy(self.defaults[section])
        else:
            config = deepcopy(self.defaults)

        if section and section in self.user_config:
            config.update(self.user_config[section])
        elif not section:
            for key, value in self.user_config.items():
                if isinstance(value, dict) and isinstance(config.get(key), dict):
                    config[key].update(value)
                else:
                    config[key] = value

        self._apply_env_vars(config, section)

        # Runtime options take precedence over everything else
        if user_options:
            if section:
                config.update(user_options.get(section, user_options))
            else:
                for key, value in user_options.items():
                    if isinstance(value, dict) and isinstance(config.get(key), dict):
                        config[key].update(value)
                    else:
                        config[key] = value

        return config

    def set_user_config(self, config: Dict[str, Any], section: str = None) -> None:
        """
        Set persistent user configuration.

        Args:
            config: Dictionary of configuration options
            section: Optional section name
        """
        if section:
            if section not in self.user_config:
                self.user_config[section] = {}
            self.user_config[section].update(config)
        else:
            for key, value in config.items():
                if isinstance(value, dict):
                    self.user_config.setdefault(key, {}).update(value)
                else:
                    self.user_config[key] = value

    def _apply_env_vars(self, config: Dict[str, Any], section: str = None) -> None:
        """
        Apply relevant environment variables to the configuration.

        Without a section, variables are matched as ``<prefix><SECTION>_<OPTION>``
        against every nested section.

        Args:
            config: Configuration dictionary to update
            section: Optional section name to scope environment variables
        """
        if not section:
            for name, nested in config.items():
                if isinstance(nested, dict):
                    self._apply_env_vars(nested, name)
            return

        prefix = f"{self.env_prefix}{section.upper()}_"

        for env_var, value in os.environ.items():
            if not env_var.startswith(prefix):
                continue

            option_name = env_var[len(prefix) :].lower()

            if option_name in config:
                existing_value = config[option_name]
                existing_type = type(existing_value)
                try:
                    if existing_type == bool:
                        value = value.lower() in ("true", "1", "yes", "y")
                    elif existing_type == int:
                        value = int(value)
                    elif existing_type == float:
                        value = float(value)
                    elif existing_type == list:
                        value = [item.strip() for item in value.split(",")]
                except (ValueError, TypeError):
                    logger.warning(
                        f"Could not convert environment variable {env_var} to {existing_type.__name__}"
                    )
                    continue

            config[option_name] = value
            logger.debug(f"Applied environment variable {env_var}")


def validate_options(
    options: Dict[str, Any],
    required_fields: Optional[Dict[str, type]] = None,
    optional_fields: Optional[Dict[str, type]] = None,
) -> None:
    """
    Validate configuration options against schemas.

    Args:
        options: The options dictionary to validate
        required_fields: Dictionary mapping field names to expected types
        optional_fields: Dictionary mapping optional field names to expected types

    Raises:
        ConfigurationError: If validation fails
    """
    if required_fields:
        for field, field_type in required_fields.items():
            if field not in options:
                raise ConfigurationError(f"Required field '{field}' is missing")

            if not isinstance(options[field], field_type):
                raise ConfigurationError(
                    f"Field '{field}' has incorrect type. "
                    f"Expected {field_type.__name__}, got {type(options[field]).__name__}"
                )

    if optional_fields:
        for field, field_type in optional_fields.items():
            if field in options and not isinstance(options[field], field_type):
                raise ConfigurationError(
                    f"Field '{field}' has incorrect type. "
                    f"Expected {field_type.__name__}, got {type(options[field]).__name__}"
                )


def load_config_file(file_path: str) -> Dict[str, Any]:
    """
    Load configuration from a file.

    Supports YAML (.yaml, .yml) and JSON (.json) formats.

    Args:
        file_path: Path to the configuration file

    Returns:
        Dictionary with configuration options

    Raises:
        ConfigurationError: If file cannot be loaded or parsed
    """
    path = Path(file_path)

    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {file_path}")

    if path.suffix.lower() not in (".yaml", ".yml", ".json"):
        raise ConfigurationError(
            f"Unsupported configuration file format: {path.suffix}. "
            "Supported formats: YAML (.yaml, .yml), JSON (.json)"
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f) or {}
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Error parsing configuration file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Error loading configuration file: {e}")


# Global instance for shared configuration
config_manager = ConfigManager(
    {
        # Headless browser defaults
        "browser": {
            "headless": True,
            "viewport_width": 1366,
            "viewport_height": 768,
            "user_agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
            ),
            "accept_language": "en-US,en;q=0.9",
            "blocked_resource_types": ["media", "font", "other"],
            "block_unrecognized_images": True,
            "blocked_url_fragments": [
                "analytics",
                "tracking",
                "advertisement",
                "googlesyndication",
                "doubleclick",
                "facebook.net",
                "google-analytics",
            ],
            "launch_args": [
                "--no-sandbox",
                "--disable-setuid-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
            ],
        },
        # Escalating navigation strategies (wait condition, timeout in ms)
        "navigation": {
            "dom_timeout_ms": 30000,
            "load_timeout_ms": 45000,
            "network_idle_timeout_ms": 60000,
        },
        "stabilize": {
            "ready_timeout_ms": 20000,
            "network_idle_ms": 2000,
            "settle_ms": 2000,
        },
        "overlays": {
            "timeout_ms": 20000,
        },
        "detection": {
            "max_attempts": 5,
            "backoff_seconds": 1.0,
            "reload_timeout_ms": 15000,
            "engine_timeout_ms": 30000,
            "rule_tags": ["wcag2a", "wcag2aa", "best-practice"],
            "axe_script_paths": [
                "axe.min.js",
                "node_modules/axe-core/axe.min.js",
                "vendor/axe.min.js",
            ],
        },
        "scan": {
            "max_attempts": 3,
            "backoff_seconds": 1.0,
        },
        "alt_text": {
            "batch_size": 5,
            "fetch_timeout_seconds": 10.0,
            "classifier_timeout_seconds": 15.0,
            "model_id": "us.amazon.nova-lite-v1:0",
            "profile": None,
            "max_labels": 7,
            "disable_ai": False,
        },
        "cache": {
            "directory": "cache",
            "ttl_seconds": 86400,
        },
    }
)
