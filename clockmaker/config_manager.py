"""Configuration manager for clockmaker YAML files.

Loads a YAML configuration file, substitutes environment variables and
validates the result against the ClockmakerConfig schema.
"""

import logging
import os
import re
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from clockmaker.clockmaker_config import ClockmakerConfig

logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, path: str = ""):
        self.message = message
        self.path = path
        super().__init__(f"Configuration validation error at '{path}': {message}")


class ConfigManager:
    """Loads and validates clockmaker configuration files."""

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = config_path
        self.raw_config_data: Optional[dict[str, Any]] = None

    def load_config(self) -> ClockmakerConfig:
        """Load and validate configuration from the configured file.

        Returns:
            ClockmakerConfig: The validated configuration object.

        Raises:
            ConfigValidationError: If the file is missing, is not valid YAML,
                                   or does not match the schema.
        """
        if not os.path.exists(self.config_path):
            raise ConfigValidationError("Configuration file not found", self.config_path)

        try:
            with open(self.config_path) as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in config file '{self.config_path}': {e}")
            raise ConfigValidationError(f"Invalid YAML in config file: {e}", self.config_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Cannot read config file '{self.config_path}': {e}")
            raise ConfigValidationError(f"Cannot read config file: {e}", self.config_path)

        if not isinstance(config_data, dict):
            raise ConfigValidationError(
                "Top-level configuration must be a mapping", self.config_path
            )

        self.raw_config_data = self._substitute_env_vars(config_data)

        try:
            config = ClockmakerConfig(**self.raw_config_data)
        except ValidationError as e:
            logger.error(f"Error validating configuration: {e}")
            raise ConfigValidationError(str(e), self.config_path)

        logger.info(
            f"Configuration loaded from: {self.config_path} "
            f"({len(config.timers)} timers)"
        )
        return config

    def _substitute_env_vars(self, config: Any) -> Any:
        """
        Recursively substitute environment variables in configuration.

        Supports ${VAR_NAME} and ${VAR_NAME:default_value} syntax.
        """
        if isinstance(config, dict):
            return {
                key: self._substitute_env_vars(value) for key, value in config.items()
            }
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):

            def replace_env_var(match):
                var_spec = match.group(1)
                if ":" in var_spec:
                    var_name, default_value = var_spec.split(":", 1)
                else:
                    var_name, default_value = var_spec, ""

                return os.getenv(var_name, default_value)

            return ENV_VAR_PATTERN.sub(replace_env_var, config)
        else:
            return config
