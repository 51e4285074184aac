"""Configuration manager for loading and validating .retrykit.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from retrykit.domain.config import AppConfig, HttpConfig, RetryConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".retrykit.yml"

# Older key names still accepted in the retry section
RETRY_ALIASES = {
    "max_retries": "max_attempts",
    "retry_delay": "initial_delay",
    "backoff": "backoff_multiplier",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


def _legacy_jitter(value: Any) -> Any:
    """Older configs give jitter as a factor (e.g. 0.1); any positive factor turns it on"""
    if isinstance(value, bool):
        return value
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        return value  # left for pydantic to reject


def normalize_retry_section(section: Dict[str, Any]) -> Dict[str, Any]:
    """Resolve a preset name and legacy aliases into RetryConfig fields

    Explicit fields override the values of the named preset.

    Raises:
        ConfigurationError: If the preset name is unknown
    """
    section = dict(section)
    for alias, field in RETRY_ALIASES.items():
        if alias in section:
            value = section.pop(alias)
            section.setdefault(field, value)
    if "jitter" in section:
        section.setdefault("use_jitter", _legacy_jitter(section.pop("jitter")))

    preset = section.pop("preset", None)
    if preset is None:
        return section

    try:
        resolved = RetryConfig.preset(str(preset)).model_dump()
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    resolved.update(section)
    return resolved


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean (true/false), got: {value!r}")


class ConfigManager:
    """Manages configuration from .retrykit.yml and environment variables

    Configuration priority:
    1. Default values
    2. .retrykit.yml file (searched from current directory upwards)
    3. Environment variables (RETRYKIT_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "retry": {
            "max_attempts": 3,
            "initial_delay": 1.0,
            "backoff_multiplier": 2.0,
            "max_delay": 30.0,
            "use_jitter": True,
        },
        "http": {
            "timeout": 30.0,
            "headers": {},
        },
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .retrykit.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .retrykit.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and env, then validate

        Raises:
            ValidationError: If configuration is invalid
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            file_config = None
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")

            if file_config is not None:
                if not isinstance(file_config, dict):
                    raise ConfigurationError(
                        f"Configuration file {self.config_path} must contain a mapping"
                    )
                if isinstance(file_config.get("retry"), dict):
                    file_config["retry"] = normalize_retry_section(file_config["retry"])
                config_dict = self._merge_config(config_dict, file_config)
                logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)

        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply RETRYKIT_* environment variable overrides"""
        retry = config.setdefault("retry", {})

        preset = os.getenv("RETRYKIT_PRESET")
        if preset:
            retry.update(normalize_retry_section({"preset": preset}))

        if os.getenv("RETRYKIT_MAX_ATTEMPTS"):
            retry["max_attempts"] = os.getenv("RETRYKIT_MAX_ATTEMPTS")
        if os.getenv("RETRYKIT_INITIAL_DELAY"):
            retry["initial_delay"] = os.getenv("RETRYKIT_INITIAL_DELAY")
        if os.getenv("RETRYKIT_MAX_DELAY"):
            retry["max_delay"] = os.getenv("RETRYKIT_MAX_DELAY")
        if os.getenv("RETRYKIT_JITTER"):
            retry["use_jitter"] = _parse_bool("RETRYKIT_JITTER", os.getenv("RETRYKIT_JITTER"))

        if os.getenv("RETRYKIT_HTTP_TIMEOUT"):
            config.setdefault("http", {})["timeout"] = os.getenv("RETRYKIT_HTTP_TIMEOUT")

        return config

    def get_retry_config(self) -> RetryConfig:
        """Get retry configuration"""
        return self.config.retry

    def get_http_config(self) -> HttpConfig:
        """Get HTTP client configuration"""
        return self.config.http

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "retry.max_attempts" or "http")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
