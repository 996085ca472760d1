"""Configuration loader for YAML files.

Provides dot-notation access into nested YAML documents with defaults.
Simulation parameters (the flight envelope) and CLI defaults are read
through this loader.

Typical usage example:
    from digitalatc.core.config import ConfigLoader

    config = ConfigLoader.load("config/simulation.yaml")
    max_turn_rate = config.get("simulation.max_turn_rate_dps", default=3.0)
"""

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration operations fail."""


class ConfigLoader:
    """Configuration loader for YAML files.

    Examples:
        >>> config = ConfigLoader.load("config/simulation.yaml")
        >>> fps = config.get("runner.fps", default=60)
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        """Initialize with configuration data.

        Args:
            data: Configuration dictionary. Defaults to an empty config.
        """
        self._data = data if data is not None else {}

    @classmethod
    def load(cls, path: str | Path) -> "ConfigLoader":
        """Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            ConfigLoader instance with loaded data.

        Raises:
            ConfigError: If the file is missing, unreadable or not a mapping.
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load configuration: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be a mapping: {path}")

        logger.info("Loaded configuration from: %s", path)
        return cls(data)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation.

        Args:
            key: Configuration key, e.g. "simulation.speed.min_mps".
            default: Default value if key not found.

        Returns:
            Configuration value or default.
        """
        value: Any = self._data

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_float(self, key: str, default: float) -> float:
        """Get a numeric value, falling back to default when absent or invalid.

        Args:
            key: Configuration key (dot notation).
            default: Value used when the key is missing or not a number.

        Returns:
            The value as a float.
        """
        value = self.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning("Invalid numeric value for %s: %r, using %s", key, value, default)
            return float(default)

