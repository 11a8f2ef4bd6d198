"""Configuration management for Chromapick."""

import json
import math
import numbers
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field

from ..exceptions import ConfigError
from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_COLORS = 10
MIN_COLORS = 3
MAX_COLORS = 50


def clamp_count(
    value: Any, minimum: int, maximum: int, default: int = DEFAULT_MAX_COLORS
) -> int:
    """Round a requested count half-up and clamp it to [minimum, maximum].

    Anything that is not a real number (including booleans and NaN) yields
    ``default``.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return default
    if math.isnan(value):
        return default
    rounded = value if math.isinf(value) else math.floor(value + 0.5)
    return int(min(max(rounded, minimum), maximum))


def clamp_palette_size(value: Any) -> int:
    """Clamp a user supplied palette size to the range a host offers."""
    return clamp_count(value, MIN_COLORS, MAX_COLORS)


class ExtractionConfig(BaseModel):
    """Tunable parameters of one palette extraction."""

    max_colors: int = Field(DEFAULT_MAX_COLORS, ge=1, le=MAX_COLORS)
    seed: Optional[int] = None
    max_edge: int = Field(600, ge=1)
    alpha_threshold: int = Field(128, ge=0, le=255)
    max_iterations: int = Field(10, ge=1)
    shift_threshold: float = Field(2.0, ge=0)
    accent_saturation_threshold: float = Field(0.55, ge=0, le=1)
    accent_distance_threshold: float = Field(25.0, ge=0)
    accent_track_limit: int = Field(20, ge=1)
    accent_min_percent: float = Field(0.004, ge=0, le=1)
    accent_replace_threshold: float = Field(0.01, ge=0, le=1)
    accent_replace_ratio: float = Field(0.85, ge=0)


class ConfigManager:
    """Manage configuration settings for Chromapick."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration file
        """
        self.config_path = Path(config_path) if config_path else None
        self._config = self.get_default_config()

        if self.config_path and self.config_path.exists():
            self.load_config()

    def get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "palette": {
                "max_colors": DEFAULT_MAX_COLORS,
                "seed": None,
            },
            "sampling": {
                "max_edge": 600,
                "alpha_threshold": 128,
            },
            "clustering": {
                "max_iterations": 10,
                "shift_threshold": 2.0,
            },
            "accents": {
                "saturation_threshold": 0.55,
                "distance_threshold": 25.0,
                "track_limit": 20,
                "min_percent": 0.004,
                "replace_threshold": 0.01,
                "replace_ratio": 0.85,
            },
        }

    def load_config(self) -> None:
        """Load configuration from file."""
        if not self.config_path or not self.config_path.exists():
            return

        try:
            with open(self.config_path, "r") as f:
                if self.config_path.suffix.lower() in (".yaml", ".yml"):
                    loaded_config = yaml.safe_load(f) or {}
                else:
                    loaded_config = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(
                f"Failed to load configuration from {self.config_path}: {e}"
            ) from e

        if not isinstance(loaded_config, dict):
            raise ConfigError(
                f"Configuration in {self.config_path} must be a mapping"
            )

        self._config = self._deep_merge(self._config, loaded_config)
        logger.debug(f"Loaded configuration from {self.config_path}")

    def save_config(self, output_path: Optional[Union[str, Path]] = None) -> None:
        """Save current configuration to file.

        Args:
            output_path: Optional output path, defaults to current config_path
        """
        save_path = Path(output_path) if output_path else self.config_path

        if not save_path:
            raise ConfigError("No output path specified")

        save_path.parent.mkdir(parents=True, exist_ok=True)

        with open(save_path, "w") as f:
            if save_path.suffix.lower() in (".yaml", ".yml"):
                yaml.dump(self._config, f, default_flow_style=False, indent=2)
            else:
                json.dump(self._config, f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self._config

        try:
            for k in key.split("."):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """Set configuration value.

        Args:
            key: Configuration key (supports dot notation)
            value: Value to set
        """
        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def update(self, updates: Dict[str, Any]) -> None:
        """Update configuration with dictionary of changes.

        Args:
            updates: Dictionary of configuration updates
        """
        self._config = self._deep_merge(self._config, updates)

    def _deep_merge(self, base: Dict, update: Dict) -> Dict:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in update.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def get_extraction_config(self) -> ExtractionConfig:
        """Build the extraction parameters from the current settings."""
        accents = self.get("accents", {})

        try:
            return ExtractionConfig(
                max_colors=clamp_palette_size(self.get("palette.max_colors")),
                seed=self.get("palette.seed"),
                max_edge=self.get("sampling.max_edge", 600),
                alpha_threshold=self.get("sampling.alpha_threshold", 128),
                max_iterations=self.get("clustering.max_iterations", 10),
                shift_threshold=self.get("clustering.shift_threshold", 2.0),
                accent_saturation_threshold=accents.get("saturation_threshold", 0.55),
                accent_distance_threshold=accents.get("distance_threshold", 25.0),
                accent_track_limit=accents.get("track_limit", 20),
                accent_min_percent=accents.get("min_percent", 0.004),
                accent_replace_threshold=accents.get("replace_threshold", 0.01),
                accent_replace_ratio=accents.get("replace_ratio", 0.85),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid extraction configuration: {e}") from e

    @classmethod
    def from_env(cls, config_path: Optional[Union[str, Path]] = None) -> "ConfigManager":
        """Create configuration manager from environment variables."""
        config_manager = cls(config_path)

        env_mappings = {
            "CHROMAPICK_MAX_COLORS": "palette.max_colors",
            "CHROMAPICK_SEED": "palette.seed",
            "CHROMAPICK_MAX_EDGE": "sampling.max_edge",
        }

        for env_var, config_key in env_mappings.items():
            value = os.getenv(env_var)
            if value is None:
                continue
            try:
                config_manager.set(config_key, int(value))
            except ValueError:
                logger.warning(f"Ignoring non-integer {env_var}={value!r}")

        return config_manager

    def validate_config(self) -> tuple[bool, list[str]]:
        """Validate current configuration.

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        max_colors = self.get("palette.max_colors")
        if isinstance(max_colors, bool) or not isinstance(max_colors, int):
            errors.append("palette.max_colors must be an integer")
        elif not (MIN_COLORS <= max_colors <= MAX_COLORS):
            errors.append(
                f"palette.max_colors must be between {MIN_COLORS} and {MAX_COLORS}"
            )

        seed = self.get("palette.seed")
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            errors.append("palette.seed must be an integer or null")

        if self.get("sampling.max_edge", 0) <= 0:
            errors.append("sampling.max_edge must be positive")

        if not (0 <= self.get("sampling.alpha_threshold", -1) <= 255):
            errors.append("sampling.alpha_threshold must be between 0 and 255")

        if self.get("clustering.max_iterations", 0) <= 0:
            errors.append("clustering.max_iterations must be positive")

        for name, value in self.get("accents", {}).items():
            if not isinstance(value, (int, float)) or value < 0:
                errors.append(f"accents.{name} must be non-negative number")

        return len(errors) == 0, errors
