"""Configuration loader with multi-level hierarchy."""

import copy
import os
from datetime import date
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import Field

from ..models.base import PEMSBaseModel
from ..policy.catalog import POLICY_META
from ..review.roster import DEFAULT_ROSTER_TTL_SECONDS

# Load environment variables from .env file
load_dotenv()

ENV_PREFIX = "PEMS_"
# Nested keys are separated by a double underscore: PEMS_REVIEWERS__CACHE_TTL_SECONDS
ENV_NESTING = "__"
RESERVED_ENV_KEYS = {"PEMS_ENV", "PEMS_CONFIG_DIR"}


class PEMSSettings(PEMSBaseModel):
    """Typed view of the runtime-configurable settings.

    Scoring caps and GPA constants are fixed per program cycle and are
    deliberately absent here.
    """

    cutoff_date: date = Field(POLICY_META["cutoff_date"], description="Evidence cutoff date")
    reviewer_cache_ttl_seconds: float = Field(DEFAULT_ROSTER_TTL_SECONDS, gt=0)
    object_store_dir: Path = Field(Path("data/store"), description="Object store directory")
    log_level: str = Field("INFO")
    log_format: str = Field("json")
    log_file: str | None = Field(None)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "PEMSSettings":
        policy = config.get("policy") or {}
        reviewers = config.get("reviewers") or {}
        storage = config.get("storage") or {}
        logging_cfg = config.get("logging") or {}
        values = {
            "cutoff_date": policy.get("cutoff_date"),
            "reviewer_cache_ttl_seconds": reviewers.get("cache_ttl_seconds"),
            "object_store_dir": storage.get("object_store_dir"),
            "log_level": logging_cfg.get("level"),
            "log_format": logging_cfg.get("format"),
            "log_file": logging_cfg.get("file"),
        }
        return cls(**{key: value for key, value in values.items() if value is not None})


class ConfigLoader:
    """Load and merge configuration from multiple sources.

    Hierarchy (later overrides earlier):
    1. Default config (config/default.yaml)
    2. Environment config (config/environments/{env}.yaml)
    3. Overrides provided programmatically (CLI flags, tests) [optional]
    4. Environment variables (PEMS_*)
    """

    def __init__(self, config_dir: Path | str | None = None):
        """Initialize config loader.

        Args:
            config_dir: Configuration directory (defaults to ./config)
        """
        if config_dir is None:
            config_dir = os.getenv("PEMS_CONFIG_DIR") or (
                Path(__file__).parent.parent.parent.parent / "config"
            )
        self.config_dir = Path(config_dir)

    def load(self, overrides: dict[str, Any] | None = None) -> dict[str, Any]:
        """Load configuration with full hierarchy.

        Args:
            overrides: Configuration dict provided programmatically

        Returns:
            Merged configuration dictionary
        """
        config = self._load_yaml(self.config_dir / "default.yaml")

        env = os.getenv("PEMS_ENV", "development")
        env_config_path = self.config_dir / f"environments/{env}.yaml"
        if env_config_path.exists():
            config = self._deep_merge(config, self._load_yaml(env_config_path))

        if overrides:
            config = self._deep_merge(config, overrides)

        return self._apply_env_overrides(copy.deepcopy(config))

    def settings(self, overrides: dict[str, Any] | None = None) -> PEMSSettings:
        """Load the configuration and project it onto ``PEMSSettings``."""
        return PEMSSettings.from_config(self.load(overrides))

    @staticmethod
    def _load_yaml(path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ValueError(f"{path} must contain a mapping at the top level")
        return content

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries (base is not modified)."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: dict[str, Any]) -> dict[str, Any]:
        """Override config with environment variables.

        Example: PEMS_POLICY__CUTOFF_DATE=2025-08-31 overrides
        config["policy"]["cutoff_date"].
        """
        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX) or key in RESERVED_ENV_KEYS:
                continue
            path = key[len(ENV_PREFIX):].lower().split(ENV_NESTING)
            if all(path):
                self._set_nested(config, path, value)

        return config

    def _set_nested(self, config: dict[str, Any], path: list[str], value: str) -> None:
        current = config
        for key in path[:-1]:
            if key not in current:
                current[key] = {}
            elif not isinstance(current[key], dict):
                # Can't traverse non-dict
                return
            current = current[key]

        current[path[-1]] = self._convert_value(value)

    @staticmethod
    def _convert_value(value: str) -> Any:
        """Parse an environment string as a YAML scalar.

        Values read the same way they would in the YAML files, so
        `60` is an int, `yes` a bool and `2025-08-31` a date. Anything
        that is not a plain scalar stays a string.
        """
        if not value.strip():
            return value
        try:
            parsed = yaml.safe_load(value)
        except yaml.YAMLError:
            return value
        if parsed is None or isinstance(parsed, (dict, list)):
            return value
        return parsed


# Global config loader instance
_config_loader: ConfigLoader | None = None


def get_config_loader() -> ConfigLoader:
    """Get global configuration loader instance."""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def load_config(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
    """Load configuration (convenience function)."""
    return get_config_loader().load(overrides)


def load_settings(overrides: dict[str, Any] | None = None) -> PEMSSettings:
    """Load typed settings (convenience function)."""
    return get_config_loader().settings(overrides)
