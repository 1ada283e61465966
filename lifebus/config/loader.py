"""Configuration loader with 3-tier parameter precedence."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ..errors import StoreConfigurationError
from .defaults import (
    BusParams,
    HousekeepingParams,
    LifebusConfig,
    LoggingParams,
    StoreParams,
    get_default_config,
)
from .validation import ConfigValidator

CONFIG_FILENAME = "lifebus.yaml"

# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "LIFEBUS_STORE_BACKEND": ("store", "backend"),
    "LIFEBUS_DB_PATH": ("store", "sqlite_path"),
    "SUPABASE_URL": ("store", "rest_url"),
    "SUPABASE_SERVICE_ROLE_KEY": ("store", "rest_key"),
    "LIFEBUS_LOG_LEVEL": ("logging", "level"),
    "LIFEBUS_LOG_JSON": ("logging", "format_json"),
}

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: LifebusConfig
    environ: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        config_dir: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
            environ=dict(os.environ if environ is None else environ),
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load overrides from the YAML config file, if present."""
        config_file = self.config_dir / CONFIG_FILENAME

        if not config_file.exists():
            return {}

        with open(config_file) as f:
            file_config = yaml.safe_load(f)

        return file_config or {}

    def load_env_config(self) -> dict[str, Any]:
        """Collect overrides from environment variables."""
        config: dict[str, Any] = {}

        for var, (section, key) in ENV_OVERRIDES.items():
            raw = self.environ.get(var)
            if raw is None or raw == "":
                continue

            value: Any = raw
            if key == "format_json":
                value = raw.strip().lower() in _TRUTHY
            config.setdefault(section, {})[key] = value

        return config

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. Environment variables
        3. YAML config file
        4. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)
        config = self._deep_merge(config, self.load_file_config())
        config = self._deep_merge(config, self.load_env_config())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(self, overrides: Optional[dict[str, Any]] = None) -> LifebusConfig:
        """
        Load, validate and build the typed configuration.

        Raises:
            StoreConfigurationError: If the merged configuration is invalid
        """
        config = self.merge_config(overrides)

        errors = ConfigValidator.validate_config(config)
        if errors:
            first = errors[0]
            details = "; ".join(f"{err.field}: {err.message} (got: {err.value!r})" for err in errors)
            raise StoreConfigurationError(
                f"Invalid configuration: {details}",
                field=first.field,
                context={"errors": [err.field for err in errors]}
            )

        return LifebusConfig(
            bus=BusParams(**config["bus"]),
            store=StoreParams(**config["store"]),
            logging=LoggingParams(**config["logging"]),
            housekeeping=HousekeepingParams(**config["housekeeping"]),
        )

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
