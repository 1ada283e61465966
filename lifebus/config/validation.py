"""Configuration validation utilities."""

from dataclasses import dataclass, fields
from typing import Any

from .defaults import BusParams, HousekeepingParams, LoggingParams, StoreParams

SECTIONS = {
    "bus": BusParams,
    "store": StoreParams,
    "logging": LoggingParams,
    "housekeeping": HousekeepingParams,
}

VALID_BACKENDS = ("sqlite", "rest")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_bus_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate signal bus parameters."""
        errors = []

        for name in ("default_priority", "consume_limit", "peek_limit",
                     "summary_limit", "critical_priority"):
            if name in params:
                value = params[name]
                if not _is_int(value) or value <= 0:
                    errors.append(ValidationError(
                        field=f"bus.{name}",
                        message="Must be a positive integer",
                        value=value
                    ))

        for name in ("default_ttl_hours", "peek_hours_back"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value <= 0:
                    errors.append(ValidationError(
                        field=f"bus.{name}",
                        message="Must be a positive number",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_store_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate store parameters."""
        errors = []

        backend = params.get("backend", "sqlite")
        if backend not in VALID_BACKENDS:
            errors.append(ValidationError(
                field="store.backend",
                message=f"Must be one of {VALID_BACKENDS}",
                value=backend
            ))

        table = params.get("table", "agent_signals")
        if not isinstance(table, str) or not table.replace("_", "").isalnum():
            errors.append(ValidationError(
                field="store.table",
                message="Must be a plain identifier",
                value=table
            ))

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="store.timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        if backend == "sqlite":
            path = params.get("sqlite_path")
            if not isinstance(path, str) or not path:
                errors.append(ValidationError(
                    field="store.sqlite_path",
                    message="Required for the sqlite backend",
                    value=path
                ))

        if backend == "rest":
            url = params.get("rest_url")
            if not isinstance(url, str) or not url.startswith(("http://", "https://")):
                errors.append(ValidationError(
                    field="store.rest_url",
                    message="Required for the rest backend (http or https URL)",
                    value=url
                ))
            if not params.get("rest_key"):
                errors.append(ValidationError(
                    field="store.rest_key",
                    message="Required for the rest backend",
                    value=None
                ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        level = params.get("level", "INFO")
        if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
            errors.append(ValidationError(
                field="logging.level",
                message=f"Must be one of {VALID_LOG_LEVELS}",
                value=level
            ))

        for name in ("format_json", "include_timestamp"):
            if name in params and not isinstance(params[name], bool):
                errors.append(ValidationError(
                    field=f"logging.{name}",
                    message="Must be a boolean",
                    value=params[name]
                ))

        return errors

    @staticmethod
    def validate_housekeeping_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate housekeeping parameters."""
        errors = []

        if "retention_days" in params:
            value = params["retention_days"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="housekeeping.retention_days",
                    message="Must be a positive integer",
                    value=value
                ))

        return errors

    @classmethod
    def validate_config(cls, config: dict[str, Any]) -> list[ValidationError]:
        """Validate a complete merged configuration."""
        errors = []

        for section, value in config.items():
            if section not in SECTIONS:
                errors.append(ValidationError(
                    field=section,
                    message="Unknown configuration section",
                    value=value
                ))
                continue

            if not isinstance(value, dict):
                errors.append(ValidationError(
                    field=section,
                    message="Must be a mapping",
                    value=value
                ))
                continue

            known = {f.name for f in fields(SECTIONS[section])}
            for key in value:
                if key not in known:
                    errors.append(ValidationError(
                        field=f"{section}.{key}",
                        message="Unknown configuration key",
                        value=value[key]
                    ))

        validators = {
            "bus": cls.validate_bus_params,
            "store": cls.validate_store_params,
            "logging": cls.validate_logging_params,
            "housekeeping": cls.validate_housekeeping_params,
        }
        for section, validator in validators.items():
            params = config.get(section)
            if isinstance(params, dict):
                errors.extend(validator(params))

        return errors
