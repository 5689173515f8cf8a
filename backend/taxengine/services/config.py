"""Configuration loading and validation service."""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

# backend/ directory; relative paths in the config resolve against it
BACKEND_DIR = Path(__file__).parent.parent.parent


@dataclass
class ConfigValidationError:
    """Represents a configuration validation error."""
    path: str
    message: str


class ConfigValidationException(Exception):
    """Raised when config validation fails."""

    def __init__(self, errors: List[ConfigValidationError]):
        self.errors = errors
        messages = [f"{e.path}: {e.message}" for e in errors]
        super().__init__("Configuration validation failed:\n" + "\n".join(messages))


CONFIG_SCHEMA = {
    "tax": {
        "type": "dict",
        "properties": {
            "base_currency": {"type": "str"},
            "cost_basis": {"type": "str", "options": ["FIFO", "LIFO", "HIFO"]},
            "fx_policy": {"type": "str", "options": ["fallback", "strict"]},
            "shortfall_policy": {"type": "str", "options": ["ignore", "warn", "strict"]},
            "jurisdiction": {"type": "str"},
        }
    },
    "ledger": {
        "type": "dict",
        "properties": {
            "path": {"type": "str"},
        }
    },
    "scheduler": {
        "type": "dict",
        "properties": {
            "enabled": {"type": "bool"},
            "interval_seconds": {"type": "float", "min": 1},
            "history_size": {"type": "int", "min": 1, "max": 1000},
        }
    },
    "logging": {
        "type": "dict",
        "properties": {
            "level": {"type": "str", "options": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
            "format": {"type": "str"},
        }
    },
}

DEFAULTS: Dict[str, Any] = {
    "tax": {
        "base_currency": "CHF",
        "cost_basis": "FIFO",
        "fx_policy": "fallback",
        "shortfall_policy": "warn",
        "jurisdiction": "Unspecified",
    },
    "ledger": {
        "path": None,
    },
    "scheduler": {
        "enabled": True,
        "interval_seconds": 60,
        "history_size": 10,
    },
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    },
}

_TYPE_MAP = {
    "str": str,
    "int": int,
    "float": (int, float),
    "bool": bool,
    "list": list,
    "dict": dict,
}


class ConfigService:
    """Loads config.yaml, validates it against CONFIG_SCHEMA, serves values."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize config service.

        Args:
            config_path: Path to config file. If None, uses backend/config.yaml.
        """
        if config_path is None:
            config_path = os.environ.get("TAXENGINE_CONFIG") or str(BACKEND_DIR / "config.yaml")

        self.config_path = config_path
        self._config: Dict[str, Any] = {}

    def load_and_validate(self) -> Dict[str, Any]:
        """Load and validate the configuration file.

        A missing file is not an error: defaults apply.

        Returns:
            Validated configuration dictionary.

        Raises:
            ConfigValidationException: If validation fails.
        """
        if not os.path.exists(self.config_path):
            logger.warning(f"Config file not found at {self.config_path}, using defaults")
            self._config = {}
            return self._config

        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationException([
                ConfigValidationError(path="", message=f"Invalid YAML syntax: {str(e)}")
            ])

        return self.load_dict(config if config is not None else {})

    def load_dict(self, config: Any) -> Dict[str, Any]:
        """Validate and adopt an already-parsed configuration.

        Raises:
            ConfigValidationException: If validation fails.
        """
        if not isinstance(config, dict):
            raise ConfigValidationException([
                ConfigValidationError(
                    path="",
                    message=f"Config must be a dictionary, got {type(config).__name__}"
                )
            ])

        errors = self._validate_dict(config, CONFIG_SCHEMA, "")
        if errors:
            raise ConfigValidationException(errors)

        self._config = config
        logger.info(f"Configuration loaded and validated from {self.config_path}")
        return config

    def _validate_dict(
        self,
        data: Dict[str, Any],
        schema: Dict[str, Any],
        path: str
    ) -> List[ConfigValidationError]:
        """Validate a dictionary against schema; unknown keys are errors."""
        errors = []

        for key in data:
            if key not in schema:
                errors.append(ConfigValidationError(
                    path=f"{path}.{key}" if path else key,
                    message=f"Unknown configuration key '{key}'"
                ))

        for key, prop_schema in schema.items():
            current_path = f"{path}.{key}" if path else key
            if key in data:
                errors.extend(self._validate_value(data[key], prop_schema, current_path))

        return errors

    def _validate_value(
        self,
        value: Any,
        schema: Dict[str, Any],
        path: str
    ) -> List[ConfigValidationError]:
        """Validate a single value: type, numeric range, allowed options."""
        expected_type = schema.get("type")

        if expected_type == "dict":
            if not isinstance(value, dict):
                return [ConfigValidationError(
                    path=path,
                    message=f"Expected dict, got {type(value).__name__}"
                )]
            return self._validate_dict(value, schema.get("properties", {}), path)

        expected = _TYPE_MAP[expected_type]
        # bool is an int subclass; only accept it where bool is declared
        if not isinstance(value, expected) or (expected_type != "bool" and isinstance(value, bool)):
            return [ConfigValidationError(
                path=path,
                message=f"Expected {expected_type}, got {type(value).__name__}"
            )]

        errors = []
        if expected_type in ("int", "float"):
            if "min" in schema and value < schema["min"]:
                errors.append(ConfigValidationError(
                    path=path,
                    message=f"Value {value} is below minimum {schema['min']}"
                ))
            if "max" in schema and value > schema["max"]:
                errors.append(ConfigValidationError(
                    path=path,
                    message=f"Value {value} is above maximum {schema['max']}"
                ))

        if "options" in schema and value not in schema["options"]:
            errors.append(ConfigValidationError(
                path=path,
                message=f"Value '{value}' not in allowed options: {schema['options']}"
            ))

        return errors

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value, falling back to DEFAULTS.

        Args:
            key: Dot-notation key (e.g., "tax.base_currency")
            default: Returned when neither config nor DEFAULTS has the key

        Returns:
            Configuration value
        """
        for source in (self._config, DEFAULTS):
            value = source
            for k in key.split("."):
                if isinstance(value, dict) and k in value:
                    value = value[k]
                else:
                    value = None
                    break
            if value is not None:
                return value

        return default

    def ledger_path(self) -> Optional[Path]:
        """Configured ledger path resolved against backend/, or None."""
        path = self.get("ledger.path")
        if not path:
            return None
        resolved = Path(path)
        if not resolved.is_absolute():
            resolved = BACKEND_DIR / resolved
        return resolved


# Global config service instance
config_service = ConfigService()
