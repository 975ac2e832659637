"""
Configuration manager for CycleOps.

Loads the TOML configuration file, applies ``CYCLEOPS_*`` environment
overrides and validates the result into a CycleOpsConfig.
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w
from pydantic import ValidationError as PydanticValidationError

from cycleops.exceptions.config import (
    ConfigurationError,
    ConfigurationValidationError,
    InvalidConfigurationError,
)
from cycleops.logging import LoggingConfig as RuntimeLoggingConfig

from .models import CycleOpsConfig, CycleOpsSettings

DEFAULT_CONFIG_FILE = Path.home() / ".config" / "cycleops" / "config.toml"


@dataclass
class EnvironmentOverride:
    """Helper for applying environment variable overrides to one section."""

    config_section: Dict[str, Any]
    settings: CycleOpsSettings

    def apply_if_set(self, setting_name: str, config_key: str) -> None:
        value = getattr(self.settings, setting_name, None)
        if value is not None:
            self.config_section[config_key] = value

    def apply_string_if_set(self, setting_name: str, config_key: str) -> None:
        value = getattr(self.settings, setting_name, None)
        if value:
            self.config_section[config_key] = value


class ConfigManager:
    """Loads, validates and saves CycleOps configuration."""

    def __init__(self, config_file: Optional[Path] = None):
        """
        Args:
            config_file: Path to a TOML config file. Defaults to
                ``~/.config/cycleops/config.toml``; a missing file means defaults.
        """
        self.config_file = Path(config_file) if config_file else DEFAULT_CONFIG_FILE
        self._config: Optional[CycleOpsConfig] = None

    def load_config(self) -> CycleOpsConfig:
        """Load and validate configuration from file and environment."""
        if self._config is not None:
            return self._config

        config_data: Dict[str, Any] = {}
        if self.config_file.exists():
            config_data = self._load_toml_file()

        config_data = self._apply_env_overrides(config_data)

        try:
            self._config = CycleOpsConfig(**config_data)
        except PydanticValidationError as e:
            raise ConfigurationValidationError(
                [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            ) from e
        except (ValueError, TypeError) as e:
            raise ConfigurationValidationError([f"Configuration validation failed: {e}"]) from e

        return self._config

    def _load_toml_file(self) -> Dict[str, Any]:
        try:
            with open(self.config_file, "rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise InvalidConfigurationError(
                str(self.config_file), f"Invalid TOML syntax: {e}", "valid TOML format"
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read configuration file: {self.config_file}",
                help_text=f"Check file permissions and path ({e.strerror})",
            ) from e

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration."""
        settings = CycleOpsSettings()

        general = config_data.setdefault("general", {})
        logging_section = general.setdefault("logging", {})
        metrics_section = general.setdefault("metrics", {})
        for section in ("holds", "sweeper", "gateway", "storage"):
            config_data.setdefault(section, {})

        override = EnvironmentOverride(logging_section, settings)
        override.apply_string_if_set("cycleops_logging_level", "level")
        override.apply_string_if_set("cycleops_logging_format", "format")
        override.apply_string_if_set("cycleops_logging_file_path", "file_path")
        if settings.cycleops_logging_output:
            logging_section["output"] = [
                o.strip() for o in settings.cycleops_logging_output.split(",") if o.strip()
            ]

        override = EnvironmentOverride(metrics_section, settings)
        override.apply_if_set("cycleops_metrics_enabled", "enabled")
        override.apply_if_set("cycleops_metrics_port", "port")

        override = EnvironmentOverride(config_data["holds"], settings)
        override.apply_if_set("cycleops_repair_hold_minutes", "repair_minutes")
        override.apply_if_set("cycleops_rental_hold_minutes", "rental_minutes")

        EnvironmentOverride(config_data["sweeper"], settings).apply_if_set(
            "cycleops_sweep_interval", "interval_seconds"
        )

        override = EnvironmentOverride(config_data["gateway"], settings)
        override.apply_string_if_set("cycleops_gateway_key_id", "key_id")
        override.apply_string_if_set("cycleops_gateway_key_secret", "key_secret")
        override.apply_string_if_set("cycleops_gateway_base_url", "base_url")
        override.apply_string_if_set("cycleops_gateway_currency", "currency")
        override.apply_if_set("cycleops_gateway_timeout", "timeout_seconds")

        EnvironmentOverride(config_data["storage"], settings).apply_string_if_set(
            "cycleops_database_url", "database_url"
        )

        return config_data

    def _remove_none_values(self, data):
        """Recursively remove None values, which TOML cannot represent."""
        if isinstance(data, dict):
            return {k: self._remove_none_values(v) for k, v in data.items() if v is not None}
        elif isinstance(data, list):
            return [self._remove_none_values(item) for item in data if item is not None]
        else:
            return data

    def save_config(self, config: Optional[CycleOpsConfig] = None) -> None:
        """Save configuration to the TOML file."""
        if config is None:
            config = self.load_config()

        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        config_dict = self._remove_none_values(config.model_dump(mode="json"))

        with open(self.config_file, "wb") as f:
            tomli_w.dump(config_dict, f)
        self._config = config

    def logging_config(self) -> RuntimeLoggingConfig:
        """Translate the logging section into the runtime logging configuration."""
        from cycleops import __version__

        section = self.load_config().general.logging
        return RuntimeLoggingConfig(
            level=section.level.value,
            format_type=section.format,
            output=list(section.output),
            file_path=section.file_path,
            max_file_size=section.max_file_size,
            backup_count=section.backup_count,
            service_name="cycleops",
            version=__version__,
        )

    def reset_config(self) -> None:
        """Reset configuration to defaults."""
        self._config = CycleOpsConfig()
        self.save_config(self._config)
