"""
System configuration for folio.

One configuration for the whole library, loaded from YAML:

    accounting:
      reporting_currency: EUR
      cost_basis_method: fifo
      forex_decimals: 5
      strict_forex: false

    logging:
      level: INFO
      format: console

Lookup order for the file: explicit path, then $FOLIO_CONFIG, then
config/folio.yaml. A missing file means built-in defaults. String values may
reference environment variables as ${VAR}.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from folio.errors import ConfigError
from folio.system.log_system import LoggingConfig as LoggerConfig

DEFAULT_CONFIG_PATH = Path("config/folio.yaml")
CONFIG_ENV_VAR = "FOLIO_CONFIG"

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")
_CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")
_COST_BASIS_METHODS = ("average", "fifo")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AccountingConfig:
    """
    Accounting settings (WHAT the numbers are expressed in and HOW lots are matched).

    Attributes:
        reporting_currency: ISO 4217 code every total is converted to
        cost_basis_method: "fifo" or "average"
        forex_decimals: Rounding applied to inverted currency-pair quotes
        strict_forex: Raise instead of converting to zero when no rate is known
    """

    reporting_currency: str = "EUR"
    cost_basis_method: str = "fifo"
    forex_decimals: int = 5
    strict_forex: bool = False

    def __post_init__(self) -> None:
        if not _CURRENCY_PATTERN.match(self.reporting_currency):
            raise ConfigError(
                f"reporting_currency must be 3 uppercase letters, got {self.reporting_currency!r}"
            )
        if self.cost_basis_method not in _COST_BASIS_METHODS:
            raise ConfigError(
                f"cost_basis_method must be one of {_COST_BASIS_METHODS}, got {self.cost_basis_method!r}"
            )
        if self.forex_decimals < 0:
            raise ConfigError(f"forex_decimals must be >= 0, got {self.forex_decimals}")


@dataclass
class LoggingConfig:
    """Logging section of the system configuration (file-friendly types)."""

    level: str = "INFO"
    format: str = "console"
    timestamp_format: str = "compact"
    enable_file: bool = False
    file_path: str = "logs/folio.log"
    file_level: str = "WARNING"
    file_rotation: bool = True
    max_file_size_mb: int = 10
    backup_count: int = 3

    def __post_init__(self) -> None:
        if self.level not in _LOG_LEVELS:
            raise ConfigError(f"logging.level must be one of {_LOG_LEVELS}, got {self.level!r}")
        if self.file_level not in _LOG_LEVELS:
            raise ConfigError(f"logging.file_level must be one of {_LOG_LEVELS}, got {self.file_level!r}")

    def to_logger_config(self) -> LoggerConfig:
        """Convert to the log system's LoggingConfig."""
        return LoggerConfig(
            level=self.level,  # type: ignore[arg-type]
            format=self.format,  # type: ignore[arg-type]
            timestamp_format=self.timestamp_format,  # type: ignore[arg-type]
            enable_file=self.enable_file,
            file_path=Path(self.file_path),
            file_level=self.file_level,  # type: ignore[arg-type]
            file_rotation=self.file_rotation,
            max_file_size_mb=self.max_file_size_mb,
            backup_count=self.backup_count,
        )


@dataclass
class SystemConfig:
    """Container for all configuration sections."""

    accounting: AccountingConfig = field(default_factory=AccountingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "SystemConfig":
        """
        Load configuration from YAML, merged over built-in defaults.

        Args:
            path: Config file. Defaults to $FOLIO_CONFIG or config/folio.yaml.

        Returns:
            SystemConfig (defaults if the file does not exist)

        Raises:
            ConfigError: If the file is not a mapping or holds invalid values
        """
        if path is None:
            path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
        config_path = Path(path)

        if not config_path.exists():
            return cls()

        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Configuration root must be a mapping: {config_path}")

        merged = _deep_merge(_defaults_as_dict(), _substitute_env_vars(raw))
        return cls._from_dict(merged)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "SystemConfig":
        """Build a SystemConfig from a (possibly partial) dictionary."""
        try:
            accounting = AccountingConfig(**data.get("accounting", {}))
            logging_section = LoggingConfig(**data.get("logging", {}))
        except TypeError as e:
            raise ConfigError(f"Unknown configuration key: {e}") from e
        return cls(accounting=accounting, logging=logging_section)


def _defaults_as_dict() -> dict[str, Any]:
    defaults = SystemConfig()
    return {
        "accounting": dict(vars(defaults.accounting)),
        "logging": dict(vars(defaults.logging)),
    }


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base (override wins)."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _substitute_env_vars(value: Any) -> Any:
    """Replace ${VAR} in strings (recursively); undefined variables are left as-is."""
    if isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]
    if isinstance(value, str):
        return _ENV_VAR_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    return value


_system_config: SystemConfig | None = None


def get_system_config(path: Path | str | None = None) -> SystemConfig:
    """
    Get the system configuration singleton.

    Args:
        path: Explicit config file; when given, it is loaded and replaces the cached instance.
    """
    global _system_config
    if path is not None:
        _system_config = SystemConfig.load(path)
    elif _system_config is None:
        _system_config = SystemConfig.load()
    return _system_config


def reload_system_config(path: Path | str | None = None) -> SystemConfig:
    """Force a reload of the system configuration singleton."""
    global _system_config
    _system_config = SystemConfig.load(path)
    return _system_config
