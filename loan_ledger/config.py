"""Configuration management for loan-ledger."""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from loan_ledger.exceptions import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("standard", "json")


@dataclass
class LedgerConfig:
    """Ledger computation settings."""

    auto_penalty: bool = False
    default_penalty_rate: Decimal = Decimal("2")
    default_grace_period: int = 3


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "INFO"
    format_type: str = "standard"


@dataclass
class AppConfig:
    """Main configuration for loan-ledger."""

    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create config from environment variables."""
        ledger = LedgerConfig(
            auto_penalty=_env_bool("LEDGER_AUTO_PENALTY", False),
            default_penalty_rate=_env_decimal("LEDGER_PENALTY_RATE", "2"),
            default_grace_period=_env_int("LEDGER_GRACE_PERIOD", "3"),
        )

        level = os.getenv("LOG_LEVEL", "INFO").upper()
        if level not in LOG_LEVELS:
            raise ConfigurationError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {level!r}")

        format_type = os.getenv("LOG_FORMAT", "standard").lower()
        if format_type not in LOG_FORMATS:
            raise ConfigurationError(f"LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}, got {format_type!r}")

        return cls(ledger=ledger, logging=LoggingConfig(level=level, format_type=format_type))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
    if value < 0:
        raise ConfigurationError(f"{name} cannot be negative, got {value}")
    return value


def _env_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        value = Decimal(raw)
    except InvalidOperation as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
    if not value.is_finite() or value < 0:
        raise ConfigurationError(f"{name} must be a non-negative number, got {raw!r}")
    return value
