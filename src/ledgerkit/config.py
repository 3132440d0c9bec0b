"""Configuration management for ledgerkit.

Values are resolved in order: built-in defaults, the optional TOML file
(``LEDGERKIT_CONFIG`` or ``~/.config/ledgerkit.toml``), environment
variables, then explicit arguments.
"""

import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

from ledgerkit.domain.errors import ValidationError

ENV_DB_PATH = "LEDGERKIT_DB_PATH"
ENV_CONFIG_PATH = "LEDGERKIT_CONFIG"
ENV_LOG_LEVEL = "LEDGERKIT_LOG_LEVEL"
ENV_DEFAULT_CURRENCY = "LEDGERKIT_DEFAULT_CURRENCY"
ENV_SUGGESTION_SAMPLE_SIZE = "LEDGERKIT_SUGGESTION_SAMPLE_SIZE"
ENV_GUARD_PROCESSES = "LEDGERKIT_GUARD_PROCESSES"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def default_database_path() -> Path:
    """Default database location, ~/.ledgerkit/ledgerkit.db."""
    db_dir = Path.home() / ".ledgerkit"
    db_dir.mkdir(exist_ok=True)
    return db_dir / "ledgerkit.db"


def get_config_path() -> Path:
    """Get the path to the config file."""
    override = os.environ.get(ENV_CONFIG_PATH)
    if override:
        return Path(override)
    return Path.home() / ".config" / "ledgerkit.toml"


@dataclass
class LedgerConfig:
    """Application configuration."""

    database_path: Optional[Path] = None
    log_level: str = "WARNING"
    log_dir: Optional[Path] = None
    default_currency: str = "USD"
    suggestion_sample_size: int = 50
    guard_process_names: tuple[str, ...] = field(default_factory=tuple)
    guard_cache_ttl: float = 3.0

    def resolved_database_path(self) -> Path:
        """Database path, falling back to the default location."""
        return self.database_path if self.database_path is not None else default_database_path()

    def validate(self) -> None:
        """Raise ValidationError for out-of-range values."""
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValidationError(
                f"Invalid log level '{self.log_level}'. Expected one of: {', '.join(LOG_LEVELS)}"
            )
        if len(self.default_currency) != 3 or not self.default_currency.isalpha():
            raise ValidationError(f"Invalid currency code '{self.default_currency}'")
        if self.suggestion_sample_size < 1:
            raise ValidationError("Suggestion sample size must be at least 1")
        if self.guard_cache_ttl < 0:
            raise ValidationError("Guard cache TTL must not be negative")


def _parse_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid integer for {name}: {value!r}")


def _split_names(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _from_toml(config: LedgerConfig, data: dict[str, Any]) -> LedgerConfig:
    db = data.get("database", {})
    log = data.get("logging", {})
    ledger = data.get("ledger", {})
    guard = data.get("write_guard", {})

    updates: dict[str, Any] = {}
    if "path" in db:
        updates["database_path"] = Path(db["path"]).expanduser()
    if "level" in log:
        updates["log_level"] = str(log["level"])
    if "log_dir" in log:
        updates["log_dir"] = Path(log["log_dir"]).expanduser()
    if "default_currency" in ledger:
        updates["default_currency"] = str(ledger["default_currency"])
    if "suggestion_sample_size" in ledger:
        updates["suggestion_sample_size"] = _parse_int(
            ledger["suggestion_sample_size"], "ledger.suggestion_sample_size"
        )
    if "process_names" in guard:
        updates["guard_process_names"] = tuple(str(name) for name in guard["process_names"])
    if "cache_ttl" in guard:
        updates["guard_cache_ttl"] = float(guard["cache_ttl"])
    return replace(config, **updates)


def _from_environment(config: LedgerConfig) -> LedgerConfig:
    updates: dict[str, Any] = {}
    if os.environ.get(ENV_DB_PATH):
        updates["database_path"] = Path(os.environ[ENV_DB_PATH]).expanduser()
    if os.environ.get(ENV_LOG_LEVEL):
        updates["log_level"] = os.environ[ENV_LOG_LEVEL]
    if os.environ.get(ENV_DEFAULT_CURRENCY):
        updates["default_currency"] = os.environ[ENV_DEFAULT_CURRENCY]
    if os.environ.get(ENV_SUGGESTION_SAMPLE_SIZE):
        updates["suggestion_sample_size"] = _parse_int(
            os.environ[ENV_SUGGESTION_SAMPLE_SIZE], ENV_SUGGESTION_SAMPLE_SIZE
        )
    if ENV_GUARD_PROCESSES in os.environ:
        updates["guard_process_names"] = _split_names(os.environ[ENV_GUARD_PROCESSES])
    return replace(config, **updates)


def load_config(
    database_path: Optional[str] = None,
    log_level: Optional[str] = None,
    config_path: Optional[Path] = None,
) -> LedgerConfig:
    """Load configuration.

    Args:
        database_path: Explicit database path (wins over file and environment)
        log_level: Explicit log level (wins over file and environment)
        config_path: TOML file to read instead of the default location

    Returns:
        Validated LedgerConfig

    Raises:
        ValidationError: If the file cannot be parsed or a value is invalid
    """
    config = LedgerConfig()

    path = config_path if config_path is not None else get_config_path()
    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValidationError(f"Could not parse config file {path}: {e}")
        config = _from_toml(config, data)

    config = _from_environment(config)

    if database_path is not None:
        config = replace(config, database_path=Path(database_path).expanduser())
    if log_level is not None:
        config = replace(config, log_level=log_level)

    config.validate()
    return config
