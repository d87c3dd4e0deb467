"""
Configuration for querytable.

Every setting is declared once in REGISTRY with its environment variable,
type and default. load_settings() reads the environment and returns a
Settings object that the formatter, client, REPL and web app share.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping

from .utils.exceptions import ConfigError


class ConfigType(Enum):
    """Value types a setting can have."""
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"


@dataclass(frozen=True)
class ConfigEntry:
    """A single configurable setting."""
    name: str
    env_var: str
    type: ConfigType
    default: Any
    description: str


REGISTRY: List[ConfigEntry] = [
    # -- backend --
    ConfigEntry("api_url", "QUERYTABLE_API_URL", ConfigType.STRING,
                "http://localhost:8000", "Base URL of the SQL QA backend"),
    ConfigEntry("timeout", "QUERYTABLE_TIMEOUT", ConfigType.FLOAT,
                60.0, "Backend request timeout in seconds"),
    # -- formatting --
    ConfigEntry("max_cell_length", "QUERYTABLE_MAX_CELL_LENGTH", ConfigType.INT,
                100, "Strings longer than this are truncated"),
    ConfigEntry("currency_symbol", "QUERYTABLE_CURRENCY_SYMBOL", ConfigType.STRING,
                "$", "Prefix for values rendered as currency"),
    ConfigEntry("currency_min", "QUERYTABLE_CURRENCY_MIN", ConfigType.FLOAT,
                10.0, "Lower bound (exclusive) for integer strings treated as currency"),
    ConfigEntry("currency_max", "QUERYTABLE_CURRENCY_MAX", ConfigType.FLOAT,
                10000.0, "Upper bound (exclusive) for integer strings treated as currency"),
    ConfigEntry("integer_currency", "QUERYTABLE_INTEGER_CURRENCY", ConfigType.BOOL,
                True, "Render integer strings inside the currency range as currency"),
    ConfigEntry("datetime_format", "QUERYTABLE_DATETIME_FORMAT", ConfigType.STRING,
                "%m/%d/%Y, %I:%M:%S %p", "strftime format for rendered timestamps"),
    # -- logging --
    ConfigEntry("log_level", "QUERYTABLE_LOG_LEVEL", ConfigType.STRING,
                "WARNING", "Logging level for the querytable loggers"),
    # -- web --
    ConfigEntry("max_pending_sessions", "QUERYTABLE_MAX_PENDING_SESSIONS", ConfigType.INT,
                1000, "Unapproved questions remembered by the web view"),
]

def parse_value(entry: ConfigEntry, raw: str) -> Any:
    """
    Parse a raw environment string according to the entry's type.

    Raises:
        ConfigError: If the string is not valid for the type
    """
    raw = raw.strip()
    if entry.type == ConfigType.STRING:
        return raw
    if entry.type == ConfigType.BOOL:
        lowered = raw.lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
        raise ConfigError(entry.env_var, raw, "a boolean")
    try:
        if entry.type == ConfigType.INT:
            return int(raw)
        return float(raw)
    except ValueError:
        raise ConfigError(entry.env_var, raw, entry.type.value)


@dataclass
class Settings:
    """Resolved settings. Defaults mirror REGISTRY."""
    api_url: str = "http://localhost:8000"
    timeout: float = 60.0
    max_cell_length: int = 100
    currency_symbol: str = "$"
    currency_min: float = 10.0
    currency_max: float = 10000.0
    integer_currency: bool = True
    datetime_format: str = "%m/%d/%Y, %I:%M:%S %p"
    log_level: str = "WARNING"
    max_pending_sessions: int = 1000


def load_settings(environ: Mapping[str, str] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Settings with every registered variable that is set applied

    Raises:
        ConfigError: If a variable holds an invalid value
    """
    if environ is None:
        environ = os.environ

    values = {}
    for entry in REGISTRY:
        raw = environ.get(entry.env_var)
        if raw is None or raw.strip() == "":
            values[entry.name] = entry.default
        else:
            values[entry.name] = parse_value(entry, raw)

    return Settings(**values)


def configure_logging(level: str = "WARNING") -> None:
    """Configure root logging for the REPL and web app entry points."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.WARNING
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


DEFAULT_SETTINGS = Settings()
