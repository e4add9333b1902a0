"""Configuration file handling."""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomlkit
from pydantic import ValidationError as PydanticValidationError

from .models import RateLimitSettings

# Constants
APP_NAME = "modgate"

# Maps dot-notation keys to (TOML section, settings field, value type)
CONFIG_KEY_MAP: dict[str, tuple[str, str, type]] = {
    "ratelimit.max_retries": ("ratelimit", "max_retries", int),
    "ratelimit.base_delay": ("ratelimit", "base_delay", float),
    "ratelimit.buffer_ratio": ("ratelimit", "buffer_ratio", float),
    "ratelimit.buffer_fixed": ("ratelimit", "buffer_fixed", float),
    "ratelimit.max_delay": ("ratelimit", "max_delay", float),
    "http.timeout": ("http", "timeout", float),
    "http.max_concurrent": ("http", "max_concurrent", int),
}


@dataclass
class ValidationError:
    """A single validation error."""

    field: str
    message: str


class ConfigValidationError(Exception):
    """Configuration validation failed."""

    def __init__(self, message: str, errors: list[ValidationError] | None = None):
        super().__init__(message)
        self.errors = errors or []


def get_config_dir() -> Path:
    """Get XDG Base Directory compliant config directory.

    Returns:
        Path to config directory (XDG_CONFIG_HOME/modgate or ~/.config/modgate)
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", "").strip()
    if xdg_config_home:
        return Path(xdg_config_home) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_default_config_path() -> Path:
    """Get default path for config.toml.

    Returns:
        Path to config.toml in config directory
    """
    return get_config_dir() / "config.toml"


def _read_toml(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML: {e}") from e


def _build_settings(data: dict[str, Any]) -> RateLimitSettings:
    """Flatten the TOML sections into RateLimitSettings."""
    values: dict[str, Any] = {}
    for section, field, _ in CONFIG_KEY_MAP.values():
        table = data.get(section, {})
        if isinstance(table, dict) and field in table:
            values[field] = table[field]

    try:
        return RateLimitSettings(**values)
    except PydanticValidationError as e:
        errors = [
            ValidationError(
                field=".".join(str(part) for part in err["loc"]),
                message=err["msg"],
            )
            for err in e.errors()
        ]
        raise ConfigValidationError(f"Invalid value: {e}", errors=errors) from e


def load_settings(path: Path | None = None) -> RateLimitSettings:
    """Load config.toml and return RateLimitSettings.

    Args:
        path: Path to config file (defaults to XDG_CONFIG_HOME/modgate/config.toml)

    Returns:
        RateLimitSettings instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
    """
    config_path = path or get_default_config_path()
    return _build_settings(_read_toml(config_path))


def load_settings_or_default(path: Path | None = None) -> RateLimitSettings:
    """Load settings, falling back to defaults when no config file exists.

    Raises:
        ConfigValidationError: If an existing config is invalid
    """
    try:
        return load_settings(path)
    except FileNotFoundError:
        return RateLimitSettings()


def _settings_document(settings: RateLimitSettings) -> tomlkit.TOMLDocument:
    doc = tomlkit.document()

    ratelimit = tomlkit.table()
    ratelimit.add("max_retries", settings.max_retries)
    ratelimit.add("base_delay", settings.base_delay)
    ratelimit.add("buffer_ratio", settings.buffer_ratio)
    ratelimit.add("buffer_fixed", settings.buffer_fixed)
    if settings.max_delay is not None:
        ratelimit.add("max_delay", settings.max_delay)
    else:
        ratelimit.add(tomlkit.comment("max_delay = 30.0"))
    doc.add("ratelimit", ratelimit)

    http = tomlkit.table()
    http.add("timeout", settings.timeout)
    http.add("max_concurrent", settings.max_concurrent)
    doc.add("http", http)

    return doc


def generate_config(path: Path | None = None, force: bool = False) -> Path:
    """Generate config.toml with default settings.

    Args:
        path: Output path (defaults to XDG_CONFIG_HOME/modgate/config.toml)
        force: Overwrite existing file

    Returns:
        Path to created config file

    Raises:
        FileExistsError: If file exists and force=False
    """
    config_path = path or get_default_config_path()

    if config_path.exists() and not force:
        raise FileExistsError(f"Config file already exists: {config_path}")

    return save_settings(RateLimitSettings(), config_path)


def save_settings(settings: RateLimitSettings, path: Path | None = None) -> Path:
    """Save RateLimitSettings to config.toml.

    Args:
        settings: Settings to write
        path: Output path (defaults to XDG_CONFIG_HOME/modgate/config.toml)

    Returns:
        Path to saved config file
    """
    config_path = path or get_default_config_path()

    # Create parent directory if it doesn't exist
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as f:
        f.write(tomlkit.dumps(_settings_document(settings)))

    return config_path


def get_config_value(key: str, path: Path | None = None) -> Any:
    """Get a config value by dot-notation key.

    Args:
        key: Key such as "ratelimit.max_retries"
        path: Path to config file

    Returns:
        The configured value, or None if it is not set

    Raises:
        ValueError: If the key is unknown
        FileNotFoundError: If config file doesn't exist
    """
    if key not in CONFIG_KEY_MAP:
        raise ValueError(f"Unknown config key: '{key}'")

    section, field, _ = CONFIG_KEY_MAP[key]
    data = _read_toml(path or get_default_config_path())
    return data.get(section, {}).get(field)


def get_all_config_values(path: Path | None = None) -> dict[str, Any]:
    """Get every known config value, including unset ones as None.

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    data = _read_toml(path or get_default_config_path())
    return {
        key: data.get(section, {}).get(field)
        for key, (section, field, _) in CONFIG_KEY_MAP.items()
    }


def _coerce(key: str, raw: str, value_type: type) -> Any:
    try:
        return value_type(raw)
    except ValueError:
        raise ValueError(
            f"Invalid value for '{key}': expected {value_type.__name__}, got '{raw}'"
        ) from None


def set_config_value(key: str, value: str, path: Path | None = None) -> Path:
    """Set a config value by dot-notation key, keeping the file's layout.

    Args:
        key: Key such as "ratelimit.max_retries"
        value: Value as typed on the command line
        path: Path to config file

    Returns:
        Path to the updated config file

    Raises:
        ValueError: If the key is unknown or the value is invalid
        FileNotFoundError: If config file doesn't exist
    """
    if key not in CONFIG_KEY_MAP:
        raise ValueError(f"Unknown config key: '{key}'")

    config_path = path or get_default_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    section, field, value_type = CONFIG_KEY_MAP[key]
    typed_value = _coerce(key, value, value_type)

    doc = tomlkit.parse(config_path.read_text(encoding="utf-8"))
    if section not in doc:
        doc.add(section, tomlkit.table())
    doc[section][field] = typed_value  # type: ignore[index]

    # Reject the change before writing if the result would not load
    try:
        _build_settings(doc.unwrap())
    except ConfigValidationError as e:
        message = e.errors[0].message if e.errors else str(e)
        raise ValueError(f"Invalid value for '{key}': {message}") from None

    with open(config_path, "w", encoding="utf-8") as f:
        f.write(tomlkit.dumps(doc))

    return config_path
