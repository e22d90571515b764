"""
Runtime settings for response envelopes.

Settings are resolved from three layers, later layers winning:
built-in defaults, an optional YAML file, then environment variables.
The resolved settings are cached until reset_settings() is called.
"""
import os
import logging
import yaml
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigFileException, InvalidSettingValueException

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV_VAR = 'ENVELOPE_CONFIG_FILE'
DEFAULT_CONFIG_FILE = 'envelope.yaml'

_TRUE_VALUES = ('true', '1', 'yes', 'on')
_FALSE_VALUES = ('false', '0', 'no', 'off')


@dataclass(frozen=True)
class EnvelopeSettings:
    """Resolved envelope settings."""
    cache_payload: bool = True
    default_content_type: str = 'application/json'
    body_preview_bytes: int = 256
    page_items_key: str = 'value'
    raise_on_status: bool = True


# Setting name -> environment variable
ENV_VARS = {
    'cache_payload': 'ENVELOPE_CACHE_PAYLOAD',
    'default_content_type': 'ENVELOPE_DEFAULT_CONTENT_TYPE',
    'body_preview_bytes': 'ENVELOPE_BODY_PREVIEW_BYTES',
    'page_items_key': 'ENVELOPE_PAGE_ITEMS_KEY',
    'raise_on_status': 'ENVELOPE_RAISE_ON_STATUS',
}

_settings: Optional[EnvelopeSettings] = None


def parse_bool(value: Any, setting_name: str, source: str) -> bool:
    """Parse a boolean setting the same way for YAML and env values."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise InvalidSettingValueException(
        f"Invalid boolean for {setting_name}: {value!r}",
        setting_name=setting_name, source=source, value=str(value),
        expected="one of " + ", ".join(_TRUE_VALUES + _FALSE_VALUES)
    )


def _coerce(setting_name: str, value: Any, source: str) -> Any:
    """Convert a raw value to the type declared on EnvelopeSettings."""
    default = getattr(EnvelopeSettings, setting_name)
    if isinstance(default, bool):
        return parse_bool(value, setting_name, source)
    if isinstance(default, int):
        try:
            number = int(str(value).strip())
        except ValueError:
            raise InvalidSettingValueException(
                f"Invalid integer for {setting_name}: {value!r}",
                setting_name=setting_name, source=source, value=str(value),
                expected="a non-negative integer"
            )
        if number < 0:
            raise InvalidSettingValueException(
                f"Negative value for {setting_name}: {number}",
                setting_name=setting_name, source=source, value=str(value),
                expected="a non-negative integer"
            )
        return number
    text = str(value).strip()
    if not text:
        raise InvalidSettingValueException(
            f"Empty value for {setting_name}",
            setting_name=setting_name, source=source, value=str(value),
            expected="a non-empty string"
        )
    return text


def _find_config_file() -> Optional[Path]:
    """Locate the YAML config file, if any."""
    explicit = os.environ.get(CONFIG_FILE_ENV_VAR)
    if explicit:
        path = Path(explicit)
        if not path.exists():
            raise ConfigFileException(f"{CONFIG_FILE_ENV_VAR} points to a missing file", str(path))
        return path

    default_path = Path.cwd() / DEFAULT_CONFIG_FILE
    if default_path.exists():
        return default_path
    return None


def _load_file_values(path: Path) -> Dict[str, Any]:
    """Read the 'envelope' mapping from a YAML file."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigFileException(f"Invalid YAML: {e}", str(path)) from e

    if not isinstance(data, dict):
        raise ConfigFileException("Top level must be a mapping", str(path))

    section = data.get('envelope', {}) or {}
    if not isinstance(section, dict):
        raise ConfigFileException("'envelope' must be a mapping", str(path))

    known = {f.name for f in fields(EnvelopeSettings)}
    unknown = set(section) - known
    if unknown:
        logger.warning(f"Ignoring unknown envelope settings in {path}: {', '.join(sorted(unknown))}")
    return {name: section[name] for name in section if name in known}


def load_settings() -> EnvelopeSettings:
    """Resolve settings from defaults, YAML file and environment (uncached)."""
    values: Dict[str, Any] = {}

    config_path = _find_config_file()
    if config_path is not None:
        for name, raw in _load_file_values(config_path).items():
            values[name] = _coerce(name, raw, str(config_path))
        logger.debug(f"Loaded envelope settings from {config_path}")

    for name, env_var in ENV_VARS.items():
        raw = os.environ.get(env_var)
        if raw is not None and raw.strip():
            values[name] = _coerce(name, raw, f"environment variable {env_var}")

    return replace(EnvelopeSettings(), **values)


def get_settings() -> EnvelopeSettings:
    """Get the cached envelope settings, loading them on first use."""
    global _settings

    if _settings is None:
        _settings = load_settings()
        logger.debug(f"Envelope settings: {_settings}")
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next access re-reads file and environment."""
    global _settings
    _settings = None
