"""
Unified configuration management.

Provides envelope settings, logging bootstrap and provider naming.
"""

from .settings import EnvelopeSettings, get_settings, reset_settings, load_settings
from .exceptions import ConfigException, ConfigFileException, InvalidSettingValueException
from .logging import bootstrap_logging, get_logger
from .providers import simple_provider_name, get_provider_friendly_name

__all__ = [
    'EnvelopeSettings',
    'get_settings',
    'reset_settings',
    'load_settings',
    'ConfigException',
    'ConfigFileException',
    'InvalidSettingValueException',
    'bootstrap_logging',
    'get_logger',
    'simple_provider_name',
    'get_provider_friendly_name',
]
