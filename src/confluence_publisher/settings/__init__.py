"""Settings models and layered loaders."""

from .errors import ConfigError
from .loaders import (
    SettingsLoader,
    argument_settings,
    config_file_settings,
    default_loaders,
    default_settings,
    environment_settings,
    static_settings,
)
from .models import DEFAULT_SETTINGS, ConfluenceSettings

__all__ = [
    'ConfigError',
    'SettingsLoader',
    'argument_settings',
    'config_file_settings',
    'default_loaders',
    'default_settings',
    'environment_settings',
    'static_settings',
    'DEFAULT_SETTINGS',
    'ConfluenceSettings',
]
