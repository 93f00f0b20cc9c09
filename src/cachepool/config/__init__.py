"""Config – 12-factor settings and loaders for cache pools."""

from cachepool.config.settings import CacheSettings, EnvSettingsLoader, Settings, SettingsLoader
from cachepool.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = [
    "CacheSettings",
    "ConfigError",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsLoader",
]
