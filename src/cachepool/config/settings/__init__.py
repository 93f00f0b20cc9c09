"""Config settings – 12-factor env-based configuration."""
from cachepool.config.settings.base import Settings
from cachepool.config.settings.cache import CacheSettings
from cachepool.config.settings.loaders import EnvSettingsLoader, SettingsLoader

__all__ = ["CacheSettings", "EnvSettingsLoader", "Settings", "SettingsLoader"]
