"""Configuration management for the news digest."""

from .loader import CONFIG_ENV_VAR, Config, default_config_path, load_config, save_config
from .models import ConfigModel, FeedSource, FetchConfig, NewsletterConfig, PostgresConfig

__all__ = [
    "CONFIG_ENV_VAR",
    "Config",
    "ConfigModel",
    "FeedSource",
    "FetchConfig",
    "NewsletterConfig",
    "PostgresConfig",
    "default_config_path",
    "load_config",
    "save_config",
]
