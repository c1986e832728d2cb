"""Configuration loading for Scrum Poker.

Configuration is loaded from TOML files with environment variable overrides
and resolved once per process. The resulting settings are passed into the
session store explicitly; operations never read configuration ad hoc.

Usage:
    from scrum_poker.config import get_settings

    settings = get_settings()
    retention = settings.storage.dedup_retention_seconds
"""

from functools import lru_cache

from scrum_poker.config.loader import load_config
from scrum_poker.config.settings import Settings, set_toml_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the singleton settings instance.

    Configuration is loaded in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml (base configuration)
    3. config/{SCRUM_POKER_ENV}.toml (environment overrides)
    4. SCRUM_POKER_* environment variables (runtime overrides)

    The result is cached for the lifetime of the process.
    Call `get_settings.cache_clear()` to reload configuration.
    """
    config_dict = load_config()
    set_toml_config(config_dict)

    return Settings()


def reload_settings() -> Settings:
    """Clear the settings cache and reload configuration."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["get_settings", "reload_settings", "Settings"]
