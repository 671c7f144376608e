"""Configuration loading for memlane.

Configuration is loaded from TOML files with .env and environment
variable overrides.

Usage:
    from memlane.config import get_settings

    settings = get_settings()
    port = settings.api.port
"""

from functools import lru_cache

from memlane.config.loader import load_config
from memlane.config.settings import Settings, set_toml_config
from memlane.observability.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the singleton settings instance.

    The result is cached for the lifetime of the process.
    Call `get_settings.cache_clear()` to reload configuration.
    """
    try:
        set_toml_config(load_config())
    except FileNotFoundError:
        logger.warning("config_file_not_found", msg="Using default configuration")
        set_toml_config({})

    return Settings()


def reload_settings() -> Settings:
    """Clear the settings cache and reload configuration."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["get_settings", "reload_settings", "Settings"]
