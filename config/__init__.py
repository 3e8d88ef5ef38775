# Configuration module for the Cassandra session store
from .settings import (
    MAX_TTL,
    ConfigurationError,
    CookieOptions,
    DevCookieOptions,
    Environment,
    QueryOptions,
    StoreSettings,
    build_settings,
    clear_settings_cache,
    create_settings_for_environment,
    get_settings,
)

__all__ = [
    "MAX_TTL",
    "ConfigurationError",
    "CookieOptions",
    "DevCookieOptions",
    "Environment",
    "QueryOptions",
    "StoreSettings",
    "build_settings",
    "clear_settings_cache",
    "create_settings_for_environment",
    "get_settings",
]
