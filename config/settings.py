"""
Configuration management for the Cassandra session store.

This module provides configuration loading and validation using Pydantic
settings. Values are read from keyword arguments first, then from
``SESSION_STORE_*`` environment variables and .env files, then defaults.

Nested groups use a double underscore, e.g.
``SESSION_STORE_QUERY_OPTIONS__FETCH_SIZE=1000`` or
``SESSION_STORE_COOKIE_OPTIONS__SAME_SITE=lax``.
"""

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Unquoted CQL identifiers: a letter followed by up to 47 word characters
CQL_IDENTIFIER = re.compile(r"^[A-Za-z][A-Za-z0-9_]{0,47}$")

SAME_SITE_VALUES = {"strict", "lax", "none"}

# Largest TTL Cassandra accepts in USING TTL (20 years)
MAX_TTL = 630720000


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


def _detect_environment() -> Environment:
    """
    Detect the current environment from the ENVIRONMENT variable.
    
    Returns:
        Environment: The detected environment, defaults to PRODUCTION if not set.
    """
    env_value = os.environ.get("ENVIRONMENT", "production").lower().strip()
    try:
        return Environment(env_value)
    except ValueError:
        return Environment.PRODUCTION


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    """
    Get the list of .env files to load for the given environment.
    
    The base .env file is loaded first, then the environment-specific file
    overrides it.
    """
    env_file_map = {
        Environment.DEVELOPMENT: ".env.development",
        Environment.STAGING: ".env.staging",
        Environment.PRODUCTION: ".env.production",
    }
    return (".env", env_file_map.get(environment, ".env.production"))


def _settings_config(env_file: Any = ".env") -> SettingsConfigDict:
    return SettingsConfigDict(
        env_prefix="SESSION_STORE_",
        env_nested_delimiter="__",
        env_file=env_file,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )


def _validate_same_site(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().lower()
    if v not in SAME_SITE_VALUES:
        raise ValueError(f"same_site must be one of: {', '.join(sorted(SAME_SITE_VALUES))}")
    return v


class QueryOptions(BaseModel):
    """Execution options shared by every statement the store issues."""
    
    model_config = ConfigDict(frozen=True)
    
    fetch_size: int = Field(default=5000, ge=1, description="Rows fetched per page")
    auto_page: bool = Field(default=True, description="Fetch all pages of a result")
    prepare: bool = Field(default=True, description="Use prepared statements")


class CookieOptions(BaseModel):
    """
    Cookie attributes applied to every session written in production.
    
    Attributes other than the named ones (``path``, ``maxAge``, ...) are
    accepted as extra fields and passed through untouched.
    """
    
    model_config = ConfigDict(frozen=True, extra="allow")
    
    secure: bool = True
    http_only: bool = True
    same_site: str = "strict"
    domain: Optional[str] = None
    
    @field_validator("same_site")
    @classmethod
    def validate_same_site(cls, v: Optional[str]) -> Optional[str]:
        """Validate that same_site is strict, lax or none."""
        return _validate_same_site(v)
    
    def to_policy(self) -> dict[str, Any]:
        """Render the options with the cookie's camelCase attribute names."""
        return _cookie_policy(self)


class DevCookieOptions(BaseModel):
    """Development overrides; unset attributes keep the development defaults."""
    
    model_config = ConfigDict(frozen=True, extra="allow")
    
    secure: Optional[bool] = None
    http_only: Optional[bool] = None
    same_site: Optional[str] = None
    domain: Optional[str] = None
    
    @field_validator("same_site")
    @classmethod
    def validate_same_site(cls, v: Optional[str]) -> Optional[str]:
        """Validate that same_site is strict, lax or none."""
        return _validate_same_site(v)
    
    def to_policy(self) -> dict[str, Any]:
        """Render only the attributes that were set, with camelCase names."""
        return _cookie_policy(self)


_COOKIE_ATTRIBUTE_NAMES = {
    "secure": "secure",
    "http_only": "httpOnly",
    "same_site": "sameSite",
    "domain": "domain",
}


def _cookie_policy(options: BaseModel) -> dict[str, Any]:
    policy: dict[str, Any] = {}
    for field_name, value in options.model_dump(exclude_none=True).items():
        policy[_COOKIE_ATTRIBUTE_NAMES.get(field_name, field_name)] = value
    return policy


class StoreSettings(BaseSettings):
    """
    Cassandra session store settings.
    
    Settings are immutable once created; one instance is owned by each
    store. ``is_development`` defaults to True when ``environment`` is
    ``development`` and the flag itself was not given.
    """
    
    # Environment
    environment: Environment = Field(
        default=Environment.PRODUCTION,
        description="Deployment environment (development, staging, production)"
    )
    is_development: bool = Field(
        default=False,
        description="Use the development cookie policy"
    )
    
    # Cluster connection
    contact_points: List[str] = Field(
        default=["localhost"],
        description="Cassandra contact point hostnames"
    )
    port: int = Field(
        default=9042,
        ge=1,
        le=65535,
        description="Native protocol port"
    )
    connect_timeout_ms: int = Field(
        default=5000,
        ge=1,
        description="Connection timeout in milliseconds"
    )
    username: str = Field(default="", description="Plain text auth username")
    password: str = Field(default="", description="Plain text auth password")
    query_options: QueryOptions = Field(default_factory=QueryOptions)
    
    # Schema
    keyspace: str = Field(
        default="tests",
        description="Keyspace qualifying the table; empty for a bare table name"
    )
    table: str = Field(default="sessions", description="Session table name")
    
    # Expiry and cookies
    ttl: int = Field(
        default=86400,
        ge=1,
        le=MAX_TTL,
        description="Default session time-to-live in seconds"
    )
    cookie_options: CookieOptions = Field(default_factory=CookieOptions)
    dev_cookie_options: DevCookieOptions = Field(default_factory=DevCookieOptions)
    
    # Observability
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    
    model_config = _settings_config()
    
    @model_validator(mode="before")
    @classmethod
    def default_development_flag(cls, data: Any) -> Any:
        """Turn on development mode for the development environment."""
        if isinstance(data, dict) and data.get("is_development") is None:
            environment = data.get("environment")
            if environment is not None:
                value = getattr(environment, "value", environment)
                if str(value).strip().lower() == Environment.DEVELOPMENT.value:
                    data = {**data, "is_development": True}
        return data
    
    @field_validator("contact_points")
    @classmethod
    def validate_contact_points(cls, v: List[str]) -> List[str]:
        """Validate that at least one non-empty contact point is given."""
        points = [point.strip() for point in v if point and point.strip()]
        if not points:
            raise ValueError("contact_points must contain at least one host")
        return points
    
    @field_validator("keyspace")
    @classmethod
    def validate_keyspace(cls, v: str) -> str:
        """Validate that keyspace is empty or a plain CQL identifier."""
        v = v.strip()
        if v and not CQL_IDENTIFIER.match(v):
            raise ValueError(f"keyspace is not a valid CQL identifier: {v!r}")
        return v
    
    @field_validator("table")
    @classmethod
    def validate_table(cls, v: str) -> str:
        """Validate that table is a plain CQL identifier."""
        v = v.strip()
        if not CQL_IDENTIFIER.match(v):
            raise ValueError(f"table is not a valid CQL identifier: {v!r}")
        return v
    
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v
    
    def safe_dump(self) -> dict[str, Any]:
        """Dump the settings for logging, with the password masked."""
        data = self.model_dump(mode="json")
        if data.get("password"):
            data["password"] = "***"
        return data


class ConfigurationError(Exception):
    """Exception raised when configuration validation fails."""
    
    def __init__(self, message: str, missing_fields: Optional[List[str]] = None, 
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())
    
    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]
        
        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")
        
        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append(f"\nInvalid field values:\n" + "\n".join(invalid_parts))
        
        return "".join(parts)
    
    @classmethod
    def from_validation_error(cls, message: str, error: ValidationError) -> "ConfigurationError":
        """Build a ConfigurationError from Pydantic's field-level errors."""
        missing_fields = []
        invalid_fields = {}
        
        for item in error.errors():
            field_name = '.'.join(str(loc) for loc in item.get('loc', []))
            if item.get('type', '') == 'missing':
                missing_fields.append(field_name)
            else:
                invalid_fields[field_name] = item.get('msg', str(item))
        
        return cls(message, missing_fields=missing_fields, invalid_fields=invalid_fields)


def build_settings(
    base: Optional[StoreSettings] = None,
    **overrides: Any
) -> StoreSettings:
    """
    Create settings from an optional base instance plus keyword overrides.
    
    Overrides replace whole fields, except nested groups given as dicts:
    those are merged key by key over the group already set on ``base``.

    Args:
        base: Existing settings to start from. When omitted, settings are
            loaded from the environment.
        **overrides: Field values that take precedence over ``base``.
    
    Returns:
        StoreSettings: A new validated settings instance.
        
    Raises:
        ConfigurationError: If the resulting settings are invalid.
    """
    if base is not None and not overrides:
        return base
    
    try:
        if base is None:
            return StoreSettings(**overrides)
        values = base.model_dump(exclude_unset=True)
        for name, value in overrides.items():
            current = getattr(base, name, None)
            if isinstance(current, BaseModel) and isinstance(value, Mapping):
                value = {**current.model_dump(exclude_unset=True), **value}
            values[name] = value
        return type(base)(**values)
    except ValidationError as e:
        raise ConfigurationError.from_validation_error(
            "Invalid session store settings", e
        ) from e


def create_settings_for_environment(environment: Optional[Environment] = None) -> StoreSettings:
    """
    Factory function to create StoreSettings for a specific environment.

    This function detects the environment from the ENVIRONMENT variable (if not provided)
    and loads the appropriate environment-specific .env file.

    Args:
        environment: Optional environment override. If not provided, detected from
                    ENVIRONMENT variable.

    Returns:
        StoreSettings: Validated settings for the specified environment.

    Raises:
        ConfigurationError: If settings are invalid.
    """
    if environment is None:
        environment = _detect_environment()

    env_files = _get_env_files(environment)
    existing_env_files = [env_file for env_file in env_files if Path(env_file).exists()]

    # Pydantic ignores env files that do not exist
    if not existing_env_files:
        existing_env_files = list(env_files)

    class EnvironmentSettings(StoreSettings):
        model_config = _settings_config(tuple(existing_env_files))

    try:
        return EnvironmentSettings(environment=environment)
    except ValidationError as e:
        raise ConfigurationError.from_validation_error(
            f"Failed to load configuration for environment '{environment.value}'", e
        ) from e


# Global settings cache
_settings_cache: Optional[StoreSettings] = None


def get_settings() -> StoreSettings:
    """
    Get the store settings singleton.

    Settings are loaded once and cached for subsequent calls.
    The environment is detected from the ENVIRONMENT variable.

    Raises:
        ConfigurationError: If settings are invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = create_settings_for_environment()

    return _settings_cache


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    This is primarily useful for testing to allow reloading settings
    with different environment variables.
    """
    global _settings_cache
    _settings_cache = None
