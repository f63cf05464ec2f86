"""
Configuration Management for Expense Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what the core consumes from its environment and
ensures required values (the token signing key above all) are validated at
startup rather than on the first login.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        default="sqlite+aiosqlite:///./expense_ledger.db",
        description="SQLAlchemy async database URL"
    )
    echo: bool = Field(
        default=False,
        description="Echo SQL statements (development only)"
    )
    pool_pre_ping: bool = Field(
        default=True,
        description="Ping pooled connections before use"
    )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_in_memory(self) -> bool:
        """True for `sqlite+aiosqlite://` and `...:///:memory:` URLs."""
        if not self.is_sqlite:
            return False
        _, _, path = self.url.partition("://")
        return path in ("", "/", "/:memory:")


class JwtSettings(BaseSettings):
    """
    Bearer token configuration.

    The signing key has no default: a missing key is a fatal startup error.
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    key: str = Field(
        ...,
        description="Symmetric HS256 signing key"
    )
    issuer: str = Field(
        default="expense-ledger",
        description="Value of the `iss` claim"
    )
    audience: str = Field(
        default="expense-ledger-clients",
        description="Value of the `aud` claim"
    )

    @field_validator('key')
    @classmethod
    def validate_key_length(cls, v: str) -> str:
        """HS256 keys must carry at least 256 bits."""
        if len(v.encode("utf-8")) < 32:
            raise ValueError("JWT signing key must be at least 32 bytes long")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    project_name: str = Field(
        default="Expense Ledger",
        description="Name reported by the HTTP layer"
    )

    # Password hashing
    password_hash_rounds: int = Field(
        default=12,
        ge=4,
        le=16,
        description="bcrypt cost factor (log2 of the number of rounds)"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so a missing JWT key only fails
    # the components that need it.

    @property
    def database(self) -> DatabaseSettings:
        return DatabaseSettings()

    @property
    def jwt(self) -> JwtSettings:
        return JwtSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    `<name>_error` entry describing each failure.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("database", "jwt", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
