"""
Configuration Management for Spend Wise

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here. Every external dependency
(token secret, AI providers, the JSON store) has its own settings class
with its own environment prefix, so it is easy to see what can be tuned.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BUDGET_LIMITS = {
    "Food": 5000.0,
    "Tech": 15000.0,
    "Transport": 3000.0,
    "Other": 2000.0,
}


class JWTSettings(BaseSettings):
    """Session token configuration."""

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    secret: str = Field(
        default="fastro-investor-secret-2026",
        min_length=8,
        description="Shared secret used to sign session tokens"
    )
    algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    expire_hours: int = Field(
        default=8,
        ge=1,
        le=24 * 30,
        description="Token lifetime in hours"
    )


class OpenAISettings(BaseSettings):
    """OpenAI (primary receipt classifier) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OPENAI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key; provider is offline when unset"
    )
    model_name: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model to use"
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Request timeout"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class GeminiSettings(BaseSettings):
    """Gemini (fallback receipt classifier) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key; provider is offline when unset"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class StorageSettings(BaseSettings):
    """Flat-file store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    file: str = Field(
        default="db.json",
        description="Path of the JSON document holding transactions and users"
    )


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
    log_level: str = Field(
        default="INFO",
        description="Minimum log level"
    )

    # HTTP server
    host: str = Field(
        default="0.0.0.0",
        description="Interface to bind"
    )
    port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Port to listen on"
    )
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # File upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum size of a single uploaded receipt in MB"
    )

    # Bootstrap account
    default_admin_username: str = Field(
        default="admin",
        min_length=1,
        description="Username of the account created on an empty store"
    )
    default_admin_password: str = Field(
        default="admin123",
        min_length=1,
        description="Password of the account created on an empty store"
    )

    # Budgets and intelligence
    budget_limits: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_BUDGET_LIMITS),
        description="Monthly spending limit per category"
    )
    provider_max_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Attempts per AI provider on transient errors"
    )
    chat_context_size: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Number of transactions handed to the assistant"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("budget_limits")
    @classmethod
    def validate_budget_limits(cls, v: dict[str, float]) -> dict[str, float]:
        for category, limit in v.items():
            if limit <= 0:
                raise ValueError(f"Budget limit for {category} must be positive")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


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

    @property
    def jwt(self) -> JWTSettings:
        return JWTSettings()

    @property
    def openai(self) -> OpenAISettings:
        return OpenAISettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

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

    Returns a dict of {setting_name: is_valid}.
    AI providers count as valid only when an API key is present.
    """
    results = {}

    settings = get_settings()

    for name in ("jwt", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    for name in ("openai", "gemini"):
        try:
            results[name] = getattr(settings, name).is_configured
            if not results[name]:
                results[f"{name}_error"] = "API key not set"
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
