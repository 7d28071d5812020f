"""Configuration package."""

from spendwise.config.settings import (
    DEFAULT_BUDGET_LIMITS,
    AppSettings,
    GeminiSettings,
    JWTSettings,
    OpenAISettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DEFAULT_BUDGET_LIMITS",
    "AppSettings",
    "GeminiSettings",
    "JWTSettings",
    "OpenAISettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
