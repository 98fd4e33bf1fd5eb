"""Configuration package."""

from volttracker.config.settings import (
    AppSettings,
    GeminiSettings,
    GoogleSheetsSettings,
    LocalStorageSettings,
    Settings,
    StorageBackend,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GeminiSettings",
    "GoogleSheetsSettings",
    "LocalStorageSettings",
    "Settings",
    "StorageBackend",
    "get_settings",
    "validate_all_settings",
]
