"""Service layer helpers (settings, providers)."""

from .settings import (
    DEFAULT_SOCKET_PATH,
    SHELL_DISABLED_MESSAGE,
    Settings,
    SettingsProvider,
    SettingsStore,
    env_settings_provider,
    store_settings_provider,
)

__all__ = [
    "DEFAULT_SOCKET_PATH",
    "SHELL_DISABLED_MESSAGE",
    "Settings",
    "SettingsProvider",
    "SettingsStore",
    "env_settings_provider",
    "store_settings_provider",
]
