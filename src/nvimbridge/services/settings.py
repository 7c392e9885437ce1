"""Settings dataclasses and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

__all__ = [
    "Settings",
    "SettingsStore",
    "SettingsProvider",
    "DEFAULT_SOCKET_PATH",
    "SHELL_DISABLED_MESSAGE",
    "env_settings_provider",
    "store_settings_provider",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".nvim-bridge"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
DEFAULT_SOCKET_PATH = "/tmp/nvim"
SHELL_DISABLED_MESSAGE = (
    "Shell command execution is disabled. Set ALLOW_SHELL_COMMANDS=true "
    "environment variable to enable shell commands."
)
_ENV_OVERRIDES: Mapping[str, str] = {
    "NVIM_SOCKET_PATH": "socket_path",
    "NVIM_BRIDGE_LOG_DIR": "log_dir",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "ALLOW_SHELL_COMMANDS": "allow_shell_commands",
    "NVIM_BRIDGE_DEBUG_LOGGING": "debug_logging",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "NVIM_BRIDGE_TOOL_TIMEOUT": "tool_timeout",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}


@dataclass(slots=True)
class Settings:
    """User-configurable settings for the bridge and its server."""

    socket_path: str = DEFAULT_SOCKET_PATH
    allow_shell_commands: bool = False
    tool_timeout: float = 30.0
    debug_logging: bool = False
    log_dir: str | None = None


SettingsProvider = Callable[[], Settings]


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None, apply_env: bool = True) -> Settings:
        """Load settings from disk, applying CLI/environment overrides when present.

        ``apply_env=False`` returns the file contents plus CLI overrides only,
        which is what gets written back by ``nvim-bridge --save-settings``.
        """

        payload = self._read_payload()
        settings = Settings()
        if payload:
            data = _filter_fields(payload)
            try:
                settings = Settings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = Settings()
            LOGGER.debug("Settings loaded from %s (fields=%s)", self._path, sorted(data))

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")

        if not apply_env:
            return settings
        return self._apply_env_overrides(settings)

    def save(self, settings: Settings) -> Path:
        """Persist settings to disk with atomic file writes."""

        payload = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            payload = json.loads(text)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain a JSON object", self._path)
            return {}
        return payload

    def _apply_overrides(
        self,
        settings: Settings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> Settings:
        allowed = {field.name for field in fields(Settings)}
        filtered: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in allowed or value is None:
                continue
            filtered[key] = value
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: Settings) -> Settings:
        overrides = _collect_env_overrides()
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def env_settings_provider(base: Settings | None = None) -> SettingsProvider:
    """Return a provider that re-applies environment overrides on every call."""

    template = base or Settings()

    def _provide() -> Settings:
        overrides = _collect_env_overrides()
        if not overrides:
            return template
        return replace(template, **overrides)

    return _provide


def store_settings_provider(
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> SettingsProvider:
    """Return a provider that reloads ``store`` so file edits apply between calls."""

    frozen = dict(overrides) if overrides else None

    def _provide() -> Settings:
        try:
            return store.load(overrides=frozen)
        except Exception as exc:  # pragma: no cover - defensive path
            LOGGER.warning("Failed to reload settings from %s: %s", store.path, exc)
            return env_settings_provider()()

    return _provide


def _collect_env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_name, field_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None:
            overrides[field_name] = value
    for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None:
            overrides[field_name] = value.strip().lower() in _TRUE_VALUES
    for env_name, field_name in _FLOAT_ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is None:
            continue
        try:
            overrides[field_name] = float(value)
        except ValueError:
            LOGGER.warning("Environment override %s=%s is not a valid float", env_name, value)
    return overrides


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {field.name for field in fields(Settings)}
    result: Dict[str, Any] = {}
    for key, value in payload.items():
        if key not in allowed:
            if key != "version":
                LOGGER.warning("Ignoring unknown setting '%s'", key)
            continue
        result[key] = value
    return result
