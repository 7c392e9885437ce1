"""Command line entry point and composition root for the nvim-bridge server."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, get_args, get_origin, get_type_hints

from .bridge.manager import NeovimBridge
from .bridge.session import SessionFactory
from .server import BridgeServer
from .services.settings import Settings, SettingsProvider, SettingsStore, store_settings_provider
from .tools.catalog import register_bridge_tools
from .tools.executor import ExecutorConfig, ToolExecutor
from .tools.registry import ToolRegistry
from .utils import logging as logging_utils

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_LOGGER = logging.getLogger(__name__)
_ENV_PREFIXES = ("NVIM_BRIDGE_", "NVIM_SOCKET_PATH", "ALLOW_SHELL_COMMANDS")


def configure_logging(debug: bool = False, *, log_dir: str | None = None, force: bool = False) -> Path:
    """Configure logging for the server process."""

    level = logging.DEBUG if debug else logging.INFO
    log_path = logging_utils.setup_logging(level, log_dir=log_dir, force=force)
    _LOGGER.debug("Logging configured (level=%s, file=%s)", logging.getLevelName(level), log_path)
    return log_path


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return Settings()


def build_bridge(
    settings_provider: SettingsProvider,
    *,
    session_factory: SessionFactory | None = None,
) -> NeovimBridge:
    """Construct the bridge; the provider is consulted on every connection."""

    return NeovimBridge(settings_provider, session_factory=session_factory)


def build_executor(bridge: NeovimBridge, settings: Settings) -> ToolExecutor:
    registry = register_bridge_tools(ToolRegistry(), bridge)
    timeout = settings.tool_timeout if settings.tool_timeout and settings.tool_timeout > 0 else None
    return ToolExecutor(registry, ExecutorConfig(default_timeout=timeout, log_arguments=settings.debug_logging))


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point invoked by the ``nvim-bridge`` console script."""

    args = _parse_cli_args(argv)
    debug = args.debug or _env_flag("NVIM_BRIDGE_DEBUG", default=False)

    settings_path = args.settings_path or os.environ.get("NVIM_BRIDGE_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    overrides_mapping: Dict[str, Any] | None = cli_overrides or None
    settings = load_settings(resolved_path, store=settings_store, overrides=overrides_mapping)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return 0

    if args.save_settings:
        persisted = settings_store.load(overrides=overrides_mapping, apply_env=False)
        saved_path = settings_store.save(persisted)
        print(f"Settings saved to {saved_path}", file=sys.stderr)
        return 0

    configure_logging(debug or settings.debug_logging, log_dir=settings.log_dir)

    provider = store_settings_provider(settings_store, overrides=overrides_mapping)
    bridge = build_bridge(provider)

    if args.check:
        healthy = asyncio.run(bridge.health_check())
        message = "Neovim connection is healthy" if healthy else "Neovim connection failed"
        print(f"{message} ({bridge.endpoint})", file=sys.stderr)
        return 0 if healthy else 1

    server = BridgeServer(bridge, build_executor(bridge, settings))
    try:
        asyncio.run(server.run_stdio())
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown path
        _LOGGER.info("Shutdown requested by user.")
    return 0


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _parse_cli_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nvim-bridge",
        description="Serve a Neovim session to MCP clients over stdio.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.nvim-bridge/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings before launch (repeatable).",
    )
    parser.add_argument(
        "--save-settings",
        action="store_true",
        help="Write the settings file with any --set overrides applied and exit.",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Probe the configured Neovim socket and exit with its health status.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = Settings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(Settings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        annotation = type_hints.get(key, fields[key].type)
        overrides[key] = _coerce_value(annotation, raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    target = _resolve_annotation(annotation)
    normalized = raw_value.strip()

    if normalized.lower() in {"none", "null"} and _is_optional(annotation):
        return None
    if target is str or target is Any:
        return normalized
    if target is bool:
        return _parse_bool(normalized)
    if target is float:
        return float(normalized)
    return normalized


def _resolve_annotation(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is None:
        return annotation
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    if not args:
        return origin
    return args[0]


def _is_optional(annotation: Any) -> bool:
    return type(None) in get_args(annotation)


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    metadata = {
        "path": str(store.path),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": _active_env_overrides(),
    }
    output = {"settings": asdict(settings), "meta": metadata}
    json.dump(output, destination, indent=2)
    destination.write("\n")


def _active_env_overrides() -> list[str]:
    return sorted(name for name in os.environ if name.startswith(_ENV_PREFIXES))
