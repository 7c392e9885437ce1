"""Logging setup for the nvim-bridge server.

stdout carries MCP frames, so nothing here may write to it: the console
handler is bound to stderr and the rotating log file is the primary sink.
Records are tagged with the Neovim socket the current bridge call talks to
(``%(endpoint)s``), bound by :func:`bound_endpoint`.
"""

from __future__ import annotations

import contextlib
import logging
import logging.handlers
import os
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Iterator

__all__ = ["setup_logging", "get_log_path", "bound_endpoint", "current_endpoint"]

_DEFAULT_LOG_DIR = Path.home() / ".nvim-bridge" / "logs"
_LOG_FILE_NAME = "nvim-bridge.log"
_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(endpoint)s | %(message)s"
_NO_ENDPOINT = "-"
# pynvim logs every msgpack frame at DEBUG; mcp logs each request at INFO.
_NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "pynvim", "mcp")
_ENDPOINT: ContextVar[str] = ContextVar("nvim_bridge_endpoint", default=_NO_ENDPOINT)
_CONFIGURED = False
_LOG_PATH: Path | None = None


class _EndpointFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.endpoint = _ENDPOINT.get()
        return True


@contextlib.contextmanager
def bound_endpoint(endpoint: str) -> Iterator[None]:
    """Tag log records emitted in this context with ``endpoint``."""

    token = _ENDPOINT.set(endpoint or _NO_ENDPOINT)
    try:
        yield
    finally:
        _ENDPOINT.reset(token)


def current_endpoint() -> str:
    return _ENDPOINT.get()


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Install the rotating file handler and, optionally, a stderr handler.

    Calling again is a no-op returning the existing path unless ``force``.
    """

    global _CONFIGURED, _LOG_PATH
    if _CONFIGURED and not force and _LOG_PATH is not None:
        return _LOG_PATH

    log_path = _resolve_log_dir(log_dir) / _LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    endpoint_filter = _EndpointFilter()
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(endpoint_filter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    _quiet_third_party(level)

    _CONFIGURED = True
    _LOG_PATH = log_path
    return log_path


def get_log_path() -> Path | None:
    """Return the active log file, or None before :func:`setup_logging` ran."""

    return _LOG_PATH


def _resolve_log_dir(log_dir: Path | str | None) -> Path:
    return Path(log_dir or os.environ.get("NVIM_BRIDGE_LOG_DIR") or _DEFAULT_LOG_DIR).expanduser()


def _quiet_third_party(root_level: int) -> None:
    quiet_level = max(root_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(quiet_level)
