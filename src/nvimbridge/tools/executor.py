"""Tool executor: argument validation, timing, logging and error conversion."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import jsonschema

from ..bridge.errors import BridgeError, CommandError, ErrorCode, ValidationError
from ..bridge.normalizer import normalize_exception
from .registry import ToolRegistry
from .rendering import render_result
from .types import ToolResult

__all__ = [
    "ToolExecutor",
    "ExecutorConfig",
]

LOGGER = logging.getLogger(__name__)

MAX_SCHEMA_ERRORS = 5


# -----------------------------------------------------------------------------
# Executor Configuration
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class ExecutorConfig:
    """Configuration for the tool executor.

    Attributes:
        default_timeout: Per-call timeout in seconds; ``None`` or 0 disables it.
        log_arguments: Whether to log tool arguments (may contain buffer text).
    """

    default_timeout: float | None = 30.0
    log_arguments: bool = False


def _format_schema_path(path: Iterable[Any]) -> str:
    parts = [str(part) for part in path]
    return ".".join(parts)


# -----------------------------------------------------------------------------
# Tool Executor
# -----------------------------------------------------------------------------


class ToolExecutor:
    """Runs registry tools and converts every outcome into a :class:`ToolResult`.

    Example:
        executor = ToolExecutor(registry, ExecutorConfig(default_timeout=10))
        result = await executor.execute("vim_status", {})
        if not result.success:
            print(result.text)
    """

    def __init__(
        self,
        registry: ToolRegistry,
        config: ExecutorConfig | None = None,
    ) -> None:
        self._registry = registry
        self._config = config or ExecutorConfig()
        self._validators: dict[str, Any] = {}

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def config(self) -> ExecutorConfig:
        return self._config

    async def execute(
        self,
        name: str,
        arguments: Mapping[str, Any] | None,
    ) -> ToolResult:
        """Execute a tool by name; unknown tools yield a failed result."""
        arguments = dict(arguments or {})
        if self._config.log_arguments:
            LOGGER.debug("Executing tool %s with arguments: %s", name, arguments)
        else:
            LOGGER.debug("Executing tool %s", name)

        tool = self._registry.get(name)
        if tool is None:
            LOGGER.warning("Tool '%s' not found", name)
            error = BridgeError(error_code=ErrorCode.UNKNOWN_TOOL, message=f"Unknown tool: {name}")
            return ToolResult(success=False, text=error.message, error=error)

        start_time = time.perf_counter()
        effective_timeout = self._config.default_timeout
        try:
            self._validate_arguments(tool.spec.name, tool.spec.input_schema, arguments)
            if effective_timeout is not None and effective_timeout > 0:
                value = await asyncio.wait_for(tool.execute(arguments), timeout=effective_timeout)
            else:
                value = await tool.execute(arguments)
        except asyncio.TimeoutError:
            duration_ms = (time.perf_counter() - start_time) * 1000
            LOGGER.warning(
                "Tool %s timed out after %.1fms (timeout=%.1fs)", name, duration_ms, effective_timeout
            )
            error = CommandError(
                command=name, remote_error=f"timed out after {effective_timeout:g}s"
            )
            return ToolResult(success=False, text=error.message, error=error, duration_ms=duration_ms)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            error = normalize_exception(exc, name)
            if error is exc:
                LOGGER.info("Tool %s failed after %.1fms: %s", name, duration_ms, exc)
            else:
                LOGGER.exception("Tool %s raised an unexpected error", name)
            return ToolResult(success=False, text=error.message, error=error, duration_ms=duration_ms)

        duration_ms = (time.perf_counter() - start_time) * 1000
        LOGGER.debug("Tool %s completed in %.1fms", name, duration_ms)
        return ToolResult(success=True, text=render_result(value), duration_ms=duration_ms)

    def _validate_arguments(self, name: str, schema: Mapping[str, Any], arguments: Mapping[str, Any]) -> None:
        validator = self._validators.get(name)
        if validator is None:
            validator = jsonschema.Draft202012Validator(dict(schema))
            self._validators[name] = validator
        issues = sorted(validator.iter_errors(arguments), key=lambda issue: _format_schema_path(issue.absolute_path))
        if not issues:
            return
        messages = []
        for issue in issues[:MAX_SCHEMA_ERRORS]:
            path = _format_schema_path(issue.absolute_path)
            messages.append(f"{path}: {issue.message}" if path else issue.message)
        first_path = _format_schema_path(issues[0].absolute_path) or None
        raise ValidationError(
            message=f"Invalid arguments for {name}: " + "; ".join(messages),
            field_name=first_path,
            details={"errors": messages},
        )
