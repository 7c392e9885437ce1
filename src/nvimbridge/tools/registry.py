"""Tool registry keyed by tool name."""

from __future__ import annotations

import logging

from .types import AsyncToolHandler, SimpleTool, Tool, ToolHandler, ToolSpec

__all__ = ["ToolRegistry", "DuplicateToolError"]

LOGGER = logging.getLogger(__name__)


class DuplicateToolError(Exception):
    """Raised when two tools are registered under the same name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' is already registered")


class ToolRegistry:
    """Ordered name -> tool table served by :class:`~nvimbridge.server.BridgeServer`.

    Registration order is the order ``tools/list`` reports.

    Example:
        registry = ToolRegistry()
        registry.register_function(ToolSpec(name="vim_health", description="Check connection"), health)
        registry.get("vim_health")
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> Tool:
        if tool.name in self._tools:
            raise DuplicateToolError(tool.name)
        self._tools[tool.name] = tool
        LOGGER.debug("Registered tool: %s", tool.name)
        return tool

    def register_function(self, spec: ToolSpec, handler: ToolHandler | AsyncToolHandler) -> Tool:
        """Wrap a sync or async handler taking the argument mapping."""
        return self.register(SimpleTool(spec=spec, handler=handler))

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_tools(self) -> list[ToolSpec]:
        return [tool.spec for tool in self._tools.values()]

    def list_names(self) -> list[str]:
        return list(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
