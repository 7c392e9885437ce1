"""Tool layer exposing bridge operations as MCP tools, resources and prompts.

Example:
    from nvimbridge.tools import ToolRegistry, ToolExecutor, register_bridge_tools

    registry = register_bridge_tools(ToolRegistry(), bridge)
    executor = ToolExecutor(registry)
    result = await executor.execute("vim_buffer", {})
"""

from .catalog import TOOL_SPECS, register_bridge_tools
from .executor import ExecutorConfig, ToolExecutor
from .registry import DuplicateToolError, ToolRegistry
from .resources import RESOURCES, ResourceSpec, UnknownResourceError, read_resource
from .types import SimpleTool, Tool, ToolResult, ToolSpec

__all__ = [
    # catalog.py
    "TOOL_SPECS",
    "register_bridge_tools",
    # executor.py
    "ExecutorConfig",
    "ToolExecutor",
    # registry.py
    "DuplicateToolError",
    "ToolRegistry",
    # resources.py
    "RESOURCES",
    "ResourceSpec",
    "UnknownResourceError",
    "read_resource",
    # types.py
    "SimpleTool",
    "Tool",
    "ToolResult",
    "ToolSpec",
]
