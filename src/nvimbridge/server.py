"""MCP stdio server wiring the tool layer onto an ``mcp.server.Server``."""

from __future__ import annotations

import logging
from typing import Any

from mcp import types as mcp_types
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server

from . import __version__
from .bridge.manager import NeovimBridge
from .tools.executor import ToolExecutor
from .tools.prompts import get_prompt, list_prompts
from .tools.resources import RESOURCES, get_resource, read_resource

__all__ = ["BridgeServer", "ToolCallError", "SERVER_NAME"]

LOGGER = logging.getLogger(__name__)

SERVER_NAME = "nvim-bridge"


class ToolCallError(Exception):
    """Raised inside the call_tool handler so the SDK answers with ``isError: true``."""


class BridgeServer:
    """Owns the MCP ``Server`` and its handlers.

    Handlers delegate to the executor (tools), the resource table and the
    workflow prompt. The MCP SDK owns framing and the stdio transport.
    """

    def __init__(self, bridge: NeovimBridge, executor: ToolExecutor) -> None:
        self._bridge = bridge
        self._executor = executor
        self._server: Server = Server(SERVER_NAME, version=__version__)
        self._install_handlers()

    @property
    def server(self) -> Server:
        return self._server

    async def list_tools(self) -> list[mcp_types.Tool]:
        return [spec.to_mcp_tool() for spec in self._executor.registry.list_tools()]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> list[mcp_types.TextContent]:
        result = await self._executor.execute(name, arguments or {})
        if not result.success:
            raise ToolCallError(result.text)
        return result.to_content()

    async def list_resources(self) -> list[mcp_types.Resource]:
        return [
            mcp_types.Resource(
                uri=spec.uri,
                name=spec.name,
                description=spec.description,
                mimeType=spec.mime_type,
            )
            for spec in RESOURCES
        ]

    async def read_resource(self, uri: Any) -> list[ReadResourceContents]:
        spec = get_resource(str(uri))
        body = await read_resource(self._bridge, spec.uri)
        return [ReadResourceContents(content=body, mime_type=spec.mime_type)]

    async def list_prompts(self) -> list[mcp_types.Prompt]:
        return list_prompts()

    async def get_prompt(self, name: str, arguments: dict[str, str] | None) -> mcp_types.GetPromptResult:
        return get_prompt(name, arguments)

    def _install_handlers(self) -> None:
        server = self._server
        server.list_tools()(self.list_tools)
        server.call_tool()(self.call_tool)
        server.list_resources()(self.list_resources)
        server.read_resource()(self.read_resource)
        server.list_prompts()(self.list_prompts)
        server.get_prompt()(self.get_prompt)

    async def run_stdio(self) -> None:
        """Serve MCP over stdin/stdout until the client disconnects."""

        LOGGER.info("Serving %s over stdio (socket: %s)", SERVER_NAME, self._bridge.endpoint)
        async with stdio_server() as (read_stream, write_stream):
            await self._server.run(
                read_stream,
                write_stream,
                self._server.create_initialization_options(),
            )
