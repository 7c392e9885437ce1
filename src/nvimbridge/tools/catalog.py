"""The ``vim_*`` tool table mapping MCP tool calls onto bridge operations."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..bridge.manager import NeovimBridge
from ..bridge.models import (
    EditMode,
    FoldAction,
    JumpDirection,
    MacroAction,
    SearchOptions,
    TabAction,
    WindowCommand,
)
from .registry import ToolRegistry
from .rendering import render_buffer
from .resources import RESOURCES, ResourceSpec
from .types import ToolSpec

__all__ = ["register_bridge_tools", "TOOL_SPECS"]

LOGGER = logging.getLogger(__name__)


def _schema(properties: Mapping[str, Any] | None = None, required: tuple[str, ...] = ()) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": dict(properties or {})}
    if required:
        schema["required"] = list(required)
    return schema


def _enum(values: type, description: str) -> dict[str, Any]:
    return {"type": "string", "enum": [member.value for member in values], "description": description}


def _int(description: str, minimum: int | None = None) -> dict[str, Any]:
    prop: dict[str, Any] = {"type": "integer", "description": description}
    if minimum is not None:
        prop["minimum"] = minimum
    return prop


def _str(description: str, **extra: Any) -> dict[str, Any]:
    return {"type": "string", "description": description, **extra}


def _bool(description: str) -> dict[str, Any]:
    return {"type": "boolean", "description": description}


TOOL_SPECS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            name="vim_buffer",
            description="Get buffer contents with line numbers",
            parameters=_schema({"filename": _str("Optional file name to view a specific buffer")}),
        ),
        ToolSpec(
            name="vim_command",
            description="Execute Vim commands with optional shell command support",
            parameters=_schema(
                {"command": _str("Vim command to execute (use ! prefix for shell commands if enabled)")},
                ("command",),
            ),
            is_write=True,
        ),
        ToolSpec(
            name="vim_status",
            description="Get comprehensive Neovim status including cursor position, mode, marks, and registers",
            parameters=_schema(),
        ),
        ToolSpec(
            name="vim_edit",
            description="Edit buffer content using insert, replace, or replaceAll modes",
            parameters=_schema(
                {
                    "startLine": _int("The line number where editing should begin (1-indexed)", 1),
                    "mode": _enum(
                        EditMode,
                        "Whether to insert new content, replace existing content, or replace entire buffer",
                    ),
                    "lines": _str("The text content to insert or use as replacement"),
                },
                ("startLine", "mode", "lines"),
            ),
            is_write=True,
        ),
        ToolSpec(
            name="vim_window",
            description="Manage Neovim windows: split, close, and navigate between windows",
            parameters=_schema(
                {
                    "command": _enum(
                        WindowCommand,
                        "Window manipulation command: split or vsplit to create new window, only to keep "
                        "just current window, close to close current window, or wincmd with h/j/k/l to "
                        "navigate between windows",
                    )
                },
                ("command",),
            ),
            is_write=True,
        ),
        ToolSpec(
            name="vim_mark",
            description="Set named marks at specific positions in the buffer",
            parameters=_schema(
                {
                    "mark": _str("Single lowercase letter [a-z] to use as the mark name", pattern="^[a-z]$"),
                    "line": _int("The line number where the mark should be placed (1-indexed)", 1),
                    "column": _int("The column number where the mark should be placed (0-indexed)", 0),
                },
                ("mark", "line", "column"),
            ),
            is_write=True,
        ),
        ToolSpec(
            name="vim_register",
            description="Manage Neovim register contents; omit content to read the register back",
            parameters=_schema(
                {
                    "register": _str(
                        'Register name - a lowercase letter [a-z] or double-quote ["] for the unnamed register',
                        pattern='^[a-z"]$',
                    ),
                    "content": _str("The text content to store in the specified register"),
                },
                ("register",),
            ),
            is_write=True,
        ),
        ToolSpec(
            name="vim_visual",
            description="Create visual mode selections in the buffer",
            parameters=_schema(
                {
                    "startLine": _int("The starting line number for visual selection (1-indexed)", 1),
                    "startColumn": _int("The starting column number for visual selection (0-indexed)", 0),
                    "endLine": _int("The ending line number for visual selection (1-indexed)", 1),
                    "endColumn": _int("The ending column number for visual selection (0-indexed)", 0),
                },
                ("startLine", "startColumn", "endLine", "endColumn"),
            ),
        ),
        ToolSpec(
            name="vim_buffer_switch",
            description="Switch between buffers by name or number",
            parameters=_schema(
                {
                    "identifier": {
                        "type": ["string", "integer"],
                        "description": "Buffer identifier - can be buffer number or filename/path",
                    }
                },
                ("identifier",),
            ),
            is_write=True,
        ),
        ToolSpec(
            name="vim_buffer_save",
            description="Save current buffer or save to specific filename",
            parameters=_schema(
                {"filename": _str("Optional filename to save buffer to (defaults to current buffer's filename)")}
            ),
            is_write=True,
        ),
        ToolSpec(
            name="vim_file_open",
            description="Open files into new buffers",
            parameters=_schema({"filename": _str("Path to the file to open")}, ("filename",)),
            is_write=True,
        ),
        ToolSpec(
            name="vim_search",
            description="Search within current buffer with regex support and options",
            parameters=_schema(
                {
                    "pattern": _str("Search pattern (supports regex)"),
                    "ignoreCase": _bool("Whether to ignore case in search (default: false)"),
                    "wholeWord": _bool("Whether to match whole words only (default: false)"),
                },
                ("pattern",),
            ),
        ),
        ToolSpec(
            name="vim_search_replace",
            description="Find and replace with global, case-insensitive, and confirm options",
            parameters=_schema(
                {
                    "pattern": _str("Search pattern (supports regex)"),
                    "replacement": _str("Replacement text"),
                    "global": _bool("Replace all occurrences in each line (default: false)"),
                    "ignoreCase": _bool("Whether to ignore case in search (default: false)"),
                    "confirm": _bool("Whether to confirm each replacement (default: false)"),
                },
                ("pattern", "replacement"),
            ),
            is_write=True,
        ),
        ToolSpec(
            name="vim_grep",
            description="Project-wide search using vimgrep with quickfix list",
            parameters=_schema(
                {
                    "pattern": _str("Search pattern to grep for"),
                    "filePattern": _str("File pattern to search in (default: **/* for all files)"),
                },
                ("pattern",),
            ),
        ),
        ToolSpec(
            name="vim_health",
            description="Check Neovim connection health",
            parameters=_schema(),
        ),
        ToolSpec(
            name="vim_macro",
            description="Record, stop, and play Neovim macros",
            parameters=_schema(
                {
                    "action": _enum(MacroAction, "Action to perform with macros"),
                    "register": _str("Register to record/play macro (a-z, required for record/play)"),
                    "count": _int("Number of times to play macro (default: 1)", 1),
                },
                ("action",),
            ),
            is_write=True,
        ),
        ToolSpec(
            name="vim_tab",
            description="Manage Neovim tabs: create, close, and navigate between tabs",
            parameters=_schema(
                {
                    "action": _enum(TabAction, "Tab action to perform"),
                    "filename": _str("Filename for new tab (optional)"),
                },
                ("action",),
            ),
            is_write=True,
        ),
        ToolSpec(
            name="vim_fold",
            description="Manage code folding: create, open, close, and toggle folds",
            parameters=_schema(
                {
                    "action": _enum(FoldAction, "Folding action to perform"),
                    "startLine": _int("Start line for creating fold (required for create)", 1),
                    "endLine": _int("End line for creating fold (required for create)", 1),
                },
                ("action",),
            ),
            is_write=True,
        ),
        ToolSpec(
            name="vim_jump",
            description="Navigate Neovim jump list: go back, forward, or list jumps",
            parameters=_schema({"direction": _enum(JumpDirection, "Jump direction or list jumps")}, ("direction",)),
        ),
        ToolSpec(
            name="vim_analyze_related",
            description="Analyze files related through imports/requires in the current or specified buffer",
            parameters=_schema({"filename": _str("Optional filename to analyze (defaults to current buffer)")}),
        ),
        ToolSpec(
            name="vim_find_symbols",
            description="Find workspace symbols using LSP",
            parameters=_schema(
                {
                    "query": _str("Symbol name to search for (empty for all symbols)"),
                    "limit": _int("Maximum number of symbols to return (default: 20)", 1),
                }
            ),
        ),
        ToolSpec(
            name="vim_search_files",
            description="Search for files in the current project by pattern",
            parameters=_schema(
                {
                    "pattern": _str("File name pattern to search for"),
                    "includeContent": _bool("Whether to include file content preview (default: false)"),
                },
                ("pattern",),
            ),
        ),
        ToolSpec(
            name="vim_get_selection",
            description="Get the currently selected text or last visual selection from Neovim",
            parameters=_schema(
                {"includeContext": _bool("Include surrounding context (5 lines before/after) (default: false)")}
            ),
        ),
    )
}


class _BridgeTools:
    """Tool handlers translating camelCase arguments into bridge calls."""

    def __init__(self, bridge: NeovimBridge) -> None:
        self._bridge = bridge

    def handlers(self) -> dict[str, Any]:
        return {
            "vim_buffer": self.buffer,
            "vim_command": self.command,
            "vim_status": self.status,
            "vim_edit": self.edit,
            "vim_window": self.window,
            "vim_mark": self.mark,
            "vim_register": self.register,
            "vim_visual": self.visual,
            "vim_buffer_switch": self.buffer_switch,
            "vim_buffer_save": self.buffer_save,
            "vim_file_open": self.file_open,
            "vim_search": self.search,
            "vim_search_replace": self.search_replace,
            "vim_grep": self.grep,
            "vim_health": self.health,
            "vim_macro": self.macro,
            "vim_tab": self.tab,
            "vim_fold": self.fold,
            "vim_jump": self.jump,
            "vim_analyze_related": self.analyze_related,
            "vim_find_symbols": self.find_symbols,
            "vim_search_files": self.search_files,
            "vim_get_selection": self.get_selection,
        }

    async def buffer(self, args: Mapping[str, Any]) -> str:
        return render_buffer(await self._bridge.get_buffer_contents(args.get("filename") or None))

    async def command(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.send_command(args["command"])

    async def status(self, args: Mapping[str, Any]) -> Any:
        return await self._bridge.get_status()

    async def edit(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.edit_lines(args["startLine"], args["mode"], args["lines"])

    async def window(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.manipulate_window(args["command"])

    async def mark(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.set_mark(args["mark"], args["line"], args["column"])

    async def register(self, args: Mapping[str, Any]) -> str:
        if args.get("content") is None:
            return await self._bridge.get_register(args["register"])
        return await self._bridge.set_register(args["register"], args["content"])

    async def visual(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.visual_select(
            args["startLine"], args["startColumn"], args["endLine"], args["endColumn"]
        )

    async def buffer_switch(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.switch_buffer(args["identifier"])

    async def buffer_save(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.save_buffer(args.get("filename"))

    async def file_open(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.open_file(args["filename"])

    async def search(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.search_in_buffer(args["pattern"], SearchOptions.from_mapping(args))

    async def search_replace(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.search_and_replace(
            args["pattern"], args["replacement"], SearchOptions.from_mapping(args)
        )

    async def grep(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.grep_in_project(args["pattern"], args.get("filePattern") or "**/*")

    async def health(self, args: Mapping[str, Any]) -> str:
        if await self._bridge.health_check():
            return "Neovim connection is healthy"
        return "Neovim connection failed"

    async def macro(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.manage_macro(args["action"], args.get("register"), args.get("count", 1))

    async def tab(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.manage_tab(args["action"], args.get("filename"))

    async def fold(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.manage_fold(args["action"], args.get("startLine"), args.get("endLine"))

    async def jump(self, args: Mapping[str, Any]) -> str:
        return await self._bridge.navigate_jump_list(args["direction"])

    async def analyze_related(self, args: Mapping[str, Any]) -> Any:
        return await self._bridge.analyze_related_files(args.get("filename") or None)

    async def find_symbols(self, args: Mapping[str, Any]) -> Any:
        return await self._bridge.find_workspace_symbols(args.get("query", ""), args.get("limit", 20))

    async def search_files(self, args: Mapping[str, Any]) -> Any:
        return await self._bridge.search_project_files(args["pattern"], bool(args.get("includeContent")))

    async def get_selection(self, args: Mapping[str, Any]) -> Any:
        return await self._bridge.get_current_selection(bool(args.get("includeContext")))


def _resource_tool(bridge: NeovimBridge, resource: ResourceSpec):
    async def _handler(args: Mapping[str, Any]) -> str:
        return await resource.reader(bridge)

    return _handler


def register_bridge_tools(registry: ToolRegistry, bridge: NeovimBridge) -> ToolRegistry:
    """Register every ``vim_*`` tool, including the resource mirrors, on ``registry``."""

    handlers = _BridgeTools(bridge).handlers()
    for name, spec in TOOL_SPECS.items():
        registry.register_function(spec, handlers[name])
    for resource in RESOURCES:
        spec = ToolSpec(
            name=resource.tool_name,
            description=f"Get {resource.description[0].lower()}{resource.description[1:]}",
            parameters=_schema(),
        )
        registry.register_function(spec, _resource_tool(bridge, resource))
    LOGGER.debug("Registered %d bridge tools", len(registry))
    return registry
