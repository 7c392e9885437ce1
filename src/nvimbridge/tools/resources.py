"""Read-only ``nvim://`` resources backed by bridge read operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from ..bridge.errors import BridgeError
from ..bridge.manager import NeovimBridge
from .rendering import render_buffer, render_json, render_result

__all__ = ["ResourceSpec", "RESOURCES", "get_resource", "read_resource", "UnknownResourceError"]

LOGGER = logging.getLogger(__name__)

Reader = Callable[[NeovimBridge], Awaitable[str]]


class UnknownResourceError(KeyError):
    """Raised when a resource URI is not served."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"Unknown resource: {uri}")


@dataclass(slots=True, frozen=True)
class ResourceSpec:
    """One ``nvim://`` resource.

    Attributes:
        uri: Resource URI.
        name: Display name.
        description: What the resource contains.
        mime_type: ``text/plain`` or ``application/json``.
        tool_name: Name of the read-only tool mirroring this resource.
        reader: Coroutine rendering the resource body; raises bridge errors.
    """

    uri: str
    name: str
    description: str
    mime_type: str
    tool_name: str
    reader: Reader


async def _session(bridge: NeovimBridge) -> str:
    return render_buffer(await bridge.get_buffer_contents())


async def _buffers(bridge: NeovimBridge) -> str:
    return render_json(await bridge.get_open_buffers())


async def _project_structure(bridge: NeovimBridge) -> str:
    return await bridge.get_project_structure()


async def _git_status(bridge: NeovimBridge) -> str:
    return await bridge.get_git_status()


async def _lsp_diagnostics(bridge: NeovimBridge) -> str:
    return render_json(await bridge.get_lsp_diagnostics())


async def _vim_options(bridge: NeovimBridge) -> str:
    return render_json(await bridge.get_vim_options())


async def _related_files(bridge: NeovimBridge) -> str:
    return render_json(await bridge.get_related_files())


async def _recent_files(bridge: NeovimBridge) -> str:
    return render_json(await bridge.get_recent_files())


async def _visual_selection(bridge: NeovimBridge) -> str:
    return render_result(await bridge.get_current_selection())


async def _workspace_context(bridge: NeovimBridge) -> str:
    return render_json(await bridge.get_workspace_context())


async def _search_results(bridge: NeovimBridge) -> str:
    return render_json(await bridge.get_search_results())


_JSON = "application/json"
_TEXT = "text/plain"

RESOURCES: tuple[ResourceSpec, ...] = (
    ResourceSpec(
        "nvim://session", "Current neovim session", "Current neovim text editor session",
        _TEXT, "vim_get_session", _session,
    ),
    ResourceSpec(
        "nvim://buffers", "Open Neovim buffers",
        "List of all open buffers in the current Neovim session",
        _JSON, "vim_get_buffers", _buffers,
    ),
    ResourceSpec(
        "nvim://project-structure", "Project structure", "File tree of the current working directory",
        _TEXT, "vim_get_project_structure", _project_structure,
    ),
    ResourceSpec(
        "nvim://git-status", "Git status", "Current git repository status",
        _TEXT, "vim_get_git_status", _git_status,
    ),
    ResourceSpec(
        "nvim://lsp-diagnostics", "LSP diagnostics", "Current LSP diagnostics for all buffers",
        _JSON, "vim_get_lsp_diagnostics", _lsp_diagnostics,
    ),
    ResourceSpec(
        "nvim://vim-options", "Vim options", "Current Neovim configuration and options",
        _JSON, "vim_get_vim_options", _vim_options,
    ),
    ResourceSpec(
        "nvim://related-files", "Related files",
        "Files related to current buffer through imports/requires",
        _JSON, "vim_get_related_files", _related_files,
    ),
    ResourceSpec(
        "nvim://recent-files", "Recent files", "Recently accessed files in current project",
        _JSON, "vim_get_recent_files", _recent_files,
    ),
    ResourceSpec(
        "nvim://visual-selection", "Visual selection",
        "Currently selected text or last visual selection",
        _JSON, "vim_get_visual_selection", _visual_selection,
    ),
    ResourceSpec(
        "nvim://workspace-context", "Workspace context",
        "Enhanced workspace context with all related information",
        _JSON, "vim_get_workspace_context", _workspace_context,
    ),
    ResourceSpec(
        "nvim://search-results", "Search results", "Current search results and quickfix list",
        _JSON, "vim_get_search_results", _search_results,
    ),
)

_BY_URI = {spec.uri: spec for spec in RESOURCES}


def get_resource(uri: str) -> ResourceSpec:
    spec = _BY_URI.get(str(uri))
    if spec is None:
        raise UnknownResourceError(str(uri))
    return spec


async def read_resource(bridge: NeovimBridge, uri: str) -> str:
    """Render ``uri``; bridge failures become a JSON ``{"error": ...}`` body."""

    spec = get_resource(uri)
    try:
        return await spec.reader(bridge)
    except BridgeError as exc:
        LOGGER.warning("Reading %s failed: %s", spec.uri, exc)
        return render_json({"error": exc.message, "code": exc.error_code})
