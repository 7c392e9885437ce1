"""The session bridge facade combining resolver, translator and aggregator."""

from __future__ import annotations

import logging
from typing import Any

from ..services.settings import SettingsProvider
from .aggregator import StateAggregator
from .models import BufferInfo, EditorStatus, SearchOptions, Selection, WindowInfo
from .session import ConnectionResolver, SessionFactory
from .translator import CommandTranslator

__all__ = ["NeovimBridge"]

LOGGER = logging.getLogger(__name__)


class NeovimBridge:
    """Single entry point for every editor operation.

    Each call connects fresh through the resolver and closes the session when
    done. Failures surface as :class:`~nvimbridge.bridge.errors.BridgeConnectionError`,
    :class:`~nvimbridge.bridge.errors.CommandError` or
    :class:`~nvimbridge.bridge.errors.ValidationError`.
    """

    def __init__(
        self,
        settings_provider: SettingsProvider,
        *,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._resolver = ConnectionResolver(settings_provider, factory=session_factory)
        self._translator = CommandTranslator(self._resolver)
        self._aggregator = StateAggregator(self._resolver)

    @property
    def resolver(self) -> ConnectionResolver:
        return self._resolver

    @property
    def endpoint(self) -> str:
        return self._resolver.endpoint()

    # Commands and edits -------------------------------------------------
    async def send_command(self, command: str) -> str:
        return await self._translator.send_command(command)

    async def edit_lines(self, start_line: int, mode: str, text: str) -> str:
        return await self._translator.edit_lines(start_line, mode, text)

    async def manipulate_window(self, command: str) -> str:
        return await self._translator.manipulate_window(command)

    async def set_mark(self, mark: str, line: int, column: int) -> str:
        return await self._translator.set_mark(mark, line, column)

    async def set_register(self, register: str, content: str) -> str:
        return await self._translator.set_register(register, content)

    async def visual_select(self, start_line: int, start_column: int, end_line: int, end_column: int) -> str:
        return await self._translator.visual_select(start_line, start_column, end_line, end_column)

    async def switch_buffer(self, identifier: int | str) -> str:
        return await self._translator.switch_buffer(identifier)

    async def save_buffer(self, filename: str | None = None) -> str:
        return await self._translator.save_buffer(filename)

    async def open_file(self, filename: str) -> str:
        return await self._translator.open_file(filename)

    async def search_in_buffer(self, pattern: str, options: SearchOptions | None = None) -> str:
        return await self._translator.search_in_buffer(pattern, options)

    async def search_and_replace(
        self, pattern: str, replacement: str, options: SearchOptions | None = None
    ) -> str:
        return await self._translator.search_and_replace(pattern, replacement, options)

    async def grep_in_project(self, pattern: str, file_pattern: str = "**/*") -> str:
        return await self._translator.grep_in_project(pattern, file_pattern)

    async def manage_macro(self, action: str, register: str | None = None, count: int = 1) -> str:
        return await self._translator.manage_macro(action, register, count)

    async def manage_tab(self, action: str, filename: str | None = None) -> str:
        return await self._translator.manage_tab(action, filename)

    async def manage_fold(self, action: str, start_line: int | None = None, end_line: int | None = None) -> str:
        return await self._translator.manage_fold(action, start_line, end_line)

    async def navigate_jump_list(self, direction: str) -> str:
        return await self._translator.navigate_jump_list(direction)

    # Reads ----------------------------------------------------------------
    async def get_buffer_contents(self, filename: str | None = None) -> dict[int, str]:
        return await self._aggregator.get_buffer_contents(filename)

    async def get_status(self) -> EditorStatus:
        return await self._aggregator.get_status()

    async def get_open_buffers(self) -> list[BufferInfo]:
        return await self._aggregator.get_open_buffers()

    async def get_windows(self) -> list[WindowInfo]:
        return await self._aggregator.get_windows()

    async def get_current_selection(self, include_context: bool = False) -> Selection | str:
        return await self._aggregator.get_current_selection(include_context)

    async def get_mark(self, mark: str) -> tuple[int, int] | None:
        return await self._aggregator.get_mark(mark)

    async def get_register(self, register: str) -> str:
        return await self._aggregator.get_register(register)

    async def get_project_structure(self) -> str:
        return await self._aggregator.get_project_structure()

    async def get_git_status(self) -> str:
        return await self._aggregator.get_git_status()

    async def get_lsp_diagnostics(self) -> dict[str, Any]:
        return await self._aggregator.get_lsp_diagnostics()

    async def get_vim_options(self) -> dict[str, dict[str, Any]]:
        return await self._aggregator.get_vim_options()

    async def analyze_related_files(self, filename: str | None = None) -> dict[str, Any]:
        return await self._aggregator.analyze_related_files(filename)

    async def get_related_files(self) -> dict[str, Any]:
        return await self._aggregator.get_related_files()

    async def get_recent_files(self) -> dict[str, Any]:
        return await self._aggregator.get_recent_files()

    async def get_workspace_context(self) -> dict[str, Any]:
        return await self._aggregator.get_workspace_context()

    async def get_search_results(self) -> dict[str, Any]:
        return await self._aggregator.get_search_results()

    async def find_workspace_symbols(self, query: str = "", limit: int = 20) -> dict[str, Any] | str:
        return await self._aggregator.find_workspace_symbols(query, limit)

    async def search_project_files(self, pattern: str, include_content: bool = False) -> dict[str, Any]:
        return await self._aggregator.search_project_files(pattern, include_content)

    async def health_check(self) -> bool:
        healthy = await self._aggregator.health_check()
        LOGGER.debug("Health check against %s: %s", self.endpoint, healthy)
        return healthy
