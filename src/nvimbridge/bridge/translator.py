"""Translation of typed editing operations into primitive remote calls.

Every operation validates its arguments before connecting, so a
:class:`ValidationError` never costs a round trip. Interpolated text is
escaped with :mod:`nvimbridge.bridge.escaping`; wherever Neovim offers a
function taking the text as an argument the RPC argument is used instead.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from pynvim.api import NvimError

from .buffers import find_buffer
from .errors import CommandError, ValidationError
from .escaping import escape_bar, escape_delimited, escape_filename, escape_replacement, whole_word, with_case
from .models import (
    EditMode,
    FoldAction,
    JumpDirection,
    MacroAction,
    SearchOptions,
    TabAction,
    WindowCommand,
    parse_choice,
)
from .normalizer import bridge_operation, remote_error_text
from .session import ConnectionResolver
from ..services.settings import SHELL_DISABLED_MESSAGE

__all__ = ["CommandTranslator"]

LOGGER = logging.getLogger(__name__)

_MARK_RE = re.compile(r"^[a-z]$")
_REGISTER_RE = re.compile(r'^[a-z"]$')
_MACRO_REGISTER_RE = re.compile(r"^[a-z]$")
_SEARCH_MAX_COUNT = 100
_GREP_SUMMARY_LIMIT = 10


def _require_text(value: Any, field_name: str, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message=message, field_name=field_name)
    return value


def _require_int(value: Any, field_name: str, *, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(message=f"{field_name} must be an integer", field_name=field_name)
    if value < minimum:
        raise ValidationError(message=f"{field_name} must be >= {minimum}", field_name=field_name)
    return value


def _has_error_code(exc: BaseException, code: str) -> bool:
    return code in remote_error_text(exc)


class CommandTranslator:
    """Runs editing operations against a freshly connected session."""

    def __init__(self, resolver: ConnectionResolver) -> None:
        self._resolver = resolver

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    @bridge_operation(lambda command: str(command))
    async def send_command(self, command: str) -> str:
        command = _require_text(command, "command", "Command cannot be empty")
        # Ex skips leading blanks and colons before parsing the command name.
        normalized = command.lstrip(" \t:")
        if normalized.startswith("!"):
            return await self._run_shell(normalized[1:].strip())

        async with self._resolver.session() as nvim:
            await nvim.set_vvar("errmsg", "")
            output = await nvim.call("execute", normalized)
            errmsg = await nvim.get_vvar("errmsg")
        if errmsg:
            LOGGER.warning("Command %r reported: %s", normalized, errmsg)
            raise CommandError(command=normalized, remote_error=str(errmsg))
        text = str(output or "").strip()
        return text or "Command executed (no output)"

    async def _run_shell(self, shell_command: str) -> str:
        settings = self._resolver.settings_provider()
        if not settings.allow_shell_commands:
            return SHELL_DISABLED_MESSAGE
        if not shell_command:
            raise ValidationError(message="Shell command cannot be empty", field_name="command")
        async with self._resolver.session() as nvim:
            try:
                output = await nvim.call("system", shell_command)
            except NvimError as exc:
                raise CommandError(command=f"!{shell_command}", remote_error=remote_error_text(exc)) from exc
        text = str(output or "").strip()
        return text or "No output from command"

    # ------------------------------------------------------------------
    # Buffer edits
    # ------------------------------------------------------------------
    @bridge_operation(lambda start_line, mode, text: f"edit {mode}")
    async def edit_lines(self, start_line: int, mode: str, text: str) -> str:
        edit_mode = parse_choice(EditMode, mode, "mode")
        start = _require_int(start_line, "startLine", minimum=1)
        if not isinstance(text, str):
            raise ValidationError(message="lines must be a string", field_name="lines")
        lines = text.split("\n")

        async with self._resolver.session() as nvim:
            buffer = await nvim.current_buffer()
            if edit_mode is EditMode.REPLACE_ALL:
                await nvim.set_lines(buffer, 0, -1, lines)
                return "Buffer completely replaced"
            if edit_mode is EditMode.REPLACE:
                await nvim.set_lines(buffer, start - 1, start - 1 + len(lines), lines)
                return "Lines replaced successfully"
            if await self._is_empty_buffer(nvim, buffer):
                await nvim.set_lines(buffer, 0, -1, lines)
            else:
                await nvim.set_lines(buffer, start - 1, start - 1, lines)
            return "Lines inserted successfully"

    @staticmethod
    async def _is_empty_buffer(nvim, buffer: int) -> bool:
        if await nvim.line_count(buffer) != 1:
            return False
        return await nvim.get_lines(buffer, 0, 1) == [""]

    # ------------------------------------------------------------------
    # Windows, marks, registers, selection
    # ------------------------------------------------------------------
    @bridge_operation(lambda command: f"window {command}")
    async def manipulate_window(self, command: str) -> str:
        window_command = parse_choice(WindowCommand, str(command).strip(), "command")
        async with self._resolver.session() as nvim:
            await nvim.command(window_command.value)
        return "Window command executed"

    @bridge_operation(lambda mark, line, column: f"mark {mark}")
    async def set_mark(self, mark: str, line: int, column: int) -> str:
        if not isinstance(mark, str) or not _MARK_RE.match(mark):
            raise ValidationError(message="Invalid mark name (must be a-z)", field_name="mark")
        line = _require_int(line, "line", minimum=1)
        column = _require_int(column, "column", minimum=0)
        async with self._resolver.session() as nvim:
            await nvim.call("setpos", f"'{mark}", [0, line, column + 1, 0])
        return f"Mark {mark} set at line {line}, column {column}"

    @bridge_operation(lambda register, content: f"register {register}")
    async def set_register(self, register: str, content: str) -> str:
        if not isinstance(register, str) or not _REGISTER_RE.match(register):
            raise ValidationError(message='Invalid register name (must be a-z or ")', field_name="register")
        if not isinstance(content, str):
            raise ValidationError(message="content must be a string", field_name="content")
        async with self._resolver.session() as nvim:
            await nvim.call("setreg", register, content)
        return f"Register {register} set"

    @bridge_operation("visual selection")
    async def visual_select(self, start_line: int, start_column: int, end_line: int, end_column: int) -> str:
        start_line = _require_int(start_line, "startLine", minimum=1)
        start_column = _require_int(start_column, "startColumn", minimum=0)
        end_line = _require_int(end_line, "endLine", minimum=1)
        end_column = _require_int(end_column, "endColumn", minimum=0)
        async with self._resolver.session() as nvim:
            await nvim.set_cursor(start_line, start_column)
            await nvim.command("normal! v")
            await nvim.set_cursor(end_line, end_column)
        return "Visual selection made"

    # ------------------------------------------------------------------
    # Buffers and files
    # ------------------------------------------------------------------
    @bridge_operation(lambda identifier: f"buffer switch to {identifier}")
    async def switch_buffer(self, identifier: int | str) -> str:
        if isinstance(identifier, int) and not isinstance(identifier, bool):
            buffer_id = _require_int(identifier, "identifier", minimum=1)
            async with self._resolver.session() as nvim:
                await nvim.command(f"buffer {buffer_id}")
            return f"Switched to buffer {buffer_id}"

        name = _require_text(identifier, "identifier", "Buffer identifier cannot be empty").strip()
        async with self._resolver.session() as nvim:
            try:
                ref = await find_buffer(nvim, name)
            except ValidationError as exc:
                raise ValidationError(message=exc.message, field_name="identifier") from None
            await nvim.command(f"buffer {ref.id}")
        return f"Switched to buffer: {ref.name}"

    @bridge_operation(lambda filename=None: f"save {filename or 'current buffer'}")
    async def save_buffer(self, filename: str | None = None) -> str:
        target = filename.strip() if isinstance(filename, str) else ""
        async with self._resolver.session() as nvim:
            if target:
                await nvim.command(f"write {escape_filename(target)}")
                return f"Buffer saved to: {target}"
            name = await nvim.buffer_name(await nvim.current_buffer())
            if not name:
                raise ValidationError(
                    message="Cannot save unnamed buffer without specifying filename",
                    field_name="filename",
                )
            await nvim.command("write")
        return f"Buffer saved: {name}"

    @bridge_operation(lambda filename: f"edit {filename}")
    async def open_file(self, filename: str) -> str:
        target = _require_text(filename, "filename", "Filename cannot be empty").strip()
        async with self._resolver.session() as nvim:
            await nvim.command(f"edit {escape_filename(target)}")
        return f"Opened file: {target}"

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    @bridge_operation(lambda pattern, options=None: f"search for {pattern}")
    async def search_in_buffer(self, pattern: str, options: SearchOptions | None = None) -> str:
        pattern = _require_text(pattern, "pattern", "Search pattern cannot be empty")
        options = options or SearchOptions()
        search_pattern = whole_word(pattern) if options.whole_word else pattern
        search_pattern = with_case(search_pattern, options.ignore_case)

        async with self._resolver.session() as nvim:
            counts = await nvim.call(
                "searchcount", {"pattern": search_pattern, "maxcount": _SEARCH_MAX_COUNT}
            )
            total = int((counts or {}).get("total", 0))
            if total == 0:
                return f"No matches found for: {pattern}"
            await nvim.call("search", search_pattern, "cw")
        suffix = f" (showing first {_SEARCH_MAX_COUNT})" if (counts or {}).get("incomplete") else ""
        return f"Found {total} matches for: {pattern}{suffix}"

    @bridge_operation(
        lambda pattern, replacement, options=None: f"substitute {pattern} -> {replacement}"
    )
    async def search_and_replace(
        self, pattern: str, replacement: str, options: SearchOptions | None = None
    ) -> str:
        pattern = _require_text(pattern, "pattern", "Search pattern cannot be empty")
        if not isinstance(replacement, str):
            raise ValidationError(message="replacement must be a string", field_name="replacement")
        options = options or SearchOptions()
        flags = ""
        if options.global_replace:
            flags += "g"
        if options.ignore_case:
            flags += "i"
        if options.confirm:
            flags += "c"
        command = f"%s/{escape_delimited(pattern)}/{escape_replacement(replacement)}/{flags}"

        async with self._resolver.session() as nvim:
            try:
                output = await nvim.call("execute", command)
            except NvimError as exc:
                if _has_error_code(exc, "E486"):
                    return f"No matches found for: {pattern}"
                raise CommandError(command=command, remote_error=remote_error_text(exc)) from exc
        text = str(output or "").strip()
        return text or "Search and replace completed"

    @bridge_operation(lambda pattern, file_pattern="**/*": f"grep {pattern}")
    async def grep_in_project(self, pattern: str, file_pattern: str = "**/*") -> str:
        pattern = _require_text(pattern, "pattern", "Grep pattern cannot be empty")
        files = file_pattern.strip() if isinstance(file_pattern, str) and file_pattern.strip() else "**/*"
        command = f"vimgrep /{escape_delimited(pattern)}/j {escape_bar(files)}"

        async with self._resolver.session() as nvim:
            try:
                await nvim.command(command)
            except NvimError as exc:
                if _has_error_code(exc, "E480"):
                    return f"No matches found for: {pattern}"
                raise CommandError(command=command, remote_error=remote_error_text(exc)) from exc
            entries = await nvim.call("getqflist") or []
            if not entries:
                return f"No matches found for: {pattern}"
            summary: list[str] = []
            names: dict[int, str] = {}
            for entry in entries[:_GREP_SUMMARY_LIMIT]:
                bufnr = int(entry.get("bufnr", 0))
                if bufnr not in names:
                    names[bufnr] = await nvim.call("bufname", bufnr) if bufnr else ""
                label = names[bufnr] or f"Buffer {bufnr}"
                summary.append(f"{label}:{entry.get('lnum', 0)}: {str(entry.get('text', '')).strip()}")

        text = f"Found {len(entries)} matches for: {pattern}\n" + "\n".join(summary)
        if len(entries) > _GREP_SUMMARY_LIMIT:
            text += f"\n... and {len(entries) - _GREP_SUMMARY_LIMIT} more matches"
        return text

    # ------------------------------------------------------------------
    # Macros, tabs, folds, jumps
    # ------------------------------------------------------------------
    @bridge_operation(lambda action, register=None, count=1: f"macro {action}")
    async def manage_macro(self, action: str, register: str | None = None, count: int = 1) -> str:
        macro_action = parse_choice(MacroAction, action, "action")

        if macro_action is MacroAction.RECORD:
            register = self._macro_register(register, "recording")
            async with self._resolver.session() as nvim:
                active = await nvim.call("reg_recording")
                if active:
                    raise ValidationError(
                        message=f"Already recording macro in register '{active}'",
                        field_name="action",
                    )
                await nvim.input(f"q{register}")
            return f"Started recording macro in register '{register}'"

        if macro_action is MacroAction.STOP:
            async with self._resolver.session() as nvim:
                active = await nvim.call("reg_recording")
                if not active:
                    return "No macro recording in progress"
                await nvim.input("q")
            return f"Stopped recording macro in register '{active}'"

        register = self._macro_register(register, "playing")
        count = _require_int(count, "count", minimum=1)
        keys = f"{count}@{register}" if count > 1 else f"@{register}"
        async with self._resolver.session() as nvim:
            await nvim.input(keys)
        return f"Played macro from register '{register}' {count} time(s)"

    @staticmethod
    def _macro_register(register: Any, purpose: str) -> str:
        if not isinstance(register, str) or not _MACRO_REGISTER_RE.match(register):
            raise ValidationError(
                message=f"Register must be a single letter a-z for {purpose}",
                field_name="register",
            )
        return register

    @bridge_operation(lambda action, filename=None: f"tab {action}")
    async def manage_tab(self, action: str, filename: str | None = None) -> str:
        tab_action = parse_choice(TabAction, action, "action")
        simple = {
            TabAction.CLOSE: ("tabclose", "Closed current tab"),
            TabAction.NEXT: ("tabnext", "Moved to next tab"),
            TabAction.PREV: ("tabprevious", "Moved to previous tab"),
            TabAction.FIRST: ("tabfirst", "Moved to first tab"),
            TabAction.LAST: ("tablast", "Moved to last tab"),
        }
        async with self._resolver.session() as nvim:
            if tab_action is TabAction.NEW:
                target = filename.strip() if isinstance(filename, str) else ""
                if target:
                    await nvim.command(f"tabnew {escape_filename(target)}")
                    return f"Created new tab with file: {target}"
                await nvim.command("tabnew")
                return "Created new empty tab"
            if tab_action is TabAction.LIST:
                return await self._list_tabs(nvim)
            command, message = simple[tab_action]
            await nvim.command(command)
            return message

    @staticmethod
    async def _list_tabs(nvim) -> str:
        current = await nvim.current_tabpage()
        rows: list[str] = []
        for index, tab in enumerate(await nvim.list_tabpages(), start=1):
            window = await nvim.tabpage_window(tab)
            name = await nvim.buffer_name(await nvim.window_buffer(window))
            marker = "*" if tab == current else " "
            rows.append(f"{marker}{index}: {name or '[No Name]'}")
        return "Tabs:\n" + "\n".join(rows)

    @bridge_operation(lambda action, start_line=None, end_line=None: f"fold {action}")
    async def manage_fold(
        self, action: str, start_line: int | None = None, end_line: int | None = None
    ) -> str:
        fold_action = parse_choice(FoldAction, action, "action")
        if fold_action is FoldAction.CREATE:
            if start_line is None or end_line is None:
                raise ValidationError(
                    message="Start line and end line are required for creating folds",
                    field_name="startLine" if start_line is None else "endLine",
                )
            start = _require_int(start_line, "startLine", minimum=1)
            end = _require_int(end_line, "endLine", minimum=1)
            if start > end:
                raise ValidationError(message="startLine must not exceed endLine", field_name="startLine")
            async with self._resolver.session() as nvim:
                await nvim.command(f"{start},{end}fold")
            return f"Created fold from line {start} to {end}"

        keyed = {
            FoldAction.OPEN: ("zo", "Opened fold at cursor"),
            FoldAction.CLOSE: ("zc", "Closed fold at cursor"),
            FoldAction.TOGGLE: ("za", "Toggled fold at cursor"),
            FoldAction.DELETE: ("zd", "Deleted fold at cursor"),
        }
        async with self._resolver.session() as nvim:
            if fold_action is FoldAction.OPEN_ALL:
                await nvim.command("normal! zR")
                return "Opened all folds"
            if fold_action is FoldAction.CLOSE_ALL:
                await nvim.command("normal! zM")
                return "Closed all folds"
            keys, message = keyed[fold_action]
            await nvim.input(keys)
            return message

    @bridge_operation(lambda direction: f"jump {direction}")
    async def navigate_jump_list(self, direction: str) -> str:
        jump = parse_choice(JumpDirection, direction, "direction")
        async with self._resolver.session() as nvim:
            if jump is JumpDirection.BACK:
                await nvim.input("<C-o>")
                return "Jumped back in jump list"
            if jump is JumpDirection.FORWARD:
                await nvim.input("<Tab>")
                return "Jumped forward in jump list"
            output = await nvim.call("execute", "jumps")
        return f"Jump list:\n{str(output or '').strip()}"
