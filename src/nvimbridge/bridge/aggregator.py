"""Read-style operations assembling editor state into structured records.

Ancillary sub-fields are read best-effort: a failing lookup fills its field
with an unavailable marker while the rest of the record is still returned.
A :class:`BridgeConnectionError` is never degraded.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import string
from typing import Any, Awaitable, Iterable, TypeVar

from pynvim.api import NvimError

from .buffers import find_buffer
from .errors import BridgeConnectionError, ValidationError
from .models import (
    LSP_UNAVAILABLE,
    NO_SELECTION,
    PLUGIN_UNAVAILABLE,
    UNAVAILABLE,
    BufferInfo,
    EditorStatus,
    Position,
    Selection,
    WindowInfo,
)
from .normalizer import bridge_operation
from .session import ConnectionResolver, SessionHandle

__all__ = ["StateAggregator", "slice_bytes"]

LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

MARK_NAMES = string.ascii_lowercase
STATUS_REGISTERS = tuple(string.ascii_lowercase) + ('"',) + tuple(string.digits)
_READ_REGISTER_RE = re.compile(r'^[a-z"0-9]$')
_MARK_RE = re.compile(r"^[a-z]$")

# Mode strings whose first character means a selection is live.
_SELECTION_MODES = frozenset({"v", "V", "\x16", "s", "S", "\x13"})
_LINEWISE_MODES = frozenset({"V", "S"})
_BLOCKWISE_MODES = frozenset({"\x16", "\x13"})
_CONTEXT_LINES = 5

_PLUGIN_PROBES: tuple[tuple[str, str], ...] = (
    ("LSP", 'exists(":LspInfo")'),
    ("Telescope", 'exists(":Telescope")'),
    ("TreeSitter", 'exists("g:loaded_nvim_treesitter")'),
    ("Completion", 'exists("g:loaded_completion")'),
)

_LSP_CLIENTS_LUA = """
local get = vim.lsp.get_clients or vim.lsp.get_active_clients
local names = {}
for _, client in ipairs(get()) do
  table.insert(names, client.name or 'unknown')
end
return names
"""

_WORKSPACE_SYMBOLS_LUA = """
local query = ...
local get = vim.lsp.get_clients or vim.lsp.get_active_clients
if #get() == 0 then
  return nil
end
local responses = vim.lsp.buf_request_sync(0, 'workspace/symbol', { query = query }, 3000) or {}
local symbols = {}
for _, response in pairs(responses) do
  for _, symbol in ipairs(response.result or {}) do
    table.insert(symbols, symbol)
  end
end
return symbols
"""

_DIAGNOSTIC_COUNTS_LUA = """
local counts = { errors = 0, warnings = 0 }
for _, d in ipairs(vim.diagnostic.get()) do
  if d.severity == 1 then counts.errors = counts.errors + 1 end
  if d.severity == 2 then counts.warnings = counts.warnings + 1 end
end
return counts
"""

_SEVERITY_NAMES = ("Error", "Warning", "Information", "Hint")

_SYMBOL_KINDS = {
    1: "File", 2: "Module", 3: "Namespace", 4: "Package", 5: "Class", 6: "Method",
    7: "Property", 8: "Field", 9: "Constructor", 10: "Enum", 11: "Interface",
    12: "Function", 13: "Variable", 14: "Constant", 15: "String", 16: "Number",
    17: "Boolean", 18: "Array", 19: "Object", 20: "Key", 21: "Null",
    22: "EnumMember", 23: "Struct", 24: "Event", 25: "Operator", 26: "TypeParameter",
}

_IMPORT_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "javascript": (
        re.compile(r"""import .+ from ['"](.+)['"]"""),
        re.compile(r"""require\(['"](.+)['"]\)"""),
    ),
    "typescript": (
        re.compile(r"""import .+ from ['"](.+)['"]"""),
        re.compile(r"""require\(['"](.+)['"]\)"""),
    ),
    "python": (
        re.compile(r"^import (.+)$", re.MULTILINE),
        re.compile(r"^from (.+) import", re.MULTILINE),
    ),
    "lua": (
        re.compile(r"""require\(['"](.+)['"]\)"""),
        re.compile(r"require '(.+)'"),
    ),
    "vim": (
        re.compile(r"^source (.+)$", re.MULTILINE),
        re.compile(r"^runtime (.+)$", re.MULTILINE),
    ),
}
_RELATED_SUFFIXES = ("", ".js", ".ts", ".lua", ".py", "/index.js", "/index.ts")

_PROJECT_EXTENSIONS = ("js", "ts", "py", "lua", "vim", "md")
_PROJECT_FILE_LIMIT = 100
_RECENT_FILE_LIMIT = 20
_SEARCH_FILE_LIMIT = 20
_PREVIEW_LINES = 20

_GIT_STATUS_LABELS = (
    ("M", "Modified"),
    ("A", "Added"),
    ("D", "Deleted"),
    ("R", "Renamed"),
    ("C", "Copied"),
    ("U", "Unmerged"),
    ("?", "Untracked"),
)

_VIM_OPTIONS: dict[str, tuple[str, ...]] = {
    "general": ("encoding", "fileformat", "filetype", "modifiable", "readonly", "modified"),
    "editor": (
        "tabstop", "shiftwidth", "expandtab", "smartindent", "autoindent",
        "wrap", "number", "relativenumber",
    ),
    "search": ("ignorecase", "smartcase", "hlsearch", "incsearch"),
    "ui": ("background", "termguicolors"),
}


async def _best_effort(awaitable: Awaitable[_T], fallback: Any, label: str) -> _T | Any:
    try:
        return await awaitable
    except BridgeConnectionError:
        raise
    except Exception as exc:
        LOGGER.debug("Could not read %s: %s", label, exc)
        return fallback


def slice_bytes(line: str, start_col: int | None, end_col: int | None) -> str:
    """Slice ``line`` by 1-based inclusive byte columns without splitting characters.

    ``None`` leaves that side open. The end column may point anywhere inside
    the last selected character; the whole character is kept.
    """

    data = line.encode("utf-8")
    start = 0 if start_col is None else max(start_col - 1, 0)
    start = min(start, len(data))
    while 0 < start < len(data) and data[start] & 0xC0 == 0x80:
        start -= 1
    if end_col is None:
        end = len(data)
    else:
        last = end_col - 1
        if last < 0:
            return ""
        if last >= len(data):
            end = len(data)
        else:
            while last > 0 and data[last] & 0xC0 == 0x80:
                last -= 1
            end = last + 1
            while end < len(data) and data[end] & 0xC0 == 0x80:
                end += 1
    if end <= start:
        return ""
    return data[start:end].decode("utf-8", errors="replace")


def _relative(path: str, cwd: str) -> str:
    prefix = cwd.rstrip("/") + "/"
    return path[len(prefix):] if path.startswith(prefix) else path


def _describe_git_code(code: str) -> str:
    for letter, label in _GIT_STATUS_LABELS:
        if letter in code:
            return label
    return "Unknown"


class StateAggregator:
    """Read-only queries over a freshly connected session."""

    def __init__(self, resolver: ConnectionResolver) -> None:
        self._resolver = resolver

    # ------------------------------------------------------------------
    # Buffers and windows
    # ------------------------------------------------------------------
    @bridge_operation("get buffer contents")
    async def get_buffer_contents(self, filename: str | None = None) -> dict[int, str]:
        async with self._resolver.session() as nvim:
            if filename:
                buffer = (await find_buffer(nvim, filename)).id
            else:
                buffer = await nvim.current_buffer()
            lines = await nvim.get_lines(buffer, 0, -1)
        return {number: text for number, text in enumerate(lines, start=1)}

    @bridge_operation("get open buffers")
    async def get_open_buffers(self) -> list[BufferInfo]:
        async with self._resolver.session() as nvim:
            return await self._open_buffers(nvim)

    async def _open_buffers(self, nvim: SessionHandle) -> list[BufferInfo]:
        windows_by_buffer: dict[int, list[int]] = {}
        for window in await nvim.list_windows():
            try:
                buffer = await nvim.window_buffer(window)
            except NvimError as exc:
                LOGGER.debug("Skipping window %s: %s", window, exc)
                continue
            windows_by_buffer.setdefault(buffer, []).append(window)

        infos: list[BufferInfo] = []
        for buffer in await nvim.list_buffers():
            try:
                name, loaded, listed, modified, syntax = await asyncio.gather(
                    nvim.buffer_name(buffer),
                    nvim.buffer_loaded(buffer),
                    nvim.get_buffer_option(buffer, "buflisted"),
                    nvim.get_buffer_option(buffer, "modified"),
                    nvim.get_buffer_option(buffer, "syntax"),
                )
            except BridgeConnectionError:
                raise
            except Exception as exc:
                LOGGER.debug("Skipping buffer %s: %s", buffer, exc)
                continue
            infos.append(
                BufferInfo(
                    number=buffer,
                    name=name,
                    is_listed=bool(listed),
                    is_loaded=bool(loaded),
                    modified=bool(modified),
                    syntax=str(syntax),
                    window_ids=windows_by_buffer.get(buffer, []),
                )
            )
        return infos

    @bridge_operation("get windows")
    async def get_windows(self) -> list[WindowInfo]:
        infos: list[WindowInfo] = []
        async with self._resolver.session() as nvim:
            for window in await nvim.list_windows():
                try:
                    buffer, geometry = await asyncio.gather(
                        nvim.window_buffer(window), nvim.window_info(window)
                    )
                except BridgeConnectionError:
                    raise
                except Exception as exc:
                    LOGGER.debug("Skipping window %s: %s", window, exc)
                    continue
                infos.append(
                    WindowInfo(
                        id=window,
                        buffer_id=buffer,
                        width=geometry["width"],
                        height=geometry["height"],
                        row=geometry["row"],
                        col=geometry["col"],
                    )
                )
        return infos

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------
    @bridge_operation("get status")
    async def get_status(self) -> EditorStatus:
        async with self._resolver.session() as nvim:
            cursor, mode_info, buffer = await asyncio.gather(
                nvim.get_cursor(), nvim.get_mode(), nvim.current_buffer()
            )
            mode = str(mode_info.get("mode", ""))
            (
                file_name,
                layout,
                tab,
                cwd,
                marks,
                registers,
                lsp_info,
                plugin_info,
                selection,
            ) = await asyncio.gather(
                _best_effort(nvim.buffer_name(buffer), "", "buffer name"),
                _best_effort(self._window_layout(nvim), UNAVAILABLE, "window layout"),
                _best_effort(self._tab_number(nvim), UNAVAILABLE, "tab number"),
                _best_effort(nvim.call("getcwd"), UNAVAILABLE, "cwd"),
                self._read_marks(nvim),
                self._read_registers(nvim, STATUS_REGISTERS),
                _best_effort(self._lsp_summary(nvim), LSP_UNAVAILABLE, "LSP clients"),
                _best_effort(self._plugin_summary(nvim), PLUGIN_UNAVAILABLE, "plugins"),
                _best_effort(self._live_selection_text(nvim, mode, buffer), "", "selection"),
            )
        return EditorStatus(
            cursor_position=cursor,
            mode=mode,
            file_name=file_name,
            window_layout=layout,
            current_tab=tab,
            cwd=cwd,
            marks=marks,
            registers=registers,
            lsp_info=lsp_info,
            plugin_info=plugin_info,
            visual_selection=selection,
        )

    @staticmethod
    async def _window_layout(nvim: SessionHandle) -> str:
        return json.dumps(await nvim.eval("winlayout()"))

    @staticmethod
    async def _tab_number(nvim: SessionHandle) -> int:
        return await nvim.tabpage_number(await nvim.current_tabpage())

    async def _read_marks(self, nvim: SessionHandle) -> dict[str, tuple[int, int]]:
        positions = await asyncio.gather(
            *(_best_effort(nvim.call("getpos", f"'{mark}"), None, f"mark {mark}") for mark in MARK_NAMES)
        )
        marks: dict[str, tuple[int, int]] = {}
        for mark, pos in zip(MARK_NAMES, positions):
            if pos and int(pos[1]) > 0:
                marks[mark] = (int(pos[1]), max(int(pos[2]) - 1, 0))
        return marks

    async def _read_registers(self, nvim: SessionHandle, names: Iterable[str]) -> dict[str, str]:
        names = tuple(names)
        values = await asyncio.gather(
            *(_best_effort(nvim.call("getreg", name), None, f"register {name}") for name in names)
        )
        return {name: str(value) for name, value in zip(names, values) if value}

    @staticmethod
    async def _lsp_summary(nvim: SessionHandle) -> str:
        names = await nvim.exec_lua(_LSP_CLIENTS_LUA)
        if names:
            return "Active LSP clients: " + ", ".join(str(name) for name in names)
        return "No active LSP clients"

    @staticmethod
    async def _plugin_summary(nvim: SessionHandle) -> str:
        found = await asyncio.gather(*(nvim.eval(expr) for _, expr in _PLUGIN_PROBES))
        detected = [label for (label, _), present in zip(_PLUGIN_PROBES, found) if present]
        if detected:
            return "Detected plugins: " + ", ".join(detected)
        return "No common plugins detected"

    async def _live_selection_text(self, nvim: SessionHandle, mode: str, buffer: int) -> str:
        if mode[:1] not in _SELECTION_MODES:
            return ""
        selection = await self._extract_selection(nvim, mode, buffer, include_context=False)
        return selection.text if isinstance(selection, Selection) else ""

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    @bridge_operation("get selection")
    async def get_current_selection(self, include_context: bool = False) -> Selection | str:
        async with self._resolver.session() as nvim:
            mode_info, buffer = await asyncio.gather(nvim.get_mode(), nvim.current_buffer())
            return await self._extract_selection(
                nvim, str(mode_info.get("mode", "")), buffer, include_context=include_context
            )

    async def _extract_selection(
        self, nvim: SessionHandle, mode: str, buffer: int, *, include_context: bool
    ) -> Selection | str:
        kind = mode[:1]
        live = kind in _SELECTION_MODES
        if live:
            first, second = await asyncio.gather(nvim.call("getpos", "v"), nvim.call("getpos", "."))
            start_pos, end_pos = sorted(
                [first, second], key=lambda pos: (int(pos[1]), int(pos[2]))
            )
        else:
            start_pos, end_pos, kind = await asyncio.gather(
                nvim.call("getpos", "'<"), nvim.call("getpos", "'>"), nvim.call("visualmode")
            )
            if int(start_pos[1]) == 0 or int(end_pos[1]) == 0:
                return NO_SELECTION
            kind = str(kind or "v")[:1]

        start_line, start_col = int(start_pos[1]), int(start_pos[2])
        end_line, end_col = int(end_pos[1]), int(end_pos[2])
        name, filetype, lines = await asyncio.gather(
            nvim.buffer_name(buffer),
            nvim.get_buffer_option(buffer, "filetype"),
            nvim.get_lines(buffer, start_line - 1, end_line),
        )
        if not lines:
            return NO_SELECTION

        if kind in _LINEWISE_MODES:
            selected = list(lines)
            start_col = 1
            end_col = max(len(lines[-1].encode("utf-8")), 1)
        elif kind in _BLOCKWISE_MODES:
            left, right = min(start_col, end_col), max(start_col, end_col)
            selected = [slice_bytes(line, left, right) for line in lines]
        elif len(lines) == 1:
            selected = [slice_bytes(lines[0], start_col, end_col)]
        else:
            selected = (
                [slice_bytes(lines[0], start_col, None)]
                + list(lines[1:-1])
                + [slice_bytes(lines[-1], None, end_col)]
            )
        end_col = min(end_col, max(len(lines[-1].encode("utf-8")), 1))

        context: dict[str, Any] | None = None
        if include_context:
            total = await nvim.line_count(buffer)
            context_start = max(0, start_line - 1 - _CONTEXT_LINES)
            context_end = min(total, end_line + _CONTEXT_LINES)
            context = {
                "start": context_start + 1,
                "end": context_end,
                "lines": await nvim.get_lines(buffer, context_start, context_end),
            }

        return Selection(
            mode="visual" if live else "normal (using last selection)",
            buffer=name,
            filetype=str(filetype),
            start=Position(start_line, start_col),
            end=Position(end_line, end_col),
            text="\n".join(selected),
            line_count=len(selected),
            context=context,
        )

    # ------------------------------------------------------------------
    # Marks and registers
    # ------------------------------------------------------------------
    @bridge_operation(lambda mark: f"get mark {mark}")
    async def get_mark(self, mark: str) -> tuple[int, int] | None:
        if not isinstance(mark, str) or not _MARK_RE.match(mark):
            raise ValidationError(message="Invalid mark name (must be a-z)", field_name="mark")
        async with self._resolver.session() as nvim:
            pos = await nvim.call("getpos", f"'{mark}")
        if not pos or int(pos[1]) == 0:
            return None
        return int(pos[1]), int(pos[2]) - 1

    @bridge_operation(lambda register: f"get register {register}")
    async def get_register(self, register: str) -> str:
        if not isinstance(register, str) or not _READ_REGISTER_RE.match(register):
            raise ValidationError(
                message='Invalid register name (must be a-z, 0-9 or ")', field_name="register"
            )
        async with self._resolver.session() as nvim:
            value = await nvim.call("getreg", register)
        return str(value or "")

    # ------------------------------------------------------------------
    # Project views
    # ------------------------------------------------------------------
    @bridge_operation("project structure")
    async def get_project_structure(self) -> str:
        async with self._resolver.session() as nvim:
            cwd = await nvim.call("getcwd")
            found: set[str] = set()
            for extension in _PROJECT_EXTENSIONS:
                found.update(await nvim.call("globpath", cwd, f"**/*.{extension}", 0, 1) or [])
        files = sorted(found)[:_PROJECT_FILE_LIMIT]
        listing = "".join(f"  ./{_relative(path, cwd)}\n" for path in files)
        return f"Project: {cwd}\n\nFiles:\n{listing}"

    @bridge_operation("git status")
    async def get_git_status(self) -> str:
        async with self._resolver.session() as nvim:
            return await self._git_status(nvim)

    @staticmethod
    async def _git_status(nvim: SessionHandle) -> str:
        if not await nvim.call("executable", "git"):
            return "Git is not available"
        output = await nvim.call("system", ["git", "status", "--porcelain"])
        if await nvim.get_vvar("shell_error"):
            return "Not a git repository or git not available"
        lines = [line for line in str(output or "").split("\n") if line]
        if not lines:
            return "Working tree clean"
        body = "".join(f"{_describe_git_code(line[:2])}: {line[3:]}\n" for line in lines)
        return f"Git Status:\n\n{body}"

    @bridge_operation("lsp diagnostics")
    async def get_lsp_diagnostics(self) -> dict[str, Any]:
        async with self._resolver.session() as nvim:
            diagnostics = await nvim.exec_lua("return vim.diagnostic.get()") or []
            names: dict[int, str] = {}
            grouped: dict[str, list[dict[str, Any]]] = {}
            for diag in diagnostics:
                bufnr = int(diag.get("bufnr", 0))
                if bufnr not in names:
                    names[bufnr] = await nvim.call("bufname", bufnr) or f"Buffer {bufnr}"
                severity = int(diag.get("severity", 0))
                grouped.setdefault(names[bufnr], []).append(
                    {
                        "line": int(diag.get("lnum", 0)) + 1,
                        "column": int(diag.get("col", 0)) + 1,
                        "severity": _SEVERITY_NAMES[severity - 1] if 1 <= severity <= 4 else "Unknown",
                        "message": diag.get("message", ""),
                        "source": diag.get("source") or "LSP",
                    }
                )
        return {"totalCount": len(diagnostics), "diagnostics": grouped}

    @bridge_operation("vim options")
    async def get_vim_options(self) -> dict[str, dict[str, Any]]:
        async with self._resolver.session() as nvim:
            sections: dict[str, dict[str, Any]] = {}
            for section, names in _VIM_OPTIONS.items():
                values = await asyncio.gather(
                    *(_best_effort(nvim.get_option(name), UNAVAILABLE, f"option {name}") for name in names)
                )
                sections[section] = dict(zip(names, values))
            colorscheme = await _best_effort(
                nvim.call("execute", "colorscheme"), UNAVAILABLE, "colorscheme"
            )
        sections["ui"]["colorscheme"] = str(colorscheme).strip()
        return sections

    @bridge_operation("analyze_related")
    async def analyze_related_files(self, filename: str | None = None) -> dict[str, Any]:
        async with self._resolver.session() as nvim:
            return await self._analyze_imports(nvim, filename)

    @staticmethod
    async def _analyze_imports(nvim: SessionHandle, filename: str | None) -> dict[str, Any]:
        if filename:
            buffer = (await find_buffer(nvim, filename)).id
        else:
            buffer = await nvim.current_buffer()
        name, filetype, lines = await asyncio.gather(
            nvim.buffer_name(buffer),
            nvim.get_buffer_option(buffer, "filetype"),
            nvim.get_lines(buffer, 0, -1),
        )
        content = "\n".join(lines)
        imports: list[str] = []
        for pattern in _IMPORT_PATTERNS.get(str(filetype), ()):
            for match in pattern.finditer(content):
                if match.group(1) and match.group(1) not in imports:
                    imports.append(match.group(1))
        return {"file": name, "language": filetype, "imports": imports, "importCount": len(imports)}

    @bridge_operation("related files")
    async def get_related_files(self) -> dict[str, Any]:
        async with self._resolver.session() as nvim:
            analysis = await self._analyze_imports(nvim, None)
            related: list[dict[str, Any]] = []
            for module in analysis["imports"]:
                for suffix in _RELATED_SUFFIXES:
                    candidate = f"{module}{suffix}"
                    if await nvim.call("filereadable", candidate):
                        related.append({"import": module, "resolvedPath": candidate, "exists": True})
                        break
        return {
            "currentFile": analysis["file"],
            "language": analysis["language"],
            "relatedFiles": related,
            "importCount": analysis["importCount"],
        }

    @bridge_operation("recent files")
    async def get_recent_files(self) -> dict[str, Any]:
        async with self._resolver.session() as nvim:
            return await self._recent_files(nvim)

    @staticmethod
    async def _recent_files(nvim: SessionHandle) -> dict[str, Any]:
        oldfiles, cwd = await asyncio.gather(nvim.get_vvar("oldfiles"), nvim.call("getcwd"))
        prefix = cwd.rstrip("/") + "/"
        recent = [
            {"path": path, "relativePath": _relative(path, cwd)}
            for path in (oldfiles or [])
            if path.startswith(prefix)
        ][:_RECENT_FILE_LIMIT]
        return {"cwd": cwd, "count": len(recent), "recentFiles": recent}

    @bridge_operation("workspace context")
    async def get_workspace_context(self) -> dict[str, Any]:
        async with self._resolver.session() as nvim:
            buffer = await nvim.current_buffer()
            cwd, name, filetype, modified, mode_info = await asyncio.gather(
                nvim.call("getcwd"),
                nvim.buffer_name(buffer),
                nvim.get_buffer_option(buffer, "filetype"),
                nvim.get_buffer_option(buffer, "modified"),
                nvim.get_mode(),
            )
            buffers = await self._open_buffers(nvim)
            recent = await _best_effort(self._recent_files(nvim), UNAVAILABLE, "recent files")
            git = await _best_effort(self._git_status(nvim), UNAVAILABLE, "git status")
            counts = await _best_effort(
                nvim.exec_lua(_DIAGNOSTIC_COUNTS_LUA), {"errors": UNAVAILABLE, "warnings": UNAVAILABLE}, "diagnostics"
            )
        return {
            "cwd": cwd,
            "currentBuffer": {"name": name, "filetype": filetype, "modified": bool(modified)},
            "buffers": [info.to_dict() for info in buffers],
            "recentFiles": recent,
            "gitStatus": git,
            "diagnosticSummary": {"errors": counts.get("errors"), "warnings": counts.get("warnings")},
            "mode": str(mode_info.get("mode", "")),
        }

    @bridge_operation("search results")
    async def get_search_results(self) -> dict[str, Any]:
        async with self._resolver.session() as nvim:
            quickfix = await nvim.call("getqflist") or []
            location = await nvim.call("getloclist", 0) or []
            names: dict[int, str] = {}
            sections = []
            for entries in (quickfix, location):
                results = []
                for entry in entries:
                    bufnr = int(entry.get("bufnr", 0))
                    if bufnr not in names:
                        names[bufnr] = (await nvim.call("bufname", bufnr) if bufnr else "") or f"Buffer {bufnr}"
                    results.append(
                        {
                            "filename": names[bufnr],
                            "line": entry.get("lnum", 0),
                            "column": entry.get("col", 0),
                            "text": entry.get("text", ""),
                            "type": entry.get("type", ""),
                        }
                    )
                sections.append({"count": len(results), "results": results})
        return {"quickfix": sections[0], "locationList": sections[1]}

    @bridge_operation("find_symbols")
    async def find_workspace_symbols(self, query: str = "", limit: int = 20) -> dict[str, Any] | str:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError(message="limit must be a positive integer", field_name="limit")
        query = query or ""
        async with self._resolver.session() as nvim:
            raw = await nvim.exec_lua(_WORKSPACE_SYMBOLS_LUA, query)
        if raw is None:
            return "LSP is not available. Ensure you have LSP configured for workspace symbol search."
        symbols = []
        for item in raw[:limit]:
            location = item.get("location") or {}
            start = (location.get("range") or {}).get("start") or {}
            uri = str(location.get("uri", ""))
            symbols.append(
                {
                    "name": item.get("name", ""),
                    "file": uri[len("file://"):] if uri.startswith("file://") else uri,
                    "line": int(start.get("line", 0)) + 1,
                    "column": int(start.get("character", 0)) + 1,
                    "type": _SYMBOL_KINDS.get(item.get("kind"), "Unknown"),
                }
            )
        if not symbols:
            return f'No symbols found matching query: "{query}"'
        return {"query": query, "count": len(symbols), "totalFound": len(raw), "symbols": symbols}

    @bridge_operation("search_files")
    async def search_project_files(self, pattern: str, include_content: bool = False) -> dict[str, Any]:
        if not isinstance(pattern, str) or not pattern.strip():
            raise ValidationError(message="Search pattern cannot be empty", field_name="pattern")
        async with self._resolver.session() as nvim:
            cwd = await nvim.call("getcwd")
            candidates = await nvim.call("globpath", cwd, f"**/*{pattern.strip()}*", 0, 1) or []
            files: list[dict[str, Any]] = []
            for path in candidates:
                if len(files) >= _SEARCH_FILE_LIMIT:
                    break
                if not await nvim.call("filereadable", path):
                    continue
                entry: dict[str, Any] = {"path": path, "relativePath": _relative(path, cwd)}
                if include_content:
                    try:
                        preview = await nvim.call("readfile", path, "", _PREVIEW_LINES)
                    except NvimError:
                        entry["preview"] = "Could not read file content"
                    else:
                        entry["preview"] = "\n".join(preview)
                        entry["truncated"] = len(preview) == _PREVIEW_LINES
                files.append(entry)
        return {"pattern": pattern, "cwd": cwd, "count": len(files), "files": files}

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------
    async def health_check(self) -> bool:
        """Return ``True`` when the configured session answers a trivial eval."""

        try:
            async with self._resolver.session() as nvim:
                return await nvim.eval("1") == 1
        except Exception as exc:
            LOGGER.info("Health check failed: %s", exc)
            return False
