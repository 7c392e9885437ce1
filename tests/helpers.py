"""Shared test helpers and stub classes.

This module contains reusable test stubs that are used across multiple test files.
Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from pynvim.api import NvimError

from nvimbridge.bridge.manager import NeovimBridge
from nvimbridge.services.settings import Settings


@dataclass
class FakeBuffer:
    name: str = ""
    lines: list[str] = field(default_factory=lambda: [""])
    loaded: bool = True
    options: dict[str, Any] = field(
        default_factory=lambda: {"buflisted": True, "modified": False, "syntax": "", "filetype": ""}
    )


class FakeSession:
    """In-memory stand-in for a connected editor session.

    Implements the ``SessionHandle`` primitives over plain dictionaries and
    records every call in ``calls``. Any primitive or Vimscript function name
    listed in ``failures`` raises the mapped exception instead of running.

    Example:
        fake = FakeSession()
        fake.set_buffer_lines(["hello"])
        bridge = make_bridge(fake)
    """

    def __init__(self, endpoint: str = "/tmp/nvim") -> None:
        self.endpoint = endpoint
        self.buffers: dict[int, FakeBuffer] = {1: FakeBuffer()}
        self.current_buf = 1
        self.windows: dict[int, dict[str, int]] = {
            1000: {"buffer": 1, "width": 80, "height": 24, "row": 0, "col": 0}
        }
        self.current_win = 1000
        self.tabpages: dict[int, int] = {1: 1000}
        self.current_tab = 1
        self.cursor: tuple[int, int] = (1, 0)
        self.mode = "n"
        self.marks: dict[str, list[int]] = {}
        self.registers: dict[str, str] = {}
        self.vvars: dict[str, Any] = {"errmsg": "", "shell_error": 0, "oldfiles": []}
        self.options: dict[str, Any] = {}
        self.recording = ""
        self.cwd = "/project"
        self.visual_mode = ""
        self.search_total = 0
        self.search_incomplete = 0
        self.quickfix: list[dict[str, Any]] = []
        self.loclist: list[dict[str, Any]] = []
        self.bufnames: dict[int, str] = {}
        self.globs: dict[str, list[str]] = {}
        self.readable: set[str] = set()
        self.file_contents: dict[str, list[str]] = {}
        self.executables: set[str] = {"git"}
        self.system_output: Any = ""
        self.lua_result: Any = None
        self.eval_results: dict[str, Any] = {"1": 1, "winlayout()": ["leaf", 1000]}
        self.execute_outputs: dict[str, Any] = {}
        self.execute_errmsg: dict[str, str] = {}
        self.failures: dict[str, BaseException] = {}
        self.functions: dict[str, Callable[..., Any]] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.commands: list[str] = []
        self.inputs: list[str] = []
        self.close_count = 0

    # ------------------------------------------------------------------
    # Test conveniences
    # ------------------------------------------------------------------
    def set_buffer_lines(self, lines: Sequence[str], buffer: int | None = None) -> None:
        self.buffers[buffer or self.current_buf].lines = list(lines)

    def add_buffer(self, number: int, name: str, lines: Sequence[str] = ("",), **options: Any) -> FakeBuffer:
        buf = FakeBuffer(name=name, lines=list(lines))
        buf.options.update(options)
        self.buffers[number] = buf
        return buf

    @property
    def lines(self) -> list[str]:
        return self.buffers[self.current_buf].lines

    def names_called(self) -> list[str]:
        return [name for name, _ in self.calls]

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        failure = self.failures.get(name)
        if failure is not None:
            raise failure

    # ------------------------------------------------------------------
    # SessionHandle primitives
    # ------------------------------------------------------------------
    async def eval(self, expr: str) -> Any:
        self._record("eval", expr)
        return self.eval_results.get(expr, 0)

    async def command(self, command: str) -> None:
        self._record("command", command)
        self.commands.append(command)
        failure = self.failures.get(f"command:{command}")
        if failure is not None:
            raise failure

    async def call(self, function: str, *args: Any) -> Any:
        self._record("call", function, *args)
        failure = self.failures.get(function)
        if failure is not None:
            raise failure
        if function in self.functions:
            return self.functions[function](*args)
        handler = getattr(self, f"_fn_{function}", None)
        if handler is None:
            raise NvimError(f"Vim:E117: Unknown function: {function}")
        return handler(*args)

    async def exec_lua(self, code: str, *args: Any) -> Any:
        self._record("exec_lua", code, *args)
        if callable(self.lua_result):
            return self.lua_result(code, *args)
        return self.lua_result

    async def input(self, keys: str) -> int:
        self._record("input", keys)
        self.inputs.append(keys)
        return len(keys)

    async def get_mode(self) -> dict[str, Any]:
        self._record("get_mode")
        return {"mode": self.mode, "blocking": False}

    async def get_vvar(self, name: str) -> Any:
        self._record("get_vvar", name)
        return self.vvars.get(name)

    async def set_vvar(self, name: str, value: Any) -> None:
        self._record("set_vvar", name, value)
        self.vvars[name] = value

    async def get_option(self, name: str) -> Any:
        self._record("get_option", name)
        if name not in self.options:
            raise NvimError(f"Invalid option name: '{name}'")
        return self.options[name]

    async def get_buffer_option(self, buffer: int, name: str) -> Any:
        self._record("get_buffer_option", buffer, name)
        return self.buffers[buffer].options.get(name, "")

    async def list_buffers(self) -> list[int]:
        self._record("list_buffers")
        return list(self.buffers)

    async def current_buffer(self) -> int:
        self._record("current_buffer")
        return self.current_buf

    async def buffer_name(self, buffer: int) -> str:
        self._record("buffer_name", buffer)
        return self.buffers[buffer].name

    async def buffer_loaded(self, buffer: int) -> bool:
        self._record("buffer_loaded", buffer)
        return self.buffers[buffer].loaded

    async def line_count(self, buffer: int) -> int:
        self._record("line_count", buffer)
        return len(self.buffers[buffer].lines)

    async def get_lines(self, buffer: int, start: int, end: int, *, strict: bool = False) -> list[str]:
        self._record("get_lines", buffer, start, end)
        lines = self.buffers[buffer].lines
        stop = len(lines) if end == -1 else end
        return list(lines[start:stop])

    async def set_lines(
        self, buffer: int, start: int, end: int, lines: Sequence[str], *, strict: bool = False
    ) -> None:
        self._record("set_lines", buffer, start, end, list(lines))
        current = self.buffers[buffer].lines
        stop = len(current) if end == -1 else min(end, len(current))
        current[start:stop] = list(lines)
        if not current:
            current.append("")

    async def list_windows(self) -> list[int]:
        self._record("list_windows")
        return list(self.windows)

    async def current_window(self) -> int:
        self._record("current_window")
        return self.current_win

    async def window_buffer(self, window: int) -> int:
        self._record("window_buffer", window)
        return self.windows[window]["buffer"]

    async def window_info(self, window: int) -> dict[str, int]:
        self._record("window_info", window)
        info = self.windows[window]
        return {key: info[key] for key in ("width", "height", "row", "col")}

    async def get_cursor(self, window: int = 0) -> tuple[int, int]:
        self._record("get_cursor", window)
        return self.cursor

    async def set_cursor(self, line: int, column: int, window: int = 0) -> None:
        self._record("set_cursor", line, column, window)
        self.cursor = (line, column)

    async def list_tabpages(self) -> list[int]:
        self._record("list_tabpages")
        return list(self.tabpages)

    async def current_tabpage(self) -> int:
        self._record("current_tabpage")
        return self.current_tab

    async def tabpage_number(self, tabpage: int) -> int:
        self._record("tabpage_number", tabpage)
        return list(self.tabpages).index(tabpage) + 1

    async def tabpage_window(self, tabpage: int) -> int:
        self._record("tabpage_window", tabpage)
        return self.tabpages[tabpage]

    async def close(self) -> None:
        self.close_count += 1

    # ------------------------------------------------------------------
    # Vimscript functions reachable through ``call``
    # ------------------------------------------------------------------
    def _fn_execute(self, command: str) -> Any:
        if command in self.execute_errmsg:
            self.vvars["errmsg"] = self.execute_errmsg[command]
        return self.execute_outputs.get(command, "")

    def _fn_setpos(self, expr: str, pos: list[int]) -> int:
        self.marks[expr.lstrip("'")] = [self.current_buf, *pos[1:]]
        return 0

    def _fn_getpos(self, expr: str) -> list[int]:
        if expr == ".":
            return [0, self.cursor[0], self.cursor[1] + 1, 0]
        return list(self.marks.get(expr.lstrip("'"), [0, 0, 0, 0]))

    def _fn_setreg(self, name: str, value: str) -> int:
        self.registers[name] = value
        return 0

    def _fn_getreg(self, name: str) -> str:
        return self.registers.get(name, "")

    def _fn_reg_recording(self) -> str:
        return self.recording

    def _fn_searchcount(self, options: dict[str, Any]) -> dict[str, Any]:
        return {"total": self.search_total, "incomplete": self.search_incomplete, "current": 1}

    def _fn_search(self, pattern: str, flags: str) -> int:
        return 1

    def _fn_system(self, command: Any) -> Any:
        return self.system_output

    def _fn_getcwd(self) -> str:
        return self.cwd

    def _fn_visualmode(self) -> str:
        return self.visual_mode

    def _fn_bufname(self, bufnr: int) -> str:
        return self.bufnames.get(bufnr, "")

    def _fn_getqflist(self) -> list[dict[str, Any]]:
        return list(self.quickfix)

    def _fn_getloclist(self, window: int) -> list[dict[str, Any]]:
        return list(self.loclist)

    def _fn_globpath(self, path: str, pattern: str, nosuf: int = 0, as_list: int = 0) -> list[str]:
        return list(self.globs.get(pattern, []))

    def _fn_filereadable(self, path: str) -> int:
        return 1 if path in self.readable else 0

    def _fn_executable(self, name: str) -> int:
        return 1 if name in self.executables else 0

    def _fn_readfile(self, path: str, flags: str = "", limit: int = -1) -> list[str]:
        if path not in self.file_contents:
            raise NvimError(f"Vim:E484: Can't open file {path}")
        lines = self.file_contents[path]
        return list(lines if limit < 0 else lines[:limit])


def make_settings_provider(**overrides: Any) -> Callable[[], Settings]:
    """Return a provider serving a fixed :class:`Settings`, mutable via ``provider.holder``."""

    holder = {"settings": Settings(**overrides)}

    def _provide() -> Settings:
        return holder["settings"]

    _provide.holder = holder  # type: ignore[attr-defined]
    return _provide


def make_bridge(fake: FakeSession, **settings: Any) -> NeovimBridge:
    """Build a bridge whose every connection returns ``fake``."""

    async def _factory(endpoint: str) -> FakeSession:
        fake.endpoint = endpoint
        return fake

    return NeovimBridge(make_settings_provider(**settings), session_factory=_factory)
