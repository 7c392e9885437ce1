"""Connection resolver and the async session handle over ``pynvim``."""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, AsyncIterator, Awaitable, Callable, Protocol, Sequence, runtime_checkable

import pynvim

from ..services.settings import SettingsProvider
from ..utils.logging import bound_endpoint
from .errors import BridgeConnectionError, InvalidEndpointError

__all__ = [
    "SessionHandle",
    "SessionFactory",
    "NvimSession",
    "ConnectionResolver",
]

LOGGER = logging.getLogger(__name__)

_TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (OSError, EOFError)


@runtime_checkable
class SessionHandle(Protocol):
    """Primitive remote calls available on one connected editor session.

    Buffer, window and tab page handles are plain integers. Transport failures
    surface as :class:`BridgeConnectionError`; errors reported by the editor
    propagate as ``pynvim.api.NvimError``.
    """

    endpoint: str

    async def eval(self, expr: str) -> Any: ...

    async def command(self, command: str) -> None: ...

    async def call(self, function: str, *args: Any) -> Any: ...

    async def exec_lua(self, code: str, *args: Any) -> Any: ...

    async def input(self, keys: str) -> int: ...

    async def get_mode(self) -> dict[str, Any]: ...

    async def get_vvar(self, name: str) -> Any: ...

    async def set_vvar(self, name: str, value: Any) -> None: ...

    async def get_option(self, name: str) -> Any: ...

    async def get_buffer_option(self, buffer: int, name: str) -> Any: ...

    async def list_buffers(self) -> list[int]: ...

    async def current_buffer(self) -> int: ...

    async def buffer_name(self, buffer: int) -> str: ...

    async def buffer_loaded(self, buffer: int) -> bool: ...

    async def line_count(self, buffer: int) -> int: ...

    async def get_lines(self, buffer: int, start: int, end: int, *, strict: bool = False) -> list[str]: ...

    async def set_lines(
        self, buffer: int, start: int, end: int, lines: Sequence[str], *, strict: bool = False
    ) -> None: ...

    async def list_windows(self) -> list[int]: ...

    async def current_window(self) -> int: ...

    async def window_buffer(self, window: int) -> int: ...

    async def window_info(self, window: int) -> dict[str, int]: ...

    async def get_cursor(self, window: int = 0) -> tuple[int, int]: ...

    async def set_cursor(self, line: int, column: int, window: int = 0) -> None: ...

    async def list_tabpages(self) -> list[int]: ...

    async def current_tabpage(self) -> int: ...

    async def tabpage_number(self, tabpage: int) -> int: ...

    async def tabpage_window(self, tabpage: int) -> int: ...

    async def close(self) -> None: ...


SessionFactory = Callable[[str], Awaitable[SessionHandle]]


def _handle_of(obj: Any) -> int:
    """Return the integer handle of a pynvim Buffer/Window/Tabpage."""

    handle = getattr(obj, "handle", obj)
    return int(handle)


class NvimSession:
    """:class:`SessionHandle` backed by a ``pynvim.Nvim`` attached to a socket.

    ``pynvim`` clients block and are not thread safe, so every call for one
    session runs on the same single worker thread. Concurrent awaits from
    ``asyncio.gather`` are therefore serialized in submission order.
    """

    def __init__(self, nvim: Any, endpoint: str, executor: ThreadPoolExecutor) -> None:
        self._nvim = nvim
        self._executor = executor
        self._closed = False
        self.endpoint = endpoint

    @classmethod
    async def open(cls, endpoint: str) -> "NvimSession":
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="nvim-session")
        loop = asyncio.get_running_loop()
        try:
            nvim = await loop.run_in_executor(
                executor, functools.partial(pynvim.attach, "socket", path=endpoint)
            )
        except _TRANSPORT_ERRORS as exc:
            executor.shutdown(wait=False)
            raise BridgeConnectionError(endpoint=endpoint, cause=exc) from exc
        except BaseException:
            executor.shutdown(wait=False)
            raise
        LOGGER.debug("Attached to Neovim at %s", endpoint)
        return cls(nvim, endpoint, executor)

    async def _run(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        if self._closed:
            raise BridgeConnectionError(
                message=f"Session to {self.endpoint} is closed", endpoint=self.endpoint
            )
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, functools.partial(func, *args, **kwargs))
        except _TRANSPORT_ERRORS as exc:
            raise BridgeConnectionError(
                message=f"Lost connection to Neovim at {self.endpoint}: {exc}",
                endpoint=self.endpoint,
                cause=exc,
            ) from exc

    async def eval(self, expr: str) -> Any:
        return await self._run(self._nvim.eval, expr)

    async def command(self, command: str) -> None:
        await self._run(self._nvim.command, command)

    async def call(self, function: str, *args: Any) -> Any:
        return await self._run(self._nvim.call, function, *args)

    async def exec_lua(self, code: str, *args: Any) -> Any:
        return await self._run(self._nvim.exec_lua, code, *args)

    async def input(self, keys: str) -> int:
        return await self._run(self._nvim.input, keys)

    async def get_mode(self) -> dict[str, Any]:
        return dict(await self._run(self._nvim.api.get_mode))

    async def get_vvar(self, name: str) -> Any:
        return await self._run(self._nvim.api.get_vvar, name)

    async def set_vvar(self, name: str, value: Any) -> None:
        await self._run(self._nvim.api.set_vvar, name, value)

    async def get_option(self, name: str) -> Any:
        return await self._run(self._nvim.api.get_option_value, name, {})

    async def get_buffer_option(self, buffer: int, name: str) -> Any:
        return await self._run(self._nvim.api.get_option_value, name, {"buf": buffer})

    async def list_buffers(self) -> list[int]:
        buffers = await self._run(self._nvim.api.list_bufs)
        return [_handle_of(buf) for buf in buffers]

    async def current_buffer(self) -> int:
        return _handle_of(await self._run(self._nvim.api.get_current_buf))

    async def buffer_name(self, buffer: int) -> str:
        return await self._run(self._nvim.api.buf_get_name, buffer)

    async def buffer_loaded(self, buffer: int) -> bool:
        return bool(await self._run(self._nvim.api.buf_is_loaded, buffer))

    async def line_count(self, buffer: int) -> int:
        return int(await self._run(self._nvim.api.buf_line_count, buffer))

    async def get_lines(self, buffer: int, start: int, end: int, *, strict: bool = False) -> list[str]:
        return list(await self._run(self._nvim.api.buf_get_lines, buffer, start, end, strict))

    async def set_lines(
        self, buffer: int, start: int, end: int, lines: Sequence[str], *, strict: bool = False
    ) -> None:
        await self._run(self._nvim.api.buf_set_lines, buffer, start, end, strict, list(lines))

    async def list_windows(self) -> list[int]:
        windows = await self._run(self._nvim.api.list_wins)
        return [_handle_of(win) for win in windows]

    async def current_window(self) -> int:
        return _handle_of(await self._run(self._nvim.api.get_current_win))

    async def window_buffer(self, window: int) -> int:
        return _handle_of(await self._run(self._nvim.api.win_get_buf, window))

    async def window_info(self, window: int) -> dict[str, int]:
        def _collect() -> dict[str, int]:
            api = self._nvim.api
            row, col = api.win_get_position(window)
            return {
                "width": api.win_get_width(window),
                "height": api.win_get_height(window),
                "row": row,
                "col": col,
            }

        return await self._run(_collect)

    async def get_cursor(self, window: int = 0) -> tuple[int, int]:
        line, column = await self._run(self._nvim.api.win_get_cursor, window)
        return int(line), int(column)

    async def set_cursor(self, line: int, column: int, window: int = 0) -> None:
        await self._run(self._nvim.api.win_set_cursor, window, [line, column])

    async def list_tabpages(self) -> list[int]:
        tabpages = await self._run(self._nvim.api.list_tabpages)
        return [_handle_of(tab) for tab in tabpages]

    async def current_tabpage(self) -> int:
        return _handle_of(await self._run(self._nvim.api.get_current_tabpage))

    async def tabpage_number(self, tabpage: int) -> int:
        return int(await self._run(self._nvim.api.tabpage_get_number, tabpage))

    async def tabpage_window(self, tabpage: int) -> int:
        return _handle_of(await self._run(self._nvim.api.tabpage_get_win, tabpage))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(self._executor, self._nvim.close)
        except _TRANSPORT_ERRORS as exc:
            LOGGER.debug("Ignoring error while closing session to %s: %s", self.endpoint, exc)
        finally:
            self._executor.shutdown(wait=False)


class ConnectionResolver:
    """Resolves the configured endpoint into a fresh :class:`SessionHandle`.

    The endpoint is read from ``settings_provider`` on every connect, so a
    changed ``NVIM_SOCKET_PATH`` or settings file applies to the next call.
    """

    def __init__(
        self,
        settings_provider: SettingsProvider,
        *,
        factory: SessionFactory | None = None,
    ) -> None:
        self._settings_provider = settings_provider
        self._factory: SessionFactory = factory or NvimSession.open

    @property
    def settings_provider(self) -> SettingsProvider:
        return self._settings_provider

    def endpoint(self) -> str:
        """Return the currently configured socket path."""

        return str(self._settings_provider().socket_path or "")

    async def connect(self) -> SessionHandle:
        return await self._open(self.endpoint())

    async def _open(self, endpoint: str) -> SessionHandle:
        if not endpoint.strip():
            raise InvalidEndpointError(endpoint=endpoint)
        try:
            return await self._factory(endpoint)
        except BridgeConnectionError:
            LOGGER.warning("Could not connect to Neovim at %s", endpoint)
            raise
        except _TRANSPORT_ERRORS as exc:
            LOGGER.warning("Could not connect to Neovim at %s: %s", endpoint, exc)
            raise BridgeConnectionError(endpoint=endpoint, cause=exc) from exc

    @contextlib.asynccontextmanager
    async def session(self) -> AsyncIterator[SessionHandle]:
        endpoint = self.endpoint()
        with bound_endpoint(endpoint):
            handle = await self._open(endpoint)
            try:
                yield handle
            finally:
                await handle.close()
