"""Tests for error normalization around bridge operations."""

from __future__ import annotations

import pytest
from pynvim.api import NvimError

from nvimbridge.bridge.errors import BridgeConnectionError, CommandError, ValidationError
from nvimbridge.bridge.normalizer import bridge_operation, normalize_exception, remote_error_text


class _Operations:
    def __init__(self, error: BaseException | None) -> None:
        self.error = error

    @bridge_operation("static label")
    async def static(self) -> str:
        if self.error is not None:
            raise self.error
        return "ok"

    @bridge_operation(lambda name, count=1: f"dynamic {name} x{count}")
    async def dynamic(self, name: str, count: int = 1) -> str:
        if self.error is not None:
            raise self.error
        return name * count


class TestRemoteErrorText:
    def test_bytes_payload(self) -> None:
        assert remote_error_text(NvimError(b"E5108: Lua error")) == "E5108: Lua error"

    def test_pair_payload(self) -> None:
        assert remote_error_text(NvimError([0, "Invalid buffer id"])) == "Invalid buffer id"

    def test_no_args(self) -> None:
        assert remote_error_text(KeyError()) == "KeyError"


class TestNormalizeException:
    def test_recognized_passthrough(self) -> None:
        error = ValidationError(message="bad")
        assert normalize_exception(error, "ctx") is error

    def test_unknown_wrapped(self) -> None:
        wrapped = normalize_exception(ValueError("boom"), "ctx")
        assert isinstance(wrapped, CommandError)
        assert wrapped.command == "ctx"
        assert wrapped.remote_error == "boom"


class TestBridgeOperation:
    @pytest.mark.asyncio
    async def test_success_untouched(self) -> None:
        assert await _Operations(None).static() == "ok"
        assert await _Operations(None).dynamic("ab", count=2) == "abab"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ValidationError(message="bad"),
            BridgeConnectionError(endpoint="/tmp/nvim"),
            CommandError(command="x", remote_error="y"),
        ],
    )
    async def test_recognized_errors_propagate_unchanged(self, error) -> None:
        with pytest.raises(type(error)) as exc_info:
            await _Operations(error).static()
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_remote_error_becomes_command_error(self) -> None:
        with pytest.raises(CommandError) as exc_info:
            await _Operations(NvimError("Vim:E121: Undefined variable: x")).static()
        assert exc_info.value.command == "static label"
        assert "E121" in exc_info.value.remote_error
        assert isinstance(exc_info.value.__cause__, NvimError)

    @pytest.mark.asyncio
    async def test_context_receives_arguments(self) -> None:
        with pytest.raises(CommandError) as exc_info:
            await _Operations(RuntimeError("oops")).dynamic("buf", count=3)
        assert exc_info.value.command == "dynamic buf x3"
