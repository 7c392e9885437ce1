"""Tests for the vim_* tool table wired onto a bridge."""

from __future__ import annotations

import pytest

from nvimbridge.bridge.errors import ValidationError
from nvimbridge.services.settings import SHELL_DISABLED_MESSAGE
from nvimbridge.tools import RESOURCES, TOOL_SPECS, ToolExecutor, ToolRegistry, register_bridge_tools
from tests.helpers import FakeSession, make_bridge


@pytest.fixture
def executor(bridge) -> ToolExecutor:
    return ToolExecutor(register_bridge_tools(ToolRegistry(), bridge))


class TestToolTable:
    def test_every_tool_registered(self, executor: ToolExecutor) -> None:
        names = set(executor.registry.list_names())
        assert set(TOOL_SPECS) <= names
        assert {resource.tool_name for resource in RESOURCES} <= names
        assert len(names) == len(TOOL_SPECS) + len(RESOURCES)

    def test_schemas_are_objects(self) -> None:
        for spec in TOOL_SPECS.values():
            assert spec.input_schema["type"] == "object"

    def test_edit_schema(self) -> None:
        schema = TOOL_SPECS["vim_edit"].input_schema
        assert schema["required"] == ["startLine", "mode", "lines"]
        assert schema["properties"]["mode"]["enum"] == ["insert", "replace", "replaceAll"]

    def test_resource_mirror_metadata(self) -> None:
        registry = register_bridge_tools(ToolRegistry(), make_bridge(FakeSession()))
        assert registry.get("vim_get_buffers").spec.description.startswith("Get ")


class TestToolCalls:
    @pytest.mark.asyncio
    async def test_buffer_rendered_with_line_numbers(self, executor: ToolExecutor, fake: FakeSession) -> None:
        fake.set_buffer_lines(["first", "second"])
        result = await executor.execute("vim_buffer", {})
        assert result.text == "1: first\n2: second"

    @pytest.mark.asyncio
    async def test_edit_insert_into_empty_buffer(self, executor: ToolExecutor, fake: FakeSession) -> None:
        result = await executor.execute("vim_edit", {"startLine": 1, "mode": "insert", "lines": "a\nb"})
        assert result.success is True
        assert fake.lines == ["a", "b"]

    @pytest.mark.asyncio
    async def test_register_round_trip(self, executor: ToolExecutor) -> None:
        stored = await executor.execute("vim_register", {"register": '"', "content": "hello"})
        assert stored.text == 'Register " set'
        read = await executor.execute("vim_register", {"register": '"'})
        assert read.text == "hello"

    @pytest.mark.asyncio
    async def test_invalid_mark_never_reaches_editor(self, executor: ToolExecutor, fake: FakeSession) -> None:
        result = await executor.execute("vim_mark", {"mark": "1", "line": 1, "column": 0})
        assert result.success is False
        assert isinstance(result.error, ValidationError)
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_shell_disabled(self, executor: ToolExecutor, fake: FakeSession) -> None:
        result = await executor.execute("vim_command", {"command": "!rm -rf /tmp/x"})
        assert result.success is True
        assert result.text == SHELL_DISABLED_MESSAGE
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_status_rendered_as_json(self, executor: ToolExecutor) -> None:
        result = await executor.execute("vim_status", {})
        assert '"cursorPosition": [' in result.text

    @pytest.mark.asyncio
    async def test_search_options_from_arguments(self, executor: ToolExecutor, fake: FakeSession) -> None:
        fake.search_total = 1
        await executor.execute("vim_search", {"pattern": "x", "ignoreCase": True})
        assert ("call", ("search", "\\cx", "cw")) in fake.calls

    @pytest.mark.asyncio
    async def test_buffer_switch_accepts_number(self, executor: ToolExecutor, fake: FakeSession) -> None:
        result = await executor.execute("vim_buffer_switch", {"identifier": 2})
        assert result.text == "Switched to buffer 2"

    @pytest.mark.asyncio
    async def test_health(self, executor: ToolExecutor, fake: FakeSession) -> None:
        assert (await executor.execute("vim_health", {})).text == "Neovim connection is healthy"
        fake.eval_results["1"] = 0
        assert (await executor.execute("vim_health", {})).text == "Neovim connection failed"

    @pytest.mark.asyncio
    async def test_selection_without_selection(self, executor: ToolExecutor) -> None:
        result = await executor.execute("vim_get_selection", {"includeContext": True})
        assert result.text == "No visual selection available"

    @pytest.mark.asyncio
    async def test_resource_mirror_tool(self, executor: ToolExecutor, fake: FakeSession) -> None:
        fake.system_output = ""
        result = await executor.execute("vim_get_git_status", {})
        assert result.text == "Working tree clean"

    @pytest.mark.asyncio
    async def test_schema_rejects_bad_enum(self, executor: ToolExecutor, fake: FakeSession) -> None:
        result = await executor.execute("vim_window", {"command": "tabnew"})
        assert isinstance(result.error, ValidationError)
        assert fake.calls == []
