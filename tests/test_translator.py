"""Tests for editing operations translated into remote calls."""

from __future__ import annotations

import pytest
from pynvim.api import NvimError

from nvimbridge.bridge.errors import BridgeConnectionError, CommandError, ValidationError
from nvimbridge.bridge.manager import NeovimBridge
from nvimbridge.bridge.models import SearchOptions
from nvimbridge.services.settings import SHELL_DISABLED_MESSAGE
from tests.helpers import FakeSession, make_bridge, make_settings_provider


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------


class TestSendCommand:
    @pytest.mark.asyncio
    async def test_returns_trimmed_output(self, bridge, fake: FakeSession) -> None:
        fake.execute_outputs["echo 'hi'"] = "\nhi\n"
        assert await bridge.send_command(":echo 'hi'") == "hi"
        assert ("call", ("execute", "echo 'hi'")) in fake.calls

    @pytest.mark.asyncio
    async def test_no_output(self, bridge) -> None:
        assert await bridge.send_command("set number") == "Command executed (no output)"

    @pytest.mark.asyncio
    async def test_errmsg_raises_command_error(self, bridge, fake: FakeSession) -> None:
        fake.execute_errmsg["bogus"] = "E492: Not an editor command: bogus"
        with pytest.raises(CommandError) as exc_info:
            await bridge.send_command("bogus")
        assert exc_info.value.remote_error == "E492: Not an editor command: bogus"

    @pytest.mark.asyncio
    async def test_remote_failure_normalized(self, bridge, fake: FakeSession) -> None:
        fake.failures["execute"] = NvimError("Vim(write):E32: No file name")
        with pytest.raises(CommandError) as exc_info:
            await bridge.send_command("write")
        assert "E32" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_empty_command_rejected(self, bridge, fake: FakeSession) -> None:
        with pytest.raises(ValidationError):
            await bridge.send_command("  ")
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_shell_disabled_makes_no_remote_call(self, bridge, fake: FakeSession) -> None:
        assert await bridge.send_command("!ls") == SHELL_DISABLED_MESSAGE
        assert fake.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", [" !touch /tmp/x", "::!touch /tmp/x", ": !touch /tmp/x", "\t:!ls"])
    async def test_shell_disabled_after_ex_prefix(self, bridge, fake: FakeSession, command: str) -> None:
        assert await bridge.send_command(command) == SHELL_DISABLED_MESSAGE
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_shell_enabled_strips_ex_prefix(self, shell_bridge, fake: FakeSession) -> None:
        fake.system_output = "ok"
        assert await shell_bridge.send_command(" :: !echo ok") == "ok"
        assert ("call", ("system", "echo ok")) in fake.calls

    @pytest.mark.asyncio
    async def test_shell_enabled_runs_system(self, shell_bridge, fake: FakeSession) -> None:
        fake.system_output = "a.txt\nb.txt\n"
        assert await shell_bridge.send_command("!ls") == "a.txt\nb.txt"
        assert ("call", ("system", "ls")) in fake.calls

    @pytest.mark.asyncio
    async def test_shell_enabled_empty_output(self, shell_bridge, fake: FakeSession) -> None:
        fake.system_output = ""
        assert await shell_bridge.send_command("!true") == "No output from command"

    @pytest.mark.asyncio
    async def test_connection_failure_propagates(self) -> None:
        async def factory(endpoint: str) -> FakeSession:
            raise ConnectionRefusedError("refused")

        bridge = NeovimBridge(make_settings_provider(), session_factory=factory)
        with pytest.raises(BridgeConnectionError):
            await bridge.send_command("echo 1")


# -----------------------------------------------------------------------------
# Edits
# -----------------------------------------------------------------------------


class TestEditLines:
    @pytest.mark.asyncio
    async def test_insert_into_empty_buffer_replaces_placeholder(self, bridge, fake: FakeSession) -> None:
        assert await bridge.edit_lines(1, "insert", "a\nb") == "Lines inserted successfully"
        assert await bridge.get_buffer_contents() == {1: "a", 2: "b"}

    @pytest.mark.asyncio
    async def test_insert_before_line(self, bridge, fake: FakeSession) -> None:
        fake.set_buffer_lines(["one", "three"])
        await bridge.edit_lines(2, "insert", "two")
        assert fake.lines == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_replace_lines(self, bridge, fake: FakeSession) -> None:
        fake.set_buffer_lines(["one", "two", "three"])
        assert await bridge.edit_lines(2, "replace", "TWO") == "Lines replaced successfully"
        assert fake.lines == ["one", "TWO", "three"]

    @pytest.mark.asyncio
    async def test_replace_all(self, bridge, fake: FakeSession) -> None:
        fake.set_buffer_lines(["old", "stuff"])
        assert await bridge.edit_lines(1, "replaceAll", "new") == "Buffer completely replaced"
        assert fake.lines == ["new"]

    @pytest.mark.asyncio
    async def test_invalid_mode(self, bridge, fake: FakeSession) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await bridge.edit_lines(1, "append", "x")
        assert exc_info.value.field_name == "mode"
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_start_line_must_be_positive(self, bridge, fake: FakeSession) -> None:
        with pytest.raises(ValidationError):
            await bridge.edit_lines(0, "insert", "x")
        assert fake.calls == []


# -----------------------------------------------------------------------------
# Marks, registers, windows, selection
# -----------------------------------------------------------------------------


class TestMarksAndRegisters:
    @pytest.mark.asyncio
    async def test_set_mark_then_read(self, bridge, fake: FakeSession) -> None:
        assert await bridge.set_mark("a", 3, 4) == "Mark a set at line 3, column 4"
        assert fake.marks["a"][1:3] == [3, 5]
        assert await bridge.get_mark("a") == (3, 4)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mark", ["1", "A", "ab", ""])
    async def test_invalid_mark_makes_no_remote_call(self, bridge, fake: FakeSession, mark: str) -> None:
        with pytest.raises(ValidationError):
            await bridge.set_mark(mark, 1, 0)
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_unnamed_register_round_trip(self, bridge) -> None:
        assert await bridge.set_register('"', "hello") == 'Register " set'
        assert await bridge.get_register('"') == "hello"

    @pytest.mark.asyncio
    async def test_invalid_register(self, bridge, fake: FakeSession) -> None:
        with pytest.raises(ValidationError):
            await bridge.set_register("1", "x")
        assert fake.calls == []


class TestWindowAndVisual:
    @pytest.mark.asyncio
    async def test_window_command(self, bridge, fake: FakeSession) -> None:
        assert await bridge.manipulate_window("wincmd h") == "Window command executed"
        assert fake.commands == ["wincmd h"]

    @pytest.mark.asyncio
    async def test_unknown_window_command(self, bridge, fake: FakeSession) -> None:
        with pytest.raises(ValidationError):
            await bridge.manipulate_window("tabnew")
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_visual_select(self, bridge, fake: FakeSession) -> None:
        await bridge.visual_select(1, 0, 2, 3)
        assert fake.commands == ["normal! v"]
        assert fake.cursor == (2, 3)


# -----------------------------------------------------------------------------
# Buffers and files
# -----------------------------------------------------------------------------


class TestBuffersAndFiles:
    @pytest.mark.asyncio
    async def test_switch_by_number(self, bridge, fake: FakeSession) -> None:
        assert await bridge.switch_buffer(3) == "Switched to buffer 3"
        assert fake.commands == ["buffer 3"]

    @pytest.mark.asyncio
    async def test_switch_by_name(self, bridge, fake: FakeSession) -> None:
        fake.add_buffer(2, "/project/src/main.py")
        assert await bridge.switch_buffer("main.py") == "Switched to buffer: /project/src/main.py"
        assert fake.commands == ["buffer 2"]

    @pytest.mark.asyncio
    async def test_switch_unknown_name(self, bridge) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await bridge.switch_buffer("missing.py")
        assert exc_info.value.message == "Buffer not found: missing.py"
        assert exc_info.value.field_name == "identifier"

    @pytest.mark.asyncio
    async def test_save_unnamed_buffer_fails(self, bridge) -> None:
        with pytest.raises(ValidationError, match="unnamed"):
            await bridge.save_buffer()

    @pytest.mark.asyncio
    async def test_save_named_buffer(self, bridge, fake: FakeSession) -> None:
        fake.buffers[1].name = "/project/notes.md"
        assert await bridge.save_buffer() == "Buffer saved: /project/notes.md"
        assert fake.commands == ["write"]

    @pytest.mark.asyncio
    async def test_save_to_escaped_filename(self, bridge, fake: FakeSession) -> None:
        assert await bridge.save_buffer("my notes.md") == "Buffer saved to: my notes.md"
        assert fake.commands == ["write my\\ notes.md"]

    @pytest.mark.asyncio
    async def test_open_file(self, bridge, fake: FakeSession) -> None:
        assert await bridge.open_file("a|b.txt") == "Opened file: a|b.txt"
        assert fake.commands == ["edit a\\|b.txt"]


# -----------------------------------------------------------------------------
# Search
# -----------------------------------------------------------------------------


class TestSearch:
    @pytest.mark.asyncio
    async def test_no_matches(self, bridge, fake: FakeSession) -> None:
        fake.search_total = 0
        assert await bridge.search_in_buffer("zzz") == "No matches found for: zzz"
        assert "search" not in [args[0] for name, args in fake.calls if name == "call"]

    @pytest.mark.asyncio
    async def test_matches_with_options(self, bridge, fake: FakeSession) -> None:
        fake.search_total = 3
        options = SearchOptions(ignore_case=True, whole_word=True)
        assert await bridge.search_in_buffer("foo", options) == "Found 3 matches for: foo"
        assert ("call", ("search", "\\c\\<foo\\>", "cw")) in fake.calls

    @pytest.mark.asyncio
    async def test_incomplete_count(self, bridge, fake: FakeSession) -> None:
        fake.search_total = 100
        fake.search_incomplete = 1
        result = await bridge.search_in_buffer("x")
        assert result == "Found 100 matches for: x (showing first 100)"

    @pytest.mark.asyncio
    async def test_replace_builds_escaped_substitute(self, bridge, fake: FakeSession) -> None:
        options = SearchOptions(global_replace=True, ignore_case=True)
        result = await bridge.search_and_replace("a/b", "c\nd", options)
        assert result == "Search and replace completed"
        assert ("call", ("execute", "%s/a\\/b/c\\rd/gi")) in fake.calls

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("options", "expected"),
        [
            (None, "%s/a/b/"),
            (SearchOptions(global_replace=False), "%s/a/b/"),
            (SearchOptions(global_replace=True), "%s/a/b/g"),
            (SearchOptions(confirm=True), "%s/a/b/c"),
            (SearchOptions(global_replace=True, ignore_case=True, confirm=True), "%s/a/b/gic"),
        ],
    )
    async def test_replace_flags(self, bridge, fake: FakeSession, options, expected: str) -> None:
        await bridge.search_and_replace("a", "b", options)
        assert ("call", ("execute", expected)) in fake.calls

    @pytest.mark.asyncio
    async def test_replace_no_match(self, bridge, fake: FakeSession) -> None:
        fake.failures["execute"] = NvimError("Vim(substitute):E486: Pattern not found: q")
        assert await bridge.search_and_replace("q", "r") == "No matches found for: q"

    @pytest.mark.asyncio
    async def test_grep_summary(self, bridge, fake: FakeSession) -> None:
        fake.quickfix = [{"bufnr": 2, "lnum": n, "text": f" hit {n} "} for n in range(1, 13)]
        fake.bufnames[2] = "src/a.py"
        result = await bridge.grep_in_project("hit", "src/**/*.py")
        lines = result.split("\n")
        assert lines[0] == "Found 12 matches for: hit"
        assert lines[1] == "src/a.py:1: hit 1"
        assert lines[-1] == "... and 2 more matches"
        assert fake.commands == ["vimgrep /hit/j src/**/*.py"]

    @pytest.mark.asyncio
    async def test_grep_no_match(self, bridge, fake: FakeSession) -> None:
        fake.failures["command:vimgrep /zzz/j **/*"] = NvimError("Vim(vimgrep):E480: No match: zzz")
        assert await bridge.grep_in_project("zzz") == "No matches found for: zzz"


# -----------------------------------------------------------------------------
# Macros, tabs, folds, jumps
# -----------------------------------------------------------------------------


class TestMacros:
    @pytest.mark.asyncio
    async def test_record(self, bridge, fake: FakeSession) -> None:
        assert await bridge.manage_macro("record", "q") == "Started recording macro in register 'q'"
        assert fake.inputs == ["qq"]

    @pytest.mark.asyncio
    async def test_record_while_recording(self, bridge, fake: FakeSession) -> None:
        fake.recording = "a"
        with pytest.raises(ValidationError, match="Already recording"):
            await bridge.manage_macro("record", "q")
        assert fake.inputs == []

    @pytest.mark.asyncio
    async def test_stop_when_idle(self, bridge, fake: FakeSession) -> None:
        assert await bridge.manage_macro("stop") == "No macro recording in progress"
        assert fake.inputs == []

    @pytest.mark.asyncio
    async def test_stop(self, bridge, fake: FakeSession) -> None:
        fake.recording = "w"
        assert await bridge.manage_macro("stop") == "Stopped recording macro in register 'w'"
        assert fake.inputs == ["q"]

    @pytest.mark.asyncio
    async def test_play_with_count(self, bridge, fake: FakeSession) -> None:
        assert await bridge.manage_macro("play", "a", 3) == "Played macro from register 'a' 3 time(s)"
        assert fake.inputs == ["3@a"]

    @pytest.mark.asyncio
    async def test_play_requires_register(self, bridge, fake: FakeSession) -> None:
        with pytest.raises(ValidationError):
            await bridge.manage_macro("play")
        assert fake.calls == []


class TestTabs:
    @pytest.mark.asyncio
    async def test_new_with_file(self, bridge, fake: FakeSession) -> None:
        assert await bridge.manage_tab("new", "x y.txt") == "Created new tab with file: x y.txt"
        assert fake.commands == ["tabnew x\\ y.txt"]

    @pytest.mark.asyncio
    async def test_navigation(self, bridge, fake: FakeSession) -> None:
        await bridge.manage_tab("prev")
        await bridge.manage_tab("last")
        assert fake.commands == ["tabprevious", "tablast"]

    @pytest.mark.asyncio
    async def test_list(self, bridge, fake: FakeSession) -> None:
        fake.buffers[1].name = "/project/a.py"
        fake.add_buffer(2, "")
        fake.windows[1001] = {"buffer": 2, "width": 80, "height": 24, "row": 0, "col": 0}
        fake.tabpages[2] = 1001
        assert await bridge.manage_tab("list") == "Tabs:\n*1: /project/a.py\n 2: [No Name]"


class TestFolds:
    @pytest.mark.asyncio
    async def test_create(self, bridge, fake: FakeSession) -> None:
        assert await bridge.manage_fold("create", 2, 5) == "Created fold from line 2 to 5"
        assert fake.commands == ["2,5fold"]

    @pytest.mark.asyncio
    async def test_create_requires_range(self, bridge, fake: FakeSession) -> None:
        with pytest.raises(ValidationError):
            await bridge.manage_fold("create", 2)
        with pytest.raises(ValidationError):
            await bridge.manage_fold("create", 5, 2)
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_keyed_actions(self, bridge, fake: FakeSession) -> None:
        await bridge.manage_fold("toggle")
        await bridge.manage_fold("openall")
        assert fake.inputs == ["za"]
        assert fake.commands == ["normal! zR"]


class TestJumps:
    @pytest.mark.asyncio
    async def test_back_and_forward(self, bridge, fake: FakeSession) -> None:
        await bridge.navigate_jump_list("back")
        await bridge.navigate_jump_list("forward")
        assert fake.inputs == ["<C-o>", "<Tab>"]

    @pytest.mark.asyncio
    async def test_list(self, bridge, fake: FakeSession) -> None:
        fake.execute_outputs["jumps"] = "\n jump line  col file/text\n>\n"
        assert await bridge.navigate_jump_list("list") == "Jump list:\njump line  col file/text\n>"

    @pytest.mark.asyncio
    async def test_invalid_direction(self, bridge) -> None:
        with pytest.raises(ValidationError, match="Invalid direction"):
            await bridge.navigate_jump_list("up")


def test_make_bridge_reuses_fake() -> None:
    fake = FakeSession()
    bridge = make_bridge(fake, socket_path="/tmp/custom")
    assert bridge.endpoint == "/tmp/custom"
