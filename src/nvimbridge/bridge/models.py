"""Value types shared by the bridge operations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Mapping, TypeVar

from .errors import ValidationError

__all__ = [
    "UNAVAILABLE",
    "LSP_UNAVAILABLE",
    "PLUGIN_UNAVAILABLE",
    "NO_SELECTION",
    "EditMode",
    "WindowCommand",
    "MacroAction",
    "TabAction",
    "FoldAction",
    "JumpDirection",
    "SearchOptions",
    "BufferRef",
    "BufferInfo",
    "WindowInfo",
    "Position",
    "Selection",
    "EditorStatus",
    "parse_choice",
]

UNAVAILABLE = "unavailable"
LSP_UNAVAILABLE = "LSP information unavailable"
PLUGIN_UNAVAILABLE = "Plugin information unavailable"
NO_SELECTION = "No visual selection available"


class EditMode(str, Enum):
    INSERT = "insert"
    REPLACE = "replace"
    REPLACE_ALL = "replaceAll"


class WindowCommand(str, Enum):
    SPLIT = "split"
    VSPLIT = "vsplit"
    ONLY = "only"
    CLOSE = "close"
    LEFT = "wincmd h"
    DOWN = "wincmd j"
    UP = "wincmd k"
    RIGHT = "wincmd l"


class MacroAction(str, Enum):
    RECORD = "record"
    STOP = "stop"
    PLAY = "play"


class TabAction(str, Enum):
    NEW = "new"
    CLOSE = "close"
    NEXT = "next"
    PREV = "prev"
    FIRST = "first"
    LAST = "last"
    LIST = "list"


class FoldAction(str, Enum):
    CREATE = "create"
    OPEN = "open"
    CLOSE = "close"
    TOGGLE = "toggle"
    OPEN_ALL = "openall"
    CLOSE_ALL = "closeall"
    DELETE = "delete"


class JumpDirection(str, Enum):
    BACK = "back"
    FORWARD = "forward"
    LIST = "list"


_E = TypeVar("_E", bound=Enum)


def parse_choice(enum_type: type[_E], value: Any, field_name: str) -> _E:
    """Coerce ``value`` into ``enum_type`` or raise :class:`ValidationError`."""

    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(str(member.value) for member in enum_type)
        raise ValidationError(
            message=f"Invalid {field_name}: {value!r}. Expected one of: {allowed}",
            field_name=field_name,
        ) from None


@dataclass(slots=True, frozen=True)
class SearchOptions:
    ignore_case: bool = False
    whole_word: bool = False
    global_replace: bool = False
    confirm: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "SearchOptions":
        """Build options from snake_case or camelCase keys."""

        data = data or {}

        def _flag(*keys: str) -> bool:
            return any(bool(data.get(key)) for key in keys)

        return cls(
            ignore_case=_flag("ignore_case", "ignoreCase"),
            whole_word=_flag("whole_word", "wholeWord"),
            global_replace=_flag("global_replace", "global"),
            confirm=_flag("confirm"),
        )


@dataclass(slots=True, frozen=True)
class BufferRef:
    """A buffer id paired with its display name."""

    id: int
    name: str


@dataclass(slots=True)
class BufferInfo:
    number: int
    name: str
    is_listed: bool
    is_loaded: bool
    modified: bool
    syntax: str
    window_ids: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "name": self.name,
            "isListed": self.is_listed,
            "isLoaded": self.is_loaded,
            "modified": self.modified,
            "syntax": self.syntax,
            "windowIds": list(self.window_ids),
        }


@dataclass(slots=True)
class WindowInfo:
    id: int
    buffer_id: int
    width: int
    height: int
    row: int
    col: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "bufferId": self.buffer_id,
            "width": self.width,
            "height": self.height,
            "row": self.row,
            "col": self.col,
        }


@dataclass(slots=True, frozen=True)
class Position:
    """A 1-based line paired with a column."""

    line: int
    column: int


@dataclass(slots=True)
class Selection:
    """Text covered by the live or most recent visual selection.

    ``start.column`` is 1-based; ``end.column`` is the inclusive 1-based byte
    column of the last selected character.
    """

    mode: str
    buffer: str
    filetype: str
    start: Position
    end: Position
    text: str
    line_count: int
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "mode": self.mode,
            "buffer": self.buffer,
            "filetype": self.filetype,
            "selection": {
                "start": asdict(self.start),
                "end": asdict(self.end),
                "text": self.text,
                "lineCount": self.line_count,
            },
        }
        if self.context is not None:
            payload["context"] = dict(self.context)
        return payload


@dataclass(slots=True)
class EditorStatus:
    """Aggregated snapshot of the editor, built fresh on every call."""

    cursor_position: tuple[int, int]
    mode: str
    file_name: str
    window_layout: str
    current_tab: int | str
    cwd: str
    marks: dict[str, tuple[int, int]] = field(default_factory=dict)
    registers: dict[str, str] = field(default_factory=dict)
    lsp_info: str = LSP_UNAVAILABLE
    plugin_info: str = PLUGIN_UNAVAILABLE
    visual_selection: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "cursorPosition": list(self.cursor_position),
            "mode": self.mode,
            "visualSelection": self.visual_selection,
            "fileName": self.file_name,
            "windowLayout": self.window_layout,
            "currentTab": self.current_tab,
            "marks": {name: list(pos) for name, pos in self.marks.items()},
            "registers": dict(self.registers),
            "cwd": self.cwd,
            "lspInfo": self.lsp_info,
            "pluginInfo": self.plugin_info,
        }
