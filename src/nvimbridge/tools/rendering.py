"""Text rendering of tool and resource results."""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Mapping

__all__ = ["render_result", "render_json", "render_buffer"]


class _ResultEncoder(json.JSONEncoder):
    """JSON encoder that understands bytes, tuples and bridge records."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, bytes):
            return obj.decode("utf-8", errors="replace")
        to_dict = getattr(obj, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        return super().default(obj)


def render_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, cls=_ResultEncoder)


def render_buffer(snapshot: Mapping[int, str]) -> str:
    """Render a buffer snapshot as ``N: text`` lines."""

    return "\n".join(f"{number}: {text}" for number, text in snapshot.items())


def render_result(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return render_json(value)
