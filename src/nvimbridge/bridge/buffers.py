"""Buffer lookup by name shared by the translator and the aggregator."""

from __future__ import annotations

import os
from typing import Iterable

from .errors import ValidationError
from .models import BufferRef
from .session import SessionHandle

__all__ = ["list_buffer_refs", "match_buffer", "find_buffer"]


async def list_buffer_refs(nvim: SessionHandle) -> list[BufferRef]:
    refs: list[BufferRef] = []
    for buffer in await nvim.list_buffers():
        refs.append(BufferRef(id=buffer, name=await nvim.buffer_name(buffer)))
    return refs


def match_buffer(refs: Iterable[BufferRef], name: str) -> BufferRef | None:
    """Pick the buffer whose name matches ``name``.

    An exact match wins. Otherwise the first suffix match on a path boundary
    is used, then any plain suffix match.
    """

    candidates = list(refs)
    for ref in candidates:
        if ref.name == name:
            return ref
    loose: BufferRef | None = None
    for ref in candidates:
        if not ref.name.endswith(name):
            continue
        boundary = len(ref.name) - len(name) - 1
        if boundary >= 0 and ref.name[boundary] == os.sep:
            return ref
        if loose is None:
            loose = ref
    return loose


async def find_buffer(nvim: SessionHandle, name: str) -> BufferRef:
    ref = match_buffer(await list_buffer_refs(nvim), name)
    if ref is None:
        raise ValidationError(message=f"Buffer not found: {name}", field_name="filename")
    return ref
