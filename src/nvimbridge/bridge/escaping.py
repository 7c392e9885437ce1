"""Escaping helpers for text interpolated into Ex commands and patterns."""

from __future__ import annotations

__all__ = [
    "escape_delimited",
    "escape_replacement",
    "escape_filename",
    "escape_bar",
    "whole_word",
    "with_case",
]

# Characters fnameescape() protects, plus glob metacharacters.
_FNAME_SPECIAL = " \t\n`$%#'\"|!<\\*?[{"


def escape_delimited(text: str, delimiter: str = "/") -> str:
    """Escape bare ``delimiter`` occurrences so ``text`` fits between two of them.

    Backslash pairs are copied unchanged so existing regex escapes such as
    ``\\/`` or ``\\d`` keep their meaning. A dangling trailing backslash is
    doubled so it cannot swallow the closing delimiter.
    """

    out: list[str] = []
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char == "\\":
            if index + 1 < length:
                out.append(text[index : index + 2])
                index += 2
                continue
            out.append("\\\\")
        elif char == delimiter:
            out.append("\\" + delimiter)
        else:
            out.append(char)
        index += 1
    return "".join(out)


def escape_replacement(text: str, delimiter: str = "/") -> str:
    """Escape the replacement half of a ``:substitute``.

    Newlines become ``\\r`` (a line break in Neovim replacement syntax).
    """

    return escape_delimited(text, delimiter).replace("\n", "\\r")


def escape_filename(name: str) -> str:
    """Escape a file name for use as an Ex command argument, like ``fnameescape()``."""

    escaped = "".join("\\" + char if char in _FNAME_SPECIAL else char for char in name)
    if escaped.startswith(("+", ">")) or escaped == "-":
        escaped = "\\" + escaped
    return escaped


def escape_bar(text: str) -> str:
    """Escape ``|`` so it does not terminate the surrounding Ex command."""

    return text.replace("|", "\\|")


def whole_word(pattern: str) -> str:
    return f"\\<{pattern}\\>"


def with_case(pattern: str, ignore_case: bool) -> str:
    """Prefix ``pattern`` with ``\\c``/``\\C`` so matching ignores 'ignorecase'."""

    return ("\\c" if ignore_case else "\\C") + pattern
