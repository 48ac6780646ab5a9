"""Marker text emitted in place of resolved or failed directives.

Include markers are Lua line comments::

    -- Begin include: {path}
    ...content...
    -- End include: {path}

Encode placeholders are double-quoted so they stay valid inside the Lua
string expression the directive was written in.

All functions are string-based (no file I/O).
"""

from __future__ import annotations


def begin_include(path: str) -> str:
    """Return the opening marker for an expanded include."""
    return f"-- Begin include: {path}"


def end_include(path: str) -> str:
    """Return the closing marker for an expanded include."""
    return f"-- End include: {path}"


def wrap_include(path: str, content: str) -> str:
    """Wrap resolved *content* between begin/end markers for *path*."""
    return f"{begin_include(path)}\n{content}\n{end_include(path)}"


def circular_include(path: str) -> str:
    return f"-- Circular include: {path}"


def include_not_found(path: str) -> str:
    return f"-- File not found: {path}"


def include_failed(path: str) -> str:
    return f"-- Error including: {path}"


def quoted(text: str) -> str:
    """Wrap *text* in double quotes as a Lua string literal."""
    return f'"{text}"'


def image_not_found(path: str) -> str:
    return quoted(f"-- Image not found: {path}")


def encode_failed(path: str) -> str:
    return quoted(f"-- Error encoding: {path}")
