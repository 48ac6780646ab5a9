"""Resolve ``#include`` and ``#encode`` directives in plugin source text.

Directives live inside Lua block comments::

    --[[ #include "controls/layout.lua" ]]
    Logo = --[[ #encode "assets/logo.png" ]]

Every referenced path resolves against the top-level source directory,
whatever the depth of the file the directive appears in. Failures are
confined to the directive that caused them: the directive is replaced by a
marker (see :mod:`qplug.markers`) and resolution carries on.
"""

from __future__ import annotations

import enum
import logging
import pathlib
import re
from typing import NamedTuple

import qplug.assets
import qplug.markers

logger = logging.getLogger("qplug.directives")


class DirectiveKind(enum.Enum):
    INCLUDE = "include"
    ENCODE = "encode"


def _directive_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(rf'--\[\[\s*#{keyword}\s+"([^"]+)"\s*\]\]')


INCLUDE_RE = _directive_pattern(DirectiveKind.INCLUDE.value)
ENCODE_RE = _directive_pattern(DirectiveKind.ENCODE.value)

_PATTERNS = {
    DirectiveKind.INCLUDE: INCLUDE_RE,
    DirectiveKind.ENCODE: ENCODE_RE,
}


class DirectiveMatch(NamedTuple):
    """A single directive occurrence found during scanning."""

    kind: DirectiveKind
    path: str
    span: tuple[int, int]


def find_directives(text: str, kind: DirectiveKind) -> list[DirectiveMatch]:
    """Return every *kind* directive in *text*, left to right."""
    return [
        DirectiveMatch(kind, m.group(1), m.span())
        for m in _PATTERNS[kind].finditer(text)
    ]


def read_source(path: pathlib.Path) -> str:
    """Read a Lua source file as UTF-8, substituting U+FFFD for undecodable bytes."""
    return pathlib.Path(path).read_text(encoding="utf-8", errors="replace")


def _resolve_path(base_path: pathlib.Path, name: str) -> pathlib.Path:
    return (pathlib.Path(base_path) / name).resolve()


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------

def _encode_one(name: str, base_path: pathlib.Path) -> str:
    path = _resolve_path(base_path, name)
    if not path.exists():
        logger.warning("Image file not found: %s", name)
        return qplug.markers.image_not_found(name)
    try:
        encoded = qplug.assets.encode(path)
    except qplug.assets.EncodeError as exc:
        logger.error("Error encoding image %s: %s", name, exc)
        return qplug.markers.encode_failed(name)
    return qplug.markers.quoted(encoded)


def resolve_encodes(text: str, base_path: pathlib.Path) -> str:
    """Replace every encode directive with a quoted base64 string."""
    return ENCODE_RE.sub(lambda m: _encode_one(m.group(1), base_path), text)


# ---------------------------------------------------------------------------
# Include
# ---------------------------------------------------------------------------

def _include_one(
    name: str,
    base_path: pathlib.Path,
    visited: frozenset[pathlib.Path],
) -> str:
    path = _resolve_path(base_path, name)

    if path in visited:
        logger.warning("Circular include detected for %s", name)
        return qplug.markers.circular_include(name)

    if not path.exists():
        logger.warning("Include file not found: %s", name)
        return qplug.markers.include_not_found(name)

    try:
        content = read_source(path)
    except OSError as exc:
        logger.error("Error reading include file %s: %s", name, exc)
        return qplug.markers.include_failed(name)

    logger.debug("Including %s", path)
    content = resolve_includes(content, base_path, visited | {path})
    content = resolve_encodes(content, base_path)
    return qplug.markers.wrap_include(name, content)


def resolve_includes(
    text: str,
    base_path: pathlib.Path,
    visited: frozenset[pathlib.Path] = frozenset(),
) -> str:
    """Expand include directives in *text* recursively.

    *visited* holds the absolute paths on the current inclusion chain.
    Each branch extends its own copy, so a file may be included from
    several siblings while a file that includes itself (directly or
    transitively) is cut off with a circular-include marker.

    Encode directives inside included files are resolved before the
    file is spliced in; those in *text* itself are left for the caller.
    """
    return INCLUDE_RE.sub(
        lambda m: _include_one(m.group(1), base_path, visited), text
    )


def resolve(text: str, base_path: pathlib.Path) -> str:
    """Fully resolve a top-level source buffer: includes, then encodes."""
    text = resolve_includes(text, base_path)
    return resolve_encodes(text, base_path)
