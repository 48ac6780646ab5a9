"""Plugin metadata: build versions and plugin identifiers.

The metadata file (``info.lua``) carries a ``BuildVersion = "a.b.c.d"``
field and, for a freshly created plugin, an ``Id = "<guid>"`` placeholder.
``update_metadata`` bumps the version and fills the placeholder in place.
"""

from __future__ import annotations

import enum
import logging
import pathlib
import re
import secrets

logger = logging.getLogger("qplug.version")

GUID_PLACEHOLDER = "<guid>"
GUID_TEMPLATE = "xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx"

BUILD_VERSION_RE = re.compile(r'BuildVersion\s*=\s*"([^"]+)"')
PLUGIN_ID_RE = re.compile(r'\bId\s*=\s*"([^"]+)"')

_LEADING_INT_RE = re.compile(r"\s*[+-]?\d+")


class BuildKind(enum.Enum):
    MAJOR = "ver_maj"
    MINOR = "ver_min"
    FIX = "ver_fix"
    DEV = "ver_dev"

    @classmethod
    def parse(cls, value: BuildKind | str | None) -> BuildKind:
        """Map *value* to a BuildKind; anything unrecognised is DEV."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.DEV


BUILD_KINDS = tuple(k.value for k in BuildKind)


# ---------------------------------------------------------------------------
# Version strings
# ---------------------------------------------------------------------------

def _parse_component(text: str) -> int:
    m = _LEADING_INT_RE.match(text)
    if m is None:
        return 0
    return max(int(m.group()), 0)


def parse_version(version: str) -> list[int]:
    """Split a dotted version into integers, padded to at least 4 parts.

    Non-numeric or empty components become 0. Components beyond the
    fourth are kept so that formatting round-trips them.
    """
    parts = [_parse_component(p) for p in version.split(".")]
    while len(parts) < 4:
        parts.append(0)
    return parts


def format_version(parts: list[int]) -> str:
    return ".".join(str(p) for p in parts)


def increment_version(version: str, build_kind: BuildKind | str) -> str:
    """Return *version* bumped according to *build_kind*.

    ==========  ==================================
    ver_maj     major + 1, minor/fix/dev reset
    ver_min     minor + 1, fix/dev reset
    ver_fix     fix + 1, dev reset
    ver_dev     dev + 1 (also for unknown kinds)
    ==========  ==================================
    """
    parts = parse_version(version)
    kind = BuildKind.parse(build_kind)

    if kind is BuildKind.MAJOR:
        parts[0] += 1
        parts[1] = parts[2] = parts[3] = 0
    elif kind is BuildKind.MINOR:
        parts[1] += 1
        parts[2] = parts[3] = 0
    elif kind is BuildKind.FIX:
        parts[2] += 1
        parts[3] = 0
    else:
        parts[3] += 1

    return format_version(parts)


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

def generate_guid() -> str:
    """Return a random version-4 style identifier.

    ``x`` positions are random hex digits; the ``y`` position is one of
    ``8, 9, a, b``.
    """
    out = []
    for ch in GUID_TEMPLATE:
        if ch == "x":
            out.append(f"{secrets.randbelow(16):x}")
        elif ch == "y":
            out.append(f"{secrets.randbelow(4) | 0x8:x}")
        else:
            out.append(ch)
    return "".join(out)


# ---------------------------------------------------------------------------
# Metadata file
# ---------------------------------------------------------------------------

def current_version(text: str) -> str | None:
    """Return the value of the first ``BuildVersion`` field, if any."""
    m = BUILD_VERSION_RE.search(text)
    return m.group(1) if m else None


def read_plugin_id(text: str) -> str | None:
    """Return the value of the first ``Id`` field, if any."""
    m = PLUGIN_ID_RE.search(text)
    return m.group(1) if m else None


def update_metadata_text(text: str, build_kind: BuildKind | str) -> tuple[str, bool]:
    """Apply GUID and version updates to metadata *text*.

    Returns ``(new_text, modified)``.
    """
    modified = False

    if GUID_PLACEHOLDER in text:
        guid = generate_guid()
        text = text.replace(GUID_PLACEHOLDER, guid, 1)
        logger.info("Generated new UUID: %s", guid)
        modified = True

    m = BUILD_VERSION_RE.search(text)
    if m:
        old = m.group(1)
        new = increment_version(old, build_kind)
        text = text[: m.start()] + f'BuildVersion = "{new}"' + text[m.end():]
        logger.info("Updated BuildVersion: %s -> %s", old, new)
        modified = True

    return text, modified


def update_metadata(path: pathlib.Path, build_kind: BuildKind | str) -> str | None:
    """Update the metadata file at *path* in place.

    Returns the resulting text (changed or not), or ``None`` when the
    file does not exist.
    """
    path = pathlib.Path(path)
    if not path.exists():
        logger.error("Metadata file not found: %s", path)
        return None

    # surrogateescape keeps non-UTF-8 bytes intact across the rewrite
    raw = path.read_text(encoding="utf-8", errors="surrogateescape")
    text, modified = update_metadata_text(raw, build_kind)
    if modified:
        path.write_text(text, encoding="utf-8", errors="surrogateescape")
    return text
