"""Compiler settings persisted in TOML.

Settings merge in three layers, later layers winning:

    default     dataclass field defaults
    global      ~/.config/qplug/config.toml
    local       <source>/.qplug/config.toml

Every setting is a string. A field may restrict its values with
``metadata={"choices": (...)}``: out-of-range values are rejected by
``set_value`` and skipped with a warning when loaded from a file.
"""

from __future__ import annotations

import dataclasses
import logging
import pathlib
import tomllib
from typing import Any, TypeVar

T = TypeVar("T")

logger = logging.getLogger("qplug.config")

_REGISTRY: dict[str, type] = {}


def configurable(section: str):
    """Class decorator — register a dataclass as a ``[section]`` table."""

    def decorator(cls: type[T]) -> type[T]:
        _REGISTRY[section] = cls
        return cls

    return decorator


def list_sections() -> dict[str, type]:
    return dict(_REGISTRY)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def _global_path() -> pathlib.Path:
    return pathlib.Path.home() / ".config" / "qplug" / "config.toml"


def _local_path(root: pathlib.Path) -> pathlib.Path:
    return root / ".qplug" / "config.toml"


def _scope_path(scope: str, root: pathlib.Path) -> pathlib.Path:
    return _global_path() if scope == "global" else _local_path(root)


def _load_toml(path: pathlib.Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}


def _write_toml(path: pathlib.Path, data: dict[str, Any]) -> None:
    import tomli_w

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(tomli_w.dumps(data).encode())


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def fields(section: str) -> dict[str, dataclasses.Field]:
    """Return the fields of *section* keyed by name."""
    cls = _REGISTRY.get(section)
    if cls is None:
        raise KeyError(f"Unknown config section: {section}")
    return {f.name: f for f in dataclasses.fields(cls)}


def validate(section: str, key: str, value: Any) -> None:
    """Raise ``KeyError`` for unknown keys, ``ValueError`` for bad values."""
    field = fields(section).get(key)
    if field is None:
        raise KeyError(f"Unknown key: {section}.{key}")
    if not isinstance(value, str):
        raise ValueError(f"{section}.{key} must be a string, got {value!r}")
    choices = field.metadata.get("choices")
    if choices and value not in choices:
        raise ValueError(
            f"Invalid value for {section}.{key}: {value!r} "
            f"(expected one of: {', '.join(choices)})"
        )


def _layer(section: str, scope: str, root: pathlib.Path) -> dict[str, str]:
    """Return the valid overrides *scope* holds for *section*."""
    path = _scope_path(scope, root)
    out: dict[str, str] = {}
    for key, value in _load_toml(path).get(section, {}).items():
        try:
            validate(section, key, value)
        except (KeyError, ValueError) as exc:
            logger.warning("Skipping %s in %s: %s", key, path, exc)
            continue
        out[key] = value
    return out


# ---------------------------------------------------------------------------
# Core API
# ---------------------------------------------------------------------------

def explain(section: str, root: pathlib.Path) -> dict[str, tuple[Any, str]]:
    """Map each key to ``(effective value, layer it came from)``."""
    resolved = {
        name: (f.default, "default") for name, f in fields(section).items()
    }
    for scope in ("global", "local"):
        for key, value in _layer(section, scope, root).items():
            resolved[key] = (value, scope)
    return resolved


def load(section: str, root: pathlib.Path) -> Any:
    """Build the *section* dataclass with all layers applied."""
    values = {key: value for key, (value, _) in explain(section, root).items()}
    return _REGISTRY[section](**values)


def get_effective(section: str, key: str, root: pathlib.Path) -> Any:
    resolved = explain(section, root)
    if key not in resolved:
        raise KeyError(f"Unknown key: {section}.{key}")
    return resolved[key][0]


def set_value(
    section: str,
    key: str,
    value: str,
    *,
    scope: str = "local",
    root: pathlib.Path,
) -> None:
    """Validate *value* and write it to the *scope* TOML file."""
    validate(section, key, value)
    path = _scope_path(scope, root)
    data = _load_toml(path)
    data.setdefault(section, {})[key] = value
    _write_toml(path, data)


def reset_value(
    section: str,
    key: str,
    *,
    scope: str = "local",
    root: pathlib.Path,
) -> bool:
    """Drop an override. Returns False when there was none."""
    path = _scope_path(scope, root)
    data = _load_toml(path)
    sec = data.get(section, {})
    if key not in sec:
        return False
    del sec[key]
    if not sec:
        del data[section]
    _write_toml(path, data)
    return True
