"""Shared test fixtures for qplug tests."""

from __future__ import annotations

import pathlib

import pytest

import qplug.config

# PNG signature followed by arbitrary (non-UTF-8) payload bytes.
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\xff\xfe\x00\x01"

SVG_TEXT = '<svg xmlns="http://www.w3.org/2000/svg" width="1" height="1"/>'


@pytest.fixture(autouse=True)
def _isolated_global_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> pathlib.Path:
    """Keep the user's ~/.config/qplug out of every test."""
    global_toml = tmp_path_factory.mktemp("global") / "config.toml"
    monkeypatch.setattr(qplug.config, "_global_path", lambda: global_toml)
    return global_toml


@pytest.fixture
def plugin_tree(tmp_path: pathlib.Path):
    """Factory that writes a plugin source tree from ``{relpath: content}``.

    ``str`` values are written as UTF-8 text, ``bytes`` values as-is.
    Returns the source directory.
    """

    def _create(files: dict[str, str | bytes]) -> pathlib.Path:
        root = tmp_path / "MyPlugin"
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return root

    return _create


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def svg_text() -> str:
    return SVG_TEXT
