"""Tests for qplug.directives — include/encode resolution."""

from __future__ import annotations

import base64
import logging
import pathlib

import pytest

import qplug.directives
from qplug.directives import DirectiveKind


def _inc(name: str) -> str:
    return f'--[[ #include "{name}" ]]'


def _enc(name: str) -> str:
    return f'--[[ #encode "{name}" ]]'


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


class TestFindDirectives:
    def test_finds_all_in_order(self) -> None:
        text = f"{_inc('a.lua')}\nx = 1\n{_inc('b.lua')}\n"
        found = qplug.directives.find_directives(text, DirectiveKind.INCLUDE)
        assert [m.path for m in found] == ["a.lua", "b.lua"]
        assert all(m.kind is DirectiveKind.INCLUDE for m in found)

    def test_span_covers_directive(self) -> None:
        text = f"pre {_enc('logo.png')} post"
        (match,) = qplug.directives.find_directives(text, DirectiveKind.ENCODE)
        start, end = match.span
        assert text[start:end] == _enc("logo.png")

    def test_kinds_do_not_cross_match(self) -> None:
        text = _enc("logo.png")
        assert qplug.directives.find_directives(text, DirectiveKind.INCLUDE) == []

    def test_whitespace_tolerated(self) -> None:
        text = '--[[#include    "a.lua"]]  --[[   #encode "b.svg"   ]]'
        assert [
            m.path
            for m in qplug.directives.find_directives(text, DirectiveKind.INCLUDE)
        ] == ["a.lua"]
        assert [
            m.path
            for m in qplug.directives.find_directives(text, DirectiveKind.ENCODE)
        ] == ["b.svg"]

    def test_unterminated_quote_is_not_a_directive(self) -> None:
        text = '--[[ #include "a.lua ]]'
        assert qplug.directives.find_directives(text, DirectiveKind.INCLUDE) == []

    def test_unquoted_path_is_not_a_directive(self) -> None:
        text = "--[[ #include a.lua ]]"
        assert qplug.directives.find_directives(text, DirectiveKind.INCLUDE) == []


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


class TestResolveEncodes:
    def test_replaces_with_quoted_base64(self, plugin_tree, png_bytes: bytes) -> None:
        root = plugin_tree({"logo.png": png_bytes})
        out = qplug.directives.resolve_encodes(f"Logo = {_enc('logo.png')}", root)
        expected = base64.b64encode(png_bytes).decode()
        assert out == f'Logo = "{expected}"'

    def test_subfolder_path(self, plugin_tree, svg_text: str) -> None:
        root = plugin_tree({"img/icons/logo.svg": svg_text})
        out = qplug.directives.resolve_encodes(_enc("img/icons/logo.svg"), root)
        assert base64.b64decode(out.strip('"')).decode() == svg_text

    def test_missing_asset_placeholder_and_continue(
        self, plugin_tree, png_bytes: bytes, caplog: pytest.LogCaptureFixture
    ) -> None:
        root = plugin_tree({"logo.png": png_bytes})
        text = f"a = {_enc('missing.png')}\nb = {_enc('logo.png')}\n"
        with caplog.at_level(logging.WARNING, logger="qplug.directives"):
            out = qplug.directives.resolve_encodes(text, root)
        assert 'a = "-- Image not found: missing.png"' in out
        assert f'b = "{base64.b64encode(png_bytes).decode()}"' in out
        assert "Image file not found: missing.png" in caplog.text

    def test_unsupported_format_placeholder(
        self, plugin_tree, caplog: pytest.LogCaptureFixture
    ) -> None:
        root = plugin_tree({"anim.gif": b"GIF89a"})
        with caplog.at_level(logging.ERROR, logger="qplug.directives"):
            out = qplug.directives.resolve_encodes(_enc("anim.gif"), root)
        assert out == '"-- Error encoding: anim.gif"'
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    def test_repeated_asset_encoded_each_time(
        self, plugin_tree, png_bytes: bytes
    ) -> None:
        root = plugin_tree({"logo.png": png_bytes})
        out = qplug.directives.resolve_encodes(
            f"{_enc('logo.png')},{_enc('logo.png')}", root
        )
        expected = base64.b64encode(png_bytes).decode()
        assert out == f'"{expected}","{expected}"'

    def test_includes_left_alone(self, plugin_tree) -> None:
        root = plugin_tree({"a.lua": "a = 1"})
        text = _inc("a.lua")
        assert qplug.directives.resolve_encodes(text, root) == text


# ---------------------------------------------------------------------------
# Include
# ---------------------------------------------------------------------------


class TestResolveIncludes:
    def test_single_include_wrapped(self, plugin_tree) -> None:
        root = plugin_tree({"lib.lua": "x = 1"})
        out = qplug.directives.resolve_includes(f"-- top\n{_inc('lib.lua')}\n", root)
        assert out == (
            "-- top\n"
            "-- Begin include: lib.lua\n"
            "x = 1\n"
            "-- End include: lib.lua\n"
        )

    def test_nested_includes(self, plugin_tree) -> None:
        root = plugin_tree({
            "a.lua": f"a = 1\n{_inc('b.lua')}",
            "b.lua": "b = 2",
        })
        out = qplug.directives.resolve_includes(_inc("a.lua"), root)
        assert out == (
            "-- Begin include: a.lua\n"
            "a = 1\n"
            "-- Begin include: b.lua\n"
            "b = 2\n"
            "-- End include: b.lua\n"
            "-- End include: a.lua"
        )

    def test_multiple_includes_in_one_buffer(self, plugin_tree) -> None:
        root = plugin_tree({
            "one.lua": "one = 1",
            "two.lua": "two = 2",
            "three.lua": "three = 3",
        })
        text = "\n".join(_inc(n) for n in ("one.lua", "two.lua", "three.lua"))
        out = qplug.directives.resolve_includes(text, root)
        assert "#include" not in out
        assert out.index("one = 1") < out.index("two = 2") < out.index("three = 3")

    def test_self_include_is_circular_once(
        self, plugin_tree, caplog: pytest.LogCaptureFixture
    ) -> None:
        root = plugin_tree({"a.lua": f"a = 1\n{_inc('a.lua')}"})
        with caplog.at_level(logging.WARNING, logger="qplug.directives"):
            out = qplug.directives.resolve_includes(_inc("a.lua"), root)
        assert out.count("-- Circular include: a.lua") == 1
        assert out.count("-- Begin include: a.lua") == 1
        assert "Circular include detected for a.lua" in caplog.text

    def test_transitive_cycle(self, plugin_tree) -> None:
        root = plugin_tree({
            "a.lua": _inc("b.lua"),
            "b.lua": _inc("a.lua"),
        })
        out = qplug.directives.resolve_includes(_inc("a.lua"), root)
        assert out.count("-- Circular include: a.lua") == 1
        assert "-- Begin include: b.lua" in out

    def test_diamond_is_not_circular(self, plugin_tree) -> None:
        root = plugin_tree({
            "b.lua": f"b = 1\n{_inc('d.lua')}",
            "c.lua": f"c = 1\n{_inc('d.lua')}",
            "d.lua": "d = 1",
        })
        text = f"{_inc('b.lua')}\n{_inc('c.lua')}"
        out = qplug.directives.resolve_includes(text, root)
        assert out.count("-- Begin include: d.lua") == 2
        assert out.count("d = 1") == 2
        assert "Circular" not in out

    def test_sibling_repeat_is_not_circular(self, plugin_tree) -> None:
        root = plugin_tree({"util.lua": "u = 1"})
        text = f"{_inc('util.lua')}\n{_inc('util.lua')}"
        out = qplug.directives.resolve_includes(text, root)
        assert out.count("u = 1") == 2
        assert "Circular" not in out

    def test_visited_set_not_mutated(self, plugin_tree) -> None:
        root = plugin_tree({"a.lua": "a = 1"})
        visited: frozenset[pathlib.Path] = frozenset()
        qplug.directives.resolve_includes(_inc("a.lua"), root, visited)
        assert visited == frozenset()

    def test_preseeded_visited_blocks_include(self, plugin_tree) -> None:
        root = plugin_tree({"a.lua": "a = 1"})
        visited = frozenset({(root / "a.lua").resolve()})
        out = qplug.directives.resolve_includes(_inc("a.lua"), root, visited)
        assert out == "-- Circular include: a.lua"

    def test_missing_include(
        self, plugin_tree, caplog: pytest.LogCaptureFixture
    ) -> None:
        root = plugin_tree({"ok.lua": "ok = 1"})
        text = f"{_inc('nope.lua')}\n{_inc('ok.lua')}"
        with caplog.at_level(logging.WARNING, logger="qplug.directives"):
            out = qplug.directives.resolve_includes(text, root)
        assert out.startswith("-- File not found: nope.lua\n")
        assert "ok = 1" in out
        assert "Include file not found: nope.lua" in caplog.text

    def test_latin1_include_decoded_with_replacement(self, plugin_tree) -> None:
        root = plugin_tree({"lib.lua": b"-- \xa9 2024 Acme\nx = 1\n"})
        out = qplug.directives.resolve_includes(_inc("lib.lua"), root)
        assert out == (
            "-- Begin include: lib.lua\n"
            "-- \ufffd 2024 Acme\nx = 1\n\n"
            "-- End include: lib.lua"
        )

    def test_directory_include(self, plugin_tree) -> None:
        root = plugin_tree({"pkg/x.lua": "x = 1"})
        out = qplug.directives.resolve_includes(_inc("pkg"), root)
        assert out == "-- Error including: pkg"

    def test_encodes_inside_include_resolved(
        self, plugin_tree, png_bytes: bytes
    ) -> None:
        root = plugin_tree({
            "ui.lua": f"Logo = {_enc('logo.png')}",
            "logo.png": png_bytes,
        })
        out = qplug.directives.resolve_includes(_inc("ui.lua"), root)
        assert f'Logo = "{base64.b64encode(png_bytes).decode()}"' in out

    def test_top_level_encodes_left_for_caller(
        self, plugin_tree, png_bytes: bytes
    ) -> None:
        root = plugin_tree({"logo.png": png_bytes, "a.lua": "a = 1"})
        text = f"{_inc('a.lua')}\nLogo = {_enc('logo.png')}"
        out = qplug.directives.resolve_includes(text, root)
        assert _enc("logo.png") in out

    def test_paths_resolve_against_source_root(
        self, plugin_tree, png_bytes: bytes
    ) -> None:
        root = plugin_tree({
            "sub/inner.lua": f"{_inc('sub/leaf.lua')}\nImg = {_enc('img/logo.png')}",
            "sub/leaf.lua": "leaf = 1",
            "img/logo.png": png_bytes,
        })
        out = qplug.directives.resolve_includes(_inc("sub/inner.lua"), root)
        assert "leaf = 1" in out
        assert f'Img = "{base64.b64encode(png_bytes).decode()}"' in out
        assert "not found" not in out


class TestResolve:
    def test_includes_then_encodes(self, plugin_tree, png_bytes: bytes) -> None:
        root = plugin_tree({
            "logo.png": png_bytes,
            "a.lua": f"A = {_enc('logo.png')}",
        })
        text = f"{_inc('a.lua')}\nTop = {_enc('logo.png')}"
        out = qplug.directives.resolve(text, root)
        expected = base64.b64encode(png_bytes).decode()
        assert "#encode" not in out
        assert "#include" not in out
        assert out.count(f'"{expected}"') == 2

    def test_no_directives_unchanged(self, tmp_path: pathlib.Path) -> None:
        text = "function Init()\n  print('hi')\nend\n"
        assert qplug.directives.resolve(text, tmp_path) == text
