"""CLI for compiler settings.

Usage:
    qplug config list                         Show settings, defaults and allowed values
    qplug config get <section.key>            Print effective value
    qplug config set [--global] <key> <value> Write a setting
    qplug config reset [--global] <key>       Remove an override
    qplug config show                         Effective settings and where each comes from

``--path DIR`` selects the plugin source tree whose ``.qplug/config.toml``
is read and written (default: current directory).
"""

from __future__ import annotations

import argparse
import pathlib
import sys

import qplug.config


def _ensure_registry() -> None:
    """Import all config modules so the registry is populated."""
    import qplug.compiler_config  # noqa: F401


def _split_key(key: str) -> tuple[str, str] | None:
    section, dot, field = key.partition(".")
    if not dot or not field:
        print(f"Invalid key format: {key!r} (expected section.key)", file=sys.stderr)
        return None
    return section, field


def cmd_list() -> int:
    """Print every setting with its default and allowed values."""
    _ensure_registry()
    for section in sorted(qplug.config.list_sections()):
        print(f"[{section}]")
        for name, f in qplug.config.fields(section).items():
            line = f"  {name} = {f.default!r}"
            choices = f.metadata.get("choices")
            if choices:
                line += f"  (one of: {', '.join(choices)})"
            print(line)
        print()
    return 0


def cmd_get(key: str, root: pathlib.Path) -> int:
    _ensure_registry()
    parsed = _split_key(key)
    if parsed is None:
        return 1
    try:
        print(qplug.config.get_effective(*parsed, root))
    except KeyError as exc:
        print(exc.args[0], file=sys.stderr)
        return 1
    return 0


def cmd_set(key: str, value: str, *, scope: str, root: pathlib.Path) -> int:
    _ensure_registry()
    parsed = _split_key(key)
    if parsed is None:
        return 1
    try:
        qplug.config.set_value(*parsed, value, scope=scope, root=root)
    except (KeyError, ValueError) as exc:
        print(exc.args[0], file=sys.stderr)
        return 1
    print(f"Set {key} = {value} ({scope})")
    return 0


def cmd_reset(key: str, *, scope: str, root: pathlib.Path) -> int:
    _ensure_registry()
    parsed = _split_key(key)
    if parsed is None:
        return 1
    if qplug.config.reset_value(*parsed, scope=scope, root=root):
        print(f"Reset {key} ({scope})")
    else:
        print(f"No {scope} override for {key}")
    return 0


def cmd_show(root: pathlib.Path) -> int:
    """Print effective settings tagged with the layer that set them."""
    _ensure_registry()
    for section in sorted(qplug.config.list_sections()):
        print(f"[{section}]")
        for name, (value, origin) in qplug.config.explain(section, root).items():
            print(f"  {name} = {value!r}  # {origin}")
        print()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``qplug config``."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--path", type=pathlib.Path, default=pathlib.Path.cwd(),
        help="Plugin source directory (default: current directory)",
    )
    scoped = argparse.ArgumentParser(add_help=False, parents=[common])
    scoped.add_argument(
        "--global", dest="scope", action="store_const",
        const="global", default="local",
        help="Use ~/.config/qplug/config.toml instead of the source tree",
    )

    parser = argparse.ArgumentParser(
        prog="qplug config", description="Compiler settings."
    )
    sub = parser.add_subparsers(dest="subcmd")
    sub.add_parser("list", help="Show settings and defaults")
    p_get = sub.add_parser("get", parents=[common], help="Print effective value")
    p_get.add_argument("key", help="section.key")
    p_set = sub.add_parser("set", parents=[scoped], help="Write a setting")
    p_set.add_argument("key", help="section.key")
    p_set.add_argument("value", help="New value")
    p_reset = sub.add_parser("reset", parents=[scoped], help="Remove an override")
    p_reset.add_argument("key", help="section.key")
    sub.add_parser("show", parents=[common], help="Effective settings with origins")

    args = parser.parse_args(argv)

    if args.subcmd == "list":
        return cmd_list()
    elif args.subcmd == "get":
        return cmd_get(args.key, args.path)
    elif args.subcmd == "set":
        return cmd_set(args.key, args.value, scope=args.scope, root=args.path)
    elif args.subcmd == "reset":
        return cmd_reset(args.key, scope=args.scope, root=args.path)
    elif args.subcmd == "show":
        return cmd_show(args.path)
    parser.print_help()
    return 1
