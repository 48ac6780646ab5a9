"""qplug CLI — Q-SYS plugin compiler.

Usage:
    qplug [options] [BUILD_TYPE]   Compile the plugin in the source directory
    qplug config <cmd>             Compiler configuration (get/set/list/show)
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys

import qplug.compiler
import qplug.version

logger = logging.getLogger("qplug")

_EPILOG = """\
Build Types:
  ver_maj    Increment major version (x.0.0.0)
  ver_min    Increment minor version (x.y.0.0)
  ver_fix    Increment fix version (x.y.z.0)
  ver_dev    Increment dev version (x.y.z.w) [default]

Directives:
  --[[ #include "filename.lua" ]]    Include a Lua file
  --[[ #encode "image.png" ]]        Inline an image as base64

  Supported image formats: .png, .jpg, .jpeg, .svg
  Paths are relative to the source directory.

Examples:
  qplug
  qplug ver_min
  qplug --source ./my-plugin --output MyPlugin.qplug

  Logo = --[[ #encode "logo.png" ]]
  table.insert(graphics, {Type="Image", Image=Logo, Position={0,0}, Size={75,9}})
"""


class UsageError(Exception):
    """Bad command-line usage (missing option value, etc.)."""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="qplug",
        description="Q-Sys Plugin Compiler",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument(
        "-s", "--source", default=".",
        help="Source directory (default: current directory)",
    )
    parser.add_argument(
        "-m", "--main", dest="main_file", default=None,
        help="Main plugin file (default: plugin.lua)",
    )
    parser.add_argument(
        "-o", "--output", dest="output_file", default=None,
        help="Output file name (default: <source dir name>.qplug)",
    )
    parser.add_argument(
        "-i", "--info", dest="info_file", default=None,
        help="Info file name (default: info.lua)",
    )
    parser.add_argument(
        "-b", "--build-type", dest="build_type", default=None,
        metavar="TYPE",
        help="Build type: ver_maj, ver_min, ver_fix, ver_dev (default: ver_dev)",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("-h", "--help", action="store_true", help="Show this help message")
    parser.add_argument("tokens", nargs="*", help=argparse.SUPPRESS)
    return parser


def _configure_logging(*, quiet: bool, verbose: bool) -> None:
    level = logging.INFO
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(message)s")


def _options_from_args(
    args: argparse.Namespace, unknown: list[str]
) -> qplug.compiler.CompileOptions:
    build_type = args.build_type
    for token in [*args.tokens, *unknown]:
        if token in qplug.version.BUILD_KINDS:
            build_type = token
        else:
            logger.warning("Unknown argument: %s", token)

    if build_type is not None and build_type not in qplug.version.BUILD_KINDS:
        logger.warning("Unknown build type %r, using ver_dev", build_type)

    return qplug.compiler.CompileOptions(
        source_dir=pathlib.Path(args.source),
        main_file=args.main_file,
        output_file=args.output_file,
        info_file=args.info_file,
        build_type=build_type,
    )


def _cmd_compile(argv: list[str]) -> int:
    parser = _build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except UsageError as exc:
        _configure_logging(quiet=False, verbose=False)
        logger.error("%s: error: %s", parser.prog, exc)
        parser.print_usage(sys.stderr)
        return 1

    if args.help:
        parser.print_help()
        return 0

    _configure_logging(quiet=args.quiet, verbose=args.verbose)
    options = _options_from_args(args, unknown)

    print("Q-Sys Plugin Compiler")
    print("====================")

    try:
        result = qplug.compiler.compile_plugin(options)
    except qplug.compiler.MainFileNotFound as exc:
        logger.error("Error: %s", exc)
        return 1
    except Exception as exc:
        logger.debug("Compilation failed", exc_info=True)
        logger.error("Compilation failed: %s", exc)
        return 1

    print()
    print("Compilation successful!")
    print(f"Output: {result.output_path}")
    print(f"File size: {result.size_bytes / 1024:.2f} KB")
    if result.metadata is not None:
        version = qplug.version.current_version(result.metadata)
        plugin_id = qplug.version.read_plugin_id(result.metadata)
        if version:
            print(f"Version: {version}")
        if plugin_id:
            print(f"Plugin Id: {plugin_id}")
    return 0


def _cmd_config(args: list[str]) -> int:
    """Compiler configuration."""
    import qplug.config_cli

    return qplug.config_cli.main(args)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv

    if args and args[0] == "config":
        return _cmd_config(args[1:])
    return _cmd_compile(args)


if __name__ == "__main__":
    sys.exit(main())
