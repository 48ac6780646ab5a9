"""Compile a plugin source tree into a single ``.qplug`` artifact.

One run:
1. Bump the metadata file's version (and fill a ``<guid>`` placeholder).
2. Read the main file and expand include directives recursively.
3. Resolve encode directives left in the main file.
4. Write the artifact under the source directory.
"""

from __future__ import annotations

import dataclasses
import logging
import pathlib

import qplug.config
import qplug.directives
import qplug.version

logger = logging.getLogger("qplug.compiler")


class MainFileNotFound(Exception):
    """The main plugin file does not exist in the source directory."""


def _compile_cfg(root: pathlib.Path):
    import qplug.compiler_config

    return qplug.config.load("compile", root)


@dataclasses.dataclass
class CompileOptions:
    source_dir: pathlib.Path = pathlib.Path(".")
    main_file: str | None = None
    output_file: str | None = None
    info_file: str | None = None
    build_type: str | None = None

    def with_defaults(self) -> CompileOptions:
        """Fill unset fields from the ``[compile]`` config section."""
        cfg = _compile_cfg(pathlib.Path(self.source_dir).resolve())
        return dataclasses.replace(
            self,
            main_file=self.main_file or cfg.main_file,
            info_file=self.info_file or cfg.info_file,
            build_type=self.build_type or cfg.build_type,
            output_file=self.output_file or _default_output_name(
                pathlib.Path(self.source_dir), cfg.output_extension
            ),
        )


@dataclasses.dataclass
class CompileResult:
    output_path: pathlib.Path
    size_bytes: int = 0
    metadata: str | None = None


def _default_output_name(source_dir: pathlib.Path, extension: str) -> str:
    return f"{source_dir.resolve().name}{extension}"


def compile_plugin(options: CompileOptions) -> CompileResult:
    """Run one compilation and return where the artifact was written.

    Raises :class:`MainFileNotFound` when the main file is missing.
    """
    opts = options.with_defaults()
    source = pathlib.Path(opts.source_dir).resolve()
    main_path = source / opts.main_file
    info_path = source / opts.info_file

    logger.info("Source directory: %s", source)
    logger.info("Main file: %s", opts.main_file)
    logger.info("Build type: %s", opts.build_type)

    if not main_path.exists():
        raise MainFileNotFound(f"Main file {opts.main_file} not found in {source}")

    metadata = qplug.version.update_metadata(info_path, opts.build_type)

    logger.info("Processing includes and image encodings...")
    content = qplug.directives.read_source(main_path)
    content = qplug.directives.resolve(content, source)

    output_path = source / opts.output_file
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")

    size = output_path.stat().st_size
    logger.info("Output: %s (%.2f KB)", output_path, size / 1024)
    return CompileResult(output_path=output_path, size_bytes=size, metadata=metadata)
