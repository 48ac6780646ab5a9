"""Configuration defaults for plugin compilation."""

from __future__ import annotations

import dataclasses

import qplug.config
import qplug.version


@qplug.config.configurable("compile")
@dataclasses.dataclass
class CompileConfig:
    main_file: str = "plugin.lua"
    info_file: str = "info.lua"
    build_type: str = dataclasses.field(
        default=qplug.version.BuildKind.DEV.value,
        metadata={"choices": qplug.version.BUILD_KINDS},
    )
    output_extension: str = ".qplug"
