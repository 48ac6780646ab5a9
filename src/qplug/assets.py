"""Inline image assets as base64 text.

Only a fixed set of image formats is accepted. The output is the plain
base64 encoding of the file bytes with no data-URI prefix, identical in
shape for raster images and SVG.
"""

from __future__ import annotations

import base64
import logging
import pathlib

logger = logging.getLogger("qplug.assets")

SUPPORTED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".svg")


class EncodeError(Exception):
    """Base class for asset encoding failures."""


class UnsupportedFormat(EncodeError):
    """The asset's extension is not one of SUPPORTED_EXTENSIONS."""


class ReadError(EncodeError):
    """The asset file could not be read."""


def is_supported(path: pathlib.Path) -> bool:
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def encode(path: pathlib.Path) -> str:
    """Return the base64 text of the image at *path*.

    Raises :class:`UnsupportedFormat` for unknown extensions and
    :class:`ReadError` when the file cannot be opened or read.
    """
    path = pathlib.Path(path)
    if not is_supported(path):
        raise UnsupportedFormat(
            f"Unsupported image format: {path.suffix.lower() or '(none)'}. "
            f"Supported formats: {', '.join(SUPPORTED_EXTENSIONS)}"
        )

    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ReadError(f"Cannot read {path}: {exc}") from exc

    logger.info("Encoded image: %s (%.2f KB)", path.name, len(data) / 1024)
    return base64.b64encode(data).decode("ascii")
