"""
Core file system helpers.

This module provides the path and text helpers shared by navigation and
refactoring:
- read_text: Read a source file exactly as stored
- resolve_path / file_uri: Canonical absolute paths and URIs
- relative_specifier: Relative import specifiers between files
"""

import os
import logging
from pathlib import Path

# Configure logging
logger = logging.getLogger(__name__)


def resolve_path(root: str, path: str) -> str:
    """Absolute, normalized form of ``path`` interpreted relative to ``root``."""
    return os.path.normpath(os.path.join(os.path.abspath(root), path))


def file_uri(path: str) -> str:
    """Canonical ``file://`` URI for an absolute path."""
    return Path(os.path.abspath(path)).as_uri()


def read_text(path: str) -> str:
    """
    Reads the full content of a text file, preserving line endings and the final newline.

    Raises:
        FileNotFoundError: If the file does not exist
        IsADirectoryError: If the path is a directory, not a file
        PermissionError: If the user lacks permission to read the file
        UnicodeDecodeError: If the file cannot be decoded as UTF-8
    """
    logger.debug("Reading file '%s'", path)

    if not os.path.exists(path):
        logger.warning("File not found: %s", path)
        raise FileNotFoundError(f"File not found: {path}")

    if not os.path.isfile(path):
        logger.warning("Path is not a file: %s", path)
        raise IsADirectoryError(f"Path is not a file: {path}")

    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_text(path: str, content: str) -> None:
    """Write ``content`` to ``path``, creating parent directories as needed."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


def strip_extension(path: str) -> str:
    return os.path.splitext(path)[0]


def relative_specifier(from_dir: str, target: str) -> str:
    """
    Relative import specifier from a directory to a target path.

    Always uses forward slashes and starts with ``./`` or ``../``, so the
    result is never mistaken for a package name.
    """
    relative = os.path.relpath(target, from_dir).replace(os.sep, "/")
    if relative == ".":
        return "."
    if not relative.startswith("."):
        relative = "./" + relative
    return relative
