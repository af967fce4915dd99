"""
Filesystem helpers for smartify.io (local files only).

Responsibilities
- Provide a minimal stdlib-only abstraction for the file operations the drivers use:
  opening inputs as bytes, creating text outputs, fsync, atomic renames, and cleanup.
- Establish clear semantics for the rewrite path: tmp write → fsync → atomic rename.

Notes
- Atomicity via os.replace is guaranteed only when src and dst reside on the same
  filesystem; temporary files are always siblings of their target for that reason.
- All helpers are synchronous and raise OSError; smartify.io.stream maps those to
  IoError subclasses.
"""

from __future__ import annotations

import os
from typing import BinaryIO, TextIO


def exists(path: str) -> bool:
    """
    Check whether a path exists.

    Args:
        path (str): Filesystem path.

    Returns:
        bool: True if the path exists, False otherwise.
    """
    return os.path.exists(path)


def sibling_tmp(path: str, suffix: str) -> str:
    """Return the temporary path next to ``path`` (``path`` + ``suffix``)."""
    return path + suffix


def open_read(path: str) -> BinaryIO:
    """
    Open an input file in binary mode.

    Notes:
        Lines are decoded one at a time by the driver so that a single undecodable line
        can be dropped without failing the whole file.
    """
    return open(path, "rb")


def open_write(path: str) -> TextIO:
    """
    Create (or truncate) a UTF-8 text file for writing.

    Notes:
        ``newline=""`` keeps ``\\n`` line terminators on every platform.
    """
    return open(path, "w", encoding="utf-8", newline="")


def fsync_file(fh: TextIO | BinaryIO) -> None:
    """
    Flush and fsync an open file handle.

    Args:
        fh (object): A file-like object with .fileno() and .flush().

    Notes:
        Ensures file contents reach the storage device (subject to OS/filesystem semantics).
    """
    fh.flush()
    os.fsync(fh.fileno())


def rename_atomic(src: str, dst: str) -> None:
    """
    Atomically rename src -> dst on the same filesystem, replacing dst.

    Args:
        src (str): Existing source path (typically a temporary file).
        dst (str): Final destination path.
    """
    os.replace(src, dst)


def remove_if_exists(path: str) -> bool:
    """
    Remove a file if present.

    Returns:
        bool: True if a file was removed.
    """
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    return True
