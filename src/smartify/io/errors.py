"""
Custom exceptions and exit codes for the smartify.io module.

Purpose
- Provide IO-layer error types for per-file fatal conditions, each carrying the process
  exit code it maps to.
- Keep smartify.core as the source of truth for spec parsing and table errors (see
  smartify.core.errors).

Boundaries
- IoConfigError: invalid or unsupported configuration.
- IoOpenError: input file cannot be opened.
- IoCreateError: output/temporary file cannot be created.
- IoHeaderError: CSV header line missing or unreadable.
- IoColumnsError: edge file lacks ``_from``/``_to``.
- IoFlushError: flushing/closing/renaming the output failed.

Notes
- These exceptions never cross a file boundary: smartify.io.stream converts them to
  ExitCode values at the point where one file's processing ends.
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit status, one per fatal file condition."""

    OK = 0
    OPEN_INPUT = 1
    CREATE_OUTPUT = 2
    HEADER = 3
    MISSING_COLUMNS = 4
    FLUSH = 5
    CHECK_FAILED = 6


class IoError(Exception):
    """
    Base class for IO-related errors in smartify.io.

    Notes:
        ``exit_code`` is what the driver returns for a file failing with this error.
    """

    exit_code: ExitCode = ExitCode.OPEN_INPUT


class IoConfigError(IoError, ValueError):
    """
    Raised when configuration is invalid or unsupported.

    Examples:
        - Multi-character separator or quote character
        - Separator equal to the quote character
        - Unknown data type
    """


class IoOpenError(IoError):
    """Raised when an input file cannot be opened for reading."""

    exit_code = ExitCode.OPEN_INPUT


class IoCreateError(IoError):
    """Raised when an output or temporary file cannot be created."""

    exit_code = ExitCode.CREATE_OUTPUT


class IoHeaderError(IoError):
    """Raised when a CSV file has no readable header line."""

    exit_code = ExitCode.HEADER


class IoColumnsError(IoError):
    """Raised when an edge file has no ``_from`` or ``_to`` column."""

    exit_code = ExitCode.MISSING_COLUMNS


class IoFlushError(IoError):
    """
    Raised when the output cannot be flushed, closed, or moved into place.

    Notes:
        The write path is tmp file → flush/fsync → os.replace(tmp, final); the original
        file is untouched when this is raised.
    """

    exit_code = ExitCode.FLUSH
