"""
Core exception types raised by edge specification parsing and the translation table.

Provides typed exceptions for core-domain failures:
- EdgeSpecError for malformed ``file:from:to[:index:name]*`` edge specifications.
- EdgeColumnsError when an edge header lacks ``_from`` or ``_to``.
- TranslationError for misuse of a frozen translation table.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - Per-record problems (bad JSON lines, odd attribute types) are not exceptions;
      transforms log them and keep going. File-level failures live in smartify.io.errors.

Examples:
    >>> from smartify.core.errors import EdgeSpecError
    >>> try:
    ...     raise EdgeSpecError("need at least file:from:to")
    ... except ValueError as e:
    ...     msg = str(e)
    >>> "file:from:to" in msg
    True
"""

from __future__ import annotations

__all__ = [
    "SmartifyError",
    "EdgeSpecError",
    "EdgeColumnsError",
    "TranslationError",
]


class SmartifyError(Exception):
    """Base class for smartify core errors."""


class EdgeSpecError(SmartifyError, ValueError):
    """Edge collection specification could not be parsed."""


class EdgeColumnsError(SmartifyError, KeyError):
    """Edge header is missing a mandatory endpoint column."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class TranslationError(SmartifyError, RuntimeError):
    """Translation table used outside its write-then-read lifecycle."""
